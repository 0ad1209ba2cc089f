"""Registry of live-tunable numeric values.

Remote clients discover entries with ``LISTCFG`` and update them with
``SET name=value``.  Entries do not own the tunable; they call back into the
owner through a getter/setter pair supplied at registration.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ConfigEntry:
    """A named, bounded tunable."""

    name: str
    getter: Callable[[], float]
    setter: Callable[[float], None]
    min: float
    max: float
    type: str = "double"

    def accepts(self, value: float) -> bool:
        return math.isfinite(value) and self.min <= value <= self.max

    def get(self) -> float:
        return self.getter()


class ConfigRegistry:
    """Thread-safe table of tunables.

    Writers replace the whole mapping under a lock; readers take the current
    mapping reference without locking and therefore never see a partially
    registered entry.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ConfigEntry] = {}
        self._write_lock = threading.Lock()

    def register_double(
        self,
        name: str,
        getter: Callable[[], float],
        setter: Callable[[float], None],
        min: float,
        max: float,
    ) -> ConfigEntry:
        """Register (or replace) a tunable called *name* bounded to ``[min, max]``."""
        entry = ConfigEntry(name=name, getter=getter, setter=setter, min=min, max=max)
        with self._write_lock:
            entries = dict(self._entries)
            entries[name] = entry
            self._entries = entries
        logger.debug("Registered tunable %s in [%s, %s]", name, min, max)
        return entry

    def set(self, name: str, raw: str) -> bool:
        """Parse *raw* and apply it to *name*.

        Returns ``False`` without side effects when the name is unknown, the
        text is not a finite number, or the value is out of range.
        """
        entry = self._entries.get(name)
        if entry is None:
            return False
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return False
        if not entry.accepts(value):
            return False
        entry.setter(value)
        logger.info("Tunable %s set to %s", name, value)
        return True

    def get(self, name: str) -> ConfigEntry | None:
        return self._entries.get(name)

    def list(self) -> list[ConfigEntry]:
        """Copy of all entries in registration order."""
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
