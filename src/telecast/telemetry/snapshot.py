"""Per-cycle telemetry snapshots.

A :class:`SnapshotBuilder` is created at the start of every control cycle,
filled by field index, and frozen into an immutable :class:`TelemetrySnapshot`
that the server publishes.  The builder stores rendered text only; numbers are
formatted on the way in by :func:`format_number`.
"""

from __future__ import annotations

import math
from collections.abc import Sequence


def sanitize_csv(value: str | None) -> str:
    """Make *value* safe for a single CSV column on a single protocol line."""
    if value is None:
        return ""
    return value.replace(",", ";").replace("\n", " ").replace("\r", " ")


def format_number(value: float, fmt: str = "%.3f") -> str:
    """Render *value* with a printf-style (``"%.2f"``) or format-spec (``".2f"``) pattern.

    NaN renders as the empty string so clients see an absent value rather
    than a literal ``nan``.
    """
    if isinstance(value, float) and math.isnan(value):
        return ""
    if "%" in fmt:
        return fmt % value
    return format(value, fmt)


class TelemetrySnapshot:
    """Immutable vector of rendered values, one slot per catalog field."""

    __slots__ = ("_values",)

    def __init__(self, values: Sequence[str]) -> None:
        self._values: tuple[str, ...] = tuple(values)

    @classmethod
    def empty(cls, field_count: int) -> TelemetrySnapshot:
        """Snapshot with every slot blank."""
        return cls([""] * field_count)

    def get(self, index: int) -> str:
        return self._values[index]

    def size(self) -> int:
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def values(self) -> tuple[str, ...]:
        return self._values

    def to_csv(self, indices: Sequence[int]) -> str:
        """Render the values at *indices*, in that order, as one CSV line."""
        return ",".join(self._values[i] for i in indices)


class SnapshotBuilder:
    """Mutable scratch vector for one cycle; consumed once by :meth:`build`."""

    def __init__(self, field_count: int) -> None:
        self._values: list[str] = [""] * field_count
        self._built = False

    def set(self, index: int, value: str | None) -> None:
        """Overwrite slot *index* with rendered text."""
        if self._built:
            raise RuntimeError("SnapshotBuilder already built; start a new cycle")
        self._values[index] = sanitize_csv(value)

    def set_number(self, index: int, value: float, fmt: str = "%.3f") -> None:
        self.set(index, format_number(value, fmt))

    def build(self) -> TelemetrySnapshot:
        """Freeze the current contents.  The builder cannot be written afterwards."""
        self._built = True
        return TelemetrySnapshot(self._values)


def begin_cycle(field_count: int) -> SnapshotBuilder:
    """Start a new cycle with all *field_count* slots blank."""
    return SnapshotBuilder(field_count)
