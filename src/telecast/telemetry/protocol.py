"""Line-oriented text protocol spoken between the server and monitoring clients.

Client -> server::

    HELLO | FIELDS                  request the field catalog
    SUB <names|ALL|*> [rate=N]      subscribe at N Hz (default 20)
    LISTCFG                         request the tunable list
    SET <name>=<value>              update a tunable

Server -> client::

    FIELDS name,type,unit;...
    CFG name,type,min,max;...
    OK
    ERR <reason>
    DATA v1,v2,...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from telecast.telemetry.config_registry import ConfigEntry
    from telecast.telemetry.fields import FieldCatalog, SchemaField

DEFAULT_RATE_HZ = 20

OK = "OK"
ERR_UNKNOWN = "ERR unknown"
ERR_NO_CONFIG = "ERR no-config"
ERR_BAD_FORMAT = "ERR bad-format"
ERR_INVALID = "ERR invalid"


@dataclass(frozen=True, slots=True)
class Command:
    """A parsed client line: upper-cased verb plus the untouched remainder."""

    verb: str
    args: str


@dataclass(frozen=True, slots=True)
class Subscription:
    indices: tuple[int, ...]
    interval_ms: int


def parse_command(line: str) -> Command | None:
    """Split *line* into verb and arguments; ``None`` for a blank line."""
    line = line.strip()
    if not line:
        return None
    verb, _, args = line.partition(" ")
    return Command(verb=verb.upper(), args=args.strip())


def min_interval_ms(max_rate_hz: int) -> int:
    """Floor on any session's send interval for a server capped at *max_rate_hz*."""
    return max(1, 1000 // max(1, max_rate_hz))


def parse_subscription(args: str, catalog: FieldCatalog, floor_ms: int) -> Subscription:
    """Resolve ``SUB`` arguments against *catalog*.

    Unknown names are dropped.  A missing, unparsable or non-positive rate
    falls back to :data:`DEFAULT_RATE_HZ`; the resulting interval never goes
    below *floor_ms*.
    """
    parts = args.split()
    field_list = parts[0] if parts else ""
    rate = DEFAULT_RATE_HZ
    for part in parts[1:]:
        if part.lower().startswith("rate="):
            try:
                rate = int(part[5:])
            except ValueError:
                pass
    if rate <= 0:
        rate = DEFAULT_RATE_HZ
    interval_ms = max(floor_ms, 1000 // rate)

    if field_list.upper() == "ALL" or field_list == "*":
        return Subscription(indices=tuple(range(catalog.size())), interval_ms=interval_ms)

    indices: list[int] = []
    for name in field_list.split(","):
        index = catalog.index_of(name.strip())
        if index is not None:
            indices.append(index)
    return Subscription(indices=tuple(indices), interval_ms=interval_ms)


def parse_assignment(args: str) -> tuple[str, str] | None:
    """Split ``name=value``; ``None`` if there is no ``=``."""
    name, sep, value = args.partition("=")
    if not sep:
        return None
    return name.strip(), value.strip()


def render_fields(fields: Iterable[SchemaField]) -> str:
    return "FIELDS " + ";".join(f"{f.name},{f.type},{f.unit}" for f in fields)


def render_config(entries: Iterable[ConfigEntry]) -> str:
    return "CFG " + ";".join(
        f"{e.name},{e.type},{float(e.min)},{float(e.max)}" for e in entries
    )


def render_data(csv: str) -> str:
    return "DATA " + csv
