"""Field catalog: the ordered list of metrics a controller may publish.

Each field gets a stable index at registration time.  Snapshots and client
subscriptions refer to fields by that index only, so the catalog is built once
before the server starts and treated as read-only afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SchemaField:
    """One declared telemetry field."""

    name: str
    type: str
    unit: str
    index: int


class FieldCatalog:
    """Append-only, indexed registry of :class:`SchemaField` definitions."""

    def __init__(self) -> None:
        self._fields: list[SchemaField] = []
        self._index_by_name: dict[str, int] = {}

    def add(self, name: str, type: str = "double", unit: str = "") -> int:
        """Append a field and return its index.

        Raises :class:`ValueError` if *name* is already registered.
        """
        if name in self._index_by_name:
            raise ValueError(f"Duplicate telemetry field: {name}")
        index = len(self._fields)
        self._fields.append(SchemaField(name=name, type=type, unit=unit or "", index=index))
        self._index_by_name[name] = index
        return index

    def size(self) -> int:
        return len(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def get(self, index: int) -> SchemaField:
        """Return the field at *index* (raises :class:`IndexError` if out of range)."""
        return self._fields[index]

    def index_of(self, name: str) -> int | None:
        """Return the index for *name*, or ``None`` if it is not in the catalog."""
        return self._index_by_name.get(name)

    @property
    def fields(self) -> tuple[SchemaField, ...]:
        """All fields in registration order."""
        return tuple(self._fields)
