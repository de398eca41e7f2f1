"""Domain data models for custom field definitions, values and snapshots."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .codecs import ValueCodec


@dataclass(frozen=True, slots=True)
class FieldDefinition:
    id: str
    name: str
    applicable_project_keys: frozenset[str] = frozenset()
    applicable_issue_type_ids: frozenset[str] = frozenset()
    schema_type: str | None = None
    schema_custom: str | None = None
    custom: bool = True


@dataclass(frozen=True, slots=True)
class IssueContext:
    """Project and issue type an issue belongs to, used to scope field lookups."""

    project_key: str
    issue_type_id: str | None = None
    issue_type_name: str | None = None


@dataclass(slots=True)
class FieldValueEntry:
    id: str | None
    name: str
    values: list[str | None] | None
    codec: ValueCodec
    # Wire form as received from Jira; None for locally created entries
    raw_value: Any = None

    def set_values(self, values: Sequence[str | None] | None) -> None:
        """Replace the local values; the received wire form no longer applies."""
        self.values = list(values) if values is not None else None
        self.raw_value = None

    def encode(self) -> Any:
        return self.codec.encode(self.values)

    def wire_value(self) -> Any:
        """Raw value as received, or the encoded local values when none was received."""
        if self.raw_value is not None:
            return self.raw_value
        return self.encode()


class RemoteSnapshot(Mapping[str, Any]):
    """Read-only field id -> values mapping captured when the issue was fetched."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, Sequence[str | None] | None] | None = None):
        frozen = {key: (tuple(val) if val is not None else None) for key, val in (values or {}).items()}
        self._values = MappingProxyType(frozen)

    def __getitem__(self, field_id: str) -> tuple[str | None, ...] | None:
        return self._values[field_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"RemoteSnapshot({dict(self._values)!r})"

    @classmethod
    def from_entries(cls, entries) -> RemoteSnapshot:
        """Snapshot of the given entries (first entry wins for duplicate ids)."""
        values: dict[str, Sequence[str | None] | None] = {}
        for entry in entries:
            if entry.id is not None and entry.id not in values:
                values[entry.id] = entry.values
        return cls(values)


@dataclass(frozen=True, slots=True)
class CascadingSelectValue:
    name: str
    parent: str | None
    child: str | None = None


@dataclass(slots=True)
class IssueFieldEditMetadata:
    id: str
    name: str
    required: bool = False
    schema: dict[str, Any] = field(default_factory=dict)
    operations: list[str] = field(default_factory=list)
    allowed_values: list[Any] = field(default_factory=list)
