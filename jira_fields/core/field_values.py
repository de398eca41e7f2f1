"""Mutable custom field values attached to an issue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Any

from .codecs import ValueCodec, decode_wire_as, get_codec
from .config import SETTINGS, SNAPSHOT_SYSTEM_FIELDS
from .errors import FieldNotFoundError
from .models import CascadingSelectValue, FieldValueEntry, IssueContext
from .resolver import FieldResolver

logger = logging.getLogger(__name__)

_SYSTEM_FIELD_IDS = {field_id.lower(): field_id for field_id in SNAPSHOT_SYSTEM_FIELDS}


def _normalize_values(values: str | Iterable[str | None] | None) -> list[str | None] | None:
    if values is None:
        return None
    if isinstance(values, str):
        return [values]
    return list(values)


class FieldValueSet(Sequence[FieldValueEntry]):
    """Ordered custom field entries of one issue.

    Entries added by name are resolved to field ids lazily. Lookups resolve
    the one name they need; ``resolve_pending`` (called on save) resolves
    every outstanding name concurrently. Adding the same field twice keeps
    both entries; lookups return the first one.
    """

    def __init__(
        self,
        resolver: FieldResolver | None = None,
        context: IssueContext | None = None,
        entries: Iterable[FieldValueEntry] | None = None,
        *,
        search_by_project_only: bool | None = None,
        timezone: str | None = None,
    ):
        self.resolver = resolver
        self.context = context
        self._entries: list[FieldValueEntry] = list(entries or [])
        if search_by_project_only is None:
            search_by_project_only = SETTINGS.search_by_project_only
        self.search_by_project_only = search_by_project_only
        self.timezone = timezone or SETTINGS.timezone

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FieldValueEntry]:
        return iter(self._entries)

    def __getitem__(self, index):
        return self._entries[index]

    def __repr__(self) -> str:
        return f"FieldValueSet({self._entries!r})"

    # ------------------ Mutation ------------------
    def add_by_name(
        self,
        name: str,
        values: str | Iterable[str | None] | None,
        codec: ValueCodec | None = None,
    ) -> FieldValueSet:
        self._entries.append(
            FieldValueEntry(id=None, name=name, values=_normalize_values(values), codec=codec or get_codec())
        )
        return self

    def add_array(self, name: str, *values: str) -> FieldValueSet:
        return self.add_by_name(name, list(values), get_codec("multistring"))

    def add_by_id(
        self,
        field_id: str,
        values: str | Iterable[str | None] | None,
        codec: ValueCodec | None = None,
    ) -> FieldValueSet:
        self._entries.append(
            FieldValueEntry(id=field_id, name=field_id, values=_normalize_values(values), codec=codec or get_codec())
        )
        return self

    def add_cascading(self, name: str, parent: str, child: str | None = None) -> FieldValueSet:
        options = [parent]
        if child:
            options.append(child)
        return self.add_by_name(name, options, get_codec("cascading"))

    # ------------------ Resolution ------------------
    async def resolve_id(self, name: str) -> str:
        # components, labels, fixVersions, versions are addressed by their id
        system_id = _SYSTEM_FIELD_IDS.get(name.lower())
        if system_id is not None:
            return system_id
        if self.resolver is None or self.context is None:
            raise FieldNotFoundError(name)
        return await self.resolver.resolve(name, self.context, force_scoped=self.search_by_project_only)

    async def resolve_pending(self) -> None:
        pending = [entry for entry in self._entries if entry.id is None]
        if not pending:
            return
        names = list(dict.fromkeys(entry.name.lower() for entry in pending))
        ids = await asyncio.gather(*(self.resolve_id(name) for name in names))
        resolved = dict(zip(names, ids, strict=True))
        for entry in pending:
            entry.id = resolved[entry.name.lower()]
        logger.debug("Resolved %s pending field names", len(names))

    # ------------------ Lookup ------------------
    async def lookup_by_name(self, name: str) -> FieldValueEntry | None:
        field_id = await self.resolve_id(name)
        for entry in self._entries:
            if entry.id is None and entry.name.lower() == name.lower():
                entry.id = field_id
        return next((entry for entry in self._entries if entry.id == field_id), None)

    def lookup_by_id(self, field_id: str) -> FieldValueEntry | None:
        return next((entry for entry in self._entries if entry.id == field_id), None)

    async def get_cascading(self, name: str) -> CascadingSelectValue | None:
        entry = await self.lookup_by_name(name)
        if entry is None or entry.values is None:
            return None
        parent = entry.values[0] if len(entry.values) > 0 else None
        child = entry.values[1] if len(entry.values) > 1 else None
        return CascadingSelectValue(name, parent, child)

    async def decode_as(self, name: str, target: Any, default: Any = None) -> Any:
        """Parse the field's raw wire value as ``target``.

        Returns ``default`` when the field is not set on the issue or its raw
        value is empty. Raises ``CodecError`` when the value does not parse.
        """
        entry = await self.lookup_by_name(name)
        if entry is None:
            return default
        raw = entry.wire_value()
        if raw is None or raw == "" or raw == [] or raw == {}:
            return default
        return decode_wire_as(raw, target, tz=self.timezone)
