"""Issue entity: local field values plus the remote snapshot they are diffed against."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .diff import build_update_fields, compute_changed_entries
from .field_values import FieldValueSet
from .models import FieldValueEntry, IssueContext, RemoteSnapshot
from .resolver import FieldResolver


class Issue:
    def __init__(
        self,
        context: IssueContext,
        *,
        key: str | None = None,
        resolver: FieldResolver | None = None,
        entries: Iterable[FieldValueEntry] | None = None,
        snapshot: RemoteSnapshot | None = None,
        search_by_project_only: bool | None = None,
        raw: dict[str, Any] | None = None,
    ):
        self.key = key
        self.context = context
        self.raw = raw or {}
        self.custom_fields = FieldValueSet(
            resolver,
            context,
            entries,
            search_by_project_only=search_by_project_only,
        )
        self._snapshot = snapshot

    def __repr__(self) -> str:
        return f"Issue(key={self.key!r}, project={self.context.project_key!r}, fields={len(self.custom_fields)})"

    @property
    def project(self) -> str:
        return self.context.project_key

    @property
    def snapshot(self) -> RemoteSnapshot | None:
        return self._snapshot

    def replace_snapshot(self, snapshot: RemoteSnapshot | None, entries: Iterable[FieldValueEntry]) -> None:
        """Swap in a freshly fetched snapshot and the entries decoded with it."""
        self._snapshot = snapshot
        self.custom_fields = FieldValueSet(
            self.custom_fields.resolver,
            self.context,
            entries,
            search_by_project_only=self.custom_fields.search_by_project_only,
            timezone=self.custom_fields.timezone,
        )

    async def changed_entries(self) -> list[FieldValueEntry]:
        await self.custom_fields.resolve_pending()
        return compute_changed_entries(self.custom_fields, self._snapshot)

    async def update_fields(self) -> dict[str, Any]:
        """Encoded ``fields`` payload holding only what changed since the snapshot."""
        return build_update_fields(await self.changed_entries())
