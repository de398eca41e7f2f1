"""Custom field catalog: fetches field definitions, optionally scoped by project / issue type."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from .config import SETTINGS, ClientSettings
from .jira_client import JiraAPI
from .mappers import map_createmeta_fields, map_field_definitions
from .models import FieldDefinition

logger = logging.getLogger(__name__)

NameIndex = dict[str, list[FieldDefinition]]


@dataclass(frozen=True, slots=True)
class CatalogScope:
    project_key: str
    issue_type_id: str | None = None
    issue_type_name: str | None = None


def build_name_index(definitions: list[FieldDefinition]) -> NameIndex:
    index: NameIndex = {}
    for definition in definitions:
        index.setdefault(definition.name.lower(), []).append(definition)
    return index


class FieldCatalog:
    """Field definitions from Jira, cached per scope for ``catalog_cache_ttl`` seconds.

    Concurrent fetches of the same scope share one in-flight request. A caller
    cancelled while waiting gets ``asyncio.CancelledError``; the shared request
    keeps running for the other waiters.
    """

    def __init__(self, api: JiraAPI, settings: ClientSettings | None = None):
        self.api = api
        self.settings = settings or SETTINGS
        self._cache: dict[CatalogScope | None, tuple[float, list[FieldDefinition], NameIndex]] = {}
        self._inflight: dict[CatalogScope | None, asyncio.Task] = {}

    def clear_cache(self) -> None:
        self._cache.clear()

    async def fetch(self, scope: CatalogScope | None = None, *, refresh: bool = False) -> list[FieldDefinition]:
        definitions, _ = await self._get(scope, refresh=refresh)
        return list(definitions)

    async def find(self, name: str, scope: CatalogScope | None = None) -> list[FieldDefinition]:
        """Definitions whose name matches ``name`` case-insensitively."""
        _, index = await self._get(scope)
        return list(index.get(name.lower(), []))

    async def _get(self, scope: CatalogScope | None, *, refresh: bool = False):
        cached = self._cache.get(scope)
        if cached and not refresh and (time.monotonic() - cached[0]) < self.settings.catalog_cache_ttl:
            return cached[1], cached[2]
        task = self._inflight.get(scope)
        if task is None:
            task = asyncio.create_task(self._load(scope))
            self._inflight[scope] = task
            task.add_done_callback(lambda t, key=scope: self._finish(key, t))
        return await asyncio.shield(task)

    def _finish(self, scope: CatalogScope | None, task: asyncio.Task) -> None:
        if self._inflight.get(scope) is task:
            del self._inflight[scope]
        if not task.cancelled():
            # Marks the exception retrieved when every waiter was cancelled
            task.exception()

    async def _load(self, scope: CatalogScope | None):
        if scope is None:
            raw = await asyncio.to_thread(self.api.fetch_fields_raw)
            definitions = map_field_definitions(raw)
        else:
            raw = await asyncio.to_thread(
                self.api.fetch_createmeta_raw,
                scope.project_key,
                scope.issue_type_id,
                scope.issue_type_name,
            )
            definitions = map_createmeta_fields(raw)
        index = build_name_index(definitions)
        self._cache[scope] = (time.monotonic(), definitions, index)
        logger.debug("Loaded %s field definitions (scope=%s)", len(definitions), scope)
        return definitions, index
