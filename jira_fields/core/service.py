"""IssueService: orchestrates fetching, field resolution, diffing and saving."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .catalog import FieldCatalog
from .config import SETTINGS, ClientSettings
from .diff import build_update_fields, compute_changed_entries
from .errors import JiraRequestError, TransitionNotFoundError
from .issue import Issue
from .jira_client import JiraAPI
from .mappers import map_edit_metadata, map_issue_context, map_snapshot_entries
from .models import IssueContext, IssueFieldEditMetadata, RemoteSnapshot
from .resolver import FieldResolver

logger = logging.getLogger(__name__)


class IssueService:
    def __init__(self, api: JiraAPI, settings: ClientSettings | None = None, catalog: FieldCatalog | None = None):
        self.api = api
        self.settings = settings or SETTINGS
        self.catalog = catalog or FieldCatalog(api, self.settings)
        self.resolver = FieldResolver(self.catalog)

    # ------------------ Fetch Methods ------------------
    async def get_issue(self, issue_key: str) -> Issue:
        raw, definitions = await asyncio.gather(
            asyncio.to_thread(self.api.fetch_issue_raw, issue_key),
            self.catalog.fetch(),
        )
        entries = map_snapshot_entries(raw, definitions)
        return Issue(
            map_issue_context(raw),
            key=raw.get("key") or issue_key,
            resolver=self.resolver,
            entries=entries,
            snapshot=RemoteSnapshot.from_entries(entries),
            search_by_project_only=self.settings.search_by_project_only,
            raw=raw,
        )

    def new_issue(
        self,
        project_key: str,
        *,
        issue_type_name: str | None = None,
        issue_type_id: str | None = None,
    ) -> Issue:
        """Local issue with no snapshot: every field added to it is sent on create."""
        context = IssueContext(project_key, issue_type_id=issue_type_id, issue_type_name=issue_type_name)
        return Issue(context, resolver=self.resolver, search_by_project_only=self.settings.search_by_project_only)

    async def refresh(self, issue: Issue) -> Issue:
        """Replace the issue's snapshot (and values) with the server's current state."""
        if not issue.key:
            raise ValueError("Cannot refresh an issue that has not been created")
        raw, definitions = await asyncio.gather(
            asyncio.to_thread(self.api.fetch_issue_raw, issue.key),
            self.catalog.fetch(),
        )
        entries = map_snapshot_entries(raw, definitions)
        issue.raw = raw
        issue.replace_snapshot(RemoteSnapshot.from_entries(entries), entries)
        return issue

    async def get_fields_edit_metadata(self, issue_key: str) -> dict[str, IssueFieldEditMetadata]:
        raw = await asyncio.to_thread(self.api.fetch_editmeta_raw, issue_key)
        return map_edit_metadata(raw)

    # ------------------ Save Methods ------------------
    async def save_issue(self, issue: Issue, *, notify: bool | None = None) -> bool:
        """Send only the fields changed since the snapshot; returns False when nothing changed."""
        if not issue.key:
            raise ValueError("Issue has no key; use create_issue for new issues")
        fields = await issue.update_fields()
        if not fields:
            logger.info("No field changes to save for %s", issue.key)
            return False
        notify_users = self.settings.notify_users if notify is None else notify
        await asyncio.to_thread(self.api.update_issue_fields, issue.key, fields, notify=notify_users)
        logger.info("Saved %s field(s) on %s: %s", len(fields), issue.key, ", ".join(fields))
        await self.refresh(issue)
        return True

    async def create_issue(self, issue: Issue, summary: str, *, extra_fields: dict[str, Any] | None = None) -> str:
        await issue.custom_fields.resolve_pending()
        context = issue.context
        issue_type = {"id": context.issue_type_id} if context.issue_type_id else {"name": context.issue_type_name}
        fields: dict[str, Any] = {
            "project": {"key": context.project_key},
            "issuetype": issue_type,
            "summary": summary,
        }
        fields.update(extra_fields or {})
        fields.update(build_update_fields(compute_changed_entries(issue.custom_fields, None)))
        result = await asyncio.to_thread(self.api.create_issue_raw, fields)
        key = result.get("key")
        if not key:
            raise JiraRequestError(f"Create issue in {context.project_key} returned no key: {result!r}")
        issue.key = key
        logger.info("Created %s with %s field(s)", key, len(fields))
        await self.refresh(issue)
        return key

    # ------------------ Workflow ------------------
    async def execute_transition(self, issue: Issue, action_name_or_id: str, *, comment: str | None = None) -> None:
        """Run a workflow transition, carrying changed fields in the same request."""
        if not issue.key:
            raise ValueError("Issue has no key; create it before transitioning")
        if str(action_name_or_id).isdigit():
            transition_id = str(action_name_or_id)
        else:
            transitions = await asyncio.to_thread(self.api.fetch_transitions_raw, issue.key)
            wanted = action_name_or_id.lower()
            match = next((t for t in transitions if str(t.get("name", "")).lower() == wanted), None)
            if match is None:
                raise TransitionNotFoundError(issue.key, action_name_or_id)
            transition_id = str(match.get("id"))
        fields = await issue.update_fields()
        await asyncio.to_thread(self.api.transition_issue_raw, issue.key, transition_id, fields, comment)
        logger.info("Transitioned %s via %s (%s field(s))", issue.key, transition_id, len(fields))
        await self.refresh(issue)
