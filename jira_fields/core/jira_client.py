"""Jira API client wrapper (REST v2 field catalog, createmeta and issue updates)."""

from __future__ import annotations

import logging
from typing import Any

from jira import JIRA, JIRAError

from .config import (
    CREATEMETA_EXPAND,
    JIRA_API_TOKEN,
    JIRA_EMAIL,
    JIRA_SERVER,
    REST_API_VERSION,
    issue_fields_query,
)
from .errors import JiraRequestError

logger = logging.getLogger(__name__)


class JiraAPI:
    def __init__(self, server: str, email: str, token: str):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token),
            options={"server": self.server, "rest_api_version": REST_API_VERSION},
        )

    @classmethod
    def from_env(cls) -> JiraAPI:
        """Build a client from JIRA_SERVER / JIRA_EMAIL / JIRA_API_TOKEN (``.env`` honoured)."""
        if not (JIRA_SERVER and JIRA_EMAIL and JIRA_API_TOKEN):
            raise RuntimeError("JIRA_SERVER, JIRA_EMAIL and JIRA_API_TOKEN must be set")
        return cls(JIRA_SERVER, JIRA_EMAIL, JIRA_API_TOKEN)

    def _url(self, resource: str) -> str:
        return f"{self.server}/rest/api/{REST_API_VERSION}/{resource}"

    def _request(self, method: str, resource: str, **kwargs) -> Any:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise JiraRequestError("JIRA session unavailable")
        try:
            resp = session.request(method, self._url(resource), **kwargs)
        except JIRAError as exc:
            raise JiraRequestError(
                f"{method} {resource} failed {exc.status_code}: {exc.text}", exc.status_code
            ) from exc
        if resp.status_code >= 400:
            raise JiraRequestError(f"{method} {resource} failed {resp.status_code}: {resp.text[:200]}", resp.status_code)
        logger.debug("%s %s -> %s", method, resource, resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ------------------ Field Metadata ------------------
    def fetch_fields_raw(self) -> list[dict[str, Any]]:
        return self._request("GET", "field") or []

    def fetch_createmeta_raw(
        self,
        project_key: str,
        issue_type_id: str | None = None,
        issue_type_name: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"projectKeys": project_key, "expand": CREATEMETA_EXPAND}
        if issue_type_id:
            params["issuetypeIds"] = issue_type_id
        elif issue_type_name:
            params["issuetypeNames"] = issue_type_name
        return self._request("GET", "issue/createmeta", params=params) or {}

    def fetch_editmeta_raw(self, issue_key: str) -> dict[str, Any]:
        return self._request("GET", f"issue/{issue_key}/editmeta") or {}

    # ------------------ Issues ------------------
    def fetch_issue_raw(self, issue_key: str) -> dict[str, Any]:
        raw = self._request("GET", f"issue/{issue_key}", params={"fields": issue_fields_query()})
        if not isinstance(raw, dict):
            raise JiraRequestError(f"Unexpected issue payload type for {issue_key}: {type(raw)!r}")
        return raw

    def update_issue_fields(self, issue_key: str, fields: dict[str, Any], *, notify: bool = True) -> None:
        params = None if notify else {"notifyUsers": "false"}
        self._request("PUT", f"issue/{issue_key}", params=params, json={"fields": fields})

    def create_issue_raw(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "issue", json={"fields": fields}) or {}

    # ------------------ Workflow ------------------
    def fetch_transitions_raw(self, issue_key: str) -> list[dict[str, Any]]:
        data = self._request("GET", f"issue/{issue_key}/transitions") or {}
        return data.get("transitions", []) or []

    def transition_issue_raw(
        self,
        issue_key: str,
        transition_id: str,
        fields: dict[str, Any],
        comment: str | None = None,
    ) -> None:
        update: dict[str, Any] = {}
        if comment:
            update["comment"] = [{"add": {"body": comment}}]
        body = {"transition": {"id": transition_id}, "update": update, "fields": fields}
        self._request("POST", f"issue/{issue_key}/transitions", json=body)
