"""Central configuration, constants and client settings."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_SERVER: str = os.getenv("JIRA_SERVER", "").rstrip("/")
JIRA_EMAIL: str | None = os.getenv("JIRA_EMAIL")
JIRA_API_TOKEN: str | None = os.getenv("JIRA_API_TOKEN") or os.getenv("JIRA_TOKEN")

# createmeta and the field catalog are only stable on REST v2
REST_API_VERSION = "2"
TIMEZONE = "UTC"

# =============================================================================
# Field Catalog
# =============================================================================
# Seconds a fetched catalog (scoped or not) is reused before re-fetching
CATALOG_CACHE_TTL: float = 300.0

# Expand needed so createmeta lists the fields of every issue type
CREATEMETA_EXPAND = "projects.issuetypes.fields"

# =============================================================================
# Issue Fetch / Update
# =============================================================================
# Heavy collections fetched by their own endpoints, never part of a snapshot
EXCLUDED_ISSUE_FIELDS: Sequence[str] = (
    "comment",
    "attachment",
    "issuelinks",
    "subtasks",
    "watches",
    "worklog",
)

ALL_FIELDS_QUERY = "*all"

# Jira rejects null for this field; an empty array clears it
COMPONENTS_FIELD = "components"

# System fields tracked in the snapshot alongside custom fields
SNAPSHOT_SYSTEM_FIELDS: Sequence[str] = (
    COMPONENTS_FIELD,
    "fixVersions",
    "versions",
    "labels",
)

# Codec names registered by jira_fields.core.codecs
DEFAULT_CODEC = "select"


def issue_fields_query() -> str:
    excluded = ",".join(f"-{name}" for name in EXCLUDED_ISSUE_FIELDS)
    return f"{ALL_FIELDS_QUERY},{excluded}"


@dataclass(slots=True)
class ClientSettings:
    # Always resolve names against the issue's project/issue type
    search_by_project_only: bool = False
    catalog_cache_ttl: float = CATALOG_CACHE_TTL
    timezone: str = TIMEZONE
    notify_users: bool = True


SETTINGS = ClientSettings(
    search_by_project_only=os.getenv("JIRA_SEARCH_BY_PROJECT_ONLY", "").strip().lower() in {"1", "true", "yes", "on"},
)
