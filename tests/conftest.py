"""Test configuration ensuring local package import when editable install not active.

If users invoke `pytest` outside the project's virtualenv, we still add the project
root to sys.path so `import jira_fields` works. Also provides an in-memory Jira
double serving canned field metadata and issues.
"""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jira_fields.core.jira_client import JiraAPI  # noqa: E402

CUSTOM = "com.atlassian.jira.plugin.system.customfieldtypes"


def _field(fid, name, custom_type=None, schema_type="array", custom=True):
    schema = {"type": schema_type}
    if custom_type:
        schema["custom"] = f"{CUSTOM}:{custom_type}" if ":" not in custom_type else custom_type
    return {"id": fid, "name": name, "custom": custom, "schema": schema}


FIELDS_RAW = [
    {"id": "summary", "name": "Summary", "custom": False, "schema": {"type": "string", "system": "summary"}},
    {"id": "components", "name": "Component/s", "custom": False, "schema": {"type": "array", "items": "component", "system": "components"}},
    _field("customfield_10010", "Server", "multiselect"),
    _field("customfield_10020", "Region", "cascadingselect", schema_type="option-with-child"),
    _field("customfield_10030", "Team", "select", schema_type="option"),
    _field("customfield_10031", "team", "select", schema_type="option"),
    _field("customfield_10040", "Asset", "com.atlassian.jira.plugins.cmdb:cmdb-object-cftype"),
    _field("customfield_10050", "Go Live", "datetime", schema_type="datetime"),
    _field("customfield_10060", "Story Points", "float", schema_type="number"),
    _field("customfield_10070", "Tags", "labels"),
    _field("customfield_10080", "Approver", "userpicker", schema_type="user"),
    _field(
        "customfield_10090",
        "Request Type",
        "com.atlassian.servicedesk:vp-origin",
        schema_type="sd-customerrequesttype",
    ),
]


def _meta(fid):
    raw = next(f for f in FIELDS_RAW if f["id"] == fid)
    return {"name": raw["name"], "required": False, "schema": raw["schema"]}


CREATEMETA_RAW = {
    "SUP": {
        "projects": [
            {
                "key": "SUP",
                "issuetypes": [
                    {
                        "id": "10001",
                        "name": "Task",
                        "fields": {fid: _meta(fid) for fid in ("customfield_10010", "customfield_10030")},
                    },
                    {
                        "id": "10002",
                        "name": "Bug",
                        "fields": {fid: _meta(fid) for fid in ("customfield_10010", "customfield_10031")},
                    },
                ],
            }
        ]
    },
    "OPS": {
        "projects": [
            {
                "key": "OPS",
                "issuetypes": [
                    {
                        "id": "10001",
                        "name": "Task",
                        "fields": {fid: _meta(fid) for fid in ("customfield_10030", "customfield_10031")},
                    }
                ],
            }
        ]
    },
}


def issue_raw(key="SUP-1", **overrides) -> dict[str, Any]:
    fields = {
        "summary": "Test",
        "project": {"key": key.split("-")[0]},
        "issuetype": {"id": "10001", "name": "Task"},
        "components": [{"id": "100", "name": "Backend"}],
        "customfield_10010": [{"id": "1", "value": "web-01"}],
        "customfield_10020": {"id": "3", "value": "EU", "child": {"id": "4", "value": "Berlin"}},
        "customfield_10030": None,
        "customfield_10050": "2024-09-01T10:00:00.000+0000",
        "customfield_10060": 5.0,
    }
    fields.update(overrides)
    return {"key": key, "fields": fields}


class DummyAPI(JiraAPI):
    def __init__(self, fields=None, createmeta=None, issues=None, transitions=None):
        self.server = "https://example.atlassian.net"
        self.fields_raw = copy.deepcopy(FIELDS_RAW if fields is None else fields)
        self.createmeta_raw = copy.deepcopy(CREATEMETA_RAW if createmeta is None else createmeta)
        self.issues = {"SUP-1": issue_raw()} if issues is None else dict(issues)
        self.transitions = transitions or [{"id": "21", "name": "In Progress"}, {"id": "31", "name": "Done"}]
        self.calls: list[tuple] = []
        self.updates: list[tuple] = []
        self.transitioned: list[tuple] = []

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def fetch_fields_raw(self):
        self.calls.append(("fields",))
        return copy.deepcopy(self.fields_raw)

    def fetch_createmeta_raw(self, project_key, issue_type_id=None, issue_type_name=None):
        self.calls.append(("createmeta", project_key, issue_type_id, issue_type_name))
        raw = copy.deepcopy(self.createmeta_raw.get(project_key, {"projects": []}))
        for project in raw["projects"]:
            project["issuetypes"] = [
                it
                for it in project["issuetypes"]
                if (issue_type_id is None or it["id"] == issue_type_id)
                and (issue_type_name is None or it["name"] == issue_type_name)
            ]
        return raw

    def fetch_issue_raw(self, issue_key):
        self.calls.append(("issue", issue_key))
        return copy.deepcopy(self.issues[issue_key])

    def update_issue_fields(self, issue_key, fields, *, notify=True):
        self.calls.append(("update", issue_key))
        self.updates.append((issue_key, copy.deepcopy(fields), notify))
        self.issues[issue_key]["fields"].update(copy.deepcopy(fields))

    def create_issue_raw(self, fields):
        self.calls.append(("create",))
        project = fields["project"]["key"]
        key = f"{project}-{len(self.issues) + 100}"
        stored = copy.deepcopy(fields)
        stored["issuetype"] = {"id": "10001", "name": "Task"}
        self.issues[key] = {"key": key, "fields": stored}
        return {"id": "9999", "key": key}

    def fetch_editmeta_raw(self, issue_key):
        self.calls.append(("editmeta", issue_key))
        return {"fields": {fid: {**_meta(fid), "operations": ["set"]} for fid in ("customfield_10010", "customfield_10030")}}

    def fetch_transitions_raw(self, issue_key):
        self.calls.append(("transitions", issue_key))
        return copy.deepcopy(self.transitions)

    def transition_issue_raw(self, issue_key, transition_id, fields, comment=None):
        self.calls.append(("transition", issue_key))
        self.transitioned.append((issue_key, transition_id, copy.deepcopy(fields), comment))
        self.issues[issue_key]["fields"].update(copy.deepcopy(fields))


@pytest.fixture
def api() -> DummyAPI:
    return DummyAPI()
