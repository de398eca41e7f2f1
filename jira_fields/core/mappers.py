"""Mapping raw Jira field / createmeta / issue JSON into domain models."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .codecs import codec_for_schema, get_codec
from .config import SNAPSHOT_SYSTEM_FIELDS
from .errors import CodecError
from .models import FieldDefinition, FieldValueEntry, IssueContext, IssueFieldEditMetadata

logger = logging.getLogger(__name__)


def _schema_parts(schema: Any) -> tuple[str | None, str | None]:
    if not isinstance(schema, dict):
        return None, None
    return schema.get("type"), schema.get("custom") or schema.get("system")


def map_field_definition(raw: dict[str, Any], *, project_key: str | None = None, issue_type_id: str | None = None):
    field_id = raw.get("id") or raw.get("key") or raw.get("fieldId")
    name = raw.get("name")
    if not field_id or not name:
        return None
    schema_type, schema_custom = _schema_parts(raw.get("schema"))
    custom = raw.get("custom")
    if custom is None:
        custom = str(field_id).startswith("customfield_")
    return FieldDefinition(
        id=str(field_id),
        name=str(name),
        applicable_project_keys=frozenset({project_key}) if project_key else frozenset(),
        applicable_issue_type_ids=frozenset({str(issue_type_id)}) if issue_type_id else frozenset(),
        schema_type=schema_type,
        schema_custom=schema_custom,
        custom=bool(custom),
    )


def map_field_definitions(raw_fields: Iterable[dict[str, Any]], *, custom_only: bool = True) -> list[FieldDefinition]:
    """Map the ``/field`` listing; system fields are dropped unless ``custom_only`` is False."""
    out: list[FieldDefinition] = []
    for raw in raw_fields or []:
        definition = map_field_definition(raw)
        if definition is None:
            continue
        if custom_only and not definition.custom:
            continue
        out.append(definition)
    return out


def map_createmeta_fields(raw: dict[str, Any], *, custom_only: bool = True) -> list[FieldDefinition]:
    """Map a createmeta response into definitions tagged with project / issue type.

    The same field listed under several issue types collapses into a single
    definition whose applicability sets are the union of where it appeared.
    """
    merged: dict[str, FieldDefinition] = {}
    for project in raw.get("projects", []) or []:
        project_key = project.get("key")
        for issue_type in project.get("issuetypes", []) or []:
            type_id = issue_type.get("id")
            fields = issue_type.get("fields") or {}
            # createmeta returns {fieldId: meta}; newer per-type endpoints return a list
            items = fields.items() if isinstance(fields, dict) else ((f.get("fieldId"), f) for f in fields)
            for field_id, meta in items:
                definition = map_field_definition(
                    {**meta, "id": meta.get("fieldId") or meta.get("key") or field_id},
                    project_key=project_key,
                    issue_type_id=type_id,
                )
                if definition is None or (custom_only and not definition.custom):
                    continue
                seen = merged.get(definition.id)
                if seen is None:
                    merged[definition.id] = definition
                else:
                    merged[definition.id] = FieldDefinition(
                        id=seen.id,
                        name=seen.name,
                        applicable_project_keys=seen.applicable_project_keys | definition.applicable_project_keys,
                        applicable_issue_type_ids=seen.applicable_issue_type_ids | definition.applicable_issue_type_ids,
                        schema_type=seen.schema_type,
                        schema_custom=seen.schema_custom,
                        custom=seen.custom,
                    )
    return list(merged.values())


def map_issue_context(raw: dict[str, Any]) -> IssueContext:
    fields = raw.get("fields", {}) or {}
    project = fields.get("project") or {}
    issue_type = fields.get("issuetype") or {}
    project_key = project.get("key")
    if not project_key:
        key = raw.get("key") or ""
        project_key = key.rsplit("-", 1)[0] if "-" in key else key
    return IssueContext(
        project_key=project_key,
        issue_type_id=issue_type.get("id"),
        issue_type_name=issue_type.get("name"),
    )


def map_snapshot_entries(raw: dict[str, Any], definitions: Iterable[FieldDefinition]) -> list[FieldValueEntry]:
    """Decode every known custom field (and tracked system field) present on the issue.

    Fields missing from the payload are skipped; fields present with ``null``
    become entries whose values are ``None``.
    """
    fields = raw.get("fields", {}) or {}
    by_id = {d.id: d for d in definitions}
    entries: list[FieldValueEntry] = []
    for field_id, wire in fields.items():
        definition = by_id.get(field_id)
        if definition is None and field_id not in SNAPSHOT_SYSTEM_FIELDS:
            continue
        if definition is None:
            definition = FieldDefinition(id=field_id, name=field_id, schema_custom=field_id, custom=False)
        codec = codec_for_schema(definition)
        try:
            values = codec.decode(wire)
        except CodecError as exc:
            # Unknown shapes (app fields, SLA objects) are kept as raw JSON
            logger.debug("Keeping %s (%s) on %s as raw JSON: %s", definition.name, field_id, raw.get("key"), exc)
            codec = get_codec("raw")
            values = codec.decode(wire)
        entries.append(
            FieldValueEntry(id=field_id, name=definition.name, values=values, codec=codec, raw_value=wire)
        )
    logger.debug("Mapped %s field values for %s", len(entries), raw.get("key"))
    return entries


def map_edit_metadata(raw: dict[str, Any]) -> dict[str, IssueFieldEditMetadata]:
    out: dict[str, IssueFieldEditMetadata] = {}
    for field_id, meta in (raw.get("fields") or {}).items():
        name = meta.get("name") or field_id
        out[name] = IssueFieldEditMetadata(
            id=field_id,
            name=name,
            required=bool(meta.get("required", False)),
            schema=meta.get("schema") or {},
            operations=list(meta.get("operations") or []),
            allowed_values=list(meta.get("allowedValues") or []),
        )
    return out
