"""Load the field-schema -> codec rules from YAML (with fallbacks)."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_CUSTOM = "com.atlassian.jira.plugin.system.customfieldtypes"

DEFAULT_CODEC_RULES: dict[str, str] = {
    f"{_CUSTOM}:cascadingselect": "cascading",
    f"{_CUSTOM}:multiselect": "select",
    f"{_CUSTOM}:multicheckboxes": "select",
    f"{_CUSTOM}:labels": "multistring",
    f"{_CUSTOM}:multiversion": "name",
    f"{_CUSTOM}:select": "option",
    f"{_CUSTOM}:radiobuttons": "option",
    f"{_CUSTOM}:userpicker": "user",
    f"{_CUSTOM}:multiuserpicker": "users",
    "com.atlassian.jira.plugins.cmdb:cmdb-object-cftype": "key",
    "components": "name",
    "fixVersions": "name",
    "versions": "name",
    "labels": "multistring",
    # schema.type fallbacks when the custom type has no rule
    "number": "number",
    "string": "value",
    "date": "value",
    "datetime": "value",
    "option": "option",
    "user": "user",
}

_CACHE: dict[str, str] | None = None


def load_codec_rules(base_path: str | Path | None = None) -> dict[str, str]:
    global _CACHE
    if _CACHE is not None and base_path is None:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "codecs.yaml"
    rules = dict(DEFAULT_CODEC_RULES)
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
        except yaml.YAMLError as exc:
            logger.warning("Ignoring unreadable codec rules %s: %s", yaml_path, exc)
        else:
            overrides = data.get("schemas") or {}
            rules.update({str(k): str(v).strip().lower() for k, v in overrides.items()})
    if base_path is None:
        _CACHE = rules
    return rules


def reset_codec_rules() -> None:
    global _CACHE
    _CACHE = None
