"""Partial-update diffing: which field entries must be sent back to Jira.

Jira treats an omitted field as "leave unchanged", so only entries that are
new, cleared or different from the fetched snapshot go on the wire.

Decision table, first matching row wins:

=========================  ======================================  =========
row                        condition                                included
=========================  ======================================  =========
``no_snapshot``            issue has no remote snapshot             yes
``not_in_snapshot``        snapshot has no value for the field id   yes
``uninitialized_remote``   snapshot value is null                   yes
``cleared``                local values null, snapshot non-null     yes
``unchanged``              element-wise equal, same order           no
``changed``                anything else                            yes
=========================  ======================================  =========
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, NamedTuple

from .config import COMPONENTS_FIELD
from .errors import FieldNotFoundError
from .models import FieldValueEntry, RemoteSnapshot

logger = logging.getLogger(__name__)


class DiffRule(NamedTuple):
    name: str
    matches: Callable[[FieldValueEntry, RemoteSnapshot | None], bool]
    include: bool


def _no_snapshot(entry, original):
    return original is None


def _not_in_snapshot(entry, original):
    return entry.id not in original


def _uninitialized_remote(entry, original):
    return original[entry.id] is None


def _cleared(entry, original):
    return entry.values is None


def _unchanged(entry, original):
    return tuple(entry.values) == tuple(original[entry.id])


DECISION_TABLE: tuple[DiffRule, ...] = (
    DiffRule("no_snapshot", _no_snapshot, True),
    DiffRule("not_in_snapshot", _not_in_snapshot, True),
    DiffRule("uninitialized_remote", _uninitialized_remote, True),
    DiffRule("cleared", _cleared, True),
    DiffRule("unchanged", _unchanged, False),
    DiffRule("changed", lambda entry, original: True, True),
)


class UpdateDiffEngine:
    def __init__(self, rules: tuple[DiffRule, ...] = DECISION_TABLE):
        self.rules = rules

    def explain(self, entry: FieldValueEntry, original: RemoteSnapshot | None) -> DiffRule:
        """Return the decision table row that applies to ``entry``."""
        if entry.id is None:
            raise FieldNotFoundError(entry.name)
        for rule in self.rules:
            if rule.matches(entry, original):
                return rule
        raise RuntimeError(f"No diff rule matched field {entry.id}")

    def compute_changed_entries(
        self,
        current: Iterable[FieldValueEntry],
        original: RemoteSnapshot | None,
    ) -> list[FieldValueEntry]:
        changed: list[FieldValueEntry] = []
        for entry in current:
            rule = self.explain(entry, original)
            logger.debug("Field %s (%s): %s", entry.name, entry.id, rule.name)
            if rule.include:
                changed.append(entry)
        return changed


_ENGINE = UpdateDiffEngine()


def compute_changed_entries(
    current: Iterable[FieldValueEntry],
    original: RemoteSnapshot | None,
) -> list[FieldValueEntry]:
    return _ENGINE.compute_changed_entries(current, original)


def _is_components(entry: FieldValueEntry) -> bool:
    return any(
        isinstance(label, str) and label.lower() == COMPONENTS_FIELD for label in (entry.name, entry.id)
    )


def encode_entry(entry: FieldValueEntry) -> Any:
    value = entry.encode()
    if value is None and _is_components(entry):
        # Jira rejects null for components; an empty array clears the field
        return []
    return value


def build_update_fields(entries: Iterable[FieldValueEntry]) -> dict[str, Any]:
    """``fields`` object of an update request: field id -> encoded wire value."""
    fields: dict[str, Any] = {}
    for entry in entries:
        if entry.id is None:
            raise FieldNotFoundError(entry.name)
        # With duplicate entries the first one is what lookups return
        if entry.id in fields:
            continue
        fields[entry.id] = encode_entry(entry)
    return fields
