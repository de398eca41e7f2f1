"""Resolve human-readable custom field names to Jira field ids."""

from __future__ import annotations

import logging

from .catalog import CatalogScope, FieldCatalog
from .errors import AmbiguousFieldError, FieldNotFoundError
from .models import IssueContext

logger = logging.getLogger(__name__)


def scope_for(context: IssueContext) -> CatalogScope:
    """Catalog scope for an issue; issue type id is preferred over its name."""
    if context.issue_type_id:
        return CatalogScope(context.project_key, issue_type_id=context.issue_type_id)
    if context.issue_type_name:
        return CatalogScope(context.project_key, issue_type_name=context.issue_type_name)
    return CatalogScope(context.project_key)


class FieldResolver:
    """Name -> id lookup with project / issue-type disambiguation.

    Most instances have unique field names, so the unscoped catalog answers in
    one round trip. Only colliding names (or ``force_scoped``) pay for the
    createmeta query scoped to the issue's project and issue type.
    """

    def __init__(self, catalog: FieldCatalog):
        self.catalog = catalog

    async def resolve(self, name: str, context: IssueContext, *, force_scoped: bool = False) -> str:
        matches = await self.catalog.find(name)
        if len(matches) == 1 and not force_scoped:
            logger.debug("Resolved field %r -> %s", name, matches[0].id)
            return matches[0].id

        if not matches and not force_scoped:
            raise FieldNotFoundError(name)

        scope = scope_for(context)
        logger.debug("Field %r has %s unscoped matches; querying scope %s", name, len(matches), scope)
        scoped = await self.catalog.find(name, scope)
        if not scoped:
            raise FieldNotFoundError(name, project_key=context.project_key)
        if len(scoped) > 1:
            ids = [d.id for d in scoped]
            logger.warning("Field %r still ambiguous in %s: %s", name, scope, ids)
            raise AmbiguousFieldError(name, ids, project_key=context.project_key)
        logger.debug("Resolved field %r -> %s (scope=%s)", name, scoped[0].id, scope)
        return scoped[0].id
