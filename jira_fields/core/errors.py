"""Exception taxonomy for field resolution, encoding and the REST collaborator."""

from __future__ import annotations

import asyncio

# Aborted network-bound calls surface as the standard asyncio cancellation.
CancellationError = asyncio.CancelledError


class JiraFieldError(Exception):
    """Base class for field resolution and encoding failures."""


class FieldNotFoundError(JiraFieldError):
    def __init__(self, field_name: str, project_key: str | None = None):
        self.field_name = field_name
        self.project_key = project_key
        message = f"Could not find custom field with name '{field_name}' on the Jira server."
        if project_key is not None:
            message += (
                f" The field was only searched for in the project with key '{project_key}'."
                " Make sure the custom field is available in the issue create screen for that project."
            )
        super().__init__(message)


class AmbiguousFieldError(JiraFieldError):
    def __init__(self, field_name: str, field_ids: list[str], project_key: str | None = None):
        self.field_name = field_name
        self.field_ids = list(field_ids)
        self.project_key = project_key
        scope = f" in project '{project_key}'" if project_key else ""
        super().__init__(
            f"Custom field name '{field_name}' matches {len(field_ids)} fields{scope}: "
            f"{', '.join(field_ids)}. Server field metadata is inconsistent."
        )


class CodecError(JiraFieldError):
    """Raised when a raw wire value cannot be encoded or decoded as requested."""


class TransitionNotFoundError(JiraFieldError):
    def __init__(self, issue_key: str, action: str):
        self.issue_key = issue_key
        self.action = action
        super().__init__(f"Workflow action with name '{action}' not found for issue {issue_key}.")


class JiraRequestError(RuntimeError):
    """A request to the Jira REST API failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
