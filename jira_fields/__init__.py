"""Custom field resolution and partial-update diffing for Jira issues."""

from jira_fields.core.catalog import CatalogScope, FieldCatalog
from jira_fields.core.codecs import (
    CascadingSelectCodec,
    KeyReferenceCodec,
    MultiStringCodec,
    NameReferenceCodec,
    NumberCodec,
    OptionCodec,
    RawJsonCodec,
    ScalarValueCodec,
    SelectValueCodec,
    SingleUserCodec,
    UserReferenceCodec,
    ValueCodec,
    codec_for_schema,
    get_codec,
    register_codec,
)
from jira_fields.core.diff import UpdateDiffEngine, build_update_fields, compute_changed_entries
from jira_fields.core.errors import (
    AmbiguousFieldError,
    CancellationError,
    CodecError,
    FieldNotFoundError,
    JiraFieldError,
    JiraRequestError,
    TransitionNotFoundError,
)
from jira_fields.core.field_values import FieldValueSet
from jira_fields.core.issue import Issue
from jira_fields.core.jira_client import JiraAPI
from jira_fields.core.models import (
    CascadingSelectValue,
    FieldDefinition,
    FieldValueEntry,
    IssueContext,
    RemoteSnapshot,
)
from jira_fields.core.resolver import FieldResolver
from jira_fields.core.service import IssueService

__all__ = [
    "AmbiguousFieldError",
    "CancellationError",
    "CascadingSelectCodec",
    "CascadingSelectValue",
    "CatalogScope",
    "CodecError",
    "FieldCatalog",
    "FieldDefinition",
    "FieldNotFoundError",
    "FieldResolver",
    "FieldValueEntry",
    "FieldValueSet",
    "Issue",
    "IssueContext",
    "IssueService",
    "JiraAPI",
    "JiraFieldError",
    "JiraRequestError",
    "KeyReferenceCodec",
    "MultiStringCodec",
    "NameReferenceCodec",
    "NumberCodec",
    "OptionCodec",
    "RawJsonCodec",
    "RemoteSnapshot",
    "ScalarValueCodec",
    "SelectValueCodec",
    "SingleUserCodec",
    "TransitionNotFoundError",
    "UpdateDiffEngine",
    "UserReferenceCodec",
    "ValueCodec",
    "build_update_fields",
    "codec_for_schema",
    "compute_changed_entries",
    "get_codec",
    "register_codec",
]
