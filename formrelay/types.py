"""Core type definitions for formrelay.

This module defines the data model shared by the submission pipeline:
- WidgetKind / Widget / Area: the nested widget tree that lays out a form
- QueryParamSpec: a whitelisted query-string parameter
- MailCondition / MailRule: recipient routing rules for notification emails
- FormDefinition: a form and its after-submission configuration
- SubmissionRecord: the persisted result of a successful submission
- ErrorType / EventType: names used at the pipeline boundary

Form documents use camelCase keys (``fieldName``, ``queryParamList``...);
the dataclasses expose snake_case attributes and convert in ``from_dict``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from dateutil.parser import isoparse
from typing_extensions import TypeAlias

CONDITIONAL_WIDGET_TYPE = "@apostrophecms/form-conditional"

ConditionalsMap: TypeAlias = Dict[str, Dict[str, List[str]]]
"""controlling field name -> controlling value -> dependent field names."""

SkipSet: TypeAlias = Set[str]
"""Field names excluded from sanitization for one submission."""


class ErrorType(str, Enum):
    """Error names reported at the submit boundary."""
    NOT_FOUND = "notfound"
    INVALID = "invalid"


class EventType(str, Enum):
    """Events raised by the runtime."""
    SUBMISSION = "submission"


class WidgetKind(str, Enum):
    """Widget variants.

    FIELD widgets produce (at most) one output key. CONDITIONAL widgets are
    containers whose nested fields only count when a controlling field
    holds a given value.
    """
    FIELD = "field"
    CONDITIONAL = "conditional"


def _is_area_document(value: Any) -> bool:
    return isinstance(value, Mapping) and isinstance(value.get("items"), list)


@dataclass(frozen=True)
class Widget:
    """One configured widget within a form layout.

    Attributes:
        type: Type tag used to look up the field type in the registry
        field_name: Output key this widget produces, None for layout widgets
        kind: FIELD or CONDITIONAL
        required: Whether an answer must be supplied
        condition_name: For CONDITIONAL widgets, the controlling field name
        condition_value: For CONDITIONAL widgets, the activating value
        areas: Nested areas keyed by property name ("contents" for
            conditional containers, "columnOne"/"columnTwo" for layouts...)
        options: Every other property of the widget document, available to
            field sanitizers
        id: Widget identifier, when the document carries one
    """
    type: str
    field_name: Optional[str] = None
    kind: WidgetKind = WidgetKind.FIELD
    required: bool = False
    condition_name: Optional[str] = None
    condition_value: Any = None
    areas: Dict[str, "Area"] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    @property
    def contents(self) -> Optional["Area"]:
        """The conventional nested area of a conditional container."""
        return self.areas.get("contents")

    @property
    def is_conditional(self) -> bool:
        return self.kind == WidgetKind.CONDITIONAL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Widget":
        """Create Widget from a widget document.

        Any property whose value looks like an area (a mapping with an
        ``items`` list) is parsed recursively into ``areas``.

        Examples:
            >>> w = Widget.from_dict({"type": "text", "fieldName": "name"})
            >>> w.field_name, w.kind
            ('name', <WidgetKind.FIELD: 'field'>)
        """
        widget_type = data.get("type", "")
        areas: Dict[str, Area] = {}
        options: Dict[str, Any] = {}
        for key, value in data.items():
            if key in ("type", "fieldName", "required", "_id", "conditionName", "conditionValue"):
                continue
            if _is_area_document(value):
                areas[key] = Area.from_dict(value)
            else:
                options[key] = value

        kind = WidgetKind.CONDITIONAL if widget_type == CONDITIONAL_WIDGET_TYPE else WidgetKind.FIELD
        return cls(
            type=widget_type,
            field_name=data.get("fieldName"),
            kind=kind,
            required=bool(data.get("required", False)),
            condition_name=data.get("conditionName"),
            condition_value=data.get("conditionValue"),
            areas=areas,
            options=options,
            id=data.get("_id"),
        )


@dataclass(frozen=True)
class Area:
    """An ordered container of widgets."""
    items: Tuple[Widget, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Area":
        """Create Area from an area document (``{"items": [...]}``)."""
        if not data:
            return cls()
        return cls(items=tuple(Widget.from_dict(item) for item in data.get("items") or []))


@dataclass(frozen=True)
class QueryParamSpec:
    """A whitelisted query-string parameter.

    Attributes:
        key: Query-string key, also used as the output key
        length_limit: Maximum kept characters; 0 or None keeps everything
    """
    key: str
    length_limit: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueryParamSpec":
        return cls(key=data["key"], length_limit=data.get("lengthLimit"))


@dataclass(frozen=True)
class MailCondition:
    """A condition on one answer.

    ``value`` is the raw acceptance string, e.g. ``'"red, bright", blue'``;
    it is parsed when the rule is evaluated.
    """
    field: str
    value: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MailCondition":
        return cls(field=data.get("field", ""), value=data.get("value"))


@dataclass(frozen=True)
class MailRule:
    """A notification recipient and the conditions that must all pass."""
    email: str
    conditions: Tuple[MailCondition, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MailRule":
        return cls(
            email=data["email"],
            conditions=tuple(MailCondition.from_dict(c) for c in data.get("conditions") or []),
        )


@dataclass(frozen=True)
class FormDefinition:
    """A form: its widget layout plus after-submission configuration.

    Examples:
        >>> form = FormDefinition.from_dict({
        ...     "_id": "contact",
        ...     "contents": {"items": [{"type": "text", "fieldName": "name"}]},
        ... })
        >>> form.contents.items[0].field_name
        'name'
    """
    id: str
    contents: Area = field(default_factory=Area)
    title: Optional[str] = None
    email: Optional[str] = None
    enable_query_params: bool = False
    query_param_list: Tuple[QueryParamSpec, ...] = ()
    enable_recaptcha: bool = False
    emails: Tuple[MailRule, ...] = ()
    send_confirmation_email: bool = False
    email_confirmation_field: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], validate: bool = True) -> "FormDefinition":
        """Create FormDefinition from a form document.

        Args:
            data: Form document with camelCase keys
            validate: Check the document against FORM_DEFINITION_SCHEMA first

        Raises:
            FormDefinitionError: If validation is enabled and fails
        """
        if validate:
            from formrelay.validation import FormSchemaValidator

            FormSchemaValidator().check(data)

        return cls(
            id=data["_id"],
            contents=Area.from_dict(data.get("contents")),
            title=data.get("title"),
            email=data.get("email"),
            enable_query_params=bool(data.get("enableQueryParams", False)),
            query_param_list=tuple(
                QueryParamSpec.from_dict(p) for p in data.get("queryParamList") or []
            ),
            enable_recaptcha=bool(data.get("enableRecaptcha", False)),
            emails=tuple(MailRule.from_dict(r) for r in data.get("emails") or []),
            send_confirmation_email=data.get("sendConfirmationEmail") is True,
            email_confirmation_field=data.get("emailConfirmationField"),
        )


@dataclass(frozen=True)
class SubmissionRecord:
    """A persisted submission.

    Attributes:
        form_id: Id of the form the submission belongs to
        created_at: When the submission was accepted
        data: Sanitized answers keyed by field name
    """
    form_id: str
    created_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for storage, timestamp as ISO 8601."""
        return {
            "formId": self.form_id,
            "createdAt": self.created_at.isoformat(),
            "data": dict(self.data),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SubmissionRecord":
        created_at = data["createdAt"]
        if isinstance(created_at, str):
            created_at = isoparse(created_at)
        return cls(
            form_id=data["formId"],
            created_at=created_at,
            data=dict(data.get("data") or {}),
        )


__all__ = [
    "CONDITIONAL_WIDGET_TYPE",
    "ConditionalsMap",
    "SkipSet",
    "ErrorType",
    "EventType",
    "WidgetKind",
    "Widget",
    "Area",
    "QueryParamSpec",
    "MailCondition",
    "MailRule",
    "FormDefinition",
    "SubmissionRecord",
]
