"""Structured error types for the formrelay submission pipeline.

Every failure a submitter can act on is expressed as a FormError: either a
field-level error (``field`` + ``message``) or a form-wide one (``global``
flag + ``message``). The exceptions below carry those payloads across the
pipeline:

- NotFoundError: the submitted form id does not resolve
- InvalidSubmissionError: bot challenge failed or one or more field errors
- FieldValidationError: raised by field sanitizers, recoverable, aggregated
- SystemicFieldError: raised by field sanitizers, aborts the submission
- DeliveryError: email delivery failed, always swallowed where it is used
- FormDefinitionError: a form document failed schema validation
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from formrelay.types import ErrorType


@dataclass(frozen=True)
class FormError:
    """A single user-facing validation failure.

    Attributes:
        message: Human-readable (or translation key) error description
        field: Name of the offending field, None for form-wide errors
        is_global: True when the error applies to the whole form

    Examples:
        >>> err = FormError(field="email", message="required")
        >>> err.to_dict()
        {'field': 'email', 'message': 'required'}
        >>> FormError(message="Challenge failed", is_global=True).to_dict()
        {'global': True, 'message': 'Challenge failed'}
    """
    message: str
    field: Optional[str] = None
    is_global: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {}
        if self.is_global:
            result["global"] = True
        if self.field is not None:
            result["field"] = self.field
        result["message"] = self.message
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormError":
        """Create FormError from dict."""
        return cls(
            message=data.get("message", ""),
            field=data.get("field"),
            is_global=bool(data.get("global", False)),
        )


class FormRelayError(Exception):
    """Base class for errors surfaced to the caller of ``submit``."""

    error_type: Optional[ErrorType] = None
    status: int = 500

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the boundary error envelope."""
        return {
            "name": self.error_type.value if self.error_type else "error",
            "message": str(self),
        }


class NotFoundError(FormRelayError):
    """Raised when a form id does not resolve to a form definition."""

    error_type = ErrorType.NOT_FOUND
    status = 404

    def __init__(self, form_id: Any):
        self.form_id = form_id
        super().__init__(f"Form {form_id!r} not found")


class InvalidSubmissionError(FormRelayError):
    """Raised when a submission is rejected as a whole.

    Carries every FormError collected while processing the submission, in
    the order they were produced, so the submitter can tell which fields to
    fix.

    Attributes:
        form_errors: Field-level and global errors, possibly empty when the
            bot challenge collaborator failed outright
    """

    error_type = ErrorType.INVALID
    status = 400

    def __init__(self, form_errors: Optional[Sequence[FormError]] = None, message: str = "Invalid submission"):
        self.form_errors: List[FormError] = list(form_errors or [])
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["data"] = {"formErrors": [e.to_dict() for e in self.form_errors]}
        return result


class FieldValidationError(Exception):
    """Raised by a field type when one answer fails its checks.

    The sanitizer captures it into the submission's error list and moves on
    to the next field.
    """

    def __init__(self, form_error: FormError):
        self.form_error = form_error
        super().__init__(form_error.message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "FieldValidationError":
        return cls(FormError(field=field, message=message))


class SystemicFieldError(Exception):
    """Raised by a field type when it cannot process the submission at all."""


class DeliveryError(Exception):
    """Raised by a mailer when a message could not be handed off."""


class FormDefinitionError(ValueError):
    """Raised when a form document does not match the form definition schema.

    Attributes:
        errors: Schema violations, one FormError per offending path
    """

    def __init__(self, errors: Sequence[FormError]):
        self.errors: List[FormError] = list(errors)
        details = "; ".join(
            f"{e.field}: {e.message}" if e.field else e.message for e in self.errors
        )
        super().__init__(f"Invalid form definition: {details}")


__all__ = [
    "FormError",
    "FormRelayError",
    "NotFoundError",
    "InvalidSubmissionError",
    "FieldValidationError",
    "SystemicFieldError",
    "DeliveryError",
    "FormDefinitionError",
]
