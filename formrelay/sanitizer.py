"""Submission sanitization.

Walks the widget tree in document order and hands every eligible widget to
its field type. Field errors are collected for the whole form before the
caller decides to reject the submission; anything else a field type raises
aborts immediately.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from formrelay.conditionals import iter_widgets
from formrelay.errors import FieldValidationError, FormError, InvalidSubmissionError
from formrelay.registry import FieldTypeRegistry
from formrelay.types import FormDefinition

logger = logging.getLogger(__name__)


@dataclass
class SanitizeResult:
    """Output of one sanitization pass.

    Attributes:
        output: Sanitized answers keyed by field name, in document order
        errors: Errors collected during the pass, in traversal order
    """
    output: Dict[str, Any] = field(default_factory=dict)
    errors: List[FormError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Reject the submission if any error was collected.

        Raises:
            InvalidSubmissionError: Carrying every collected error
        """
        if self.errors:
            raise InvalidSubmissionError(self.errors)


def sanitize(
    form: FormDefinition,
    raw_input: Mapping[str, Any],
    skip_set: Iterable[str],
    registry: FieldTypeRegistry,
    ctx: Any = None,
    errors: Optional[List[FormError]] = None,
) -> SanitizeResult:
    """Sanitize a raw submission against a form.

    Args:
        form: The form being submitted
        raw_input: Raw submitted answers
        skip_set: Field names hidden by inactive conditionals
        registry: Field types used to check and clean each answer
        ctx: Request context handed to required checks
        errors: Errors already collected for this submission (bot
            challenge), kept ahead of field errors

    Returns:
        SanitizeResult with the cleaned output and every field error

    Raises:
        Exception: Whatever a field type raises other than
            FieldValidationError, unchanged
    """
    skip = set(skip_set)
    result = SanitizeResult(errors=list(errors or []))

    for widget in iter_widgets(form.contents):
        if not registry.has_sanitizer(widget.type) or widget.field_name in skip:
            continue
        field_type = registry.get(widget.type)
        try:
            field_type.check_required(ctx, widget, raw_input)
            field_type.sanitize(widget, raw_input, result.output)
        except FieldValidationError as e:
            result.errors.append(e.form_error)

    # A sanitizer may write keys other than its own field name.
    for name in skip.intersection(result.output):
        del result.output[name]

    if result.errors:
        logger.debug(
            "Form %s submission has %d error(s)", form.id, len(result.errors)
        )
    return result


__all__ = [
    "SanitizeResult",
    "sanitize",
]
