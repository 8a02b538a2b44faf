"""Field-type registry.

Widgets name their field type with a string tag. The registry maps each tag
to a FieldType bundle holding the two operations the sanitizer needs:

- check_required(ctx, widget, raw_input): raise FieldValidationError when a
  required answer is missing
- sanitize(widget, raw_input, output): write the cleaned answer into
  ``output[widget.field_name]``, raise FieldValidationError for a bad
  answer, or raise anything else to abort the submission

Tags registered without a sanitizer (layout widgets, conditional
containers) are walked through but produce no output.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional

from formrelay.errors import FieldValidationError
from formrelay.types import CONDITIONAL_WIDGET_TYPE, Widget

CheckRequired = Callable[[Any, Widget, Mapping[str, Any]], None]
Sanitize = Callable[[Widget, Mapping[str, Any], MutableMapping[str, Any]], None]

REQUIRED_MESSAGE = "required"


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def check_required(ctx: Any, widget: Widget, raw_input: Mapping[str, Any]) -> None:
    """Default required check: a required widget needs a non-empty answer.

    Raises:
        FieldValidationError: If the widget is required and unanswered
    """
    if not widget.required or not widget.field_name:
        return
    if _is_missing(raw_input.get(widget.field_name)):
        raise FieldValidationError.for_field(widget.field_name, REQUIRED_MESSAGE)


@dataclass(frozen=True)
class FieldType:
    """Operations for one field type.

    Attributes:
        sanitize: Writes the cleaned answer into the output mapping; None
            for widgets that produce no answer
        check_required: Required-answer check run before ``sanitize``
    """
    sanitize: Optional[Sanitize] = None
    check_required: CheckRequired = check_required


class FieldTypeRegistry:
    """Mapping from widget type tag to FieldType.

    Examples:
        >>> registry = FieldTypeRegistry()
        >>> def sanitize_text(widget, raw_input, output):
        ...     output[widget.field_name] = str(raw_input.get(widget.field_name, ""))
        >>> registry.register("text", FieldType(sanitize=sanitize_text))
        >>> registry.has_sanitizer("text")
        True
        >>> registry.has_sanitizer("@apostrophecms/form-conditional")
        False
    """

    def __init__(self) -> None:
        self._types: Dict[str, FieldType] = {}
        self.register(CONDITIONAL_WIDGET_TYPE, FieldType())

    def register(self, type_tag: str, field_type: FieldType, replace: bool = False) -> None:
        """Register the operations for a type tag.

        Raises:
            ValueError: If the tag is already registered and ``replace`` is
                False
        """
        if type_tag in self._types and not replace:
            raise ValueError(f"Field type {type_tag!r} is already registered")
        self._types[type_tag] = field_type

    def get(self, type_tag: str) -> Optional[FieldType]:
        return self._types.get(type_tag)

    def has_sanitizer(self, type_tag: str) -> bool:
        field_type = self._types.get(type_tag)
        return field_type is not None and field_type.sanitize is not None

    def types(self) -> List[str]:
        return list(self._types)


__all__ = [
    "REQUIRED_MESSAGE",
    "check_required",
    "FieldType",
    "FieldTypeRegistry",
]
