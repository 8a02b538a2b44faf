"""Conditional visibility resolution over the widget tree.

A conditional container only counts when its controlling field holds the
configured value. Before sanitizing, the runtime walks the form once to map
each controlling field to the fields it governs, then checks the raw input
against that map to find the fields that must be discarded.

Usage:
    >>> from formrelay.types import FormDefinition
    >>> form = FormDefinition.from_dict({
    ...     "_id": "f",
    ...     "contents": {"items": [
    ...         {"type": "radio", "fieldName": "more"},
    ...         {"type": "@apostrophecms/form-conditional",
    ...          "conditionName": "more", "conditionValue": "yes",
    ...          "contents": {"items": [{"type": "text", "fieldName": "details"}]}},
    ...     ]},
    ... })
    >>> conditionals = build_conditionals(form.contents)
    >>> conditionals
    {'more': {'yes': ['details']}}
    >>> resolve_skip_set(conditionals, {"more": "no"})
    {'details'}
"""

import logging
from typing import Any, Iterator, List, Mapping

from formrelay.types import Area, ConditionalsMap, SkipSet, Widget

logger = logging.getLogger(__name__)

CHECKBOX_ON = "on"


def condition_key(value: Any) -> str:
    """String form of a configured condition value.

    Submitted answers are compared with this string, so ``5`` tracks as
    ``"5"``, booleans as ``"true"``/``"false"`` and lists as their items
    joined by commas.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(condition_key(v) for v in value)
    return str(value)


def walk_areas(root: Area) -> List[Area]:
    """List every area in the tree, pre-order.

    An area comes before the areas nested in its widgets, and nested areas
    follow widget order, so iterating the result visits widgets in document
    order.
    """
    areas: List[Area] = []

    def visit(area: Area) -> None:
        areas.append(area)
        for widget in area.items:
            for nested in widget.areas.values():
                visit(nested)

    visit(root)
    return areas


def iter_widgets(root: Area) -> Iterator[Widget]:
    """Yield every widget in document order."""
    for area in walk_areas(root):
        yield from area.items


def collect_field_names(root: Area) -> List[str]:
    """Every field name the form can produce, first-seen order."""
    names: List[str] = []
    for widget in iter_widgets(root):
        if widget.field_name and widget.field_name not in names:
            names.append(widget.field_name)
    return names


def _descendant_field_names(area: Area) -> List[str]:
    names: List[str] = []
    for nested in walk_areas(area):
        for widget in nested.items:
            if widget.field_name and widget.field_name not in names:
                names.append(widget.field_name)
    return names


def track_conditional(conditionals: ConditionalsMap, widget: Widget) -> None:
    """Record the fields governed by one conditional container.

    Containers without nested widgets are ignored, and value buckets that
    end up with no field names are dropped.
    """
    contents = widget.contents
    if contents is None or not contents.items:
        return

    key = condition_key(widget.condition_value)
    by_value = conditionals.setdefault(widget.condition_name, {})
    bucket = by_value.setdefault(key, [])
    for name in _descendant_field_names(contents):
        if name not in bucket:
            bucket.append(name)

    if not bucket:
        del by_value[key]
    if not by_value:
        del conditionals[widget.condition_name]


def build_conditionals(root: Area) -> ConditionalsMap:
    """Map controlling field -> controlling value -> dependent field names."""
    conditionals: ConditionalsMap = {}
    for widget in iter_widgets(root):
        if widget.is_conditional:
            track_conditional(conditionals, widget)
    return conditionals


def condition_met(answer: Any, expected: str) -> bool:
    """Compare a submitted answer with a tracked condition key.

    Only string answers can match. Checkbox-style booleans are tracked as
    ``"on"`` but submitted as True.
    """
    if answer is True and expected == CHECKBOX_ON:
        return True
    return isinstance(answer, str) and answer == expected


def resolve_skip_set(conditionals: ConditionalsMap, raw_input: Mapping[str, Any]) -> SkipSet:
    """Find the fields whose governing condition is not met by ``raw_input``."""
    skip: SkipSet = set()
    for name, by_value in conditionals.items():
        answer = raw_input.get(name)
        for value, fields in by_value.items():
            if not condition_met(answer, value):
                skip.update(fields)
    if skip:
        logger.debug("Skipping inactive conditional fields: %s", sorted(skip))
    return skip


__all__ = [
    "walk_areas",
    "iter_widgets",
    "collect_field_names",
    "condition_key",
    "track_conditional",
    "build_conditionals",
    "condition_met",
    "resolve_skip_set",
]
