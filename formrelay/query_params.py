"""Whitelisted query-string capture.

Forms can opt into recording selected query-string parameters (campaign
tags, referrers...) alongside the answers. Only whitelisted keys are
copied, each laundered and optionally clamped to a length limit.
"""

from typing import Any, Iterable, Mapping, MutableMapping

from formrelay.coercion import clamp, launder_string
from formrelay.types import FormDefinition, QueryParamSpec

QUERY_PARAMS_KEY = "queryParams"


def tidy_param_value(param: QueryParamSpec, value: Any) -> str:
    """Launder a query-string value and apply the param's length limit."""
    return clamp(launder_string(value), param.length_limit)


def merge_query_params(
    form: FormDefinition,
    raw_query_params: Any,
    output: MutableMapping[str, Any],
    known_field_names: Iterable[str],
) -> MutableMapping[str, Any]:
    """Overlay whitelisted query-string values onto sanitized output.

    Keys that collide with a form field are left to the field. Whitelisted
    keys without a value are written as None, so "not supplied" stays
    distinguishable from "not whitelisted". When no query-string mapping
    was submitted at all, ``output["queryParams"]`` is set to None instead.

    Returns:
        ``output``, updated in place

    Examples:
        >>> form = FormDefinition(id="f", enable_query_params=True,
        ...     query_param_list=(QueryParamSpec("utm_source", 3),))
        >>> merge_query_params(form, {"utm_source": "newsletter"}, {}, [])
        {'utm_source': 'new'}
    """
    if not form.enable_query_params or not form.query_param_list:
        return output

    if not isinstance(raw_query_params, Mapping):
        output[QUERY_PARAMS_KEY] = None
        return output

    field_names = set(known_field_names)
    for param in form.query_param_list:
        if param.key in field_names:
            continue
        value = raw_query_params.get(param.key)
        output[param.key] = tidy_param_value(param, value) if value else None

    return output


__all__ = [
    "QUERY_PARAMS_KEY",
    "tidy_param_value",
    "merge_query_params",
]
