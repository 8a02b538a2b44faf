"""Unit tests for query-string parameter capture."""

from formrelay.query_params import QUERY_PARAMS_KEY, merge_query_params, tidy_param_value
from formrelay.types import FormDefinition, QueryParamSpec


def make_form(*params, enabled=True):
    return FormDefinition(
        id="form",
        enable_query_params=enabled,
        query_param_list=tuple(QueryParamSpec(key, limit) for key, limit in params),
    )


class TestMergeQueryParams:
    """Test merge_query_params."""

    def test_whitelisted_value_copied(self):
        form = make_form(("utm_source", None))
        output = merge_query_params(form, {"utm_source": " mail "}, {"name": "Ada"}, ["name"])

        assert output == {"name": "Ada", "utm_source": "mail"}

    def test_length_limit_clamps(self):
        form = make_form(("ref", 4))
        output = merge_query_params(form, {"ref": "partner-site"}, {}, [])

        assert output["ref"] == "part"

    def test_zero_length_limit_keeps_everything(self):
        form = make_form(("ref", 0))
        output = merge_query_params(form, {"ref": "partner-site"}, {}, [])

        assert output["ref"] == "partner-site"

    def test_missing_value_is_explicit_none(self):
        """Should write None rather than leaving the key absent."""
        form = make_form(("utm_source", None), ("utm_medium", None))
        output = merge_query_params(form, {"utm_source": "x"}, {}, [])

        assert "utm_medium" in output
        assert output["utm_medium"] is None

    def test_empty_value_is_none(self):
        form = make_form(("utm_source", None))
        output = merge_query_params(form, {"utm_source": ""}, {}, [])

        assert output["utm_source"] is None

    def test_field_name_collision_not_overwritten(self):
        """Should never overwrite an answer from a real form field."""
        form = make_form(("email", None))
        output = merge_query_params(form, {"email": "spoof@example.com"}, {"email": "a@b.co"}, ["email"])

        assert output == {"email": "a@b.co"}

    def test_collision_with_unanswered_field_leaves_key_absent(self):
        form = make_form(("email", None))
        output = merge_query_params(form, {"email": "x"}, {}, ["email"])

        assert output == {}

    def test_non_whitelisted_keys_ignored(self):
        form = make_form(("utm_source", None))
        output = merge_query_params(form, {"utm_source": "x", "admin": "1"}, {}, [])

        assert "admin" not in output

    def test_missing_query_params_sets_marker(self):
        form = make_form(("utm_source", None))
        output = merge_query_params(form, None, {"name": "Ada"}, [])

        assert output == {"name": "Ada", QUERY_PARAMS_KEY: None}

    def test_non_mapping_query_params_sets_marker(self):
        form = make_form(("utm_source", None))

        assert merge_query_params(form, "utm_source=x", {}, []) == {QUERY_PARAMS_KEY: None}
        assert merge_query_params(form, ["x"], {}, []) == {QUERY_PARAMS_KEY: None}

    def test_disabled_is_noop(self):
        form = make_form(("utm_source", None), enabled=False)

        assert merge_query_params(form, None, {}, []) == {}

    def test_empty_list_is_noop(self):
        form = make_form()

        assert merge_query_params(form, {"a": "b"}, {}, []) == {}


class TestTidyParamValue:
    """Test tidy_param_value."""

    def test_number_becomes_string(self):
        assert tidy_param_value(QueryParamSpec("n"), 12345) == "12345"

    def test_non_string_becomes_empty(self):
        assert tidy_param_value(QueryParamSpec("n", 3), {"$gt": ""}) == ""
