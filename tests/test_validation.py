"""Unit tests for form document validation and parsing.

Tests cover:
- Schema validation of form documents and error paths
- FormDefinition / Widget parsing from documents
- Module options parsing
"""

import pytest

from formrelay.config import FormModuleOptions
from formrelay.errors import FormDefinitionError
from formrelay.types import (
    CONDITIONAL_WIDGET_TYPE,
    FormDefinition,
    MailCondition,
    MailRule,
    QueryParamSpec,
    Widget,
    WidgetKind,
)
from formrelay.validation import FormSchemaValidator, ValidationResult


FULL_DOCUMENT = {
    "_id": "contact",
    "title": "Contact us",
    "email": "forms@example.com",
    "contents": {
        "items": [
            {"_id": "w1", "type": "text", "fieldName": "name", "required": True, "label": "Name"},
            {
                "type": CONDITIONAL_WIDGET_TYPE,
                "conditionName": "subscribe",
                "conditionValue": "on",
                "contents": {"items": [{"type": "text", "fieldName": "frequency"}]},
            },
        ]
    },
    "enableQueryParams": True,
    "queryParamList": [{"key": "utm_source", "lengthLimit": 20}, {"key": "ref"}],
    "enableRecaptcha": False,
    "emails": [
        {"email": "sales@example.com", "conditions": [{"field": "topic", "value": "sales"}]},
        {"email": "all@example.com"},
    ],
    "sendConfirmationEmail": True,
    "emailConfirmationField": "email",
}


class TestFormSchemaValidator:
    """Test schema validation of form documents."""

    def test_valid_document(self):
        result = FormSchemaValidator().validate(FULL_DOCUMENT)

        assert isinstance(result, ValidationResult)
        assert result.is_valid is True
        assert result.errors == []

    def test_missing_id(self):
        result = FormSchemaValidator().validate({"contents": {"items": []}})

        assert result.is_valid is False
        assert result.errors[0].field == "_id"
        assert "required" in result.errors[0].message

    def test_widget_without_type(self):
        result = FormSchemaValidator().validate(
            {"_id": "f", "contents": {"items": [{"fieldName": "x"}]}}
        )

        assert [e.field for e in result.errors] == ["contents.items.0.type"]

    def test_nested_area_validated(self):
        document = {
            "_id": "f",
            "contents": {"items": [
                {"type": CONDITIONAL_WIDGET_TYPE, "contents": {"items": [{"fieldName": 3}]}},
            ]},
        }
        fields = {e.field for e in FormSchemaValidator().validate(document).errors}

        assert "contents.items.0.contents.items.0.type" in fields
        assert "contents.items.0.contents.items.0.fieldName" in fields

    def test_bad_length_limit_type(self):
        result = FormSchemaValidator().validate(
            {"_id": "f", "queryParamList": [{"key": "a", "lengthLimit": "ten"}]}
        )

        assert result.errors[0].field == "queryParamList.0.lengthLimit"
        assert "got str" in result.errors[0].message

    def test_root_not_object_is_global(self):
        result = FormSchemaValidator().validate(["not", "a", "form"])

        assert result.errors[0].is_global is True

    def test_to_dict(self):
        result = FormSchemaValidator().validate({"_id": "f", "emails": [{}]})

        assert result.to_dict() == {
            "isValid": False,
            "errors": [{"field": "emails.0.email", "message": "'emails.0.email' is required"}],
        }

    def test_check_raises(self):
        with pytest.raises(FormDefinitionError) as exc_info:
            FormSchemaValidator().check({"emails": [{}]})

        assert {e.field for e in exc_info.value.errors} == {"_id", "emails.0.email"}


class TestFormDefinitionFromDict:
    """Test FormDefinition parsing."""

    def test_full_document(self):
        form = FormDefinition.from_dict(FULL_DOCUMENT)

        assert form.id == "contact"
        assert form.title == "Contact us"
        assert form.email == "forms@example.com"
        assert form.enable_query_params is True
        assert form.query_param_list == (QueryParamSpec("utm_source", 20), QueryParamSpec("ref", None))
        assert form.emails == (
            MailRule("sales@example.com", (MailCondition("topic", "sales"),)),
            MailRule("all@example.com"),
        )
        assert form.send_confirmation_email is True
        assert form.email_confirmation_field == "email"

    def test_widgets(self):
        form = FormDefinition.from_dict(FULL_DOCUMENT)
        name, conditional = form.contents.items

        assert name.id == "w1"
        assert name.required is True
        assert name.options == {"label": "Name"}
        assert conditional.kind == WidgetKind.CONDITIONAL
        assert conditional.condition_name == "subscribe"
        assert conditional.condition_value == "on"
        assert conditional.contents.items[0].field_name == "frequency"

    def test_defaults(self):
        form = FormDefinition.from_dict({"_id": "bare"})

        assert form.contents.items == ()
        assert form.enable_query_params is False
        assert form.emails == ()
        assert form.send_confirmation_email is False

    def test_confirmation_flag_must_be_true(self):
        form = FormDefinition.from_dict({"_id": "f", "sendConfirmationEmail": "yes"}, validate=False)

        assert form.send_confirmation_email is False

    def test_invalid_document_rejected(self):
        with pytest.raises(FormDefinitionError, match="emails.0.email"):
            FormDefinition.from_dict({"_id": "f", "emails": [{"conditions": []}]})


class TestWidgetFromDict:
    """Test Widget parsing."""

    def test_layout_widget_areas(self):
        widget = Widget.from_dict({
            "type": "two-column",
            "columnOne": {"items": [{"type": "text", "fieldName": "a"}]},
            "columnTwo": {"items": []},
            "ratio": "50-50",
        })

        assert list(widget.areas) == ["columnOne", "columnTwo"]
        assert widget.contents is None
        assert widget.options == {"ratio": "50-50"}
        assert widget.kind == WidgetKind.FIELD


class TestFormModuleOptions:
    """Test options parsing."""

    def test_defaults(self):
        options = FormModuleOptions()

        assert options.email_submissions is True
        assert options.save_submissions is True
        assert options.testing is False

    def test_from_dict_camel_and_snake(self):
        options = FormModuleOptions.from_dict(
            {"emailSubmissions": False, "save_submissions": False, "testing": 1, "classPrefix": "x"}
        )

        assert options == FormModuleOptions(email_submissions=False, save_submissions=False, testing=True)
        assert options.to_dict() == {"emailSubmissions": False, "saveSubmissions": False, "testing": True}
