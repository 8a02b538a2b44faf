"""JSON Schema validation for form documents.

Form definitions usually arrive as stored documents. FormSchemaValidator
checks their structure before they are turned into FormDefinition objects,
and reports problems as FormErrors keyed by the dotted path of the
offending property.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

import jsonschema
from jsonschema import Draft7Validator

from formrelay.errors import FormDefinitionError, FormError

AREA_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "items": {"type": "array", "items": {"$ref": "#/definitions/widget"}},
    },
    "required": ["items"],
}

FORM_DEFINITION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "definitions": {
        "area": AREA_SCHEMA,
        "widget": {
            "type": "object",
            "properties": {
                "type": {"type": "string", "minLength": 1},
                "fieldName": {"type": ["string", "null"]},
                "required": {"type": "boolean"},
                "conditionName": {"type": ["string", "null"]},
            },
            "required": ["type"],
            "additionalProperties": {
                "if": {"type": "object", "required": ["items"]},
                "then": {"$ref": "#/definitions/area"},
            },
        },
    },
    "properties": {
        "_id": {"type": "string", "minLength": 1},
        "title": {"type": ["string", "null"]},
        "email": {"type": ["string", "null"]},
        "contents": {"$ref": "#/definitions/area"},
        "enableQueryParams": {"type": "boolean"},
        "queryParamList": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "key": {"type": "string", "minLength": 1},
                    "lengthLimit": {"type": ["integer", "null"], "minimum": 0},
                },
                "required": ["key"],
            },
        },
        "enableRecaptcha": {"type": "boolean"},
        "emails": {
            "type": ["array", "null"],
            "items": {
                "type": "object",
                "properties": {
                    "email": {"type": "string", "minLength": 1},
                    "conditions": {
                        "type": ["array", "null"],
                        "items": {
                            "type": "object",
                            "properties": {
                                "field": {"type": "string"},
                                "value": {"type": ["string", "null"]},
                            },
                            "required": ["field"],
                        },
                    },
                },
                "required": ["email"],
            },
        },
        "sendConfirmationEmail": {"type": "boolean"},
        "emailConfirmationField": {"type": ["string", "null"]},
    },
    "required": ["_id"],
}


@dataclass(frozen=True)
class ValidationResult:
    """Result of validating a form document.

    Attributes:
        is_valid: Whether the document passed all checks
        errors: One FormError per violation (empty if valid)

    Examples:
        >>> result = FormSchemaValidator().validate({"_id": "contact"})
        >>> result.is_valid
        True
    """
    is_valid: bool
    errors: List[FormError]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }


class FormSchemaValidator:
    """Validates form documents against FORM_DEFINITION_SCHEMA.

    Examples:
        >>> result = FormSchemaValidator().validate({"_id": "f", "emails": [{}]})
        >>> result.is_valid
        False
        >>> result.errors[0].field
        'emails.0.email'
    """

    def __init__(self, schema: Dict[str, Any] = FORM_DEFINITION_SCHEMA) -> None:
        """Initialize the validator.

        Raises:
            jsonschema.SchemaError: If the provided schema is invalid
        """
        self.schema = schema
        Draft7Validator.check_schema(schema)
        self.validator = Draft7Validator(schema)

    def validate(self, document: Mapping[str, Any]) -> ValidationResult:
        errors = list(self.validator.iter_errors(document))
        return ValidationResult(
            is_valid=not errors,
            errors=[self._translate_error(e) for e in errors],
        )

    def check(self, document: Mapping[str, Any]) -> None:
        """Validate and raise on failure.

        Raises:
            FormDefinitionError: If the document is invalid
        """
        result = self.validate(document)
        if not result.is_valid:
            raise FormDefinitionError(result.errors)

    def _translate_error(self, error: jsonschema.ValidationError) -> FormError:
        path = ".".join(str(p) for p in error.absolute_path)

        if error.validator == "required":
            missing = error.message.split("'")[1] if "'" in error.message else "property"
            full_path = f"{path}.{missing}" if path else missing
            return FormError(field=full_path, message=f"'{full_path}' is required")

        if error.validator == "type":
            received = type(error.instance).__name__
            return FormError(
                field=path or None,
                message=f"Expected {error.validator_value}, got {received}",
                is_global=not path,
            )

        return FormError(field=path or None, message=error.message, is_global=not path)


__all__ = [
    "FORM_DEFINITION_SCHEMA",
    "ValidationResult",
    "FormSchemaValidator",
]
