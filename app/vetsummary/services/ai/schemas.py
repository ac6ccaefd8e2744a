"""
JSON Schemas for the model's structured-output mode.

Non-strict schemas only require identifying keys. Strict schemas require
every property, which is what OpenAI strict mode demands; optional values
are then expressed as nullable types.
"""

from typing import Any

from ...models import EventCategory
from ..faq import FAQ_QUESTIONS

SCHEMA_NAME = "VetSummary"

NULLABLE_STRING: dict[str, Any] = {"type": ["string", "null"]}
STRING: dict[str, Any] = {"type": "string"}


def _object(
    properties: dict[str, Any],
    required: list[str],
    strict: bool,
) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": list(properties) if strict else required,
        "additionalProperties": False,
    }


def _array_of(item: dict[str, Any]) -> dict[str, Any]:
    return {"type": "array", "items": item}


def faq_schema(strict: bool = False) -> dict[str, Any]:
    """Schema for the fixed FAQ record (date and source per question)."""
    properties: dict[str, Any] = {}
    for question in FAQ_QUESTIONS:
        properties[f"{question.key}_date"] = NULLABLE_STRING
        properties[f"{question.key}_source"] = NULLABLE_STRING
    return _object(properties, [], strict)


def categorized_date_schema(strict: bool = False) -> dict[str, Any]:
    """Schema for one categorized date-event."""
    return _object(
        {
            "date": STRING,
            "category": {
                "type": "string",
                "enum": [category.value for category in EventCategory],
            },
            "specific_type": STRING,
            "source": STRING,
            "notes": NULLABLE_STRING,
        },
        ["date", "category", "specific_type", "source"],
        strict,
    )


def record_schemas(strict: bool = False) -> dict[str, Any]:
    """Schemas for the four record lists, keyed by response property."""
    return {
        "vaccines": _array_of(
            _object(
                {
                    "vaccine": STRING,
                    "date": NULLABLE_STRING,
                    "lot_or_notes": NULLABLE_STRING,
                    "source": STRING,
                },
                ["vaccine", "source"],
                strict,
            )
        ),
        "surgeries": _array_of(
            _object(
                {
                    "procedure": STRING,
                    "date": NULLABLE_STRING,
                    "outcome_or_notes": NULLABLE_STRING,
                    "source": STRING,
                },
                ["procedure", "source"],
                strict,
            )
        ),
        "medications": _array_of(
            _object(
                {
                    "drug": STRING,
                    "dose": NULLABLE_STRING,
                    "frequency": NULLABLE_STRING,
                    "start_date": NULLABLE_STRING,
                    "end_date": NULLABLE_STRING,
                    "source": STRING,
                },
                ["drug", "source"],
                strict,
            )
        ),
        "bloodwork": _array_of(
            _object(
                {
                    "panel": STRING,
                    "date": NULLABLE_STRING,
                    "highlights": _array_of(STRING),
                    "source": STRING,
                },
                ["panel", "source"],
                strict,
            )
        ),
    }


def build_response_schema(include_faqs: bool, strict: bool = False) -> dict[str, Any]:
    """
    Build the top-level response schema.

    Args:
        include_faqs: Ask the model to answer the FAQ record directly. When
            False the model returns categorized dates instead and the FAQ
            record is derived locally.
        strict: Build a schema acceptable to OpenAI strict mode.

    Returns:
        JSON Schema dictionary.
    """
    properties: dict[str, Any] = {}
    if include_faqs:
        properties["faqs"] = faq_schema(strict)
    else:
        properties["categorized_dates"] = _array_of(categorized_date_schema(strict))
    properties.update(record_schemas(strict))
    return _object(properties, list(properties), strict)


def build_response_format(include_faqs: bool, strict: bool = False) -> dict[str, Any]:
    """Wrap the schema in the chat-completions response_format envelope."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": SCHEMA_NAME,
            "schema": build_response_schema(include_faqs, strict),
            "strict": strict,
        },
    }
