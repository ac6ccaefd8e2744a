"""
Record extraction from document text using OpenAI structured outputs.

The model answers with JSON constrained by a response schema; the raw
payload is then validated item by item into a VetSummary.
"""

import json
import logging
from typing import Any

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from ...models import (
    Bloodwork,
    CategorizedDate,
    DocumentInfo,
    FaqMode,
    FAQs,
    Medication,
    ParsedDocument,
    Surgery,
    Vaccine,
    VetSummary,
)
from ...validation import clean_null_from_arrays
from ..faq import derive_faqs, events_from_records, merge_faqs
from .exceptions import AIServiceError
from .fallback import call_with_fallback
from .prompts import CONNECTIVITY_PROMPT, build_messages
from .schemas import build_response_format

logger = logging.getLogger(__name__)


# =============================================================================
# Model Calls
# =============================================================================


def _parse_json_content(content: str | None) -> dict[str, Any]:
    """Parse the message content of a completion into a JSON object."""
    if not content:
        raise AIServiceError("Empty response from OpenAI")

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse extraction response: %s", content[:500])
        raise AIServiceError(f"Invalid JSON in extraction response: {e}") from e

    if not isinstance(data, dict):
        raise AIServiceError(
            f"Expected a JSON object in extraction response, got {type(data).__name__}"
        )
    return data


async def extract_summary(
    documents: list[ParsedDocument],
    client: Any,  # OpenAI client
    models: list[str],
    include_faqs: bool = False,
    strict: bool = False,
    max_chars: int | None = None,
) -> tuple[dict[str, Any], str]:
    """
    Ask the model for structured records, falling back across models.

    Args:
        documents: Parsed uploads to summarize.
        client: OpenAI client instance.
        models: Model names, tried in order.
        include_faqs: Ask the model to fill the FAQ record directly.
        strict: Use OpenAI strict schema mode.
        max_chars: Per-document character cap for the prompt.

    Returns:
        Tuple of (raw JSON payload, model that produced it).

    Raises:
        AIServiceError: If every model fails.
    """
    messages = build_messages(documents, include_faqs, max_chars)
    response_format = build_response_format(include_faqs, strict)

    logger.info(
        "Extracting records from %d document(s) (faqs=%s, strict=%s, models=%s)",
        len(documents),
        "model" if include_faqs else "derived",
        strict,
        models,
    )

    async def _request(model: str) -> dict[str, Any]:
        response = await run_in_threadpool(
            client.chat.completions.create,
            model=model,
            messages=messages,
            response_format=response_format,
            temperature=0,
        )
        data = _parse_json_content(response.choices[0].message.content)
        return clean_null_from_arrays(data)

    return await call_with_fallback(models, _request)


async def ping_model(client: Any, model: str) -> str:
    """Send a one-line prompt and return the model's reply text."""
    response = await run_in_threadpool(
        client.chat.completions.create,
        model=model,
        messages=[{"role": "user", "content": CONNECTIVITY_PROMPT}],
        temperature=0.1,
        max_tokens=100,
    )
    return (response.choices[0].message.content or "").strip()


# =============================================================================
# Payload Assembly
# =============================================================================


def _validate_items(
    payload: dict[str, Any],
    key: str,
    model_cls: type[BaseModel],
    warnings: list[str],
) -> list[Any]:
    """Validate each entry of a payload list, dropping the ones that do not fit."""
    raw_items = payload.get(key) or []
    if not isinstance(raw_items, list):
        warnings.append(f"Ignored {key}: expected a list")
        return []

    items = []
    for index, raw in enumerate(raw_items):
        try:
            items.append(model_cls.model_validate(raw))
        except ValidationError as e:
            logger.warning("Dropping invalid %s entry %d: %s", key, index, e)
            warnings.append(f"Dropped invalid {key} entry #{index + 1}")
    return items


def assemble_summary(
    payload: dict[str, Any],
    documents: list[ParsedDocument],
    faq_mode: FaqMode = FaqMode.DERIVED,
    model_used: str | None = None,
) -> VetSummary:
    """
    Turn a raw model payload into a VetSummary.

    In derived mode the FAQ record comes only from categorized dates and the
    dated record lists. In model mode the model's own FAQ answers win and
    derivation fills the questions it left empty.
    """
    warnings: list[str] = []

    vaccines = _validate_items(payload, "vaccines", Vaccine, warnings)
    surgeries = _validate_items(payload, "surgeries", Surgery, warnings)
    medications = _validate_items(payload, "medications", Medication, warnings)
    bloodwork = _validate_items(payload, "bloodwork", Bloodwork, warnings)
    categorized_dates = _validate_items(
        payload, "categorized_dates", CategorizedDate, warnings
    )

    undated = sum(1 for event in categorized_dates if event.date is None)
    if undated:
        warnings.append(f"{undated} categorized date(s) had no usable date")

    derived = derive_faqs(
        [
            *categorized_dates,
            *events_from_records(vaccines, surgeries, medications, bloodwork),
        ]
    )

    if faq_mode == FaqMode.MODEL:
        try:
            model_faqs = FAQs.model_validate(payload.get("faqs") or {})
        except ValidationError as e:
            logger.warning("Model FAQ answers did not validate: %s", e)
            warnings.append("Model FAQ answers were invalid; using derived answers")
            model_faqs = FAQs()
        faqs = merge_faqs(model_faqs, derived)
    else:
        faqs = derived

    for document in documents:
        if document.error:
            warnings.append(f"{document.title}: {document.error}")
        elif not document.text and not document.images:
            warnings.append(f"{document.title}: no text could be extracted")

    return VetSummary(
        faqs=faqs,
        vaccines=vaccines,
        surgeries=surgeries,
        medications=medications,
        bloodwork=bloodwork,
        categorized_dates=categorized_dates,
        documents=[
            DocumentInfo(
                title=document.title,
                page_count=document.page_count,
                characters=0 if document.error else len(document.text),
                error=document.error,
            )
            for document in documents
        ],
        model_used=model_used,
        faq_mode=faq_mode,
        warnings=warnings,
    )
