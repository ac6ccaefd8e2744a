"""
Prompt templates for veterinary record extraction.
"""

import base64
import io
import logging
from typing import Any

from PIL import Image

from ...models import EventCategory, ParsedDocument

logger = logging.getLogger(__name__)


# =============================================================================
# System Prompts
# =============================================================================

BASE_SYSTEM_PROMPT = """You are a clinical data abstractor for veterinary records. Read the provided documents and produce a concise, skimmable summary for a veterinarian.
- Extract only objective, factual items explicitly present in the text. Do not infer.
- Return dates in ISO format (YYYY-MM-DD) if present; otherwise null.
- For each item, include the title of the source PDF where it was found as "source".
- Keep strings short, suitable for thin cards.
"""

RECORD_SECTIONS = """
2) vaccines: list of prior vaccines.
3) surgeries: list of prior surgeries/procedures.
4) medications: list of prior prescribed medications.
5) bloodwork: list of prior lab panels with notable values.
"""

FAQ_SECTION = """
Required sections:
1) faqs: Answers to frequently asked questions for a single patient.
"""

CATEGORIZED_DATES_SECTION = """
Required sections:
1) categorized_dates: every dated clinical event in the records, one entry per date.
   - category must be one of: {categories}.
   - specific_type names the exact item (e.g. "Rabies 3yr", "DHPP", "Fecal float", "NexGard", "Heartworm 4Dx", "Dental cleaning").
   - Use parasite_test for fecal and heartworm tests, parasite_prevention for flea, tick and heartworm preventives.
   - Skip events without a date.
"""

SCHEMA_INSTRUCTION = (
    "Return a JSON object strictly matching the provided JSON Schema. Use null when unknown."
)

CONNECTIVITY_PROMPT = 'Say "API test successful"'

TRUNCATION_MARKER = "\n[... document truncated ...]"


def build_system_prompt(include_faqs: bool) -> str:
    """Build the system prompt for either FAQ mode."""
    if include_faqs:
        sections = FAQ_SECTION
    else:
        categories = ", ".join(category.value for category in EventCategory)
        sections = CATEGORIZED_DATES_SECTION.format(categories=categories)
    return BASE_SYSTEM_PROMPT + sections + RECORD_SECTIONS


# =============================================================================
# Document Corpus
# =============================================================================


def build_corpus(documents: list[ParsedDocument], max_chars: int | None = None) -> str:
    """
    Concatenate document texts under numbered headers.

    Args:
        documents: Parsed uploads, in upload order.
        max_chars: Per-document character cap. None disables truncation.

    Returns:
        One string with a "--- DOCUMENT n: title ---" header per document.
    """
    parts = []
    for i, document in enumerate(documents, start=1):
        text = document.text
        if max_chars is not None and len(text) > max_chars:
            logger.warning(
                "Truncating %s from %d to %d characters",
                document.title,
                len(text),
                max_chars,
            )
            text = text[:max_chars] + TRUNCATION_MARKER
        parts.append(f"--- DOCUMENT {i}: {document.title} ---\n{text}")
    return "\n\n".join(parts)


def _image_to_base64(image: Image.Image) -> str:
    """Convert PIL Image to base64 string for API."""
    buffer = io.BytesIO()
    # Resize if too large (max 2048px on longest side for efficiency)
    max_size = 2048
    if max(image.size) > max_size:
        ratio = max_size / max(image.size)
        new_size = (int(image.size[0] * ratio), int(image.size[1] * ratio))
        image = image.resize(new_size, Image.Resampling.LANCZOS)

    image.save(buffer, format="PNG", optimize=True)
    buffer.seek(0)
    return base64.b64encode(buffer.getvalue()).decode("utf-8")


def build_messages(
    documents: list[ParsedDocument],
    include_faqs: bool,
    max_chars: int | None = None,
) -> list[dict[str, Any]]:
    """
    Build the chat messages for one extraction request.

    Rendered pages of scanned documents are attached as images after the
    text corpus, each preceded by the title of the document it belongs to.
    """
    corpus = build_corpus(documents, max_chars)

    scanned = [document for document in documents if document.images]
    if scanned:
        content: list[dict[str, Any]] | str = [{"type": "text", "text": corpus}]
        for document in scanned:
            content.append(
                {"type": "text", "text": f"Scanned pages of {document.title}:"}
            )
            for image in document.images:
                content.append({
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:image/png;base64,{_image_to_base64(image)}",
                        "detail": "high",
                    },
                })
    else:
        content = corpus

    return [
        {"role": "system", "content": build_system_prompt(include_faqs)},
        {"role": "user", "content": content},
        {"role": "user", "content": SCHEMA_INSTRUCTION},
    ]
