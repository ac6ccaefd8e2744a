"""
AI service package for veterinary record extraction.

This package provides modular AI functionality split into:
- prompts: System prompt and document corpus construction
- schemas: JSON Schemas for structured outputs
- fallback: Linear model fallback loop
- extraction: Model calls and payload assembly

The AIService class ties these together for the routers.
"""

import logging
from typing import Any

from ...config import get_settings
from ...models import FaqMode, ParsedDocument, VetSummary
from .exceptions import AIServiceError, AllModelsFailedError
from .extraction import assemble_summary, extract_summary, ping_model
from .fallback import call_with_fallback

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "AllModelsFailedError",
    "assemble_summary",
    "call_with_fallback",
    "extract_summary",
    "get_ai_service",
]


# =============================================================================
# AIService Class
# =============================================================================


class AIService:
    """
    Service for AI-powered veterinary record extraction.

    Sends document text to OpenAI chat completions with a JSON-schema
    response format, trying each configured model in turn.
    """

    def __init__(
        self,
        api_key: str | None = None,
        models: list[str] | None = None,
        strict_schema: bool | None = None,
        max_document_chars: int | None = None,
        use_mock: bool | None = None,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. If None, reads from config/environment.
            models: Models to try in order. If None, reads from config.
            strict_schema: Use OpenAI strict schema mode. If None, reads from config.
            max_document_chars: Per-document prompt cap. If None, reads from config.
            use_mock: If True, return canned data instead of calling OpenAI.
        """
        settings = get_settings()

        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.models = list(models) if models is not None else list(settings.openai_models)
        self.strict_schema = (
            strict_schema if strict_schema is not None else settings.openai_strict_schema
        )
        self.max_document_chars = (
            max_document_chars
            if max_document_chars is not None
            else settings.max_document_chars
        )
        self.use_mock = use_mock if use_mock is not None else settings.mock_ai
        self._client = None

        if self.use_mock:
            logger.warning(
                "AI Service running in MOCK MODE. Unset MOCK_AI and set OPENAI_API_KEY for real extraction."
            )
        elif not self.api_key:
            logger.warning("OPENAI_API_KEY is not set; extraction requests will fail")

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise AIServiceError(
                    "Missing OPENAI_API_KEY. Set the OPENAI_API_KEY environment variable."
                )
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key)
        return self._client

    async def summarize(
        self,
        documents: list[ParsedDocument],
        faq_mode: FaqMode = FaqMode.DERIVED,
    ) -> VetSummary:
        """
        Extract records from parsed documents and build the FAQ panel.

        Args:
            documents: Parsed uploads.
            faq_mode: Derive FAQ answers locally or let the model answer them.

        Returns:
            VetSummary ready to return to the client.
        """
        include_faqs = faq_mode == FaqMode.MODEL

        if self.use_mock:
            logger.info("Summarizing %d document(s) (MOCK MODE)", len(documents))
            payload = self._get_mock_payload(documents, include_faqs)
            model_used = "mock"
        else:
            payload, model_used = await extract_summary(
                documents,
                client=self.client,
                models=self.models,
                include_faqs=include_faqs,
                strict=self.strict_schema,
                max_chars=self.max_document_chars,
            )

        summary = assemble_summary(payload, documents, faq_mode, model_used)
        logger.info(
            "Summary built with %s: %d vaccine(s), %d surgery(ies), %d medication(s), %d panel(s)",
            model_used,
            len(summary.vaccines),
            len(summary.surgeries),
            len(summary.medications),
            len(summary.bloodwork),
        )
        return summary

    async def test_connection(self) -> tuple[str, str]:
        """
        Round-trip a short prompt to the first configured model.

        Returns:
            Tuple of (reply text, model used).
        """
        if not self.models:
            raise AIServiceError("No models configured")
        model = self.models[0]

        if self.use_mock:
            return "API test successful", "mock"

        try:
            reply = await ping_model(self.client, model)
        except AIServiceError:
            raise
        except Exception as e:
            logger.exception("API test failed")
            raise AIServiceError(f"API test failed: {e}") from e
        return reply, model

    def _get_mock_payload(
        self, documents: list[ParsedDocument], include_faqs: bool
    ) -> dict[str, Any]:
        """Return canned extraction data for development."""
        source = documents[0].title if documents else "mock.pdf"

        payload: dict[str, Any] = {
            "vaccines": [
                {"vaccine": "Rabies 3yr", "date": "2023-04-12", "lot_or_notes": "Lot 12345", "source": source},
                {"vaccine": "DHPP", "date": "2024-04-15", "lot_or_notes": None, "source": source},
                {"vaccine": "Leptospirosis", "date": "2024-04-15", "lot_or_notes": None, "source": source},
            ],
            "surgeries": [
                {"procedure": "Ovariohysterectomy", "date": "2019-06-03", "outcome_or_notes": "Routine, no complications", "source": source},
            ],
            "medications": [
                {"drug": "NexGard", "dose": "28.3 mg", "frequency": "Monthly", "start_date": "2024-05-01", "end_date": None, "source": source},
                {"drug": "Heartgard Plus", "dose": "68 mcg", "frequency": "Monthly", "start_date": "2024-05-01", "end_date": None, "source": source},
            ],
            "bloodwork": [
                {"panel": "Senior wellness panel", "date": "2024-04-15", "highlights": ["ALT 132 U/L (high)"], "source": source},
            ],
        }
        events = [
            {"date": "2024-04-15", "category": "wellness_exam", "specific_type": "Annual exam", "source": source, "notes": None},
            {"date": "2024-04-15", "category": "parasite_test", "specific_type": "Heartworm 4Dx", "source": source, "notes": "Negative"},
            {"date": "2024-04-15", "category": "parasite_test", "specific_type": "Fecal float", "source": source, "notes": "Negative"},
            {"date": "2022-09-20", "category": "dental", "specific_type": "Dental cleaning", "source": source, "notes": None},
        ]
        if include_faqs:
            payload["faqs"] = {
                "last_rabies_vaccine_date": "2023-04-12",
                "last_rabies_vaccine_source": source,
            }
        else:
            payload["categorized_dates"] = events
        return payload


# =============================================================================
# Singleton Factory
# =============================================================================

_ai_service: AIService | None = None


def get_ai_service() -> AIService:
    """Get or create the AI service singleton."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
