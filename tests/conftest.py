"""Pytest configuration and fixtures."""

import json
from types import SimpleNamespace
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from app.vetsummary.config import Settings, get_settings
from app.vetsummary.main import app
from app.vetsummary.services.ai import AIService, get_ai_service
from app.vetsummary.services.pdf_service import (
    PDFConversionError,
    PDFService,
    get_pdf_service,
)


class FakePDFService(PDFService):
    """PDFService whose text layer is looked up by the first bytes of the file."""

    def __init__(self, texts: dict[bytes, str]):
        super().__init__()
        self.texts = texts

    def extract_text(self, file_bytes):
        if not file_bytes:
            raise PDFConversionError("Empty PDF file provided")
        if not file_bytes.startswith(b"%PDF"):
            raise PDFConversionError("Invalid PDF file: does not start with PDF header")
        return self.texts.get(file_bytes, ""), 1


@pytest.fixture
def record_text() -> str:
    """Text layer of a typical vaccine history page."""
    return (
        "Happy Paws Veterinary Clinic\n"
        "Patient: Biscuit  Species: Canine\n"
        "04/12/2023 Rabies 3yr  Lot 12345\n"
        "04/15/2024 DHPP booster\n"
    )


@pytest.fixture
def fake_pdf_service(record_text: str) -> FakePDFService:
    return FakePDFService({b"%PDF-1.4 biscuit": record_text})


@pytest.fixture
def mock_ai_service() -> AIService:
    return AIService(api_key=None, models=["test-model"], use_mock=True)


@pytest.fixture
def client(
    fake_pdf_service: FakePDFService, mock_ai_service: AIService
) -> Generator[TestClient, None, None]:
    """Create a test client with PDF and AI services swapped for fakes."""
    app.dependency_overrides[get_pdf_service] = lambda: fake_pdf_service
    app.dependency_overrides[get_ai_service] = lambda: mock_ai_service
    app.dependency_overrides[get_settings] = lambda: Settings(
        image_fallback_enabled=False
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def invalid_file_bytes() -> bytes:
    """Create invalid (non-PDF) file bytes for testing."""
    return b"This is not a PDF file"


def make_completion(content: str | None) -> SimpleNamespace:
    """Build an object shaped like an OpenAI chat completion."""
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


class FakeOpenAIClient:
    """
    Stand-in for openai.OpenAI that answers per model.

    Each outcome is either a string (message content) or an exception to raise.
    """

    def __init__(self, outcomes: dict[str, Any]):
        self.outcomes = outcomes
        self.calls: list[dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes[kwargs["model"]]
        if isinstance(outcome, Exception):
            raise outcome
        return make_completion(outcome)

    @property
    def models_called(self) -> list[str]:
        return [call["model"] for call in self.calls]


@pytest.fixture
def derived_payload() -> dict[str, Any]:
    """A model payload in derived mode, as returned by the model."""
    return {
        "categorized_dates": [
            {"date": "2023-04-12", "category": "vaccination", "specific_type": "Rabies 3yr", "source": "history.pdf", "notes": None},
            {"date": "2024-04-15", "category": "parasite_test", "specific_type": "Fecal float", "source": "labs.pdf", "notes": "Negative"},
        ],
        "vaccines": [
            {"vaccine": "Rabies 3yr", "date": "04/12/2023", "lot_or_notes": "Lot 12345", "source": "history.pdf"},
        ],
        "surgeries": [],
        "medications": [],
        "bloodwork": [],
    }


@pytest.fixture
def derived_payload_json(derived_payload: dict[str, Any]) -> str:
    return json.dumps(derived_payload)


@pytest.fixture
def fake_openai_client():
    """Factory for FakeOpenAIClient instances."""
    return FakeOpenAIClient
