"""
Pydantic models for the veterinary records summarizer.

Defines the response shapes returned by the model and by the API, with
date normalization applied on the way in.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationInfo, field_validator

from .validation import blank_to_none, parse_date


class EventCategory(str, Enum):
    """Fixed tags a categorized date can carry."""

    VACCINATION = "vaccination"
    PARASITE_TEST = "parasite_test"
    PARASITE_PREVENTION = "parasite_prevention"
    WELLNESS_EXAM = "wellness_exam"
    DENTAL = "dental"
    LAB_WORK = "lab_work"
    SURGERY = "surgery"
    MEDICATION = "medication"
    OTHER = "other"  # Catch-all for anything the model cannot place


class FaqMode(str, Enum):
    """Where the FAQ answers come from."""

    DERIVED = "derived"
    MODEL = "model"


def _normalize_date(value: Any) -> str | None:
    return parse_date(blank_to_none(value))


# ISO YYYY-MM-DD or None, whatever format the model used
IsoDate = Annotated[str | None, BeforeValidator(_normalize_date)]


class CategorizedDate(BaseModel):
    """
    A single dated clinical event as reported by the model.

    Attributes:
        date: ISO date (YYYY-MM-DD) or None when the model's value is unparseable.
        category: One of the fixed EventCategory tags.
        specific_type: Free text naming the event (e.g. "Rabies 3yr", "Fecal float").
        source: Title of the document the event was found in.
        notes: Optional short note.
    """

    model_config = ConfigDict(frozen=True)

    date: IsoDate = None
    category: EventCategory = EventCategory.OTHER
    specific_type: str = ""
    source: str = ""
    notes: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def coerce_category(cls, v: Any) -> EventCategory:
        """Map unknown or differently-cased tags to a known category."""
        if isinstance(v, EventCategory):
            return v
        if isinstance(v, str):
            tag = v.strip().lower().replace(" ", "_").replace("-", "_")
            try:
                return EventCategory(tag)
            except ValueError:
                pass
        return EventCategory.OTHER

    @field_validator("specific_type", "source", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class FAQs(BaseModel):
    """
    Answers to the fixed "when was the last..." questions for one patient.

    Every *_date field is an ISO-8601 date string or None.
    """

    last_rabies_vaccine_date: str | None = None
    last_rabies_vaccine_source: str | None = None
    last_fecal_exam_date: str | None = None
    last_fecal_exam_source: str | None = None
    last_heartworm_exam_or_treatment_date: str | None = None
    last_heartworm_exam_or_treatment_source: str | None = None
    last_wellness_screen_date: str | None = None
    last_wellness_screen_source: str | None = None
    last_dental_date: str | None = None
    last_dental_source: str | None = None
    last_dhpp_date: str | None = None
    last_dhpp_source: str | None = None
    last_lepto_date: str | None = None
    last_lepto_source: str | None = None
    last_influenza_date: str | None = None
    last_influenza_source: str | None = None
    last_flea_tick_prevention_date: str | None = None
    last_flea_tick_prevention_source: str | None = None
    last_lyme_date: str | None = None
    last_lyme_source: str | None = None

    @field_validator("*", mode="before")
    @classmethod
    def normalize_fields(cls, v: Any, info: ValidationInfo) -> str | None:
        if info.field_name.endswith("_date"):
            return _normalize_date(v)
        return blank_to_none(v)


class Vaccine(BaseModel):
    """A prior vaccine."""

    vaccine: str
    date: IsoDate = None
    lot_or_notes: str | None = None
    source: str = ""


class Surgery(BaseModel):
    """A prior surgery or procedure."""

    procedure: str
    date: IsoDate = None
    outcome_or_notes: str | None = None
    source: str = ""


class Medication(BaseModel):
    """A prior prescribed medication."""

    drug: str
    dose: str | None = None
    frequency: str | None = None
    start_date: IsoDate = None
    end_date: IsoDate = None
    source: str = ""


class Bloodwork(BaseModel):
    """A prior lab panel with notable values."""

    panel: str
    date: IsoDate = None
    highlights: list[str] = Field(default_factory=list)
    source: str = ""

    @field_validator("highlights", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class ParsedDocument(BaseModel):
    """Text pulled out of one uploaded PDF."""

    title: str = Field(..., description="Original filename of the upload")
    text: str = Field(default="", description="Extracted text, or an error marker")
    page_count: int = Field(default=0, ge=0)
    error: str | None = Field(default=None, description="Why extraction failed, if it did")
    # Rendered PIL pages for scans without a text layer
    images: list[Any] = Field(default_factory=list, exclude=True, repr=False)


class DocumentInfo(BaseModel):
    """Per-document summary echoed back in the ingest response."""

    title: str
    page_count: int = Field(default=0, ge=0)
    characters: int = Field(default=0, ge=0)
    error: str | None = None


class VetSummary(BaseModel):
    """
    Response model for the ingest endpoint.

    Mirrors the structure the frontend renders: an FAQ panel and four
    record lists, plus the categorized dates the FAQ panel was derived from.
    """

    faqs: FAQs = Field(default_factory=FAQs)
    vaccines: list[Vaccine] = Field(default_factory=list)
    surgeries: list[Surgery] = Field(default_factory=list)
    medications: list[Medication] = Field(default_factory=list)
    bloodwork: list[Bloodwork] = Field(default_factory=list)
    categorized_dates: list[CategorizedDate] = Field(default_factory=list)
    documents: list[DocumentInfo] = Field(default_factory=list)
    model_used: str | None = Field(default=None, description="Model that produced the extraction")
    faq_mode: FaqMode = FaqMode.DERIVED
    warnings: list[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default="1.0.0")
    message: str | None = None


class ConnectivityTestResponse(BaseModel):
    """Result of a round trip to the hosted model."""

    success: bool
    message: str
    response: str | None = None
    model_used: str | None = None
