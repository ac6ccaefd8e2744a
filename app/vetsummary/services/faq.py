"""
FAQ derivation from categorized date-events.

Each FAQ question is answered by filtering the events on category and on
keywords found in ``specific_type``, then picking the most recent ISO date.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..models import (
    Bloodwork,
    CategorizedDate,
    EventCategory,
    FAQs,
    Medication,
    Surgery,
    Vaccine,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Clause:
    """
    One way an event can answer a question.

    An event matches when its category is one of ``categories`` and, if
    ``keywords`` is non-empty, one keyword occurs in its specific type
    (case-insensitive). Any of ``excludes`` in the specific type rules the
    event out.
    """

    categories: frozenset[EventCategory]
    keywords: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()

    def matches(self, event: CategorizedDate) -> bool:
        if event.category not in self.categories:
            return False
        specific_type = event.specific_type.lower()
        if any(word in specific_type for word in self.excludes):
            return False
        if not self.keywords:
            return True
        return any(keyword in specific_type for keyword in self.keywords)


@dataclass(frozen=True)
class FaqQuestion:
    """A "when was the last..." question and the clauses that answer it."""

    key: str
    label: str
    clauses: tuple[Clause, ...]

    def matches(self, event: CategorizedDate) -> bool:
        return any(clause.matches(event) for clause in self.clauses)


def _clause(
    *categories: EventCategory,
    keywords: tuple[str, ...] = (),
    excludes: tuple[str, ...] = (),
) -> Clause:
    return Clause(frozenset(categories), keywords, excludes)


_VACCINATION = EventCategory.VACCINATION
_PARASITE_TEST = EventCategory.PARASITE_TEST
_PREVENTION = EventCategory.PARASITE_PREVENTION
_MEDICATION = EventCategory.MEDICATION
_LAB_WORK = EventCategory.LAB_WORK

HEARTWORM_TEST_KEYWORDS = ("heartworm", "4dx", "3dx", "dirofilaria")
HEARTWORM_PREVENTIVE_KEYWORDS = (
    "heartworm",
    "heartgard",
    "iverhart",
    "tri-heart",
    "interceptor",
    "sentinel",
    "trifexis",
    "proheart",
    "revolution",
    "simparica trio",
    "nexgard plus",
    "nexgard spectra",
    "bravecto plus",
    "advantage multi",
)
FLEA_TICK_KEYWORDS = (
    "flea",
    "tick",
    "nexgard",
    "bravecto",
    "simparica",
    "credelio",
    "frontline",
    "revolution",
    "seresto",
    "advantage",
    "advantix",
    "comfortis",
    "capstar",
    "sentinel",
    "trifexis",
)
FECAL_KEYWORDS = ("fecal", "faecal", "stool", "giardia", "o&p", "ova and parasite", "ova & parasite")
DENTAL_PROCEDURE_KEYWORDS = ("dental", "cohat", "tooth", "teeth", "prophy")
# Feline core vaccines share the distemper and parvo names
FELINE_VACCINE_KEYWORDS = ("feline", "fvrcp", "panleukopenia", "rhinotracheitis", "calici")

# Order matches the field order of FAQs
FAQ_QUESTIONS: tuple[FaqQuestion, ...] = (
    FaqQuestion(
        "last_rabies_vaccine",
        "Last rabies vaccine",
        (_clause(_VACCINATION, keywords=("rabies",)),),
    ),
    FaqQuestion(
        "last_fecal_exam",
        "Last fecal exam",
        (_clause(_PARASITE_TEST, _LAB_WORK, keywords=FECAL_KEYWORDS),),
    ),
    FaqQuestion(
        "last_heartworm_exam_or_treatment",
        "Last heartworm exam/treatment",
        (
            _clause(_PARASITE_TEST, _LAB_WORK, keywords=HEARTWORM_TEST_KEYWORDS),
            _clause(_PREVENTION, _MEDICATION, keywords=HEARTWORM_PREVENTIVE_KEYWORDS),
        ),
    ),
    FaqQuestion(
        "last_wellness_screen",
        "Wellness screen",
        (
            _clause(EventCategory.WELLNESS_EXAM),
            _clause(_LAB_WORK, keywords=("wellness",)),
        ),
    ),
    FaqQuestion(
        "last_dental",
        "Dental",
        (
            _clause(EventCategory.DENTAL),
            _clause(EventCategory.SURGERY, keywords=DENTAL_PROCEDURE_KEYWORDS),
        ),
    ),
    FaqQuestion(
        "last_dhpp",
        "DHPP",
        (
            _clause(
                _VACCINATION,
                keywords=("dhpp", "dhlpp", "da2pp", "dapp", "dhp", "distemper", "parvo"),
                excludes=FELINE_VACCINE_KEYWORDS,
            ),
        ),
    ),
    FaqQuestion(
        "last_lepto",
        "Lepto",
        (_clause(_VACCINATION, keywords=("lepto", "dhlpp", "l4")),),
    ),
    FaqQuestion(
        "last_influenza",
        "Influenza",
        (_clause(_VACCINATION, keywords=("influenza", "flu", "civ", "h3n2", "h3n8")),),
    ),
    FaqQuestion(
        "last_flea_tick_prevention",
        "Flea/tick prevention",
        (_clause(_PREVENTION, _MEDICATION, keywords=FLEA_TICK_KEYWORDS),),
    ),
    FaqQuestion(
        "last_lyme",
        "Lyme",
        (_clause(_VACCINATION, keywords=("lyme", "borrelia")),),
    ),
)


def latest_event(
    events: Iterable[CategorizedDate], question: FaqQuestion
) -> CategorizedDate | None:
    """
    Return the most recent dated event answering the question.

    ISO dates compare correctly as strings, so the lexicographic maximum is
    the latest date. On a tie the earliest event in input order wins.
    """
    best: CategorizedDate | None = None
    for event in events:
        if event.date is None or not question.matches(event):
            continue
        if best is None or event.date > best.date:
            best = event
    return best


def derive_faqs(events: Iterable[CategorizedDate]) -> FAQs:
    """
    Derive the FAQ record from categorized date-events.

    Args:
        events: Categorized dates from the model, plus any built from records.

    Returns:
        FAQs with a date and source for every question that has a match.
    """
    events = list(events)
    answers: dict[str, str | None] = {}
    for question in FAQ_QUESTIONS:
        event = latest_event(events, question)
        answers[f"{question.key}_date"] = event.date if event else None
        answers[f"{question.key}_source"] = (event.source or None) if event else None

    answered = sum(1 for q in FAQ_QUESTIONS if answers[f"{q.key}_date"])
    logger.info(
        "Derived FAQs from %d event(s): %d/%d questions answered",
        len(events),
        answered,
        len(FAQ_QUESTIONS),
    )
    return FAQs(**answers)


def events_from_records(
    vaccines: Iterable[Vaccine] = (),
    surgeries: Iterable[Surgery] = (),
    medications: Iterable[Medication] = (),
    bloodwork: Iterable[Bloodwork] = (),
) -> list[CategorizedDate]:
    """
    Turn dated record-list entries into categorized date-events.

    Medications contribute their start date. Undated entries are skipped.
    """
    events: list[CategorizedDate] = []
    for vaccine in vaccines:
        if vaccine.date:
            events.append(
                CategorizedDate(
                    date=vaccine.date,
                    category=EventCategory.VACCINATION,
                    specific_type=vaccine.vaccine,
                    source=vaccine.source,
                )
            )
    for surgery in surgeries:
        if surgery.date:
            events.append(
                CategorizedDate(
                    date=surgery.date,
                    category=EventCategory.SURGERY,
                    specific_type=surgery.procedure,
                    source=surgery.source,
                )
            )
    for medication in medications:
        if medication.start_date:
            events.append(
                CategorizedDate(
                    date=medication.start_date,
                    category=EventCategory.MEDICATION,
                    specific_type=medication.drug,
                    source=medication.source,
                )
            )
    for panel in bloodwork:
        if panel.date:
            events.append(
                CategorizedDate(
                    date=panel.date,
                    category=EventCategory.LAB_WORK,
                    specific_type=panel.panel,
                    source=panel.source,
                )
            )
    return events


def merge_faqs(primary: FAQs, fallback: FAQs) -> FAQs:
    """Fill unanswered questions in primary with the answers from fallback."""
    merged = primary.model_dump()
    for question in FAQ_QUESTIONS:
        date_key = f"{question.key}_date"
        source_key = f"{question.key}_source"
        if merged[date_key] is None:
            merged[date_key] = getattr(fallback, date_key)
            merged[source_key] = getattr(fallback, source_key)
    return FAQs(**merged)
