"""Tests for FAQ derivation from categorized dates."""

import pytest

from app.vetsummary.models import (
    Bloodwork,
    CategorizedDate,
    EventCategory,
    FAQs,
    Medication,
    Surgery,
    Vaccine,
)
from app.vetsummary.services.faq import (
    FAQ_QUESTIONS,
    derive_faqs,
    events_from_records,
    latest_event,
    merge_faqs,
)


def event(date, category, specific_type, source="record.pdf"):
    return CategorizedDate(
        date=date, category=category, specific_type=specific_type, source=source
    )


class TestTaxonomy:
    """Tests for the FAQ question table."""

    def test_questions_cover_every_faq_field(self):
        """Every FAQs field is produced by exactly one question."""
        keys = set()
        for question in FAQ_QUESTIONS:
            keys.add(f"{question.key}_date")
            keys.add(f"{question.key}_source")
        assert keys == set(FAQs.model_fields)

    def test_question_order_matches_faq_fields(self):
        date_fields = [name for name in FAQs.model_fields if name.endswith("_date")]
        assert [f"{q.key}_date" for q in FAQ_QUESTIONS] == date_fields


class TestDeriveFaqs:
    """Tests for derive_faqs."""

    def test_empty_events_gives_empty_faqs(self):
        faqs = derive_faqs([])
        assert faqs == FAQs()
        assert all(value is None for value in faqs.model_dump().values())

    def test_picks_most_recent_date(self):
        faqs = derive_faqs(
            [
                event("2021-03-01", EventCategory.VACCINATION, "Rabies 1yr", "old.pdf"),
                event("2023-04-12", EventCategory.VACCINATION, "Rabies 3yr", "new.pdf"),
                event("2022-05-30", EventCategory.VACCINATION, "Rabies", "mid.pdf"),
            ]
        )
        assert faqs.last_rabies_vaccine_date == "2023-04-12"
        assert faqs.last_rabies_vaccine_source == "new.pdf"

    def test_tie_keeps_first_event(self):
        faqs = derive_faqs(
            [
                event("2024-01-10", EventCategory.VACCINATION, "DHPP", "first.pdf"),
                event("2024-01-10", EventCategory.VACCINATION, "DA2PP", "second.pdf"),
            ]
        )
        assert faqs.last_dhpp_source == "first.pdf"

    def test_keyword_match_is_case_insensitive(self):
        faqs = derive_faqs(
            [event("2024-02-02", EventCategory.VACCINATION, "RABIES (IMRAB 3)")]
        )
        assert faqs.last_rabies_vaccine_date == "2024-02-02"

    def test_category_must_match(self):
        """A rabies titer is lab work, not a rabies vaccine."""
        faqs = derive_faqs(
            [event("2024-02-02", EventCategory.LAB_WORK, "Rabies titer")]
        )
        assert faqs.last_rabies_vaccine_date is None

    def test_undated_events_are_ignored(self):
        faqs = derive_faqs(
            [
                event(None, EventCategory.VACCINATION, "Rabies"),
                event("not a date", EventCategory.VACCINATION, "Rabies"),
            ]
        )
        assert faqs.last_rabies_vaccine_date is None
        assert faqs.last_rabies_vaccine_source is None

    def test_combination_vaccine_answers_several_questions(self):
        faqs = derive_faqs(
            [event("2024-04-15", EventCategory.VACCINATION, "DHLPP")]
        )
        assert faqs.last_dhpp_date == "2024-04-15"
        assert faqs.last_lepto_date == "2024-04-15"
        assert faqs.last_rabies_vaccine_date is None

    @pytest.mark.parametrize(
        "category,specific_type",
        [
            (EventCategory.PARASITE_TEST, "Heartworm antigen test"),
            (EventCategory.PARASITE_TEST, "SNAP 4Dx Plus"),
            (EventCategory.LAB_WORK, "IDEXX 4DX"),
            (EventCategory.PARASITE_PREVENTION, "Heartgard Plus"),
            (EventCategory.MEDICATION, "ProHeart 12 injection"),
        ],
    )
    def test_heartworm_exam_or_treatment(self, category, specific_type):
        faqs = derive_faqs([event("2024-03-03", category, specific_type)])
        assert faqs.last_heartworm_exam_or_treatment_date == "2024-03-03"

    @pytest.mark.parametrize(
        "category,specific_type",
        [
            (EventCategory.PARASITE_PREVENTION, "NexGard"),
            (EventCategory.MEDICATION, "Bravecto 1000mg chew"),
            (EventCategory.PARASITE_PREVENTION, "Flea & tick topical"),
        ],
    )
    def test_flea_tick_prevention(self, category, specific_type):
        faqs = derive_faqs([event("2024-06-01", category, specific_type)])
        assert faqs.last_flea_tick_prevention_date == "2024-06-01"

    def test_combined_preventive_answers_both_parasite_questions(self):
        faqs = derive_faqs(
            [event("2024-07-01", EventCategory.MEDICATION, "Simparica Trio")]
        )
        assert faqs.last_flea_tick_prevention_date == "2024-07-01"
        assert faqs.last_heartworm_exam_or_treatment_date == "2024-07-01"

    def test_fecal_exam(self):
        faqs = derive_faqs(
            [
                event("2024-04-15", EventCategory.PARASITE_TEST, "Fecal float"),
                event("2024-05-20", EventCategory.LAB_WORK, "Giardia ELISA"),
            ]
        )
        assert faqs.last_fecal_exam_date == "2024-05-20"

    def test_cardiovascular_panel_is_not_a_fecal_exam(self):
        faqs = derive_faqs(
            [event("2024-05-20", EventCategory.LAB_WORK, "Cardiovascular proBNP")]
        )
        assert faqs.last_fecal_exam_date is None

    def test_wellness_exam_matches_any_type(self):
        faqs = derive_faqs(
            [event("2024-04-15", EventCategory.WELLNESS_EXAM, "Annual physical")]
        )
        assert faqs.last_wellness_screen_date == "2024-04-15"

    def test_wellness_lab_panel(self):
        faqs = derive_faqs(
            [event("2024-04-16", EventCategory.LAB_WORK, "Senior Wellness Panel")]
        )
        assert faqs.last_wellness_screen_date == "2024-04-16"

    def test_dental_from_dental_category_or_surgery(self):
        faqs = derive_faqs(
            [
                event("2022-09-20", EventCategory.DENTAL, "Cleaning"),
                event("2023-01-11", EventCategory.SURGERY, "Dental extraction 108"),
                event("2023-06-01", EventCategory.SURGERY, "Mass removal"),
            ]
        )
        assert faqs.last_dental_date == "2023-01-11"

    def test_non_dental_extraction_is_not_dental(self):
        faqs = derive_faqs(
            [event("2024-01-01", EventCategory.SURGERY, "Foreign body extraction (stomach)")]
        )
        assert faqs.last_dental_date is None

    def test_tooth_extraction_is_dental(self):
        faqs = derive_faqs(
            [event("2024-01-01", EventCategory.SURGERY, "Tooth extraction 208")]
        )
        assert faqs.last_dental_date == "2024-01-01"

    @pytest.mark.parametrize(
        "specific_type",
        ["Feline distemper (FVRCP)", "FVRCP booster", "Panleukopenia (feline parvo)"],
    )
    def test_feline_core_vaccines_are_not_dhpp(self, specific_type):
        faqs = derive_faqs(
            [event("2024-04-15", EventCategory.VACCINATION, specific_type)]
        )
        assert faqs.last_dhpp_date is None

    @pytest.mark.parametrize(
        "specific_type,field",
        [
            ("Canine Influenza H3N2/H3N8", "last_influenza_date"),
            ("Bivalent flu", "last_influenza_date"),
            ("Lyme (Borrelia burgdorferi)", "last_lyme_date"),
            ("Leptospirosis 4-way", "last_lepto_date"),
            ("Distemper/Parvo", "last_dhpp_date"),
        ],
    )
    def test_vaccine_questions(self, specific_type, field):
        faqs = derive_faqs(
            [event("2024-04-15", EventCategory.VACCINATION, specific_type)]
        )
        assert getattr(faqs, field) == "2024-04-15"

    def test_other_category_never_matches(self):
        faqs = derive_faqs(
            [event("2024-04-15", EventCategory.OTHER, "Rabies heartworm dental")]
        )
        assert faqs == FAQs()

    def test_empty_source_becomes_none(self):
        faqs = derive_faqs(
            [event("2024-04-15", EventCategory.VACCINATION, "Rabies", source="")]
        )
        assert faqs.last_rabies_vaccine_date == "2024-04-15"
        assert faqs.last_rabies_vaccine_source is None

    def test_accepts_generator(self):
        events = (
            event(d, EventCategory.VACCINATION, "Rabies")
            for d in ("2020-01-01", "2021-01-01")
        )
        assert derive_faqs(events).last_rabies_vaccine_date == "2021-01-01"


class TestLatestEvent:
    """Tests for latest_event."""

    def test_returns_none_without_match(self):
        question = FAQ_QUESTIONS[0]
        assert latest_event([], question) is None

    def test_returns_the_event(self):
        question = next(q for q in FAQ_QUESTIONS if q.key == "last_lyme")
        lyme = event("2024-01-01", EventCategory.VACCINATION, "Lyme")
        assert latest_event([lyme], question) is lyme


class TestEventsFromRecords:
    """Tests for events_from_records."""

    def test_builds_events_from_dated_records(self):
        events = events_from_records(
            vaccines=[Vaccine(vaccine="Rabies", date="2023-04-12", source="a.pdf")],
            surgeries=[Surgery(procedure="Neuter", date="2019-06-03", source="b.pdf")],
            medications=[
                Medication(drug="NexGard", start_date="2024-05-01", source="c.pdf")
            ],
            bloodwork=[Bloodwork(panel="CBC", date="2024-04-15", source="d.pdf")],
        )
        assert [(e.category, e.specific_type, e.date, e.source) for e in events] == [
            (EventCategory.VACCINATION, "Rabies", "2023-04-12", "a.pdf"),
            (EventCategory.SURGERY, "Neuter", "2019-06-03", "b.pdf"),
            (EventCategory.MEDICATION, "NexGard", "2024-05-01", "c.pdf"),
            (EventCategory.LAB_WORK, "CBC", "2024-04-15", "d.pdf"),
        ]

    def test_skips_undated_records(self):
        events = events_from_records(
            vaccines=[Vaccine(vaccine="Rabies", source="a.pdf")],
            medications=[Medication(drug="Apoquel", end_date="2024-01-01", source="c.pdf")],
        )
        assert events == []

    def test_record_events_feed_derivation(self):
        events = events_from_records(
            vaccines=[Vaccine(vaccine="Rabies 3yr", date="April 12, 2023", source="a.pdf")]
        )
        faqs = derive_faqs(events)
        assert faqs.last_rabies_vaccine_date == "2023-04-12"
        assert faqs.last_rabies_vaccine_source == "a.pdf"


class TestMergeFaqs:
    """Tests for merge_faqs."""

    def test_primary_wins_and_gaps_are_filled(self):
        primary = FAQs(
            last_rabies_vaccine_date="2023-04-12",
            last_rabies_vaccine_source="model.pdf",
        )
        fallback = FAQs(
            last_rabies_vaccine_date="2024-01-01",
            last_rabies_vaccine_source="derived.pdf",
            last_lyme_date="2022-02-02",
            last_lyme_source="derived.pdf",
        )
        merged = merge_faqs(primary, fallback)
        assert merged.last_rabies_vaccine_date == "2023-04-12"
        assert merged.last_rabies_vaccine_source == "model.pdf"
        assert merged.last_lyme_date == "2022-02-02"
        assert merged.last_lyme_source == "derived.pdf"
        assert merged.last_dental_date is None

    def test_source_without_date_is_replaced(self):
        primary = FAQs(last_dental_source="model.pdf")
        fallback = FAQs(last_dental_date="2022-09-20", last_dental_source="derived.pdf")
        merged = merge_faqs(primary, fallback)
        assert merged.last_dental_date == "2022-09-20"
        assert merged.last_dental_source == "derived.pdf"
