"""Tests for the output safety gate."""

from dzdoc_ai.safety.post_check import (
    WARNING_DANGEROUS_ADVICE,
    WARNING_DIAGNOSTIC_LANGUAGE,
    WARNING_PRESCRIPTION,
    run_post_checks,
    validate_output_structure,
)
from dzdoc_ai.safety.rules import SAFETY_WARNING_MARKERS


class TestDangerousAdvice:
    def test_warning_precedes_dangerous_phrase(self, care_plan_response):
        result = run_post_checks(care_plan_response, "generate_care_plan")

        assert result.safe is True
        assert result.modified is True
        assert WARNING_DANGEROUS_ADVICE in result.warnings
        marker = SAFETY_WARNING_MARKERS["en"]
        assert result.sanitized["plan"] == f"{marker} stop taking your medication immediately"

    def test_does_not_mutate_input(self, care_plan_response):
        original = dict(care_plan_response)
        run_post_checks(care_plan_response, "generate_care_plan")
        assert care_plan_response == original

    def test_french_advice_gets_french_marker(self):
        output = {"todayActions": ["Arrêtez votre traitement dès ce soir"]}
        result = run_post_checks(output, "generate_care_plan")
        assert result.sanitized["todayActions"][0].startswith(SAFETY_WARNING_MARKERS["fr"])

    def test_nested_strings_are_sanitized(self):
        output = {
            "todayActions": [],
            "medicationInstructions": [
                {"medication": "Metformin", "instructions": "No need to see a doctor"}
            ],
        }
        result = run_post_checks(output, "generate_care_plan")
        instructions = result.sanitized["medicationInstructions"][0]["instructions"]
        assert instructions.startswith(SAFETY_WARNING_MARKERS["en"])
        assert instructions.endswith("No need to see a doctor")

    def test_each_dangerous_phrase_gets_one_marker(self):
        output = {"todayActions": ["Stop taking your medication and do not see a doctor"]}
        result = run_post_checks(output, "generate_care_plan")
        text = result.sanitized["todayActions"][0]
        assert text.count(SAFETY_WARNING_MARKERS["en"]) == 2
        assert text.index(SAFETY_WARNING_MARKERS["en"]) == 0

    def test_negated_advice_is_left_alone(self):
        output = {
            "todayActions": [
                "Do not stop taking your medication.",
                "Don't stop taking your medications before your visit.",
                "لا تتوقف عن تناول الدواء",
            ]
        }
        result = run_post_checks(output, "generate_care_plan")

        assert result.modified is False
        assert WARNING_DANGEROUS_ADVICE not in result.warnings
        assert result.sanitized == output

    def test_arabic_advice_gets_arabic_marker(self):
        output = {"todayActions": ["توقف عن تناول الدواء اليوم"]}
        result = run_post_checks(output, "generate_care_plan")
        assert result.sanitized["todayActions"][0] == (
            f"{SAFETY_WARNING_MARKERS['ar']} توقف عن تناول الدواء اليوم"
        )


class TestDiagnosticLanguage:
    def test_softens_definitive_diagnosis(self):
        output = {"summary": "Your diagnosis is anemia.", "highlights": []}
        result = run_post_checks(output, "summarize_lab")

        assert result.modified is True
        assert WARNING_DIAGNOSTIC_LANGUAGE in result.warnings
        assert result.sanitized["summary"] == "Possible considerations include anemia."

    def test_softens_french(self):
        output = {"summary": "Vous souffrez de fatigue chronique.", "highlights": []}
        result = run_post_checks(output, "summarize_lab")
        assert result.sanitized["summary"] == "Vous pourriez présenter fatigue chronique."


class TestPrescriptionContent:
    def test_flagged_but_not_rewritten(self):
        output = {"todayActions": ["Take 500 mg twice daily"], "medicationInstructions": []}
        result = run_post_checks(output, "generate_care_plan")

        assert result.safe is True
        assert result.modified is False
        assert result.warnings == [WARNING_PRESCRIPTION]
        assert result.sanitized == output


class TestStructure:
    def test_clean_output_passes_unchanged(self, lab_summary_response):
        result = run_post_checks(lab_summary_response, "summarize_lab")
        assert result.safe is True
        assert result.modified is False
        assert result.warnings == []
        assert result.sanitized == lab_summary_response

    def test_missing_required_keys_fails(self):
        result = run_post_checks({"answer": "hello"}, "summarize_lab")
        assert result.safe is False
        assert result.sanitized is None
        assert result.warnings == ["Invalid output structure for skill: summarize_lab"]

    def test_parse_error_placeholder_fails(self):
        result = run_post_checks({"text": "not json", "parseError": True}, "triage_message")
        assert result.safe is False

    def test_non_object_and_empty_fail(self):
        assert validate_output_structure(None, "summarize_lab") is False
        assert validate_output_structure([], "summarize_lab") is False
        assert validate_output_structure({}, "summarize_lab") is False

    def test_any_required_key_is_enough(self):
        assert validate_output_structure({"priority": "low"}, "triage_message") is True

    def test_unlisted_skill_only_needs_an_object(self):
        assert validate_output_structure({"anything": 1}, "future_skill") is True


class TestRepeatability:
    def test_repeated_calls_classify_identically(self, care_plan_response):
        first = run_post_checks(care_plan_response, "generate_care_plan")
        second = run_post_checks(care_plan_response, "generate_care_plan")

        assert (first.safe, first.warnings) == (second.safe, second.warnings)
        assert first.sanitized == second.sanitized

    def test_sanitized_output_passes_through_unchanged(self, care_plan_response):
        for output in (
            care_plan_response,
            {"todayActions": ["توقف عن تناول الدواء"]},
            {"todayActions": ["Arrêtez votre traitement"]},
        ):
            first = run_post_checks(output, "generate_care_plan")
            second = run_post_checks(first.sanitized, "generate_care_plan")

            assert first.modified is True
            assert second.modified is False
            assert second.sanitized == first.sanitized
