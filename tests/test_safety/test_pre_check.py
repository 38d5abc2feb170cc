"""Tests for the input safety gate."""

import pytest

from dzdoc_ai.safety.pii import REDACTION_TOKEN
from dzdoc_ai.safety.pre_check import (
    MAX_ARRAY_LENGTH,
    MAX_INPUT_BYTES,
    MAX_NESTING_DEPTH,
    MAX_STRING_LENGTH,
    detect_emergency,
    run_pre_checks,
    validate_input_size,
)
from dzdoc_ai.safety.rules import EMERGENCY_KEYWORDS, EMERGENCY_MESSAGES


def _nested(depth: int) -> dict:
    value: dict = {"leaf": "x"}
    for _ in range(depth - 1):
        value = {"child": value}
    return value


class TestDetectEmergency:
    def test_english_keyword(self):
        assert detect_emergency("I can't breathe and I think I'm dying") is not None

    def test_curly_apostrophe(self):
        assert detect_emergency("I can’t breathe") == "can't breathe"

    def test_case_insensitive(self):
        assert detect_emergency("SEVERE BLEEDING from the arm") == "severe bleeding"

    def test_no_keyword(self):
        assert detect_emergency('{"freeText": "mild headache since yesterday"}') is None

    @pytest.mark.parametrize(
        "language,keyword",
        [(lang, kw) for lang, kws in EMERGENCY_KEYWORDS.items() for kw in kws],
    )
    def test_every_configured_keyword_is_detected(self, language, keyword):
        assert detect_emergency(f"patient says: {keyword}") is not None


class TestValidateInputSize:
    def test_accepts_normal_input(self, lab_input):
        assert validate_input_size(lab_input) is None

    def test_rejects_oversized_payload(self):
        chunks = [{"note": "x" * 1_000} for _ in range(MAX_INPUT_BYTES // 1_000 + 5)]
        assert "maximum size" in validate_input_size({"chunks": chunks})

    def test_rejects_long_string(self):
        reason = validate_input_size({"freeText": "a" * (MAX_STRING_LENGTH + 1)})
        assert reason == f"Input text exceeds {MAX_STRING_LENGTH} characters"

    def test_rejects_long_list(self):
        reason = validate_input_size({"results": [1] * (MAX_ARRAY_LENGTH + 1)})
        assert reason == f"Input list exceeds {MAX_ARRAY_LENGTH} items"

    def test_nesting_limit(self):
        assert validate_input_size(_nested(MAX_NESTING_DEPTH)) is None
        reason = validate_input_size(_nested(MAX_NESTING_DEPTH + 1))
        assert reason == f"Input nesting exceeds {MAX_NESTING_DEPTH} levels"


class TestRunPreChecks:
    def test_emergency_in_declared_language(self, make_request):
        request = make_request(
            "extract_symptoms",
            {"freeText": "I can't breathe and I think I'm dying"},
            language="en",
        )
        result = run_pre_checks(request)
        assert result.safe is False
        assert result.emergency_detected is True
        assert result.reason == "Emergency detected"
        assert result.emergency_message == EMERGENCY_MESSAGES["en"]

    def test_emergency_in_other_language_uses_request_language(self, make_request):
        request = make_request(
            "extract_symptoms", {"freeText": "عندي ألم في الصدر"}, language="fr"
        )
        result = run_pre_checks(request)
        assert result.emergency_detected is True
        assert result.emergency_message == EMERGENCY_MESSAGES["fr"]

    def test_unknown_language_falls_back_to_english_message(self, make_request):
        request = make_request("extract_symptoms", {"freeText": "overdose"}, language="de")
        assert run_pre_checks(request).emergency_message == EMERGENCY_MESSAGES["en"]

    def test_emergency_takes_priority_over_size(self, make_request):
        request = make_request(
            "extract_symptoms",
            {"freeText": "chest pain " + "a" * (MAX_STRING_LENGTH + 1)},
        )
        result = run_pre_checks(request)
        assert result.emergency_detected is True

    def test_oversized_input_is_rejected(self, make_request):
        request = make_request("extract_symptoms", {"freeText": "a" * (MAX_STRING_LENGTH + 1)})
        result = run_pre_checks(request)
        assert result.safe is False
        assert result.emergency_detected is False
        assert "exceeds" in result.reason

    def test_safe_input_returns_masked_copy(self, make_request):
        input = {"freeText": "headache, reach me at amina@example.dz"}
        result = run_pre_checks(make_request("extract_symptoms", input))
        assert result.safe is True
        assert result.sanitized_input == {"freeText": f"headache, reach me at {REDACTION_TOKEN}"}
        # The request itself is untouched
        assert input["freeText"].endswith("amina@example.dz")

    def test_repeated_calls_classify_identically(self, make_request):
        request = make_request("extract_symptoms", {"freeText": "chest pain, call 0555 12 34 56"})
        first = run_pre_checks(request)
        second = run_pre_checks(request)
        assert (first.safe, first.reason) == (second.safe, second.reason)
