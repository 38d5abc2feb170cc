"""Tests for PII masking of audit copies."""

from dzdoc_ai.safety.pii import REDACTION_TOKEN, PIIMasker, mask_pii


class TestPIIMasker:
    def test_masks_email(self):
        result = PIIMasker().mask("Contact me at amina.b@example.dz please")
        assert result.masked == f"Contact me at {REDACTION_TOKEN} please"
        assert "PII_MASKED_EMAIL" in result.flags

    def test_masks_phone(self):
        result = PIIMasker().mask("Call 0555 12 34 56 tomorrow")
        assert "0555" not in result.masked
        assert "PII_MASKED_PHONE" in result.flags

    def test_masks_international_phone(self):
        assert "213" not in mask_pii("my number is +213 555 123 456")

    def test_masks_date_of_birth(self):
        result = PIIMasker().mask("born 12/03/1985")
        assert result.masked == f"born {REDACTION_TOKEN}"
        assert "PII_MASKED_DATE" in result.flags

    def test_masks_card_number(self):
        result = PIIMasker().mask("card 4111 1111 1111 1111")
        assert result.masked == f"card {REDACTION_TOKEN}"
        assert "PII_MASKED_CARD" in result.flags

    def test_short_numbers_are_not_phones(self):
        text = "Blood pressure 120 80, glucose 180"
        assert mask_pii(text) == text

    def test_sensitive_keys_fully_redacted(self):
        result = PIIMasker().mask({"password": "hunter2", "Token": "abc", "name": "Amina"})
        assert result.masked == {
            "password": REDACTION_TOKEN,
            "Token": REDACTION_TOKEN,
            "name": "Amina",
        }
        assert "PII_MASKED_SENSITIVE_FIELD" in result.flags

    def test_nested_structures(self):
        value = {"contact": {"emails": ["a@b.com", "ok"]}, "age": 42}
        assert mask_pii(value) == {"contact": {"emails": [REDACTION_TOKEN, "ok"]}, "age": 42}

    def test_does_not_mutate_input(self):
        value = {"email": "a@b.com", "password": "x"}
        mask_pii(value)
        assert value == {"email": "a@b.com", "password": "x"}

    def test_clean_input(self):
        result = PIIMasker().mask({"freeText": "headache since yesterday"})
        assert result.flags == ["PII_CLEAN"]
        assert result.redactions == []
