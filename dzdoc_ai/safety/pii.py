import re
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PIIMatch:
    type: str
    count: int


@dataclass
class PIIMaskResult:
    masked: Any
    redactions: list[PIIMatch] = field(default_factory=list)
    flags: list[str] = field(default_factory=list)


# Ordered: most specific first, so a card number is never half-eaten by PHONE
_PII_PATTERNS: dict[str, re.Pattern] = {
    "EMAIL": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "CARD": re.compile(r"(?<!\d)(?:\d[ -]?){12,18}\d(?!\d)"),
    "DATE": re.compile(
        r"\b(?:\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}|\d{4}[/.-]\d{1,2}[/.-]\d{1,2})\b"
    ),
    "PHONE": re.compile(
        r"(?<![\w.])(?:\+\d{1,3}[-.\s]?)?(?:\(?\d{2,4}\)?[-.\s]?){2,4}\d{2,4}(?!\w)"
    ),
}

# Short digit groups ("120 80 90") are lab values, not phone numbers
_MIN_PHONE_DIGITS = 9

SENSITIVE_KEYS = frozenset({"password", "token", "secret", "ssn", "card_number"})

REDACTION_TOKEN = "[REDACTED]"


def _mask_text(text: str, counts: dict[str, int]) -> str:
    masked = text
    for pii_type, pattern in _PII_PATTERNS.items():
        hits = 0

        def _replace(match: re.Match) -> str:
            nonlocal hits
            if pii_type == "PHONE":
                digits = sum(ch.isdigit() for ch in match.group(0))
                if digits < _MIN_PHONE_DIGITS:
                    return match.group(0)
            hits += 1
            return REDACTION_TOKEN

        masked = pattern.sub(_replace, masked)
        if hits:
            counts[pii_type] = counts.get(pii_type, 0) + hits
    return masked


def _mask_value(value: Any, counts: dict[str, int]) -> Any:
    if isinstance(value, str):
        return _mask_text(value, counts)
    if isinstance(value, dict):
        masked: dict[str, Any] = {}
        for key, item in value.items():
            if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
                masked[key] = REDACTION_TOKEN
                counts["SENSITIVE_FIELD"] = counts.get("SENSITIVE_FIELD", 0) + 1
            else:
                masked[key] = _mask_value(item, counts)
        return masked
    if isinstance(value, (list, tuple)):
        return [_mask_value(item, counts) for item in value]
    return value


class PIIMasker:
    """Recursive PII redaction for audit and logging copies of user input.

    The input value is never mutated; a masked copy is returned.
    """

    def mask(self, value: Any) -> PIIMaskResult:
        counts: dict[str, int] = {}
        masked = _mask_value(value, counts)
        redactions = [PIIMatch(type=t, count=c) for t, c in counts.items()]

        flags = [f"PII_MASKED_{r.type}" for r in redactions]
        if not redactions:
            flags.append("PII_CLEAN")

        return PIIMaskResult(masked=masked, redactions=redactions, flags=flags)


def mask_pii(value: Any) -> Any:
    return PIIMasker().mask(value).masked
