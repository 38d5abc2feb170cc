import json
import logging
from dataclasses import dataclass
from typing import Any

from dzdoc_ai.models import SkillRequest, normalize_language
from dzdoc_ai.safety.pii import PIIMasker
from dzdoc_ai.safety.rules import EMERGENCY_KEYWORDS, EMERGENCY_MESSAGES

logger = logging.getLogger(__name__)

MAX_INPUT_BYTES = 100 * 1024
MAX_STRING_LENGTH = 50_000
MAX_ARRAY_LENGTH = 1_000
MAX_NESTING_DEPTH = 10

_ALL_EMERGENCY_KEYWORDS: tuple[str, ...] = tuple(
    sorted({kw.lower() for keywords in EMERGENCY_KEYWORDS.values() for kw in keywords})
)


@dataclass
class PreCheckResult:
    safe: bool
    reason: str | None = None
    emergency_detected: bool = False
    emergency_message: str | None = None
    sanitized_input: Any = None


def serialize_input(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def detect_emergency(text: str) -> str | None:
    """Return the first emergency keyword found in text, in any language."""
    lowered = text.lower().replace("’", "'")
    for keyword in _ALL_EMERGENCY_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def _structure_violation(value: Any, depth: int = 0) -> str | None:
    if isinstance(value, str):
        if len(value) > MAX_STRING_LENGTH:
            return f"Input text exceeds {MAX_STRING_LENGTH} characters"
        return None
    if isinstance(value, dict):
        children = list(value.values())
    elif isinstance(value, (list, tuple)):
        if len(value) > MAX_ARRAY_LENGTH:
            return f"Input list exceeds {MAX_ARRAY_LENGTH} items"
        children = list(value)
    else:
        return None
    if depth + 1 > MAX_NESTING_DEPTH:
        return f"Input nesting exceeds {MAX_NESTING_DEPTH} levels"
    for child in children:
        violation = _structure_violation(child, depth + 1)
        if violation:
            return violation
    return None


def validate_input_size(value: Any) -> str | None:
    """Return a rejection reason when the payload is oversized or pathological."""
    serialized = serialize_input(value)
    if len(serialized.encode("utf-8")) > MAX_INPUT_BYTES:
        return f"Input exceeds maximum size of {MAX_INPUT_BYTES // 1024}KB"
    return _structure_violation(value)


def check_rate_limit(request: SkillRequest) -> bool:
    # Unlimited for now; quota enforcement plugs in here.
    return True


def check_subscription_tier(request: SkillRequest) -> bool:
    # Every tier may use every skill for now.
    return True


def run_pre_checks(request: SkillRequest) -> PreCheckResult:
    """Run the input safety gate. The first failing check is terminal."""
    serialized = serialize_input(request.input)

    keyword = detect_emergency(serialized)
    if keyword is not None:
        language = normalize_language(request.language)
        logger.warning(
            "Emergency keyword detected for user %s (skill=%s); bypassing generation",
            request.user_id,
            request.skill,
        )
        return PreCheckResult(
            safe=False,
            reason="Emergency detected",
            emergency_detected=True,
            emergency_message=EMERGENCY_MESSAGES[language],
        )

    violation = validate_input_size(request.input)
    if violation:
        return PreCheckResult(safe=False, reason=violation)

    if not check_rate_limit(request):
        return PreCheckResult(safe=False, reason="Rate limit exceeded. Please try again later.")

    if not check_subscription_tier(request):
        return PreCheckResult(
            safe=False, reason="This feature is not available on your current plan."
        )

    masked = PIIMasker().mask(request.input)
    if masked.redactions:
        logger.info(
            "PII masked for audit copy (skill=%s): %s",
            request.skill,
            ", ".join(masked.flags),
        )

    return PreCheckResult(safe=True, sanitized_input=masked.masked)
