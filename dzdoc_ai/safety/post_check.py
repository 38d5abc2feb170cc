import json
import logging
from dataclasses import dataclass, field
from typing import Any

from dzdoc_ai.safety.rules import (
    DANGEROUS_ADVICE_RULES,
    DIAGNOSTIC_RULES,
    PRESCRIPTION_PATTERNS,
    Rule,
    all_patterns,
    all_rules,
)

logger = logging.getLogger(__name__)

# Output must carry at least one of these keys
REQUIRED_OUTPUT_KEYS: dict[str, tuple[str, ...]] = {
    "summarize_lab": ("summary", "highlights"),
    "extract_symptoms": ("symptoms", "suggestedSpecialty"),
    "draft_clinical_note": ("chiefComplaint", "assessment"),
    "triage_message": ("category", "priority"),
    "generate_care_plan": ("todayActions", "medicationInstructions"),
    "inventory_forecast": ("predictedDemand", "reorderRecommendation"),
    "quality_check": ("overallStatus", "flags"),
}

WARNING_DANGEROUS_ADVICE = "Flagged potentially dangerous advice"
WARNING_DIAGNOSTIC_LANGUAGE = "Softened diagnostic language"
WARNING_PRESCRIPTION = (
    "Contains prescription-like content - ensure the user understands this is not a real prescription"
)

_DANGEROUS_RULES = all_rules(DANGEROUS_ADVICE_RULES)
_DIAGNOSTIC_RULES = all_rules(DIAGNOSTIC_RULES)
_PRESCRIPTION_PATTERNS = all_patterns(PRESCRIPTION_PATTERNS)


@dataclass
class PostCheckResult:
    safe: bool
    sanitized: Any
    warnings: list[str] = field(default_factory=list)
    modified: bool = False


def _flatten(output: Any) -> str:
    return json.dumps(output, ensure_ascii=False, default=str)


def _matches_any(text: str, rules: list[Rule]) -> bool:
    return any(rule.pattern.search(text) for rule in rules)


def sanitize_text(text: str, rules: list[Rule]) -> str:
    for rule in rules:
        text = rule.apply(text)
    return text


def sanitize_value(value: Any, rules: list[Rule]) -> Any:
    """Apply rules to every string leaf of an arbitrarily nested value."""
    if isinstance(value, str):
        return sanitize_text(value, rules)
    if isinstance(value, list):
        return [sanitize_value(item, rules) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_value(item, rules) for key, item in value.items()}
    return value


def validate_output_structure(output: Any, skill: str) -> bool:
    if not isinstance(output, dict) or not output:
        return False
    required = REQUIRED_OUTPUT_KEYS.get(skill)
    if required is None:
        return True
    return any(key in output for key in required)


def run_post_checks(output: Any, skill: str) -> PostCheckResult:
    """Soften, flag and structurally validate parsed model output.

    Detection runs on the original output; the text rewrite is applied once,
    with dangerous-advice rules ahead of diagnostic rules.
    """
    warnings: list[str] = []
    flattened = _flatten(output)
    rules: list[Rule] = []

    if _matches_any(flattened, _DANGEROUS_RULES):
        rules.extend(_DANGEROUS_RULES)
        warnings.append(WARNING_DANGEROUS_ADVICE)

    if _matches_any(flattened, _DIAGNOSTIC_RULES):
        rules.extend(_DIAGNOSTIC_RULES)
        warnings.append(WARNING_DIAGNOSTIC_LANGUAGE)

    if any(pattern.search(flattened) for pattern in _PRESCRIPTION_PATTERNS):
        warnings.append(WARNING_PRESCRIPTION)

    sanitized = sanitize_value(output, rules) if rules else output
    modified = bool(rules)

    if not validate_output_structure(sanitized, skill):
        logger.warning("Model output failed structural validation for skill %s", skill)
        return PostCheckResult(
            safe=False,
            sanitized=None,
            warnings=[f"Invalid output structure for skill: {skill}"],
            modified=False,
        )

    if modified:
        logger.info("Post-check modified output for skill %s: %s", skill, "; ".join(warnings))

    return PostCheckResult(safe=True, sanitized=sanitized, warnings=warnings, modified=modified)
