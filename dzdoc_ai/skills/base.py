import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from dzdoc_ai.models import RequestContext, normalize_language
from dzdoc_ai.safety.disclaimers import get_disclaimer


class SkillId(str, Enum):
    SUMMARIZE_LAB = "summarize_lab"
    EXTRACT_SYMPTOMS = "extract_symptoms"
    DRAFT_CLINICAL_NOTE = "draft_clinical_note"
    TRIAGE_MESSAGE = "triage_message"
    GENERATE_CARE_PLAN = "generate_care_plan"
    INVENTORY_FORECAST = "inventory_forecast"
    QUALITY_CHECK = "quality_check"


@dataclass(frozen=True)
class InputValidation:
    valid: bool
    error: str | None = None


VALID = InputValidation(valid=True)


def invalid(error: str) -> InputValidation:
    return InputValidation(valid=False, error=error)


# Shared guardrails appended to every system prompt
SAFETY_RULES: dict[str, str] = {
    "en": (
        "Rules:\n"
        "- You assist healthcare users; you never make a diagnosis or write a prescription.\n"
        "- Use hedged language (\"may\", \"could\", \"possible\").\n"
        "- When anything looks urgent, tell the user to contact a doctor or emergency services.\n"
        "- Use only the data provided. Do not invent values.\n"
        "- Answer in English.\n"
        "- Respond with a single valid JSON object and nothing else."
    ),
    "fr": (
        "Règles :\n"
        "- Vous assistez des utilisateurs du secteur de la santé ; vous ne posez jamais de diagnostic "
        "et ne rédigez jamais d'ordonnance.\n"
        "- Employez un langage prudent (« peut », « pourrait », « possible »).\n"
        "- En cas de signe d'urgence, invitez l'utilisateur à contacter un médecin ou les secours.\n"
        "- Utilisez uniquement les données fournies. N'inventez aucune valeur.\n"
        "- Répondez en français.\n"
        "- Répondez avec un seul objet JSON valide, sans aucun autre texte."
    ),
    "ar": (
        "القواعد:\n"
        "- أنت تساعد مستخدمي القطاع الصحي؛ لا تقدم تشخيصاً ولا تكتب وصفة طبية أبداً.\n"
        "- استخدم لغة حذرة (\"قد\"، \"من المحتمل\"، \"ممكن\").\n"
        "- إذا بدا أي شيء عاجلاً، اطلب من المستخدم التواصل مع الطبيب أو خدمات الطوارئ.\n"
        "- استخدم البيانات المقدمة فقط. لا تختلق أي قيم.\n"
        "- أجب باللغة العربية.\n"
        "- أجب بكائن JSON واحد صالح ولا شيء غيره."
    ),
}

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_object(text: str) -> dict[str, Any]:
    """Extract the JSON object from a model reply.

    Tolerates markdown code fences and prose around the object.
    Raises ValueError when no JSON object can be decoded.
    """
    cleaned = _CODE_FENCE.sub("", text.strip())
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError:
        start = cleaned.find("{")
        end = cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object found in model response")
        parsed = json.loads(cleaned[start : end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("Model response is not a JSON object")
    return parsed


def as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def as_text(value: Any) -> str:
    return "" if value is None else str(value)


def format_context(context: RequestContext | None) -> str:
    """Render optional caller context as a prompt section."""
    if context is None:
        return ""

    lines: list[str] = []
    history = context.patient_history
    if history is not None:
        if history.allergies:
            lines.append("Known allergies: " + ", ".join(history.allergies))
        if history.conditions:
            lines.append("Known conditions: " + ", ".join(history.conditions))
        if history.prescriptions:
            lines.append(
                "Current prescriptions:\n"
                + json.dumps(history.prescriptions[:10], ensure_ascii=False, default=str)
            )
        if history.lab_results:
            lines.append(
                "Recent lab results:\n"
                + json.dumps(history.lab_results[:5], ensure_ascii=False, default=str)
            )
    if context.previous_results:
        lines.append(
            "Previous results:\n"
            + json.dumps(context.previous_results[:5], ensure_ascii=False, default=str)
        )
    if context.protocols:
        lines.append("Protocols to follow: " + "; ".join(context.protocols))
    if context.custom_instructions:
        lines.append("Additional instructions: " + context.custom_instructions)

    if not lines:
        return ""
    return "\n\nContext:\n" + "\n".join(lines)


class SkillHandler(ABC):
    """Prompt construction and response parsing for one skill.

    Handlers hold no mutable state; one instance serves every request.
    """

    skill: ClassVar[SkillId]
    temperature: ClassVar[float] = 0.3
    max_tokens: ClassVar[int] = 2000

    # Per-language task instructions; SAFETY_RULES and OUTPUT_FORMAT are appended
    instructions: ClassVar[dict[str, str]]
    output_format: ClassVar[str]

    def get_system_prompt(self, language: str) -> str:
        language = normalize_language(language)
        task = self.instructions.get(language) or self.instructions["en"]
        return f"{task}\n\n{SAFETY_RULES[language]}\n\nJSON format:\n{self.output_format}"

    @abstractmethod
    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        ...

    @abstractmethod
    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        ...

    def parse_response(self, text: str) -> dict[str, Any]:
        return parse_json_object(text)

    def get_disclaimer(self, language: str) -> str:
        return get_disclaimer(self.skill.value, language)
