from typing import Any

from dzdoc_ai.models import RequestContext
from dzdoc_ai.skills.base import (
    VALID,
    InputValidation,
    SkillHandler,
    SkillId,
    as_list,
    as_text,
    format_context,
    invalid,
    parse_json_object,
)

MIN_TEXT_LENGTH = 3
SEVERITIES = ("mild", "moderate", "severe")
VISIT_TYPES = ("online", "in_person", "home_visit")
URGENCY_LEVELS = ("routine", "soon", "urgent")


class ExtractSymptomsSkill(SkillHandler):
    skill = SkillId.EXTRACT_SYMPTOMS
    temperature = 0.2
    max_tokens = 1200

    instructions = {
        "en": (
            "You help patients prepare for a consultation. From the patient's free-text "
            "description, extract each symptom with its duration, severity and frequency, "
            "suggest the most relevant medical specialty and visit type, rate the urgency, "
            "and propose follow-up questions the doctor may ask. List warning signs under redFlags."
        ),
        "fr": (
            "Vous aidez les patients à préparer leur consultation. À partir de la description "
            "libre du patient, extrayez chaque symptôme avec sa durée, sa sévérité et sa fréquence, "
            "suggérez la spécialité médicale et le type de consultation les plus adaptés, évaluez "
            "l'urgence et proposez des questions de suivi. Listez les signes d'alerte dans redFlags."
        ),
        "ar": (
            "أنت تساعد المرضى على التحضير للاستشارة. استخرج من وصف المريض كل عرض مع مدته "
            "وشدته وتكراره، واقترح التخصص الطبي ونوع الزيارة الأنسب، وقيّم درجة الاستعجال، "
            "واقترح أسئلة متابعة قد يطرحها الطبيب. ضع علامات الخطر في redFlags."
        ),
    }
    output_format = """{
  "symptoms": [{"name": "...", "duration": "...", "severity": "mild|moderate|severe", "frequency": "..."}],
  "suggestedSpecialty": "...",
  "suggestedVisitType": "online|in_person|home_visit",
  "urgencyLevel": "routine|soon|urgent",
  "followUpQuestions": ["..."],
  "redFlags": ["..."]
}"""

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        text = input.get("freeText")
        if not isinstance(text, str) or len(text.strip()) < MIN_TEXT_LENGTH:
            return invalid("freeText describing the symptoms is required")
        return VALID

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        parts = [f"Patient description:\n{input['freeText'].strip()}"]
        if input.get("patientAge") is not None:
            parts.append(f"Age: {input['patientAge']}")
        if input.get("patientGender"):
            parts.append(f"Gender: {input['patientGender']}")
        conditions = as_list(input.get("existingConditions"))
        if conditions:
            parts.append("Existing conditions: " + ", ".join(as_text(c) for c in conditions))
        return "\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if "symptoms" not in parsed and "suggestedSpecialty" not in parsed:
            return parsed

        symptoms = []
        for item in as_list(parsed.get("symptoms")):
            if isinstance(item, str):
                item = {"name": item}
            if not isinstance(item, dict):
                continue
            severity = as_text(item.get("severity")).lower()
            symptoms.append(
                {
                    "name": as_text(item.get("name")),
                    "duration": as_text(item.get("duration")),
                    "severity": severity if severity in SEVERITIES else "moderate",
                    "frequency": as_text(item.get("frequency")),
                }
            )

        visit_type = as_text(parsed.get("suggestedVisitType")).lower()
        urgency = as_text(parsed.get("urgencyLevel")).lower()
        red_flags = [as_text(f) for f in as_list(parsed.get("redFlags"))]
        if red_flags and urgency == "routine":
            # Red flags never stay routine
            urgency = "soon"

        return {
            "symptoms": symptoms,
            "suggestedSpecialty": as_text(parsed.get("suggestedSpecialty")) or "general_medicine",
            "suggestedVisitType": visit_type if visit_type in VISIT_TYPES else "in_person",
            "urgencyLevel": urgency if urgency in URGENCY_LEVELS else "soon",
            "followUpQuestions": [as_text(q) for q in as_list(parsed.get("followUpQuestions"))],
            "redFlags": red_flags,
        }
