import json
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

NOTE_SECTIONS = (
    "chiefComplaint",
    "historyOfPresentIllness",
    "reviewOfSystems",
    "assessment",
    "plan",
)


class DraftClinicalNoteSkill(SkillHandler):
    """Turns a consultation transcript or shorthand notes into a SOAP-style draft."""

    skill = SkillId.DRAFT_CLINICAL_NOTE
    temperature = 0.2
    max_tokens = 2500

    instructions = {
        "en": (
            "You are a medical scribe assisting a licensed physician. Turn the consultation "
            "material into a structured clinical note draft. Keep the physician's wording for "
            "findings, never add findings that are not in the material, and suggest ICD-10 codes "
            "only as suggestions for the physician to confirm."
        ),
        "fr": (
            "Vous êtes un assistant de rédaction médicale auprès d'un médecin. Transformez le "
            "contenu de la consultation en brouillon de note clinique structurée. Conservez la "
            "formulation du médecin, n'ajoutez aucune observation absente du contenu et ne proposez "
            "des codes CIM-10 qu'à titre de suggestions à confirmer par le médecin."
        ),
        "ar": (
            "أنت مساعد تحرير طبي لطبيب مرخص. حوّل محتوى الاستشارة إلى مسودة ملاحظة سريرية منظمة. "
            "حافظ على صياغة الطبيب، ولا تضف أي ملاحظات غير موجودة في المحتوى، واقترح رموز "
            "ICD-10 كاقتراحات فقط يؤكدها الطبيب."
        ),
    }
    output_format = """{
  "chiefComplaint": "...",
  "historyOfPresentIllness": "...",
  "reviewOfSystems": "...",
  "assessment": "...",
  "plan": "...",
  "icdSuggestions": [{"code": "...", "description": "..."}]
}"""

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        transcript = input.get("transcript") or input.get("notes")
        if isinstance(transcript, str) and transcript.strip():
            return VALID
        if as_list(input.get("symptoms")):
            return VALID
        return invalid("transcript, notes or symptoms are required")

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        parts = []
        transcript = input.get("transcript") or input.get("notes")
        if transcript:
            parts.append(f"Consultation material:\n{transcript.strip()}")
        symptoms = as_list(input.get("symptoms"))
        if symptoms:
            parts.append("Reported symptoms: " + ", ".join(as_text(s) for s in symptoms))
        vitals = input.get("vitals")
        if isinstance(vitals, dict) and vitals:
            parts.append("Vitals: " + json.dumps(vitals, ensure_ascii=False, default=str))
        patient = input.get("patientInfo")
        if isinstance(patient, dict) and patient:
            parts.append("Patient: " + json.dumps(patient, ensure_ascii=False, default=str))
        return "\n\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if not any(section in parsed for section in NOTE_SECTIONS):
            return parsed

        note: dict[str, Any] = {section: as_text(parsed.get(section)) for section in NOTE_SECTIONS}
        note["icdSuggestions"] = [
            {"code": as_text(s.get("code")), "description": as_text(s.get("description"))}
            for s in as_list(parsed.get("icdSuggestions"))
            if isinstance(s, dict) and s.get("code")
        ]
        return note
