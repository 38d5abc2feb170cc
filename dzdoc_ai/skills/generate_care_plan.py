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


def _format_prescription(item: Any) -> str:
    if not isinstance(item, dict):
        return f"- {item}"
    fields = [
        as_text(item.get("medication") or item.get("name")),
        as_text(item.get("dosage")),
        as_text(item.get("frequency")),
        as_text(item.get("duration")),
    ]
    return "- " + ", ".join(f for f in fields if f)


class GenerateCarePlanSkill(SkillHandler):
    skill = SkillId.GENERATE_CARE_PLAN
    temperature = 0.3
    max_tokens = 2000

    instructions = {
        "en": (
            "You turn a doctor's consultation notes and prescriptions into a practical care plan "
            "the patient can follow at home. Restate the doctor's instructions simply; never change "
            "doses, add medications or contradict the doctor. Include warning signs that require "
            "calling the doctor and what to do in an emergency."
        ),
        "fr": (
            "Vous transformez les notes de consultation et les ordonnances du médecin en un plan "
            "de soins pratique que le patient peut suivre à domicile. Reformulez simplement les "
            "consignes du médecin ; ne modifiez jamais les doses, n'ajoutez aucun médicament et ne "
            "contredisez pas le médecin. Indiquez les signes d'alerte qui nécessitent d'appeler le "
            "médecin et la conduite à tenir en cas d'urgence."
        ),
        "ar": (
            "أنت تحوّل ملاحظات الطبيب ووصفاته إلى خطة رعاية عملية يتبعها المريض في المنزل. "
            "أعد صياغة تعليمات الطبيب ببساطة؛ لا تغيّر الجرعات أبداً ولا تضف أدوية ولا تخالف الطبيب. "
            "اذكر علامات الخطر التي تستدعي الاتصال بالطبيب وما يجب فعله في حالة الطوارئ."
        ),
    }
    output_format = """{
  "todayActions": ["..."],
  "warningSignsWatchFor": ["..."],
  "medicationInstructions": [{"medication": "...", "instructions": "...", "timing": "..."}],
  "followUpSchedule": "...",
  "lifestyleAdvice": ["..."],
  "emergencyInstructions": "..."
}"""

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        notes = input.get("doctorNotes")
        has_notes = isinstance(notes, str) and bool(notes.strip())
        if not has_notes and not as_list(input.get("prescriptions")):
            return invalid("doctorNotes or prescriptions are required")
        return VALID

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        parts = []
        if input.get("diagnosis"):
            parts.append(f"Doctor's working diagnosis: {input['diagnosis']}")
        if input.get("doctorNotes"):
            parts.append(f"Doctor's notes:\n{input['doctorNotes'].strip()}")
        prescriptions = as_list(input.get("prescriptions"))
        if prescriptions:
            parts.append("Prescriptions:\n" + "\n".join(_format_prescription(p) for p in prescriptions))
        if input.get("followUpDate"):
            parts.append(f"Follow-up appointment: {input['followUpDate']}")
        return "\n\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if "todayActions" not in parsed and "medicationInstructions" not in parsed:
            return parsed

        plan = dict(parsed)
        for key in ("todayActions", "warningSignsWatchFor", "lifestyleAdvice"):
            plan[key] = [as_text(v) for v in as_list(parsed.get(key))]
        plan["medicationInstructions"] = [
            {
                "medication": as_text(m.get("medication")),
                "instructions": as_text(m.get("instructions")),
                "timing": as_text(m.get("timing")),
            }
            for m in as_list(parsed.get("medicationInstructions"))
            if isinstance(m, dict)
        ]
        plan["followUpSchedule"] = as_text(parsed.get("followUpSchedule"))
        plan["emergencyInstructions"] = as_text(parsed.get("emergencyInstructions"))
        return plan
