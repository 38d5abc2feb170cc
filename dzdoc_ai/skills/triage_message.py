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

CATEGORIES = (
    "appointment",
    "medication",
    "lab_result",
    "urgent",
    "admin",
    "billing",
    "general",
    "prescription",
)
PRIORITIES = ("low", "medium", "high", "urgent")


class TriageMessageSkill(SkillHandler):
    skill = SkillId.TRIAGE_MESSAGE
    temperature = 0.1
    max_tokens = 800

    instructions = {
        "en": (
            "You sort incoming support-ticket messages for a healthcare platform. Classify the "
            "message, set its priority, draft a short polite reply for staff to review, and say "
            "whether a human must review it. Clinical questions always require human review."
        ),
        "fr": (
            "Vous triez les messages de support entrants d'une plateforme de santé. Classez le "
            "message, fixez sa priorité, rédigez une courte réponse courtoise que l'équipe "
            "relira, et indiquez si une relecture humaine est nécessaire. Les questions cliniques "
            "exigent toujours une relecture humaine."
        ),
        "ar": (
            "أنت تصنف رسائل الدعم الواردة لمنصة صحية. صنّف الرسالة وحدد أولويتها، واكتب رداً "
            "قصيراً ولبقاً ليراجعه الفريق، وحدد ما إذا كانت تحتاج إلى مراجعة بشرية. "
            "الأسئلة السريرية تحتاج دائماً إلى مراجعة بشرية."
        ),
    }
    output_format = """{
  "category": "appointment|medication|lab_result|urgent|admin|billing|general|prescription",
  "priority": "low|medium|high|urgent",
  "suggestedReply": "...",
  "requiresHumanReview": true,
  "escalationReason": "... or null",
  "suggestedActions": ["..."]
}"""

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        message = input.get("message")
        if not isinstance(message, str) or not message.strip():
            return invalid("message is required")
        return VALID

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        parts = []
        if input.get("ticketSubject"):
            parts.append(f"Subject: {input['ticketSubject']}")
        if input.get("senderRole"):
            parts.append(f"Sender role: {input['senderRole']}")
        parts.append(f"Message:\n{input['message'].strip()}")
        return "\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if "category" not in parsed and "priority" not in parsed:
            return parsed

        category = as_text(parsed.get("category")).lower()
        priority = as_text(parsed.get("priority")).lower()
        category = category if category in CATEGORIES else "general"
        priority = priority if priority in PRIORITIES else "medium"

        requires_review = bool(parsed.get("requiresHumanReview", True))
        escalation = parsed.get("escalationReason") or None
        if category == "urgent" or priority == "urgent":
            requires_review = True
            escalation = escalation or "Urgent message"

        return {
            "category": category,
            "priority": priority,
            "suggestedReply": as_text(parsed.get("suggestedReply")),
            "requiresHumanReview": requires_review,
            "escalationReason": escalation,
            "suggestedActions": [as_text(a) for a in as_list(parsed.get("suggestedActions"))],
        }
