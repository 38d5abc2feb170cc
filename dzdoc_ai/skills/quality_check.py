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

STATUSES = ("passed", "requires_review", "failed")
FLAG_SEVERITIES = ("warning", "critical", "panic")


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class QualityCheckSkill(SkillHandler):
    skill = SkillId.QUALITY_CHECK
    temperature = 0.1
    max_tokens = 1500

    instructions = {
        "en": (
            "You review laboratory results before they are released. Flag implausible or panic "
            "values, missing units or reference ranges, and large changes against previous results "
            "(delta checks). Recommend an action for each flag. Do not interpret results clinically."
        ),
        "fr": (
            "Vous contrôlez des résultats de laboratoire avant leur validation. Signalez les valeurs "
            "invraisemblables ou critiques, les unités ou intervalles de référence manquants et les "
            "écarts importants par rapport aux résultats précédents (contrôle delta). Recommandez une "
            "action pour chaque alerte. N'interprétez pas cliniquement les résultats."
        ),
        "ar": (
            "أنت تراجع نتائج المختبر قبل اعتمادها. أشر إلى القيم غير المعقولة أو الحرجة، والوحدات أو "
            "المجالات المرجعية الناقصة، والتغيرات الكبيرة مقارنة بالنتائج السابقة (فحص الفرق). "
            "اقترح إجراءً لكل تنبيه. لا تقدم تفسيراً سريرياً للنتائج."
        ),
    }
    output_format = """{
  "overallStatus": "passed|requires_review|failed",
  "flags": [{"testName": "...", "issue": "...", "currentValue": "...", "normalRange": "...", "action": "...", "severity": "warning|critical|panic"}],
  "missingFields": ["..."],
  "deltaAlerts": [{"testName": "...", "previousValue": "...", "currentValue": "...", "changePercent": 0}],
  "recommendation": "..."
}"""

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        results = input.get("results")
        if not isinstance(results, list) or not results:
            return invalid("results must be a non-empty list")
        return VALID

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        parts = [
            "Results to check:",
            json.dumps(input["results"], ensure_ascii=False, default=str),
        ]
        if input.get("previousResults"):
            parts.append("Previous results for delta checks:")
            parts.append(json.dumps(input["previousResults"], ensure_ascii=False, default=str))
        if input.get("sampleInfo"):
            parts.append("Sample information: " + json.dumps(input["sampleInfo"], ensure_ascii=False, default=str))
        return "\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if "overallStatus" not in parsed and "flags" not in parsed:
            return parsed

        flags = []
        for item in as_list(parsed.get("flags")):
            if not isinstance(item, dict):
                continue
            severity = as_text(item.get("severity")).lower()
            flags.append(
                {
                    "testName": as_text(item.get("testName")),
                    "issue": as_text(item.get("issue")),
                    "currentValue": as_text(item.get("currentValue")),
                    "normalRange": as_text(item.get("normalRange")) or None,
                    "action": as_text(item.get("action")),
                    "severity": severity if severity in FLAG_SEVERITIES else "warning",
                }
            )

        status = as_text(parsed.get("overallStatus")).lower()
        if status not in STATUSES:
            status = "requires_review" if flags else "passed"
        # A panic value can never be released as passed
        if status == "passed" and any(f["severity"] in ("critical", "panic") for f in flags):
            status = "requires_review"

        return {
            "overallStatus": status,
            "flags": flags,
            "missingFields": [as_text(m) for m in as_list(parsed.get("missingFields"))],
            "deltaAlerts": [
                {
                    "testName": as_text(d.get("testName")),
                    "previousValue": as_text(d.get("previousValue")),
                    "currentValue": as_text(d.get("currentValue")),
                    "changePercent": _to_float(d.get("changePercent")),
                }
                for d in as_list(parsed.get("deltaAlerts"))
                if isinstance(d, dict)
            ],
            "recommendation": as_text(parsed.get("recommendation")),
        }
