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

HIGHLIGHT_STATUSES = ("normal", "low", "high", "critical")
TREND_CHANGES = ("improved", "worsened", "stable")

OUTPUT_FORMAT = """{
  "summary": "2-4 sentence plain-language overview",
  "highlights": [
    {"testName": "...", "value": "...", "status": "normal|low|high|critical", "explanation": "..."}
  ],
  "trends": [
    {"testName": "...", "change": "improved|worsened|stable", "previousValue": "...", "currentValue": "..."}
  ],
  "recommendations": ["..."],
  "urgentFlags": ["..."]
}"""


def _format_result(result: dict[str, Any]) -> str:
    name = result.get("test_name") or result.get("testName") or result.get("name") or "Unknown test"
    value = as_text(result.get("value"))
    unit = as_text(result.get("unit"))
    reference = result.get("reference_range") or result.get("referenceRange")
    line = f"- {name}: {value} {unit}".rstrip()
    if reference:
        line += f" (reference: {reference})"
    flag = result.get("flag")
    if flag:
        line += f" [lab flag: {flag}]"
    return line


class SummarizeLabSkill(SkillHandler):
    skill = SkillId.SUMMARIZE_LAB
    temperature = 0.2
    max_tokens = 1500

    instructions = {
        "en": (
            "You explain laboratory results to patients in clear, simple language. "
            "For each result, compare the value with its reference range, classify it as "
            "normal, low, high or critical, and explain briefly what the test measures. "
            "List values far outside the range under urgentFlags."
        ),
        "fr": (
            "Vous expliquez des résultats d'analyses biologiques aux patients dans un langage "
            "clair et simple. Pour chaque résultat, comparez la valeur à l'intervalle de "
            "référence, classez-la (normal, low, high ou critical) et expliquez brièvement ce "
            "que mesure l'analyse. Listez les valeurs très éloignées de la normale dans urgentFlags."
        ),
        "ar": (
            "أنت تشرح نتائج التحاليل المخبرية للمرضى بلغة واضحة وبسيطة. "
            "قارن كل قيمة بمجالها المرجعي، وصنفها (normal أو low أو high أو critical)، "
            "واشرح باختصار ما يقيسه التحليل. ضع القيم البعيدة جداً عن المعدل في urgentFlags."
        ),
    }
    output_format = OUTPUT_FORMAT

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        lab_result = input.get("labResult")
        if not isinstance(lab_result, dict):
            return invalid("labResult is required")
        results = lab_result.get("results")
        if not isinstance(results, list) or not results:
            return invalid("labResult.results must be a non-empty list")
        if not all(isinstance(r, dict) for r in results):
            return invalid("Each lab result must be an object")
        return VALID

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        lab_result = input["labResult"]
        parts = ["Lab results:"]
        parts.extend(_format_result(r) for r in lab_result["results"])

        patient = []
        if input.get("patientAge") is not None:
            patient.append(f"age {input['patientAge']}")
        if input.get("patientGender"):
            patient.append(f"gender {input['patientGender']}")
        if patient:
            parts.append("Patient: " + ", ".join(patient))

        previous = input.get("previousResults")
        if previous:
            parts.append(
                "Previous results for trend comparison:\n"
                + json.dumps(previous, ensure_ascii=False, default=str)
            )

        return "\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if "summary" not in parsed and "highlights" not in parsed:
            # Wrong shape; left for the structural gate to reject
            return parsed

        highlights = []
        for item in as_list(parsed.get("highlights")):
            if not isinstance(item, dict):
                continue
            status = as_text(item.get("status")).strip().lower()
            highlights.append(
                {
                    "testName": as_text(item.get("testName")),
                    "value": as_text(item.get("value")),
                    "status": status if status in HIGHLIGHT_STATUSES else "normal",
                    "explanation": as_text(item.get("explanation")),
                }
            )

        trends = []
        for item in as_list(parsed.get("trends")):
            if not isinstance(item, dict):
                continue
            change = as_text(item.get("change")).strip().lower()
            if change not in TREND_CHANGES:
                continue
            trends.append(
                {
                    "testName": as_text(item.get("testName")),
                    "change": change,
                    "previousValue": as_text(item.get("previousValue")),
                    "currentValue": as_text(item.get("currentValue")),
                }
            )

        result: dict[str, Any] = {
            "summary": as_text(parsed.get("summary")),
            "highlights": highlights,
            "recommendations": [as_text(r) for r in as_list(parsed.get("recommendations"))],
            "urgentFlags": [as_text(f) for f in as_list(parsed.get("urgentFlags"))],
        }
        if trends:
            result["trends"] = trends
        return result
