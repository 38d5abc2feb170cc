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

DEFAULT_LEAD_TIME_DAYS = 7


def _to_int(value: Any) -> int:
    try:
        return max(int(round(float(value))), 0)
    except (TypeError, ValueError):
        return 0


class InventoryForecastSkill(SkillHandler):
    """Demand forecast and reorder advice for one pharmacy product."""

    skill = SkillId.INVENTORY_FORECAST
    temperature = 0.1
    max_tokens = 1000

    instructions = {
        "en": (
            "You are an inventory analyst for a pharmacy. From the product's stock level and "
            "sales history, estimate demand for the next 7 and 30 days, decide whether to reorder "
            "given the supplier lead time, and flag slow-moving stock and seasonal effects."
        ),
        "fr": (
            "Vous êtes analyste des stocks pour une pharmacie. À partir du niveau de stock et de "
            "l'historique des ventes du produit, estimez la demande à 7 et 30 jours, décidez s'il "
            "faut réapprovisionner compte tenu du délai fournisseur, et signalez les produits à "
            "rotation lente et les effets saisonniers."
        ),
        "ar": (
            "أنت محلل مخزون لصيدلية. انطلاقاً من مستوى المخزون وسجل المبيعات، قدّر الطلب خلال "
            "7 و30 يوماً القادمة، وقرر ما إذا كان يجب إعادة الطلب مع مراعاة مدة التوريد، "
            "وأشر إلى المنتجات بطيئة الدوران والعوامل الموسمية."
        ),
    }
    output_format = """{
  "productId": "...",
  "productName": "...",
  "currentStock": 0,
  "predictedDemand": {"next7Days": 0, "next30Days": 0},
  "reorderRecommendation": {"shouldReorder": true, "suggestedQuantity": 0, "suggestedDate": "YYYY-MM-DD", "reason": "..."},
  "seasonalFactors": ["..."],
  "slowMoverAlert": false
}"""

    def validate_input(self, input: dict[str, Any]) -> InputValidation:
        product = input.get("product")
        if not isinstance(product, dict) or not product.get("name"):
            return invalid("product with a name is required")
        history = input.get("salesHistory")
        if not isinstance(history, list):
            return invalid("salesHistory must be a list")
        return VALID

    def build_user_prompt(self, input: dict[str, Any], context: RequestContext | None = None) -> str:
        product = input["product"]
        lead_time = input.get("leadTimeDays") or DEFAULT_LEAD_TIME_DAYS
        parts = [
            f"Product: {product.get('name')} (id: {product.get('id', 'unknown')})",
            f"Current stock: {product.get('currentStock', product.get('stock', 'unknown'))}",
            f"Supplier lead time: {lead_time} days",
            "Sales history (date, quantity):",
            json.dumps(input["salesHistory"], ensure_ascii=False, default=str),
        ]
        if input.get("minStock") is not None:
            parts.append(f"Minimum stock level: {input['minStock']}")
        return "\n".join(parts) + format_context(context)

    def parse_response(self, text: str) -> dict[str, Any]:
        parsed = parse_json_object(text)
        if "predictedDemand" not in parsed and "reorderRecommendation" not in parsed:
            return parsed

        demand = parsed.get("predictedDemand") or {}
        reorder = parsed.get("reorderRecommendation") or {}
        if not isinstance(demand, dict):
            demand = {}
        if not isinstance(reorder, dict):
            reorder = {}

        return {
            "productId": as_text(parsed.get("productId")),
            "productName": as_text(parsed.get("productName")),
            "currentStock": _to_int(parsed.get("currentStock")),
            "predictedDemand": {
                "next7Days": _to_int(demand.get("next7Days")),
                "next30Days": _to_int(demand.get("next30Days")),
            },
            "reorderRecommendation": {
                "shouldReorder": bool(reorder.get("shouldReorder", False)),
                "suggestedQuantity": _to_int(reorder.get("suggestedQuantity")),
                "suggestedDate": as_text(reorder.get("suggestedDate")),
                "reason": as_text(reorder.get("reason")),
            },
            "seasonalFactors": [as_text(f) for f in as_list(parsed.get("seasonalFactors"))],
            "slowMoverAlert": bool(parsed.get("slowMoverAlert", False)),
        }
