from collections.abc import Mapping

from dzdoc_ai.errors import UnknownSkillError
from dzdoc_ai.skills.base import SkillHandler, SkillId
from dzdoc_ai.skills.draft_clinical_note import DraftClinicalNoteSkill
from dzdoc_ai.skills.extract_symptoms import ExtractSymptomsSkill
from dzdoc_ai.skills.generate_care_plan import GenerateCarePlanSkill
from dzdoc_ai.skills.inventory_forecast import InventoryForecastSkill
from dzdoc_ai.skills.quality_check import QualityCheckSkill
from dzdoc_ai.skills.summarize_lab import SummarizeLabSkill
from dzdoc_ai.skills.triage_message import TriageMessageSkill

SKILL_HANDLERS: Mapping[SkillId, type[SkillHandler]] = {
    SkillId.SUMMARIZE_LAB: SummarizeLabSkill,
    SkillId.EXTRACT_SYMPTOMS: ExtractSymptomsSkill,
    SkillId.DRAFT_CLINICAL_NOTE: DraftClinicalNoteSkill,
    SkillId.TRIAGE_MESSAGE: TriageMessageSkill,
    SkillId.GENERATE_CARE_PLAN: GenerateCarePlanSkill,
    SkillId.INVENTORY_FORECAST: InventoryForecastSkill,
    SkillId.QUALITY_CHECK: QualityCheckSkill,
}


class SkillRegistry:
    """Closed lookup from skill id to its singleton handler."""

    def __init__(
        self, handlers: Mapping[SkillId, type[SkillHandler]] = SKILL_HANDLERS
    ) -> None:
        self._handlers: dict[str, SkillHandler] = {}
        for skill_id, handler_cls in handlers.items():
            if handler_cls.skill is not skill_id:
                raise ValueError(
                    f"Handler {handler_cls.__name__} serves {handler_cls.skill.value}, "
                    f"registered as {skill_id.value}"
                )
            self._handlers[skill_id.value] = handler_cls()

    def get_handler(self, skill: str) -> SkillHandler:
        handler = self._handlers.get(skill)
        if handler is None:
            raise UnknownSkillError(skill)
        return handler

    def is_supported(self, skill: str) -> bool:
        return skill in self._handlers

    def list_supported(self) -> list[str]:
        return list(self._handlers)
