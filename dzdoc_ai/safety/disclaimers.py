from dzdoc_ai.models import normalize_language

DISCLAIMERS: dict[str, dict[str, str]] = {
    "summarize_lab": {
        "ar": "⚠️ هذا الملخص للأغراض التعليمية فقط وليس تشخيصاً طبياً. استشر طبيبك لتفسير النتائج.",
        "fr": "⚠️ Ce résumé est fourni à titre éducatif et ne constitue pas un diagnostic médical. Consultez votre médecin pour l'interprétation des résultats.",
        "en": "⚠️ This summary is for educational purposes only and is not a medical diagnosis. Consult your doctor to interpret your results.",
    },
    "extract_symptoms": {
        "ar": "⚠️ هذا التقييم الأولي ليس تشخيصاً. سيقوم الطبيب بالتقييم النهائي.",
        "fr": "⚠️ Cette évaluation préliminaire n'est pas un diagnostic. Le médecin effectuera l'évaluation finale.",
        "en": "⚠️ This preliminary assessment is not a diagnosis. The doctor will perform the final evaluation.",
    },
    "draft_clinical_note": {
        "ar": "⚠️ مسودة أنشأها الذكاء الاصطناعي. راجعها وعدّلها قبل حفظها في ملف المريض.",
        "fr": "⚠️ Brouillon généré par l'IA. Relisez-le et modifiez-le avant de l'enregistrer dans le dossier du patient.",
        "en": "⚠️ AI-generated draft. Review and edit before saving it to the patient record.",
    },
    "triage_message": {
        "ar": "⚠️ تصنيف آلي للمساعدة فقط. راجعه قبل الرد.",
        "fr": "⚠️ Classification automatique fournie à titre d'aide. Vérifiez-la avant de répondre.",
        "en": "⚠️ Automated classification for assistance only. Review it before responding.",
    },
    "generate_care_plan": {
        "ar": "⚠️ خطة رعاية مبنية على ملاحظات الطبيب. اتبع دائماً تعليمات طبيبك.",
        "fr": "⚠️ Plan de soins basé sur les notes du médecin. Suivez toujours les instructions de votre médecin.",
        "en": "⚠️ Care plan based on your doctor's notes. Always follow your doctor's instructions.",
    },
    "inventory_forecast": {
        "ar": "⚠️ توقعات مبنية على البيانات التاريخية. قد يختلف الطلب الفعلي.",
        "fr": "⚠️ Prévisions basées sur l'historique des ventes. La demande réelle peut varier.",
        "en": "⚠️ Forecasts are based on historical data. Actual demand may vary.",
    },
    "quality_check": {
        "ar": "⚠️ فحص جودة آلي. يبقى المختبر مسؤولاً عن النتائج النهائية.",
        "fr": "⚠️ Contrôle qualité automatique. Le laboratoire reste responsable des résultats validés.",
        "en": "⚠️ Automated quality check. The laboratory remains responsible for validated results.",
    },
}

GENERIC_DISCLAIMER: dict[str, str] = {
    "ar": "⚠️ محتوى أنشأه الذكاء الاصطناعي للمساعدة فقط. استشر مختصاً صحياً.",
    "fr": "⚠️ Contenu généré par l'IA à titre d'aide uniquement. Consultez un professionnel de santé.",
    "en": "⚠️ AI-generated content for assistance only. Consult a healthcare professional.",
}


def get_disclaimer(skill: str, language: str) -> str:
    """Localized disclaimer for a skill; unknown locales fall back to English."""
    language = normalize_language(language)
    texts = DISCLAIMERS.get(skill, GENERIC_DISCLAIMER)
    return texts.get(language) or texts["en"]
