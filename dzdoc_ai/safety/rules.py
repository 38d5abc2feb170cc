"""Keyword lists and ordered (pattern, rewrite) rule families for the safety gates.

Every family is keyed by language, but detection always runs across all
languages: a user may write in a language other than the one requested.
"""

import re
from dataclasses import dataclass
from typing import Callable

# --- Emergency keywords (pre-check) -----------------------------------------

EMERGENCY_KEYWORDS: dict[str, tuple[str, ...]] = {
    "en": (
        "suicide", "suicidal", "kill myself", "end my life", "want to die",
        "can't breathe", "cannot breathe", "can not breathe", "not breathing",
        "chest pain", "heart attack", "severe bleeding", "bleeding heavily",
        "won't stop bleeding", "poisoning", "poisoned", "overdose",
        "unconscious", "passed out", "seizure", "stroke", "i'm dying",
        "i am dying",
    ),
    "fr": (
        "suicide", "me suicider", "me tuer", "mettre fin à mes jours",
        "envie de mourir", "je n'arrive pas à respirer", "je ne peux pas respirer",
        "douleur thoracique", "douleur à la poitrine", "crise cardiaque",
        "infarctus", "saignement abondant", "hémorragie", "empoisonnement",
        "intoxication", "surdose", "inconscient", "évanoui", "convulsions",
        "avc", "je suis en train de mourir",
    ),
    "ar": (
        "انتحار", "أقتل نفسي", "أريد أن أموت", "لا أستطيع التنفس",
        "ضيق شديد في التنفس", "ألم في الصدر", "ألم صدري", "نوبة قلبية",
        "نزيف حاد", "نزيف شديد", "تسمم", "جرعة زائدة",
        "فقدان الوعي", "فاقد للوعي", "تشنجات", "سكتة دماغية",
    ),
}

EMERGENCY_MESSAGES: dict[str, str] = {
    "en": (
        "This may be a medical emergency. Call emergency services now "
        "(SAMU 115 or Civil Protection 14) or go to the nearest emergency room. "
        "Do not wait for an online response."
    ),
    "fr": (
        "Il peut s'agir d'une urgence médicale. Appelez immédiatement les secours "
        "(SAMU 115 ou Protection Civile 14) ou rendez-vous aux urgences les plus "
        "proches. N'attendez pas une réponse en ligne."
    ),
    "ar": (
        "قد تكون هذه حالة طبية طارئة. اتصل فوراً بخدمات الطوارئ "
        "(الإسعاف 115 أو الحماية المدنية 14) أو توجه إلى أقرب قسم استعجالات. "
        "لا تنتظر رداً عبر الإنترنت."
    ),
}

# --- Post-check rule families ------------------------------------------------

Rewrite = str | Callable[[re.Match], str]


@dataclass(frozen=True)
class Rule:
    pattern: re.Pattern
    rewrite: Rewrite

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.rewrite, text)


def _hedge(replacement: str) -> Callable[[re.Match], str]:
    """Replacement that keeps the capitalisation of the matched phrase."""

    def _sub(match: re.Match) -> str:
        if match.group(0)[:1].isupper():
            return replacement[:1].upper() + replacement[1:]
        return replacement

    return _sub


def _prefix(warning: str) -> Callable[[re.Match], str]:
    """Keep the matched span and put a bracketed warning in front of it."""

    def _sub(match: re.Match) -> str:
        return f"{warning} {match.group(0)}"

    return _sub


_WARN_EN = "⚠️ [IMPORTANT: Never stop medication or skip medical care without consulting your doctor]"
_WARN_FR = "⚠️ [IMPORTANT : N'arrêtez jamais votre traitement et ne renoncez pas aux soins sans consulter votre médecin]"
_WARN_AR = "⚠️ [مهم: استشر طبيبك قبل إيقاف أي دواء أو تجاهل الرعاية الطبية]"

# A span already preceded by a warning marker ("... ] ") is left alone, so
# running the rules over sanitized text changes nothing.
_UNMARKED = r"(?<!\] )"
_NOT_NEGATED_EN = _UNMARKED + r"(?<!not )(?<!n't )(?<!never )"
_NOT_NEGATED_FR = _UNMARKED + r"(?<!n')"
_NOT_NEGATED_AR = _UNMARKED + r"(?<!لا ت)(?<!لا )"

SAFETY_WARNING_MARKERS: dict[str, str] = {"en": _WARN_EN, "fr": _WARN_FR, "ar": _WARN_AR}

DANGEROUS_ADVICE_RULES: dict[str, list[Rule]] = {
    "en": [
        Rule(re.compile(_NOT_NEGATED_EN + r"stop taking (?:your|the|all) medications?", re.I), _prefix(_WARN_EN)),
        Rule(re.compile(_UNMARKED + r"(?:don't|do not) (?:need to )?see a doctor", re.I), _prefix(_WARN_EN)),
        Rule(re.compile(_UNMARKED + r"no need (?:to see a doctor|for medical attention|to consult)", re.I), _prefix(_WARN_EN)),
        Rule(re.compile(_NOT_NEGATED_EN + r"ignore (?:your|the) doctor'?s? (?:advice|instructions)", re.I), _prefix(_WARN_EN)),
    ],
    "fr": [
        Rule(re.compile(_NOT_NEGATED_FR + r"arrêtez (?:votre|vos|le|les) (?:traitement|médicaments?)", re.I), _prefix(_WARN_FR)),
        Rule(re.compile(_UNMARKED + r"pas besoin (?:de consulter|d'un médecin|de voir un médecin)", re.I), _prefix(_WARN_FR)),
        Rule(re.compile(_UNMARKED + r"inutile de consulter", re.I), _prefix(_WARN_FR)),
    ],
    "ar": [
        Rule(re.compile(_NOT_NEGATED_AR + r"توقف عن تناول (?:الدواء|الأدوية)"), _prefix(_WARN_AR)),
        Rule(re.compile(_UNMARKED + r"لا حاجة (?:للطبيب|لزيارة الطبيب|لاستشارة الطبيب)"), _prefix(_WARN_AR)),
    ],
}

DIAGNOSTIC_RULES: dict[str, list[Rule]] = {
    "en": [
        Rule(re.compile(r"\byour diagnosis is\b", re.I), _hedge("possible considerations include")),
        Rule(re.compile(r"\bthis is definitely\b", re.I), _hedge("this could be")),
        Rule(re.compile(r"\bi diagnose you with\b", re.I), _hedge("a possible consideration is")),
        Rule(re.compile(r"\bi diagnose\b", re.I), _hedge("a possible consideration is")),
        Rule(re.compile(r"\byou are suffering from\b", re.I), _hedge("you may be experiencing")),
        Rule(re.compile(r"\byou definitely have\b", re.I), _hedge("you may have")),
        Rule(re.compile(r"\byou have\b(?= (?:an? )?\w+ (?:disease|disorder|syndrome|infection|cancer|diabetes)\b)", re.I), _hedge("you may have")),
    ],
    "fr": [
        Rule(re.compile(r"\bvotre diagnostic est\b", re.I), _hedge("les possibilités incluent")),
        Rule(re.compile(r"\bc'est certainement\b", re.I), _hedge("il pourrait s'agir de")),
        Rule(re.compile(r"\bvous souffrez de\b", re.I), _hedge("vous pourriez présenter")),
        Rule(re.compile(r"\bvous avez (?=la maladie|une maladie|un cancer|le diabète|une infection)", re.I), _hedge("vous pourriez avoir ")),
    ],
    "ar": [
        Rule(re.compile(r"تشخيصك هو"), "من الاحتمالات"),
        Rule(re.compile(r"لديك مرض"), "قد يكون لديك مرض"),
        Rule(re.compile(r"أنت مصاب بـ?"), "قد تكون مصاباً بـ"),
    ],
}

# Flag only, never rewritten
PRESCRIPTION_PATTERNS: dict[str, list[re.Pattern]] = {
    "en": [
        re.compile(r"\btake \d+(?:\.\d+)? ?(?:mg|ml|tablets?|pills?|capsules?)\b", re.I),
        re.compile(r"\bi prescribe\b", re.I),
    ],
    "fr": [
        re.compile(r"\bprenez \d+(?:[.,]\d+)? ?(?:mg|ml|comprimés?|gélules?)\b", re.I),
        re.compile(r"\bje vous prescris\b", re.I),
    ],
    "ar": [
        re.compile(r"تناول \d+ ?(?:ملغ|مغ|حبة|حبات|قرص|أقراص)"),
        re.compile(r"أصف لك"),
    ],
}


def all_rules(family: dict[str, list[Rule]]) -> list[Rule]:
    return [rule for rules in family.values() for rule in rules]


def all_patterns(family: dict[str, list[re.Pattern]]) -> list[re.Pattern]:
    return [pattern for patterns in family.values() for pattern in patterns]
