# Medical keyword lexicon and scoring constants for the similar-cases heuristic
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple


@dataclass(frozen=True)
class LexiconEntry:
    """One weighted keyword. Larger weight = more clinically significant."""
    keyword: str
    weight: float
    category: str  # critical | moderate | mild | general | respiratory | ...
    displayColor: str
    displayIcon: str

    def as_dict(self) -> Dict:
        return {
            "keyword": self.keyword,
            "weight": self.weight,
            "category": self.category,
            "displayColor": self.displayColor,
            "displayIcon": self.displayIcon,
        }


RED = "#FF4B4B"
ORANGE = "#FFA500"
GREEN = "#4CAF50"

# Declaration order matters: difference classification takes the first match
SEVERITY: Tuple[LexiconEntry, ...] = (
    LexiconEntry("severe", 3, "critical", RED, "⚠️"),
    LexiconEntry("extreme", 3, "critical", RED, "⚠️"),
    LexiconEntry("critical", 3, "critical", RED, "⚠️"),
    LexiconEntry("moderate", 2, "moderate", ORANGE, "⚡"),
    LexiconEntry("mild", 1, "mild", GREEN, "ℹ️"),
    LexiconEntry("chronic", 2, "moderate", ORANGE, "⚡"),
    LexiconEntry("acute", 2, "moderate", ORANGE, "⚡"),
)

SYMPTOM: Tuple[LexiconEntry, ...] = (
    LexiconEntry("pain", 2, "general", RED, "💢"),
    LexiconEntry("fever", 2, "general", RED, "🌡️"),
    LexiconEntry("cough", 1, "respiratory", GREEN, "😷"),
    LexiconEntry("headache", 1, "neurological", ORANGE, "🤕"),
    LexiconEntry("nausea", 1, "gastrointestinal", ORANGE, "🤢"),
    LexiconEntry("fatigue", 1, "general", GREEN, "😴"),
    LexiconEntry("dizziness", 1, "neurological", ORANGE, "💫"),
    LexiconEntry("shortness", 2, "respiratory", RED, "😮‍💨"),
    LexiconEntry("chest", 2, "cardiac", RED, "❤️"),
    LexiconEntry("abdominal", 1, "gastrointestinal", ORANGE, "🤢"),
)

TIME_PATTERN: Tuple[LexiconEntry, ...] = (
    LexiconEntry("sudden", 2, "acute", RED, "⚡"),
    LexiconEntry("gradual", 1, "chronic", GREEN, "📈"),
    LexiconEntry("persistent", 2, "chronic", ORANGE, "⏳"),
    LexiconEntry("recurring", 2, "chronic", ORANGE, "🔄"),
    LexiconEntry("intermittent", 1, "chronic", GREEN, "🔄"),
)

# group name -> (entries, clinicalContext bucket)
LEXICON: Mapping[str, Tuple[Tuple[LexiconEntry, ...], str]] = MappingProxyType({
    "severity": (SEVERITY, "severity"),
    "symptom": (SYMPTOM, "symptoms"),
    "time_pattern": (TIME_PATTERN, "timePatterns"),
})

CONTEXT_BUCKETS: Tuple[str, ...] = ("severity", "symptoms", "timePatterns", "riskFactors")


def iter_entries():
    """All entries across groups, in declaration order."""
    for entries, _bucket in LEXICON.values():
        yield from entries


# Scoring
WORD_OVERLAP_WEIGHT = 2
CATEGORY_BONUS = 0.1

# Ranking / truncation
SIMILARITY_CUTOFF = 0.2
HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4
HIGH_RELEVANCE_INSIGHTS = 3
MEDIUM_RELEVANCE_INSIGHTS = 1
MAX_KEY_DIFFERENCES = 5
MAX_SIMILAR_CASES = 5

SIGNIFICANCE_RANK: Mapping[str, int] = MappingProxyType({"high": 3, "moderate": 2, "low": 1})
IMPORTANCE_RANK: Mapping[str, int] = MappingProxyType({"high": 2, "medium": 1, "low": 0})

# Used for tokens that contain no lexicon keyword
DEFAULT_CLASSIFICATION: Mapping[str, str] = MappingProxyType({
    "category": "general",
    "displayColor": GREEN,
    "displayIcon": "ℹ️",
    "clinicalSignificance": "low",
})

# Clinical impact rule table: (substrings, severity, urgency, monitoring)
HIGH_IMPACT_TERMS = ("severe", "extreme", "critical", "acute")
MODERATE_IMPACT_TERMS = ("moderate", "persistent")
HIGH_IMPACT_MONITORING = ("Vital signs", "Pain level", "Consciousness")
MODERATE_IMPACT_MONITORING = ("Symptom progression", "Pain level")
SYMPTOM_MONITORING: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("fever",), ("Temperature",)),
    (("chest", "heart"), ("ECG", "Blood pressure")),
    (("breathing", "respiratory"), ("Oxygen saturation", "Respiratory rate")),
)

# Static per-bucket recommendation templates; they do not depend on the case
TREATMENT_TEMPLATES: Mapping[str, Tuple[Mapping, ...]] = MappingProxyType({
    "immediate": (
        MappingProxyType({
            "action": "Assess vital signs",
            "priority": "high",
            "displayColor": RED,
            "displayIcon": "❤️",
            "clinicalRationale": "Establish baseline and identify any immediate concerns",
            "parameters": ("Blood pressure", "Heart rate", "Temperature", "Respiratory rate", "Oxygen saturation"),
        }),
        MappingProxyType({
            "action": "Review previous medications",
            "priority": "high",
            "displayColor": RED,
            "displayIcon": "💊",
            "clinicalRationale": "Identify potential drug interactions and contraindications",
            "parameters": ("Current medications", "Allergies", "Previous adverse reactions"),
        }),
    ),
    "shortTerm": (
        MappingProxyType({
            "action": "Schedule follow-up",
            "priority": "medium",
            "displayColor": ORANGE,
            "displayIcon": "📅",
            "clinicalRationale": "Monitor treatment response and adjust as needed",
            "parameters": ("Symptom progression", "Treatment adherence", "Side effects"),
        }),
        MappingProxyType({
            "action": "Monitor symptoms",
            "priority": "medium",
            "displayColor": ORANGE,
            "displayIcon": "📊",
            "clinicalRationale": "Track symptom evolution and treatment effectiveness",
            "parameters": ("Pain level", "Symptom frequency", "Functional status"),
        }),
    ),
    "longTerm": (
        MappingProxyType({
            "action": "Regular check-ups",
            "priority": "low",
            "displayColor": GREEN,
            "displayIcon": "🔄",
            "clinicalRationale": "Ensure long-term management and prevention",
            "parameters": ("Disease progression", "Complications", "Quality of life"),
        }),
        MappingProxyType({
            "action": "Lifestyle modifications",
            "priority": "low",
            "displayColor": GREEN,
            "displayIcon": "🌱",
            "clinicalRationale": "Support overall health and prevent recurrence",
            "parameters": ("Diet", "Exercise", "Stress management", "Sleep hygiene"),
        }),
    ),
})


def severity_keywords() -> List[str]:
    return [entry.keyword for entry in SEVERITY]
