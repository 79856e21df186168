# Similar-cases heuristic - local fallback when the language-model analysis is unavailable
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from lexicon import (
    CATEGORY_BONUS,
    CONTEXT_BUCKETS,
    DEFAULT_CLASSIFICATION,
    HIGH_CONFIDENCE,
    HIGH_IMPACT_MONITORING,
    HIGH_IMPACT_TERMS,
    HIGH_RELEVANCE_INSIGHTS,
    IMPORTANCE_RANK,
    LEXICON,
    MAX_KEY_DIFFERENCES,
    MAX_SIMILAR_CASES,
    MEDIUM_CONFIDENCE,
    MEDIUM_RELEVANCE_INSIGHTS,
    MODERATE_IMPACT_MONITORING,
    MODERATE_IMPACT_TERMS,
    RED,
    GREEN,
    ORANGE,
    SIGNIFICANCE_RANK,
    SIMILARITY_CUTOFF,
    SYMPTOM_MONITORING,
    TREATMENT_TEMPLATES,
    WORD_OVERLAP_WEIGHT,
    iter_entries,
    severity_keywords,
)
from models import HistoricalCase, parse_timestamp


def tokenize(text: str) -> List[str]:
    """Lowercased whitespace tokens, de-duplicated in first-seen order."""
    return list(dict.fromkeys(text.lower().split()))


def calculate_similarity_score(current: str, historical: str) -> Dict:
    """
    Score how similar two symptom descriptions are.

    Keywords count when BOTH texts contain them as substrings. Generic word
    overlap contributes up to WORD_OVERLAP_WEIGHT, and every matched category
    adds CATEGORY_BONUS to both the score and the total weight, so the
    normalized score can exceed 1 slightly.
    """
    current_lower = current.lower()
    historical_lower = historical.lower()

    score = 0.0
    total_weight = 0.0
    matched_categories: Dict[str, None] = {}
    matched_keywords: List[Dict] = []
    clinical_context = {bucket: set() for bucket in CONTEXT_BUCKETS}

    for entries, bucket in LEXICON.values():
        for entry in entries:
            if entry.keyword in current_lower and entry.keyword in historical_lower:
                score += entry.weight
                total_weight += entry.weight
                matched_categories[entry.category] = None
                matched_keywords.append(entry.as_dict())
                clinical_context[bucket].add(entry.keyword)

    current_words = set(current_lower.split())
    historical_words = set(historical_lower.split())
    largest = max(len(current_words), len(historical_words))
    overlap = len(current_words & historical_words) / largest if largest else 0.0
    score += overlap * WORD_OVERLAP_WEIGHT
    total_weight += WORD_OVERLAP_WEIGHT

    category_bonus = len(matched_categories) * CATEGORY_BONUS
    score += category_bonus
    total_weight += category_bonus

    return {
        "score": score / total_weight if total_weight > 0 else 0.0,
        "matchedKeywords": matched_keywords,
        "matchedCategories": list(matched_categories),
        "clinicalContext": clinical_context,
        "clinicalRelevance": {
            "severityMatch": bool(clinical_context["severity"]),
            "symptomMatch": bool(clinical_context["symptoms"]),
            "timePatternMatch": bool(clinical_context["timePatterns"]),
            "categoryMatch": bool(matched_categories),
        },
    }


def get_clinical_significance(category: str) -> str:
    if category == "critical":
        return "high"
    if category == "moderate":
        return "moderate"
    return "low"


def assess_clinical_impact(symptom: str) -> Dict:
    """Severity/urgency from the first matching tier; monitoring accumulates."""
    lower = symptom.lower()
    severity = "low"
    urgency = "routine"
    monitoring: List[str] = []

    if any(term in lower for term in HIGH_IMPACT_TERMS):
        severity, urgency = "high", "immediate"
        monitoring.extend(HIGH_IMPACT_MONITORING)
    elif any(term in lower for term in MODERATE_IMPACT_TERMS):
        severity, urgency = "moderate", "urgent"
        monitoring.extend(MODERATE_IMPACT_MONITORING)

    for terms, parameters in SYMPTOM_MONITORING:
        if any(term in lower for term in terms):
            monitoring.extend(parameters)

    return {"severity": severity, "urgency": urgency, "monitoring": monitoring}


def classify_token(token: str) -> Dict:
    """First lexicon keyword contained in the token wins; otherwise general/low."""
    for entry in iter_entries():
        if entry.keyword in token:
            return {
                "category": entry.category,
                "displayColor": entry.displayColor,
                "displayIcon": entry.displayIcon,
                "clinicalSignificance": get_clinical_significance(entry.category),
            }
    return dict(DEFAULT_CLASSIFICATION)


def _difference(side: str, token: str) -> Dict:
    if side == "current":
        description = f'Current case has "{token}" not present in historical case'
    else:
        description = f'Historical case had "{token}" not present in current case'
    return {
        "type": side,
        "symptom": token,
        **classify_token(token),
        "description": description,
        "clinicalImpact": assess_clinical_impact(token),
    }


def extract_key_differences(current: str, historical: str) -> List[Dict]:
    """Words present on only one side, most clinically significant first (top 5)."""
    current_tokens = tokenize(current)
    historical_tokens = tokenize(historical)
    current_set = set(current_tokens)
    historical_set = set(historical_tokens)

    differences = [_difference("current", t) for t in current_tokens if t not in historical_set]
    differences.extend(_difference("historical", t) for t in historical_tokens if t not in current_set)

    differences = sorted(
        differences,
        key=lambda d: SIGNIFICANCE_RANK.get(d["clinicalSignificance"], 0),
        reverse=True,
    )
    return differences[:MAX_KEY_DIFFERENCES]


def format_visit_date(visit_date: str) -> str:
    """M/D/YYYY of the UTC date, or 'Invalid Date' when the timestamp can't be parsed."""
    parsed = parse_timestamp(visit_date)
    if parsed is None:
        return "Invalid Date"
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def generate_insights(case: HistoricalCase) -> List[Dict]:
    insights = [
        {
            "type": "diagnosis",
            "content": f"Previous diagnosis: {case.diagnosis}",
            "importance": "high",
            "displayColor": RED,
            "displayIcon": "🔍",
            "clinicalContext": "Primary diagnosis from previous case",
        },
        {
            "type": "outcome",
            "content": f"Treatment outcome: {case.treatmentOutcome}",
            "importance": "high",
            "displayColor": GREEN,
            "displayIcon": "✅",
            "clinicalContext": "Treatment effectiveness and patient response",
        },
        {
            "type": "timing",
            "content": f"Case from: {format_visit_date(case.visitDate)}",
            "importance": "medium",
            "displayColor": ORANGE,
            "displayIcon": "📅",
            "clinicalContext": "Temporal context for treatment planning",
        },
    ]

    symptoms_lower = case.symptoms.lower()
    if any(keyword in symptoms_lower for keyword in severity_keywords()):
        insights.append({
            "type": "severity",
            "content": "Case involved severe symptoms requiring immediate attention",
            "importance": "high",
            "displayColor": RED,
            "displayIcon": "⚠️",
            "clinicalContext": "Severity assessment for current case comparison",
        })

    return sorted(insights, key=lambda i: IMPORTANCE_RANK[i["importance"]], reverse=True)


def generate_treatment_recommendations(case: HistoricalCase) -> Dict[str, List[Dict]]:
    # Same templates for every case; content does not depend on `case`
    return {
        bucket: [
            {**template, "parameters": list(template["parameters"])}
            for template in templates
        ]
        for bucket, templates in TREATMENT_TEMPLATES.items()
    }


def _level(value: float, high: float, medium: float) -> str:
    if value > high:
        return "high"
    if value > medium:
        return "medium"
    return "low"


def visual_elements(score: float, key_differences: Sequence[Dict], insights: Sequence[Dict]) -> Dict[str, str]:
    categories = {d["category"] for d in key_differences}
    if "critical" in categories:
        severity = "high"
    elif "moderate" in categories:
        severity = "medium"
    else:
        severity = "low"
    return {
        "severity": severity,
        "confidence": _level(score, HIGH_CONFIDENCE, MEDIUM_CONFIDENCE),
        "relevance": _level(len(insights), HIGH_RELEVANCE_INSIGHTS, MEDIUM_RELEVANCE_INSIGHTS),
    }


def analyze_case(current_symptoms: str, case: HistoricalCase) -> Dict:
    """Full per-case analysis, projected to the ranked summary shape."""
    similarity = calculate_similarity_score(current_symptoms, case.symptoms)
    key_differences = extract_key_differences(current_symptoms, case.symptoms)
    insights = generate_insights(case)
    return {
        "patientName": case.patientName,
        "symptoms": case.symptoms,
        "similarityScore": similarity["score"],
        "matchedKeywords": similarity["matchedKeywords"],
        "matchedCategories": similarity["matchedCategories"],
        "keyDifferences": key_differences,
        "insights": insights,
        "treatmentRecommendations": generate_treatment_recommendations(case),
        "diagnosis": case.diagnosis,
        "treatmentOutcome": case.treatmentOutcome,
        "visitDate": case.visitDate,
        "visualElements": visual_elements(similarity["score"], key_differences, insights),
    }


def rank_similar_cases(
    current_symptoms: str,
    historical_cases: Iterable[HistoricalCase],
    limit: Optional[int] = None,
) -> List[Dict]:
    """
    Rank a doctor's past cases against the current symptoms.
    Only cases scoring above SIMILARITY_CUTOFF are kept, best first, top 5.
    """
    analyzed = [analyze_case(current_symptoms, case) for case in historical_cases]
    relevant = [c for c in analyzed if c["similarityScore"] > SIMILARITY_CUTOFF]
    relevant.sort(key=lambda c: c["similarityScore"], reverse=True)
    return relevant[:MAX_SIMILAR_CASES if limit is None else limit]
