# Similar-cases analysis: language-model path first, local heuristic as fallback
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from models import MedicalRecord, PENDING_OUTCOME, UNKNOWN_PATIENT, extract_diagnosis, record_to_case
from similarity import rank_similar_cases

logger = logging.getLogger(__name__)

DEFAULT_LLM_MODEL = "gpt-3.5-turbo"
SYSTEM_PROMPT = (
    "You are a medical expert analyzing similarity between current and past cases. "
    "Focus on clinically relevant similarities and differences."
)

RESPONSE_FORMAT = """{
  "similarCases": [
    {
      "id": "record_id",
      "similarityScore": 0.85,
      "keyDifferences": [
        {
          "type": "current|historical",
          "description": "Difference description",
          "clinicalImpact": {
            "severity": "high|medium|low",
            "urgency": "immediate|urgent|routine",
            "monitoring": ["parameter1", "parameter2"]
          }
        }
      ],
      "insights": [
        {
          "type": "insight_type",
          "content": "Insight description",
          "clinicalContext": "Clinical context",
          "displayColor": "color_for_ui",
          "displayIcon": "icon_name"
        }
      ],
      "treatmentRecommendations": {
        "immediate": [
          {
            "action": "Recommended action",
            "priority": "high|medium|low",
            "displayColor": "color_for_ui",
            "displayIcon": "icon_name",
            "clinicalRationale": "Rationale",
            "parameters": ["param1", "param2"]
          }
        ],
        "shortTerm": [...],
        "longTerm": [...]
      },
      "visualElements": {
        "severity": "high|medium|low",
        "confidence": "high|medium|low",
        "relevance": "high|medium|low"
      }
    }
  ]
}"""


def llm_model() -> str:
    return os.environ.get("LLM_MODEL", DEFAULT_LLM_MODEL)


def build_similarity_prompt(current_symptoms: str, records: Sequence[MedicalRecord]) -> str:
    cases = "\n".join(
        f"\nCase {index}:\nId: {record.id}\nSymptoms: {record.description}\nAnalysis: {record.notes}\n"
        for index, record in enumerate(records, start=1)
    )
    return (
        "As a medical expert, analyze the similarity between the current symptoms and past cases. "
        "For each past case, provide:\n"
        "1. Similarity score (0-1)\n"
        "2. Key differences\n"
        "3. Clinical insights\n"
        "4. Treatment recommendations based on past outcomes\n\n"
        f"Current symptoms: {current_symptoms}\n\n"
        f"Past cases:\n{cases}\n\n"
        f"Provide the analysis in this JSON format:\n{RESPONSE_FORMAT}"
    )


def request_llm_analysis(
    client: Any,
    current_symptoms: str,
    records: Sequence[MedicalRecord],
) -> Optional[List[Dict]]:
    """
    Ask the language model to rank the records. Returns the `similarCases`
    list, or None on any failure (no client, API error, malformed JSON).
    """
    if client is None:
        logger.info("No language-model client configured")
        return None

    try:
        completion = client.chat.completions.create(
            model=llm_model(),
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_similarity_prompt(current_symptoms, records)},
            ],
            response_format={"type": "json_object"},
            temperature=0.2,
            max_tokens=2000,
        )
        content = completion.choices[0].message.content or "{}"
        analysis = json.loads(content)
    except Exception as e:
        logger.warning("Language-model similarity call failed: %s", e)
        return None

    similar_cases = analysis.get("similarCases") if isinstance(analysis, dict) else None
    if not isinstance(similar_cases, list) or not all(isinstance(c, dict) for c in similar_cases):
        logger.warning("Language-model response had no usable similarCases list")
        return None
    return similar_cases


def merge_llm_cases(similar_cases: List[Dict], records: Sequence[MedicalRecord]) -> List[Dict]:
    """Attach patient and record details to the model's per-case analysis."""
    by_id = {record.id: record for record in records}
    merged = []
    for case_analysis in similar_cases:
        record = by_id.get(case_analysis.get("id"))
        merged.append({
            **case_analysis,
            "patientName": (record.patientName if record else None) or UNKNOWN_PATIENT,
            "visitDate": record.createdAt if record else None,
            "symptoms": record.description if record else None,
            "diagnosis": extract_diagnosis(record.notes if record else None),
            "treatmentOutcome": PENDING_OUTCOME,
        })
    return merged


def find_similar_cases(
    current_symptoms: str,
    records: Sequence[MedicalRecord],
    client: Any = None,
) -> Dict:
    """
    Similar past cases for the current symptoms.
    `fallbackUsed` is True when the local heuristic produced the result.
    """
    if not records:
        return {"similarCases": [], "fallbackUsed": False}

    similar_cases = request_llm_analysis(client, current_symptoms, records)
    if similar_cases is not None:
        return {"similarCases": merge_llm_cases(similar_cases, records), "fallbackUsed": False}

    logger.warning("Using fallback similarity analysis for %d record(s)", len(records))
    cases = [record_to_case(record) for record in records]
    return {"similarCases": rank_similar_cases(current_symptoms, cases), "fallbackUsed": True}
