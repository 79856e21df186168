# Data models for historical cases and the doctor's medical records
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional
import uuid

SYMPTOM_ANALYSIS = "symptom_analysis"
UNKNOWN_PATIENT = "Unknown Patient"
NOT_SPECIFIED = "Not specified"
PENDING_OUTCOME = "Treatment outcome will be determined after follow-up"


@dataclass(frozen=True)
class HistoricalCase:
    """A past patient encounter used as a comparison baseline (read-only)."""
    patientName: str = ""
    symptoms: str = ""
    diagnosis: str = ""
    visitDate: str = ""  # ISO-8601
    treatmentOutcome: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "HistoricalCase":
        """Build a case from loose input, normalizing missing/None fields to ''."""
        return cls(**{
            name: "" if data.get(name) is None else str(data.get(name))
            for name in ("patientName", "symptoms", "diagnosis", "visitDate", "treatmentOutcome")
        })

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class MedicalRecord:
    """Persisted medical record. `notes` holds the JSON of a prior symptom analysis."""
    doctorId: str
    patientId: str
    description: str
    patientName: Optional[str] = None
    notes: str = ""
    recordType: str = SYMPTOM_ANALYSIS
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    createdAt: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict:
        return asdict(self)


EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 string -> UTC datetime (naive values are taken as UTC), or None if unparseable."""
    try:
        parsed = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def extract_diagnosis(notes: Optional[str]) -> str:
    """Most likely condition from a stored analysis: differentialDiagnosis.mostLikely[0].condition"""
    try:
        parsed = json.loads(notes or "{}")
    except (json.JSONDecodeError, TypeError):
        return NOT_SPECIFIED
    if not isinstance(parsed, dict):
        return NOT_SPECIFIED
    differential = parsed.get("differentialDiagnosis")
    most_likely = differential.get("mostLikely") if isinstance(differential, dict) else None
    if not isinstance(most_likely, list) or not most_likely or not isinstance(most_likely[0], dict):
        return NOT_SPECIFIED
    return most_likely[0].get("condition") or NOT_SPECIFIED


def record_to_case(record: MedicalRecord) -> HistoricalCase:
    """Convert a stored record into the scorer's input shape."""
    return HistoricalCase.from_dict({
        "patientName": record.patientName or UNKNOWN_PATIENT,
        "symptoms": record.description,
        "diagnosis": extract_diagnosis(record.notes),
        "visitDate": record.createdAt,
        "treatmentOutcome": PENDING_OUTCOME,
    })


class RecordStore:
    """
    In-memory medical record storage. Constructed once at application startup
    and handed to request handlers as a dependency.
    """

    def __init__(self) -> None:
        self._records: Dict[str, MedicalRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def add_record(self, record: MedicalRecord) -> MedicalRecord:
        self._records[record.id] = record
        return record

    def get_record(self, record_id: str) -> Optional[MedicalRecord]:
        return self._records.get(record_id)

    def get_doctor_records(
        self,
        doctor_id: str,
        record_type: str = SYMPTOM_ANALYSIS,
        limit: int = 10,
    ) -> List[MedicalRecord]:
        """
        A doctor's records of one type, newest first, capped at `limit`.
        Ordered by the instant in time; unparseable timestamps sort last.
        """
        matching = [
            r for r in self._records.values()
            if r.doctorId == doctor_id and r.recordType == record_type
        ]
        matching.sort(key=lambda r: parse_timestamp(r.createdAt) or EARLIEST, reverse=True)
        return matching[:limit]

    def clear(self) -> None:
        self._records.clear()
