# Seed data - demo doctor with past symptom analyses
import json
import logging

from models import MedicalRecord, RecordStore

logger = logging.getLogger(__name__)

DEMO_DOCTOR_ID = "doc-1"
OTHER_DOCTOR_ID = "doc-2"


def _analysis_notes(condition: str, confidence: float) -> str:
    """Notes in the shape stored by the symptom analyzer."""
    return json.dumps({
        "differentialDiagnosis": {
            "mostLikely": [{"condition": condition, "confidence": confidence}],
        }
    })


def seed_data(store: RecordStore) -> RecordStore:
    """Reset the store to the demo records"""
    store.clear()

    records = [
        MedicalRecord(
            id="rec-1",
            doctorId=DEMO_DOCTOR_ID,
            patientId="pat-1",
            patientName="John Doe",
            description="Severe chest pain radiating to left arm with shortness of breath",
            notes=_analysis_notes("Acute coronary syndrome", 0.8),
            createdAt="2024-03-02T09:15:00+00:00",
        ),
        MedicalRecord(
            id="rec-2",
            doctorId=DEMO_DOCTOR_ID,
            patientId="pat-2",
            patientName="Jane Smith",
            description="Mild headache and dizziness for two days",
            notes=_analysis_notes("Tension headache", 0.7),
            createdAt="2024-04-11T14:30:00+00:00",
        ),
        MedicalRecord(
            id="rec-3",
            doctorId=DEMO_DOCTOR_ID,
            patientId="pat-3",
            patientName="Alex Rivera",
            description="Persistent cough with fever and fatigue",
            notes=_analysis_notes("Community-acquired pneumonia", 0.6),
            createdAt="2024-05-20T08:00:00+00:00",
        ),
        MedicalRecord(
            id="rec-4",
            doctorId=DEMO_DOCTOR_ID,
            patientId="pat-4",
            patientName="Maria Chen",
            description="Recurring abdominal pain with nausea after meals",
            notes="",
            createdAt="2024-06-30T16:45:00+00:00",
        ),
        MedicalRecord(
            id="rec-5",
            doctorId=OTHER_DOCTOR_ID,
            patientId="pat-5",
            patientName="Sam Patel",
            description="Sudden severe headache with nausea",
            notes=_analysis_notes("Migraine", 0.5),
            createdAt="2024-07-01T10:00:00+00:00",
        ),
    ]
    for record in records:
        store.add_record(record)

    logger.info("Seed data initialized: %d medical records", len(store))
    return store
