"""
Shared pytest fixtures for the similar-cases backend tests.
"""
import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from main import app, get_llm_client
from models import HistoricalCase, MedicalRecord
from seed import seed_data


class FakeLLMClient:
    """
    Stand-in for openai.OpenAI: client.chat.completions.create(...) returns
    `content` as the first choice's message, or raises `error`.
    """

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def llm_payload(*cases) -> str:
    return json.dumps({"similarCases": list(cases)})


@pytest.fixture(autouse=True)
def no_llm_by_default():
    """Never reach the real API from tests; individual tests may override again."""
    app.dependency_overrides[get_llm_client] = lambda: None
    yield
    app.dependency_overrides.pop(get_llm_client, None)


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def store():
    """The application's record store, reset to seed data."""
    record_store = app.state.record_store
    seed_data(record_store)
    yield record_store
    seed_data(record_store)


@pytest.fixture
def use_llm():
    """Install a fake language-model client for the API under test."""
    def _install(fake):
        app.dependency_overrides[get_llm_client] = lambda: fake
        return fake
    return _install


def make_case(symptoms, patient_name="Test Patient", diagnosis="Dx",
              visit_date="2024-01-15T10:00:00Z", outcome="Recovered") -> HistoricalCase:
    return HistoricalCase(
        patientName=patient_name,
        symptoms=symptoms,
        diagnosis=diagnosis,
        visitDate=visit_date,
        treatmentOutcome=outcome,
    )


def make_record(record_id, description, doctor_id="doc-1", created_at="2024-01-15T10:00:00+00:00",
                notes="", patient_name="Test Patient", record_type="symptom_analysis") -> MedicalRecord:
    return MedicalRecord(
        id=record_id,
        doctorId=doctor_id,
        patientId=f"pat-{record_id}",
        patientName=patient_name,
        description=description,
        notes=notes,
        recordType=record_type,
        createdAt=created_at,
    )
