"""
API smoke tests using FastAPI TestClient
"""
import pytest

from conftest import FakeLLMClient, llm_payload
from main import DEFAULT_LLM_MAX_RETRIES, DEFAULT_LLM_TIMEOUT, app, get_llm_client, get_record_store
from seed import DEMO_DOCTOR_ID


class TestHealthEndpoints:

    def test_root(self, client):
        assert client.get("/").status_code == 200

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestSimilarityEndpoint:
    """Test POST /doctor/analyze/similarity"""

    def test_fallback_ranks_seeded_records(self, client, store):
        response = client.post(
            "/doctor/analyze/similarity",
            json={"currentSymptoms": "mild headache and dizziness", "doctorId": DEMO_DOCTOR_ID},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["fallbackUsed"] is True
        assert [c["patientName"] for c in data["similarCases"]] == ["Jane Smith"]

        case = data["similarCases"][0]
        assert case["diagnosis"] == "Tension headache"
        assert case["similarityScore"] > 0.7
        assert case["visualElements"]["confidence"] == "high"
        assert [k["keyword"] for k in case["matchedKeywords"]] == ["mild", "headache", "dizziness"]

    @pytest.mark.parametrize("body", [
        {"doctorId": DEMO_DOCTOR_ID},
        {"currentSymptoms": "cough"},
        {"currentSymptoms": "   ", "doctorId": DEMO_DOCTOR_ID},
        {"currentSymptoms": "cough", "doctorId": ""},
        {},
    ])
    def test_missing_fields_return_400(self, client, body):
        response = client.post("/doctor/analyze/similarity", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Symptoms and doctor ID are required"

    def test_doctor_without_records_gets_empty_list(self, client, store):
        response = client.post(
            "/doctor/analyze/similarity",
            json={"currentSymptoms": "cough", "doctorId": "doc-unknown"},
        )
        assert response.status_code == 200
        assert response.json() == {"similarCases": [], "fallbackUsed": False}

    def test_only_requesting_doctors_records_are_compared(self, client, store):
        """doc-2's 'Sudden severe headache with nausea' must not appear for doc-1"""
        response = client.post(
            "/doctor/analyze/similarity",
            json={"currentSymptoms": "sudden severe headache with nausea", "doctorId": DEMO_DOCTOR_ID},
        )
        names = [c["patientName"] for c in response.json()["similarCases"]]
        assert "Sam Patel" not in names

    def test_language_model_result_used_when_available(self, client, store, use_llm):
        fake = use_llm(FakeLLMClient(content=llm_payload({"id": "rec-2", "similarityScore": 0.95})))
        response = client.post(
            "/doctor/analyze/similarity",
            json={"currentSymptoms": "headache", "doctorId": DEMO_DOCTOR_ID},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["fallbackUsed"] is False
        assert data["similarCases"][0]["patientName"] == "Jane Smith"
        assert data["similarCases"][0]["similarityScore"] == 0.95
        assert "Current symptoms: headache" in fake.calls[0]["messages"][1]["content"]

    def test_language_model_failure_falls_back(self, client, store, use_llm):
        use_llm(FakeLLMClient(error=TimeoutError("timed out")))
        response = client.post(
            "/doctor/analyze/similarity",
            json={"currentSymptoms": "persistent cough with fever", "doctorId": DEMO_DOCTOR_ID},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["fallbackUsed"] is True
        assert data["similarCases"][0]["patientName"] == "Alex Rivera"

    def test_unexpected_error_returns_500(self, client):
        class BrokenStore:
            def get_doctor_records(self, doctor_id):
                raise RuntimeError("database unavailable")

        app.dependency_overrides[get_record_store] = lambda: BrokenStore()
        try:
            response = client.post(
                "/doctor/analyze/similarity",
                json={"currentSymptoms": "cough", "doctorId": DEMO_DOCTOR_ID},
            )
        finally:
            app.dependency_overrides.pop(get_record_store, None)
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to analyze similar cases"


class TestRecordsEndpoints:
    """Test GET/POST /doctors/{doctor_id}/records"""

    def test_list_records_newest_first(self, client, store):
        response = client.get(f"/doctors/{DEMO_DOCTOR_ID}/records")
        assert response.status_code == 200
        assert [r["id"] for r in response.json()] == ["rec-4", "rec-3", "rec-2", "rec-1"]

    def test_create_record_then_match_it(self, client, store):
        response = client.post(
            "/doctors/doc-9/records",
            json={
                "patientId": "pat-9",
                "patientName": "Kim Lee",
                "description": "Intermittent abdominal pain",
                "createdAt": "2024-08-01T12:00:00+00:00",
            },
        )
        assert response.status_code == 201
        created = response.json()
        assert created["doctorId"] == "doc-9"
        assert created["recordType"] == "symptom_analysis"
        assert created["id"]

        analysis = client.post(
            "/doctor/analyze/similarity",
            json={"currentSymptoms": "intermittent abdominal pain", "doctorId": "doc-9"},
        ).json()
        assert [c["patientName"] for c in analysis["similarCases"]] == ["Kim Lee"]

    def test_create_record_requires_description(self, client, store):
        response = client.post("/doctors/doc-9/records", json={"patientId": "pat-9"})
        assert response.status_code == 422

    @pytest.mark.parametrize("created_at", ["yesterday", "2024-08-01T12:00:00"])
    def test_create_record_rejects_non_timestamp_or_missing_offset(self, client, store, created_at):
        response = client.post(
            "/doctors/doc-9/records",
            json={"patientId": "pat-9", "description": "cough", "createdAt": created_at},
        )
        assert response.status_code == 422
        assert client.get("/doctors/doc-9/records").json() == []

    def test_records_with_mixed_offsets_listed_by_instant(self, client, store):
        for record_id, created_at in [
            ("utc", "2024-08-01T14:00:00+00:00"),
            ("central", "2024-08-01T10:00:00-05:00"),
        ]:
            client.post(
                "/doctors/doc-9/records",
                json={"id": record_id, "patientId": "p", "description": "cough", "createdAt": created_at},
            )
        assert [r["id"] for r in client.get("/doctors/doc-9/records").json()] == ["central", "utc"]

    def test_create_record_with_client_supplied_id(self, client, store):
        body = {"id": "ext-1", "patientId": "pat-9", "description": "cough"}
        response = client.post("/doctors/doc-9/records", json=body)
        assert response.status_code == 201
        assert response.json()["id"] == "ext-1"

        duplicate = client.post("/doctors/doc-9/records", json=body)
        assert duplicate.status_code == 409

    def test_get_single_record(self, client, store):
        response = client.get(f"/doctors/{DEMO_DOCTOR_ID}/records/rec-2")
        assert response.status_code == 200
        assert response.json()["patientName"] == "Jane Smith"

    def test_get_record_of_other_doctor_is_404(self, client, store):
        assert client.get(f"/doctors/{DEMO_DOCTOR_ID}/records/rec-5").status_code == 404
        assert client.get(f"/doctors/{DEMO_DOCTOR_ID}/records/missing").status_code == 404


class TestDependencies:

    def test_llm_client_none_without_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        assert get_llm_client() is None

    def test_llm_client_uses_short_timeout_without_retries(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.delenv("LLM_TIMEOUT", raising=False)
        monkeypatch.delenv("LLM_MAX_RETRIES", raising=False)
        client = get_llm_client()
        assert client.timeout == DEFAULT_LLM_TIMEOUT
        assert client.max_retries == DEFAULT_LLM_MAX_RETRIES == 0

    def test_llm_client_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("LLM_TIMEOUT", "3.5")
        monkeypatch.setenv("LLM_MAX_RETRIES", "1")
        client = get_llm_client()
        assert client.timeout == 3.5
        assert client.max_retries == 1
