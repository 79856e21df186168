# Backend main entry point - similar cases API for the doctor dashboard
import os
import logging
from dotenv import load_dotenv
load_dotenv()  # Load .env so OPENAI_API_KEY / DEMO_MODE work for local runs
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AwareDatetime, BaseModel
from typing import Any, List, Optional

from analysis import find_similar_cases
from models import MedicalRecord, RecordStore, SYMPTOM_ANALYSIS
from seed import seed_data

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("similar_cases_api")

app = FastAPI(title="Similar Cases API")

# Records live for the application's lifetime; handlers get them via get_record_store
app.state.record_store = seed_data(RecordStore())


def _is_demo_mode() -> bool:
    """True only when DEMO_MODE env var is explicitly 'true' (case-insensitive)."""
    return os.environ.get("DEMO_MODE", "").lower() == "true"

# Configure CORS - allow local dev and deployed frontend
_allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
]
_frontend_url = os.environ.get("FRONTEND_URL", "")
if _frontend_url:
    _allowed_origins.append(_frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_record_store(request: Request) -> RecordStore:
    return request.app.state.record_store


DEFAULT_LLM_TIMEOUT = 10.0  # seconds
DEFAULT_LLM_MAX_RETRIES = 0


def get_llm_client() -> Any:
    """
    OpenAI client when an API key is configured, otherwise None (fallback only).
    A short timeout and no retries keep a stalled API from holding the request;
    LLM_TIMEOUT / LLM_MAX_RETRIES override them.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return None
    from openai import OpenAI
    return OpenAI(
        api_key=api_key,
        timeout=float(os.environ.get("LLM_TIMEOUT", DEFAULT_LLM_TIMEOUT)),
        max_retries=int(os.environ.get("LLM_MAX_RETRIES", DEFAULT_LLM_MAX_RETRIES)),
    )


# Request/Response models
class SimilarityRequest(BaseModel):
    currentSymptoms: Optional[str] = None
    doctorId: Optional[str] = None

class SimilarityResponse(BaseModel):
    similarCases: List[dict]
    fallbackUsed: bool

class MedicalRecordCreate(BaseModel):
    id: Optional[str] = None
    patientId: str
    patientName: Optional[str] = None
    description: str
    notes: str = ""
    recordType: str = SYMPTOM_ANALYSIS
    createdAt: Optional[AwareDatetime] = None  # must carry a UTC offset

class MedicalRecordResponse(BaseModel):
    id: str
    doctorId: str
    patientId: str
    patientName: Optional[str]
    description: str
    notes: str
    recordType: str
    createdAt: str

@app.get("/")
def read_root():
    return {"message": "Similar Cases API"}

@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.post("/doctor/analyze/similarity", response_model=SimilarityResponse)
def analyze_similarity(
    body: SimilarityRequest,
    store: RecordStore = Depends(get_record_store),
    client: Any = Depends(get_llm_client),
):
    """
    Rank the doctor's recent symptom analyses against the current symptoms.
    Uses the language model when available, the local heuristic otherwise.
    """
    current_symptoms = (body.currentSymptoms or "").strip()
    doctor_id = (body.doctorId or "").strip()
    if not current_symptoms or not doctor_id:
        raise HTTPException(status_code=400, detail="Symptoms and doctor ID are required")

    try:
        records = store.get_doctor_records(doctor_id)
        return find_similar_cases(current_symptoms, records, client)
    except Exception:
        logger.exception("Similarity analysis error")
        raise HTTPException(status_code=500, detail="Failed to analyze similar cases")


@app.get("/doctors/{doctor_id}/records", response_model=List[MedicalRecordResponse])
def list_doctor_records(doctor_id: str, store: RecordStore = Depends(get_record_store)):
    """The doctor's records the similarity analysis compares against (newest first)."""
    return [record.to_dict() for record in store.get_doctor_records(doctor_id)]


@app.post("/doctors/{doctor_id}/records", response_model=MedicalRecordResponse, status_code=201)
def create_doctor_record(
    doctor_id: str,
    body: MedicalRecordCreate,
    store: RecordStore = Depends(get_record_store),
):
    """Store a new medical record for the doctor. id and createdAt are generated when omitted."""
    fields = body.model_dump(exclude_none=True)
    if "id" in fields and store.get_record(fields["id"]):
        raise HTTPException(status_code=409, detail="Record already exists")
    if "createdAt" in fields:
        fields["createdAt"] = fields["createdAt"].isoformat()
    record = store.add_record(MedicalRecord(doctorId=doctor_id, **fields))
    return record.to_dict()


@app.get("/doctors/{doctor_id}/records/{record_id}", response_model=MedicalRecordResponse)
def get_doctor_record(doctor_id: str, record_id: str, store: RecordStore = Depends(get_record_store)):
    """A single record, only if it belongs to the doctor"""
    record = store.get_record(record_id)
    if not record or record.doctorId != doctor_id:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_dict()


@app.get("/demo/status")
def demo_status():
    """Returns whether demo mode is enabled. Only for frontend visibility gate."""
    return {"demoMode": _is_demo_mode()}


@app.post("/demo/reset")
def demo_reset(store: RecordStore = Depends(get_record_store)):
    """
    Reset prototype to baseline. Only available when DEMO_MODE=true.
    Restores the seeded medical records.
    """
    if not _is_demo_mode():
        raise HTTPException(status_code=404, detail="Demo reset not available")
    seed_data(store)
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
