import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from fraud_engine.config import Settings, get_settings
from fraud_engine.schemas import (
    ApplicantRiskAssessment,
    ComprehensiveFraudCheck,
    DocumentType,
    NetworkCheckRequest,
    VerificationOutcome,
)
from fraud_engine.services.assessment import DocumentSubmission, FraudRiskEngine
from fraud_engine.services.documents import SUPPORTED_FORMATS, DocumentVerifier
from fraud_engine.services.network import NetworkSignalVerifier

settings: Settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Loan Fraud Risk Engine", version="0.1.0")

# Global engine singleton (lazy init)
_engine: Optional[FraudRiskEngine] = None


def engine() -> FraudRiskEngine:
    global _engine
    if _engine is None:
        _engine = FraudRiskEngine(
            documents=DocumentVerifier(),
            network=NetworkSignalVerifier.from_settings(settings),
        )
    return _engine


def _check_extension(file_name: str) -> None:
    ext = Path(file_name).suffix.lower().lstrip(".")
    if ext not in SUPPORTED_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext or file_name}'. Allowed: {', '.join(SUPPORTED_FORMATS)}",
        )


async def _read_upload(upload: UploadFile) -> bytes:
    _check_extension(upload.filename or "")
    try:
        content = await upload.read()
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"Invalid upload: {e}")
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    return content


@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url)
    # Return JSON so the frontend can display it
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error", "error": str(exc)},
    )


@app.post("/api/documents/verify", response_model=VerificationOutcome)
async def verify_document(
    document: UploadFile = File(...),
    document_type: str = Form(...),
):
    content = await _read_upload(document)
    return await asyncio.to_thread(
        engine().verify_document, content, DocumentType.from_tag(document_type), document.filename
    )


@app.post("/api/network/fraud-check", response_model=ComprehensiveFraudCheck)
def network_fraud_check(request: NetworkCheckRequest):
    return engine().comprehensive_fraud_check(request)


@app.post("/api/assessments", response_model=ApplicantRiskAssessment)
async def assess_applicant(
    phone_number: str = Form(...),
    latitude: Optional[float] = Form(None),
    longitude: Optional[float] = Form(None),
    documents: Optional[List[UploadFile]] = File(None),
    document_types: Optional[List[str]] = Form(None),
):
    documents = documents or []
    document_types = document_types or []
    if len(documents) != len(document_types):
        raise HTTPException(status_code=400, detail="Each document needs a matching document_types entry")

    submissions = []
    for upload, tag in zip(documents, document_types):
        content = await _read_upload(upload)
        submissions.append(
            DocumentSubmission(
                content=content,
                document_type=DocumentType.from_tag(tag),
                file_name=upload.filename or "document",
            )
        )

    request = NetworkCheckRequest(phone_number=phone_number, latitude=latitude, longitude=longitude)
    return await asyncio.to_thread(engine().assess_applicant, request, submissions)
