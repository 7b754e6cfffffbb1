from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class DocumentType(str, Enum):
    AADHAAR = "aadhaar"
    PAN = "pan"
    DRIVING_LICENSE = "driving_license"
    BANK_STATEMENT = "bank_statement"
    SALARY_SLIP = "salary_slip"
    GENERIC = "generic"

    @classmethod
    def from_tag(cls, tag: Optional[str]) -> "DocumentType":
        try:
            return cls((tag or "").strip().lower())
        except ValueError:
            return cls.GENERIC


# --- document path -----------------------------------------------------------


class ExtractedTextResult(BaseModel):
    text: str = ""
    confidence: float = Field(0.0, ge=0, le=100)
    word_count: int = 0
    line_count: int = 0
    processing_time_ms: float = 0.0
    error: Optional[str] = None


class ImageQualityMetrics(BaseModel):
    width: int
    height: int
    density_dpi: float
    format: Optional[str] = None
    compression_estimate: float = Field(ge=0, le=100)
    channel_variances: List[float]


class ImageAnalysis(BaseModel):
    metrics: Optional[ImageQualityMetrics] = None
    is_low_resolution: bool = False
    is_highly_compressed: bool = False
    suspicious_editing: bool = False
    fraud_indicators: List[str] = []
    risk_score: int = 0  # uncapped here, clamped by the aggregator
    error: Optional[str] = None


class DocumentAnalysisResult(BaseModel):
    extracted_data: Dict[str, Any] = {}
    confidence: int = Field(0, ge=0, le=100)
    is_valid: bool = False
    checks: Dict[str, bool] = {}


class FraudIndicatorReport(BaseModel):
    indicators: List[str] = []
    warnings: List[str] = []
    risk_score: int = Field(0, ge=0, le=100)
    risk_level: RiskLevel = RiskLevel.LOW


class DocumentVerdict(BaseModel):
    is_valid: bool
    confidence: int = Field(ge=0, le=100)
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel


class OcrDetails(BaseModel):
    confidence: float
    processing_time_ms: float
    word_count: int


class VerificationOutcome(BaseModel):
    success: bool
    document_type: DocumentType
    file_name: str
    verification: DocumentVerdict
    extracted_data: Dict[str, Any] = {}
    checks: Dict[str, bool] = {}
    fraud_indicators: List[str] = []
    warnings: List[str] = []
    ocr_details: Optional[OcrDetails] = None
    image_quality: Optional[ImageQualityMetrics] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


# --- network path ------------------------------------------------------------


class NetworkCheckRequest(BaseModel):
    phone_number: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class NetworkCheckResult(BaseModel):
    success: bool
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class NumberVerificationResult(NetworkCheckResult):
    verified: bool = False
    result: Optional[str] = None
    confidence: Optional[float] = None


class SimSwapResult(NetworkCheckResult):
    swap_detected: Optional[bool] = None
    last_swap_date: Optional[str] = None
    risk_level: Optional[RiskLevel] = None


class LocationVerificationResult(NetworkCheckResult):
    location_match: bool = False
    distance: Optional[float] = None
    accuracy: Optional[float] = None


class DeviceStatusResult(NetworkCheckResult):
    is_active: bool = False
    connectivity_status: Optional[str] = None
    roaming: bool = False


class NetworkResults(BaseModel):
    number_verification: NumberVerificationResult
    sim_swap_detection: SimSwapResult
    location_verification: LocationVerificationResult
    device_status: DeviceStatusResult


class ComprehensiveFraudCheck(BaseModel):
    success: bool = True
    risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    risk_factors: List[str]
    network_results: NetworkResults
    confidence: float = Field(ge=0.0, le=1.0)
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


# --- combined ----------------------------------------------------------------


class ApplicantRiskAssessment(BaseModel):
    overall_risk_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    risk_factors: List[str]
    network_score: int = Field(ge=0, le=100)
    document_score: int = Field(ge=0, le=100)
    network_check: ComprehensiveFraudCheck
    documents: List[VerificationOutcome] = []
    timestamp: datetime = Field(default_factory=utcnow)
