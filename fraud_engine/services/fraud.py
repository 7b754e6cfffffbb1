"""
Fraud indicator aggregation.

Merges text vocabulary hits, OCR quality warnings, image tamper indicators and
document-type-specific checks into one clamped 0..100 risk sub-score.
Indicators point to deliberate falsification; warnings only to poor quality.
"""

from fraud_engine.schemas import DocumentType, FraudIndicatorReport, ImageAnalysis
from fraud_engine.services.scoring import (
    DOCUMENT_SCORING,
    DocumentScoringTable,
    clamp,
    document_risk_level,
)

SUSPICIOUS_WORDS = (
    "edited", "modified", "photoshop", "fake", "duplicate",
    "sample", "specimen", "copy", "draft", "template", "watermark",
)
OCR_ARTIFACTS = ("???", "|||", "□")
SPECIMEN_MARKERS = ("specimen", "sample")

SHORT_TEXT_WARNING = "Document text seems too short - image quality might be poor"
ARTIFACT_WARNING = "Some characters could not be recognized - scan quality issue"
SPECIMEN_INDICATOR = "Document appears to be a specimen/sample"


def detect_fraud_indicators(
    text: str,
    image: ImageAnalysis,
    document_type: DocumentType,
    table: DocumentScoringTable = DOCUMENT_SCORING,
) -> FraudIndicatorReport:
    text = text or ""
    lower = text.lower()
    indicators: list[str] = []
    warnings: list[str] = []
    risk = 0

    for word in SUSPICIOUS_WORDS:
        if word in lower:
            indicators.append(f'Suspicious text found: "{word}"')
            risk += table.suspicious_word_penalty

    if len(text) < table.short_text_length:
        warnings.append(SHORT_TEXT_WARNING)
        risk += table.short_text_penalty

    if any(marker in text for marker in OCR_ARTIFACTS):
        warnings.append(ARTIFACT_WARNING)
        risk += table.ocr_artifact_penalty

    indicators.extend(image.fraud_indicators)
    risk += image.risk_score

    if document_type is DocumentType.AADHAAR and any(m in lower for m in SPECIMEN_MARKERS):
        indicators.append(SPECIMEN_INDICATOR)
        risk += table.specimen_penalty

    score = int(clamp(risk))
    return FraudIndicatorReport(
        indicators=indicators,
        warnings=warnings,
        risk_score=score,
        risk_level=document_risk_level(score, table),
    )
