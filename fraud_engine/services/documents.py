import logging
from typing import Callable, Optional

from fraud_engine.schemas import (
    DocumentType,
    DocumentVerdict,
    ExtractedTextResult,
    OcrDetails,
    RiskLevel,
    VerificationOutcome,
)
from fraud_engine.services.fraud import detect_fraud_indicators
from fraud_engine.services.ocr import extract_text
from fraud_engine.services.patterns import analyze_document
from fraud_engine.services.scoring import DOCUMENT_SCORING, DocumentScoringTable, compose_document_verdict
from fraud_engine.services.tamper import analyze_image
from fraud_engine.utils.image import ImageStats, image_stats

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("jpg", "jpeg", "png", "pdf", "webp")

TextExtractor = Callable[[bytes], ExtractedTextResult]
StatsReader = Callable[[bytes], ImageStats]


class DocumentVerifier:
    """
    Sequential document pipeline:
    image stats -> OCR -> pattern analysis -> fraud indicators -> verdict.

    The OCR and pixel-statistics engines are injected so the pipeline can run
    without Tesseract. Instances hold no per-request state and can be shared.
    """

    def __init__(
        self,
        text_extractor: TextExtractor = extract_text,
        stats_reader: StatsReader = image_stats,
        table: DocumentScoringTable = DOCUMENT_SCORING,
    ):
        self.text_extractor = text_extractor
        self.stats_reader = stats_reader
        self.table = table

    def verify_document(
        self,
        content: bytes,
        document_type: DocumentType | str,
        file_name: Optional[str] = None,
    ) -> VerificationOutcome:
        doc_type = document_type if isinstance(document_type, DocumentType) else DocumentType.from_tag(document_type)
        file_name = file_name or "document"
        logger.info("Verifying %s document: %s", doc_type.value, file_name)

        try:
            image = analyze_image(self.stats_reader(content), self.table)
            ocr = self.text_extractor(content)
            analysis = analyze_document(ocr.text, doc_type)
            fraud = detect_fraud_indicators(ocr.text, image, doc_type, self.table)
            verdict = compose_document_verdict(ocr, analysis, fraud, self.table)
        except Exception as e:
            logger.exception("Document verification failed for %s", file_name)
            return failed_outcome(doc_type, file_name, str(e))

        logger.info(
            "Document %s: valid=%s confidence=%d risk=%d (%s)",
            file_name, verdict.is_valid, verdict.confidence, verdict.risk_score, verdict.risk_level.value,
        )
        return VerificationOutcome(
            success=True,
            document_type=doc_type,
            file_name=file_name,
            verification=verdict,
            extracted_data=analysis.extracted_data,
            checks=analysis.checks,
            fraud_indicators=fraud.indicators,
            warnings=fraud.warnings,
            ocr_details=OcrDetails(
                confidence=ocr.confidence,
                processing_time_ms=ocr.processing_time_ms,
                word_count=ocr.word_count,
            ),
            image_quality=image.metrics,
        )


def failed_outcome(doc_type: DocumentType, file_name: str, error: str) -> VerificationOutcome:
    return VerificationOutcome(
        success=False,
        document_type=doc_type,
        file_name=file_name,
        verification=DocumentVerdict(
            is_valid=False,
            confidence=0,
            risk_score=100,
            risk_level=RiskLevel.CRITICAL,
        ),
        error=error,
    )
