"""
Risk score composition.

Two independent composers live here:

- ``compose_document_verdict`` folds OCR confidence, pattern-analysis
  confidence and the fraud-indicator report into a single document verdict
  (3-tier level, 0..100 confidence).
- ``score_network_results`` reduces the four telecom signal results into
  the comprehensive network score (4-tier level, 0.0..1.0 confidence).

Every weight and threshold is read from a frozen table so the algorithm can be
audited and exercised without the surrounding orchestration.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from fraud_engine.schemas import (
    DocumentAnalysisResult,
    DocumentVerdict,
    ExtractedTextResult,
    FraudIndicatorReport,
    NetworkResults,
    RiskLevel,
)


@dataclass(frozen=True)
class SignalWeights:
    failure_penalty: int
    unfavorable_penalty: int
    confidence_factor: float


@dataclass(frozen=True)
class NetworkScoringTable:
    number_verification: SignalWeights = SignalWeights(30, 25, 0.7)
    sim_swap: SignalWeights = SignalWeights(20, 40, 0.8)
    location: SignalWeights = SignalWeights(10, 15, 0.9)
    device_status: SignalWeights = SignalWeights(5, 8, 0.95)
    roaming_penalty: int = 3

    critical_threshold: int = 80
    high_threshold: int = 60
    medium_threshold: int = 30


@dataclass(frozen=True)
class DocumentScoringTable:
    # text signals
    suspicious_word_penalty: int = 20
    short_text_length: int = 100
    short_text_penalty: int = 10
    ocr_artifact_penalty: int = 5
    specimen_penalty: int = 30

    # image signals
    min_width: int = 800
    min_height: int = 600
    min_quality_estimate: float = 50.0
    max_channel_variance_ratio: float = 3.0
    image_flag_penalty: int = 15
    image_failure_risk: int = 25

    # 3-tier levels (strictly greater than)
    high_threshold: int = 70
    medium_threshold: int = 40

    # verdict
    fraud_penalty_rate: float = 0.5
    max_fraud_risk_for_valid: int = 70
    min_confidence_for_valid: float = 30.0


NETWORK_SCORING = NetworkScoringTable()
DOCUMENT_SCORING = DocumentScoringTable()


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def document_risk_level(score: float, table: DocumentScoringTable = DOCUMENT_SCORING) -> RiskLevel:
    if score > table.high_threshold:
        return RiskLevel.HIGH
    if score > table.medium_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def network_risk_level(score: float, table: NetworkScoringTable = NETWORK_SCORING) -> RiskLevel:
    if score >= table.critical_threshold:
        return RiskLevel.CRITICAL
    if score >= table.high_threshold:
        return RiskLevel.HIGH
    if score >= table.medium_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def compose_document_verdict(
    ocr: ExtractedTextResult,
    analysis: DocumentAnalysisResult,
    fraud: FraudIndicatorReport,
    table: DocumentScoringTable = DOCUMENT_SCORING,
) -> DocumentVerdict:
    """
    Combine document-side signals into the overall verdict.

    Confidence starts at the weaker of OCR and pattern confidence and loses
    ``fraud_penalty_rate`` points per fraud risk point, floored at 0.
    """
    base_confidence = min(ocr.confidence or 0, analysis.confidence or 0)
    adjusted = max(0.0, base_confidence - fraud.risk_score * table.fraud_penalty_rate)

    is_valid = (
        analysis.is_valid
        and fraud.risk_score < table.max_fraud_risk_for_valid
        and adjusted > table.min_confidence_for_valid
    )

    return DocumentVerdict(
        is_valid=is_valid,
        confidence=int(clamp(round_half_up(adjusted))),
        risk_score=int(clamp(fraud.risk_score)),
        risk_level=fraud.risk_level,
    )


def score_network_results(
    results: NetworkResults,
    table: NetworkScoringTable = NETWORK_SCORING,
) -> Tuple[int, RiskLevel, List[str], float]:
    """
    Additive weighted score over the four telecom checks.

    A failed call and an unfavorable-but-successful answer carry different
    penalties; only failed calls reduce confidence. Contributions are summed
    without per-signal caps and the total is clamped once at the end.

    Returns:
        (score, level, factors, confidence)
    """
    score = 0
    factors: List[str] = []
    confidence = 1.0

    number = results.number_verification
    weights = table.number_verification
    if not number.success:
        score += weights.failure_penalty
        factors.append("Phone number verification failed")
        confidence *= weights.confidence_factor
    elif not number.verified:
        score += weights.unfavorable_penalty
        factors.append("Phone number not verified by carrier")

    sim = results.sim_swap_detection
    weights = table.sim_swap
    if not sim.success:
        score += weights.failure_penalty
        factors.append("SIM swap check failed")
        confidence *= weights.confidence_factor
    elif sim.swap_detected:
        score += weights.unfavorable_penalty
        factors.append("Recent SIM swap detected - HIGH FRAUD RISK")

    location = results.location_verification
    weights = table.location
    if not location.success:
        score += weights.failure_penalty
        factors.append("Location verification failed")
        confidence *= weights.confidence_factor
    elif not location.location_match:
        score += weights.unfavorable_penalty
        factors.append("Location mismatch detected")

    device = results.device_status
    weights = table.device_status
    if not device.success:
        score += weights.failure_penalty
        factors.append("Device status check failed")
        confidence *= weights.confidence_factor
    elif not device.is_active:
        score += weights.unfavorable_penalty
        factors.append("Device appears inactive")
    elif device.roaming:
        score += table.roaming_penalty
        factors.append("Device is roaming (minor risk)")

    final_score = int(clamp(score))
    return (
        final_score,
        network_risk_level(final_score, table),
        factors,
        clamp(round_half_up(confidence, 2), 0.0, 1.0),
    )
