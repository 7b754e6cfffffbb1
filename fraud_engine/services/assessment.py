import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fraud_engine.schemas import (
    ApplicantRiskAssessment,
    DocumentType,
    NetworkCheckRequest,
    VerificationOutcome,
)
from fraud_engine.services.documents import DocumentVerifier, failed_outcome
from fraud_engine.services.network import NetworkSignalVerifier
from fraud_engine.services.scoring import NETWORK_SCORING, NetworkScoringTable, clamp, network_risk_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentSubmission:
    content: bytes
    document_type: DocumentType
    file_name: str = "document"


class FraudRiskEngine:
    """
    Entry point for the application workflow.

    The document and network paths share nothing, so an applicant assessment
    runs them side by side and only joins them for the final score.
    """

    def __init__(
        self,
        documents: DocumentVerifier,
        network: NetworkSignalVerifier,
        table: NetworkScoringTable = NETWORK_SCORING,
    ):
        self.documents = documents
        self.network = network
        self.table = table

    def verify_document(self, content: bytes, document_type, file_name: Optional[str] = None) -> VerificationOutcome:
        return self.documents.verify_document(content, document_type, file_name)

    def comprehensive_fraud_check(self, request: NetworkCheckRequest, cancel_event: Optional[threading.Event] = None):
        return self.network.comprehensive_fraud_check(request, cancel_event=cancel_event)

    def assess_applicant(
        self,
        request: NetworkCheckRequest,
        submissions: Sequence[DocumentSubmission] = (),
        cancel_event: Optional[threading.Event] = None,
    ) -> ApplicantRiskAssessment:
        with ThreadPoolExecutor(max_workers=1 + max(1, len(submissions)), thread_name_prefix="assessment") as pool:
            network_future = pool.submit(self.comprehensive_fraud_check, request, cancel_event)
            document_futures = [
                (s, pool.submit(self.verify_document, s.content, s.document_type, s.file_name))
                for s in submissions
            ]

            outcomes: List[VerificationOutcome] = []
            for submission, future in document_futures:
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    logger.warning("Document %s raised: %s", submission.file_name, e)
                    outcomes.append(failed_outcome(submission.document_type, submission.file_name, str(e)))

            try:
                network_check = network_future.result()
            except Exception as e:
                logger.exception("Network check raised")
                network_check = self.network.terminal_failure(str(e))

        return combine(network_check, outcomes, self.table)


def combine(network_check, outcomes: Sequence[VerificationOutcome], table: NetworkScoringTable = NETWORK_SCORING) -> ApplicantRiskAssessment:
    """Overall score is the worse of the network score and the riskiest document."""
    network_score = network_check.risk_score
    document_score = max((o.verification.risk_score for o in outcomes), default=0)
    overall = int(clamp(max(network_score, document_score)))

    factors = list(network_check.risk_factors)
    for outcome in outcomes:
        label = outcome.document_type.value
        factors.extend(f"{label}: {indicator}" for indicator in outcome.fraud_indicators)
        if not outcome.verification.is_valid:
            factors.append(f"{label} document failed verification")

    return ApplicantRiskAssessment(
        overall_risk_score=overall,
        risk_level=network_risk_level(overall, table),
        risk_factors=factors,
        network_score=network_score,
        document_score=document_score,
        network_check=network_check,
        documents=list(outcomes),
    )
