import pytest

from fraud_engine.schemas import DocumentType, NetworkCheckRequest, RiskLevel
from fraud_engine.services.assessment import DocumentSubmission, FraudRiskEngine, combine
from fraud_engine.services.documents import DocumentVerifier, failed_outcome
from fraud_engine.services.network import MockNetworkProvider, NetworkSignalVerifier

from conftest import AADHAAR_TEXT


@pytest.fixture
def make_engine(fake_ocr):
    def factory(text=AADHAAR_TEXT):
        return FraudRiskEngine(
            documents=DocumentVerifier(text_extractor=fake_ocr(text)),
            network=NetworkSignalVerifier(MockNetworkProvider()),
        )
    return factory


def _request(phone="+919812345678"):
    return NetworkCheckRequest(phone_number=phone, latitude=19.07, longitude=72.87)


def test_network_only_assessment(make_engine):
    result = make_engine().assess_applicant(_request("+919812345666"))
    assert result.overall_risk_score == 40
    assert result.network_score == 40
    assert result.document_score == 0
    assert result.risk_level is RiskLevel.MEDIUM
    assert result.documents == []


def test_clean_applicant(make_engine, noise_png):
    submission = DocumentSubmission(noise_png, DocumentType.AADHAAR, "aadhaar.png")
    result = make_engine().assess_applicant(_request(), [submission])

    assert result.overall_risk_score == 0
    assert result.risk_level is RiskLevel.LOW
    assert result.risk_factors == []
    assert result.documents[0].verification.is_valid


def test_document_risk_dominates_when_higher(make_engine, noise_png):
    engine = make_engine(AADHAAR_TEXT + "\nSPECIMEN")
    submission = DocumentSubmission(noise_png, DocumentType.AADHAAR, "aadhaar.png")
    result = engine.assess_applicant(_request(), [submission])

    assert result.network_score == 0
    assert result.document_score == 50
    assert result.overall_risk_score == 50
    assert result.risk_level is RiskLevel.MEDIUM
    assert "aadhaar: Document appears to be a specimen/sample" in result.risk_factors
    assert 'aadhaar: Suspicious text found: "specimen"' in result.risk_factors


def test_invalid_document_is_a_factor(make_engine, noise_png):
    engine = make_engine("too short")
    submission = DocumentSubmission(noise_png, DocumentType.PAN, "pan.png")
    result = engine.assess_applicant(_request("+919812345666"), [submission])

    assert result.overall_risk_score == 40
    assert "pan document failed verification" in result.risk_factors
    assert result.risk_factors[0] == "Recent SIM swap detected - HIGH FRAUD RISK"


class ExplodingDocuments(DocumentVerifier):
    def verify_document(self, content, document_type, file_name=None):
        raise RuntimeError("worker died")


class ExplodingNetwork(NetworkSignalVerifier):
    def comprehensive_fraud_check(self, request, cancel_event=None):
        raise RuntimeError("pool died")


def test_document_exception_becomes_failed_outcome(noise_png):
    engine = FraudRiskEngine(ExplodingDocuments(), NetworkSignalVerifier(MockNetworkProvider()))
    submission = DocumentSubmission(noise_png, DocumentType.BANK_STATEMENT, "stmt.png")
    result = engine.assess_applicant(_request(), [submission])

    assert not result.documents[0].success
    assert result.documents[0].error == "worker died"
    assert result.document_score == 100
    assert result.risk_level is RiskLevel.CRITICAL
    assert "bank_statement document failed verification" in result.risk_factors


def test_network_exception_becomes_terminal_result(make_engine):
    engine = make_engine()
    engine.network = ExplodingNetwork(MockNetworkProvider(), provider_name="Nokia")
    result = engine.assess_applicant(_request())

    assert result.network_score == 100
    assert not result.network_check.success
    assert result.risk_factors == ["Nokia API verification failed"]


def test_combine_takes_worst_score(make_engine):
    network_check = make_engine().comprehensive_fraud_check(_request("+919812345999"))
    outcome = failed_outcome(DocumentType.SALARY_SLIP, "slip.png", "unreadable")
    result = combine(network_check, [outcome])

    assert result.network_score == 15
    assert result.overall_risk_score == 100
    assert result.risk_factors == ["Location mismatch detected", "salary_slip document failed verification"]
