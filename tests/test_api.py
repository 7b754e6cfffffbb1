from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from fraud_engine import main
from fraud_engine.services.assessment import FraudRiskEngine
from fraud_engine.services.documents import DocumentVerifier
from fraud_engine.services.network import MockNetworkProvider, NetworkSignalVerifier

from conftest import AADHAAR_TEXT


@pytest.fixture
def client(monkeypatch, fake_ocr):
    engine = FraudRiskEngine(
        documents=DocumentVerifier(text_extractor=fake_ocr(AADHAAR_TEXT)),
        network=NetworkSignalVerifier(MockNetworkProvider()),
    )
    monkeypatch.setattr(main, "_engine", engine)
    return TestClient(main.app)


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_verify_document(client, noise_png):
    resp = client.post(
        "/api/documents/verify",
        files={"document": ("aadhaar.png", noise_png, "image/png")},
        data={"document_type": "aadhaar"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["document_type"] == "aadhaar"
    assert body["file_name"] == "aadhaar.png"
    assert body["verification"]["is_valid"] is True
    assert body["verification"]["risk_level"] == "LOW"


def test_verify_rejects_unsupported_extension(client):
    resp = client.post(
        "/api/documents/verify",
        files={"document": ("notes.txt", b"hello", "text/plain")},
        data={"document_type": "aadhaar"},
    )
    assert resp.status_code == 400
    assert "Unsupported file type" in resp.json()["detail"]


def test_verify_rejects_empty_upload(client):
    resp = client.post(
        "/api/documents/verify",
        files={"document": ("scan.png", b"", "image/png")},
        data={"document_type": "pan"},
    )
    assert resp.status_code == 400


def test_network_fraud_check(client):
    resp = client.post(
        "/api/network/fraud-check",
        json={"phone_number": "+919812345666", "latitude": 12.97, "longitude": 77.59},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["risk_score"] == 40
    assert body["risk_level"] == "MEDIUM"
    assert body["network_results"]["sim_swap_detection"]["swap_detected"] is True


def test_assessment_with_documents(client, noise_png):
    resp = client.post(
        "/api/assessments",
        data={
            "phone_number": "+919812345678",
            "latitude": "12.97",
            "longitude": "77.59",
            "document_types": ["aadhaar", "pan"],
        },
        files=[
            ("documents", ("aadhaar.png", noise_png, "image/png")),
            ("documents", ("pan.png", noise_png, "image/png")),
        ],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [d["document_type"] for d in body["documents"]] == ["aadhaar", "pan"]
    assert body["network_score"] == 0
    # Aadhaar text read as a PAN card carries no PAN markers
    assert "pan document failed verification" in body["risk_factors"]


def test_assessment_without_documents(client):
    resp = client.post("/api/assessments", data={"phone_number": "+919812345555"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["documents"] == []
    assert "Location verification failed" in body["risk_factors"]
    assert "Device appears inactive" in body["risk_factors"]


def test_assessment_requires_matching_types(client, noise_png):
    resp = client.post(
        "/api/assessments",
        data={"phone_number": "+919812345678"},
        files=[("documents", ("aadhaar.png", noise_png, "image/png"))],
    )
    assert resp.status_code == 400


def test_unhandled_error_returns_json(monkeypatch):
    engine = MagicMock()
    engine.comprehensive_fraud_check.side_effect = RuntimeError("engine offline")
    monkeypatch.setattr(main, "_engine", engine)
    client = TestClient(main.app, raise_server_exceptions=False)

    resp = client.post("/api/network/fraud-check", json={"phone_number": "+919812345678"})
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Internal Server Error", "error": "engine offline"}
