import cv2
import numpy as np
import pytest

from fraud_engine.schemas import ExtractedTextResult

AADHAAR_TEXT = """GOVERNMENT OF INDIA
Unique Identification Authority of India
Rahul Kumar
DOB: 15/08/1990
MALE
4821 5573 9016
Address: 12 MG Road, Indiranagar, Bengaluru, Karnataka 560038"""


def _png(img: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", img)
    assert ok
    return buf.tobytes()


@pytest.fixture
def noise_png() -> bytes:
    """High-resolution, high-variance image that raises no tamper flags."""
    rng = np.random.default_rng(7)
    return _png(rng.integers(0, 256, size=(800, 1000, 3), dtype=np.uint8))


@pytest.fixture
def small_png() -> bytes:
    rng = np.random.default_rng(11)
    return _png(rng.integers(0, 256, size=(300, 400, 3), dtype=np.uint8))


@pytest.fixture
def flat_png() -> bytes:
    return _png(np.full((800, 1000, 3), 200, dtype=np.uint8))


@pytest.fixture
def fake_ocr():
    """Build a text extractor that ignores its input and returns fixed text."""
    def factory(text: str, confidence: float = 92.0):
        def extract(_content: bytes) -> ExtractedTextResult:
            return ExtractedTextResult(
                text=text,
                confidence=confidence,
                word_count=len(text.split()),
                line_count=len(text.splitlines()),
                processing_time_ms=1.0,
            )
        return extract
    return factory
