import logging
import time
from collections import OrderedDict
from typing import List

import pytesseract
from PIL import Image

from fraud_engine.config import get_settings
from fraud_engine.schemas import ExtractedTextResult
from fraud_engine.utils.image import decode_image, preprocess_for_ocr

logger = logging.getLogger(__name__)

# Optional: allow overriding tesseract path via env var on Windows
TESS_CMD = get_settings().TESSERACT_CMD
if TESS_CMD:
    pytesseract.pytesseract.tesseract_cmd = TESS_CMD


def _word_confidences(data: dict) -> List[float]:
    confs = []
    for text, conf in zip(data.get("text", []), data.get("conf", [])):
        if not text or not text.strip():
            continue
        try:
            value = float(conf)
        except (TypeError, ValueError):
            continue
        if value >= 0:
            confs.append(value)
    return confs


def _lines(data: dict) -> List[str]:
    # tesseract reports word boxes; regroup them into reading-order lines
    lines: "OrderedDict[tuple, List[str]]" = OrderedDict()
    keys = zip(data.get("block_num", []), data.get("par_num", []), data.get("line_num", []))
    for key, word in zip(keys, data.get("text", [])):
        if word and word.strip():
            lines.setdefault(key, []).append(word.strip())
    return [" ".join(words) for words in lines.values()]


def extract_text(content: bytes) -> ExtractedTextResult:
    """
    Run Tesseract over a document image.

    Never raises: any decoding or OCR failure yields an empty result with
    confidence 0 and ``error`` set.
    """
    settings = get_settings()
    start = time.perf_counter()
    try:
        img = decode_image(content)
        pre = preprocess_for_ocr(img)
        pil = Image.fromarray(pre)
        data = pytesseract.image_to_data(
            pil,
            output_type=pytesseract.Output.DICT,
            lang=settings.OCR_LANG,
            config=f"--psm {settings.OCR_PAGE_SEG_MODE}",
        )
    except Exception as e:
        logger.warning("OCR extraction failed: %s", e)
        return ExtractedTextResult(error=str(e))

    lines = _lines(data)
    confs = _word_confidences(data)
    confidence = sum(confs) / len(confs) if confs else 0.0
    elapsed_ms = (time.perf_counter() - start) * 1000

    result = ExtractedTextResult(
        text="\n".join(lines).strip(),
        confidence=max(0.0, min(100.0, confidence)),
        word_count=sum(len(line.split()) for line in lines),
        line_count=len(lines),
        processing_time_ms=round(elapsed_ms, 1),
    )
    logger.info(
        "OCR complete: %d words, %d lines, confidence %.1f, %.0fms",
        result.word_count, result.line_count, result.confidence, elapsed_ms,
    )
    return result
