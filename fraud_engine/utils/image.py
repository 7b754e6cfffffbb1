import io
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_DENSITY = 72.0


@dataclass
class ImageStats:
    width: int = 0
    height: int = 0
    density: float = 0.0
    format: Optional[str] = None
    channel_std_devs: List[float] = field(default_factory=list)
    error: Optional[str] = None


def decode_image(content: bytes) -> np.ndarray:
    """Decode raw bytes into a BGR array. Raises ValueError if the buffer is not an image."""
    if not content:
        raise ValueError("Empty image buffer")
    arr = np.frombuffer(content, dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if img is None:
        # Try PIL as fallback
        try:
            pil = Image.open(io.BytesIO(content)).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise ValueError(f"Unsupported or corrupt image: {e}") from e
        img = cv2.cvtColor(np.array(pil), cv2.COLOR_RGB2BGR)
    return img


def preprocess_for_ocr(img_bgr: np.ndarray) -> np.ndarray:
    gray = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2GRAY)
    gray = cv2.bilateralFilter(gray, 9, 75, 75)
    th = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_MEAN_C,
                               cv2.THRESH_BINARY, 31, 15)
    return th


def image_format(content: bytes) -> Optional[str]:
    try:
        with Image.open(io.BytesIO(content)) as pil:
            return (pil.format or "").lower() or None
    except (UnidentifiedImageError, OSError):
        return None


def _density(content: bytes) -> float:
    try:
        with Image.open(io.BytesIO(content)) as pil:
            dpi = pil.info.get("dpi")
    except (UnidentifiedImageError, OSError):
        return DEFAULT_DENSITY
    if dpi:
        return float(dpi[0]) or DEFAULT_DENSITY
    return DEFAULT_DENSITY


def image_stats(content: bytes) -> ImageStats:
    """
    Pixel statistics for tamper heuristics.

    Channel standard deviations are reported in RGB order. Never raises: a
    buffer that cannot be decoded yields a zeroed result with ``error`` set.
    """
    try:
        img = decode_image(content)
        h, w = img.shape[:2]
        _, std = cv2.meanStdDev(img)
        std_rgb = [float(s) for s in std.reshape(-1)[::-1]]
        return ImageStats(
            width=int(w),
            height=int(h),
            density=_density(content),
            format=image_format(content),
            channel_std_devs=std_rgb,
        )
    except Exception as e:
        logger.warning("Image statistics failed: %s", e)
        return ImageStats(error=str(e))
