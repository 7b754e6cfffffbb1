import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel


class Settings(BaseModel):
    # Telecom capability provider
    NETWORK_PROVIDER_MODE: Literal["live", "mock"] = os.getenv("NETWORK_PROVIDER_MODE", "live")
    NETWORK_BASE_URL: str = os.getenv("NETWORK_BASE_URL", "https://api.networkascode.nokia.com")
    NETWORK_CLIENT_ID: str | None = os.getenv("NETWORK_CLIENT_ID") or None
    NETWORK_CLIENT_SECRET: str | None = os.getenv("NETWORK_CLIENT_SECRET") or None
    NETWORK_PROVIDER_NAME: str = os.getenv("NETWORK_PROVIDER_NAME", "Nokia")
    NETWORK_TIMEOUT_SECONDS: float = float(os.getenv("NETWORK_TIMEOUT_SECONDS", "20"))
    TOKEN_SAFETY_BUFFER_SECONDS: int = int(os.getenv("TOKEN_SAFETY_BUFFER_SECONDS", "60"))

    # OCR
    OCR_LANG: str = os.getenv("OCR_LANG", "eng")
    OCR_PAGE_SEG_MODE: str = os.getenv("OCR_PAGE_SEG_MODE", "6")
    TESSERACT_CMD: str | None = os.getenv("TESSERACT_CMD") or None

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache
def get_settings() -> Settings:
    return Settings()
