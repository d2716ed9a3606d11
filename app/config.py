# app/config.py
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_API_HOST = "https://api.replicate.com"
# SDXL-Lightning
DEFAULT_IMAGE_MODEL_VERSION = "39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
# LLaVA-13b
DEFAULT_CAPTION_MODEL_VERSION = "2e1dddc8621f72155f24cf2e0adbde548458d3cab9f00c0139eea840d0ac4746"
DEFAULT_CAPTION_PROMPT = "Write a short, exciting, one-sentence caption for this image."


def _optional_float(name: str) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    value = float(raw)
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at startup and never mutated."""

    api_token: Optional[str] = None
    api_host: str = DEFAULT_API_HOST
    image_model_version: str = DEFAULT_IMAGE_MODEL_VERSION
    caption_model_version: str = DEFAULT_CAPTION_MODEL_VERSION
    caption_prompt: str = DEFAULT_CAPTION_PROMPT
    # seconds between status checks of a pending prediction
    poll_interval: float = 1.0
    # None means poll until the prediction reaches a terminal status
    poll_timeout: Optional[float] = None
    http_timeout: float = 60.0
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @property
    def predictions_url(self) -> str:
        return f"{self.api_host.rstrip('/')}/v1/predictions"


def load_settings() -> Settings:
    load_dotenv(find_dotenv(usecwd=True))
    origins = os.environ.get("CORS_ORIGINS", "")
    return Settings(
        api_token=os.environ.get("REPLICATE_API_TOKEN") or None,
        api_host=os.environ.get("REPLICATE_API_HOST", DEFAULT_API_HOST),
        image_model_version=os.environ.get("IMAGE_MODEL_VERSION", DEFAULT_IMAGE_MODEL_VERSION),
        caption_model_version=os.environ.get("CAPTION_MODEL_VERSION", DEFAULT_CAPTION_MODEL_VERSION),
        caption_prompt=os.environ.get("CAPTION_PROMPT", DEFAULT_CAPTION_PROMPT),
        poll_interval=float(os.environ.get("REPLICATE_POLL_INTERVAL", "1.0")),
        poll_timeout=_optional_float("REPLICATE_POLL_TIMEOUT"),
        http_timeout=float(os.environ.get("HTTP_TIMEOUT", "60")),
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3001")),
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()
