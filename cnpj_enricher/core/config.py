"""Application configuration helpers."""

import logging
import math
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_ENRICHMENT_API_URL = "https://minhareceita.org"


class ConfigError(RuntimeError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    enrichment_api_url: str = DEFAULT_ENRICHMENT_API_URL
    lookup_timeout: float = 30.0
    row_delay: float = 1.0
    output_dir: str = "."
    max_upload_bytes: int = 10 << 20
    input_encoding: str = "utf-8"
    port: int = 8080
    log_level: str = "INFO"


def _get_number_env(name: str, default: str, cast):
    raw = os.getenv(name) or default
    try:
        value = cast(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be numeric, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    enrichment_api_url = (os.getenv("ENRICHMENT_API_URL") or DEFAULT_ENRICHMENT_API_URL).rstrip("/")
    lookup_timeout = _get_number_env("LOOKUP_TIMEOUT_SECONDS", "30", float)
    row_delay = _get_number_env("ROW_DELAY_SECONDS", "1.0", float)
    output_dir = os.getenv("OUTPUT_DIR") or "."
    max_upload_bytes = _get_number_env("MAX_UPLOAD_BYTES", str(10 << 20), int)
    input_encoding = os.getenv("INPUT_ENCODING") or "utf-8"
    port = _get_number_env("PORT", "8080", int)
    log_level = (os.getenv("LOG_LEVEL") or "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"LOG_LEVEL must be a logging level name, got {log_level!r}")

    if lookup_timeout == 0:
        raise ConfigError("LOOKUP_TIMEOUT_SECONDS must be greater than zero")
    if row_delay == 0:
        logger.warning("ROW_DELAY_SECONDS is 0; lookups will not be throttled.")

    return Settings(
        enrichment_api_url=enrichment_api_url,
        lookup_timeout=lookup_timeout,
        row_delay=row_delay,
        output_dir=output_dir,
        max_upload_bytes=max_upload_bytes,
        input_encoding=input_encoding,
        port=port,
        log_level=log_level,
    )
