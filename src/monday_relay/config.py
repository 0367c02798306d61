"""
Configuration helpers and defaults.

Centralize tunables (endpoints, timeouts, retry and throttle pauses) to avoid
magic numbers in code/tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_API_URL = "https://api.monday.com/v2"
DEFAULT_FILE_URL = "https://api.monday.com/v2/file"


def _env(name: str, default: str | None = None) -> str | None:
    v = os.getenv(name)
    return v if v is not None else default


def _env_float(name: str, default: float) -> float:
    raw = _env(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    api_url: str
    file_url: str
    api_version: str | None
    secret_name: str | None
    webhook_shared_secret: str | None
    query_timeout_seconds: float
    upload_timeout_seconds: float
    transfer_max_attempts: int
    download_retry_delay_seconds: float
    upload_retry_delay_seconds: float
    mutation_delay_seconds: float
    between_pdf_delay_seconds: float
    port: int


def load_settings() -> Settings:
    """Load settings from environment with safe defaults for local tests."""

    return Settings(
        api_url=_env("MONDAY_API_URL") or DEFAULT_API_URL,
        file_url=_env("MONDAY_FILE_URL") or DEFAULT_FILE_URL,
        api_version=_env("MONDAY_API_VERSION") or None,
        secret_name=_env("MONDAY_SECRET_NAME") or None,
        webhook_shared_secret=_env("WEBHOOK_SHARED_SECRET") or None,
        query_timeout_seconds=_env_float("QUERY_TIMEOUT_SECONDS", 30.0),
        upload_timeout_seconds=_env_float("UPLOAD_TIMEOUT_SECONDS", 60.0),
        transfer_max_attempts=max(1, int(_env("TRANSFER_MAX_ATTEMPTS", "3") or 3)),
        download_retry_delay_seconds=_env_float("DOWNLOAD_RETRY_DELAY_SECONDS", 2.0),
        upload_retry_delay_seconds=_env_float("UPLOAD_RETRY_DELAY_SECONDS", 3.0),
        mutation_delay_seconds=_env_float("MUTATION_DELAY_SECONDS", 1.0),
        between_pdf_delay_seconds=_env_float("BETWEEN_PDF_DELAY_SECONDS", 2.0),
        port=int(_env("PORT", "3000") or 3000),
    )
