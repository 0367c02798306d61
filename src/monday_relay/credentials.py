"""
API key resolution: environment first, then AWS Secrets Manager.
"""

from __future__ import annotations

import importlib
import json
import os

from .config import Settings
from .errors import ConfigurationError

API_KEY_NAME = "MONDAY_API_KEY"


def _boto3():
    # Allow tests to monkeypatch module-level `boto3` symbol.
    return globals().get("boto3") or importlib.import_module("boto3")


def _from_secrets_manager(secret_name: str) -> str | None:
    client = _boto3().client("secretsmanager")
    resp = client.get_secret_value(SecretId=secret_name)
    raw = resp.get("SecretString") or ""
    try:
        data = json.loads(raw)
    except ValueError:
        # Plain-text secret holding the key itself
        return raw.strip() or None
    if isinstance(data, dict):
        val = data.get(API_KEY_NAME)
        return str(val) if val else None
    if isinstance(data, str):
        return data.strip() or None
    return raw.strip() or None


def load_api_key(settings: Settings) -> str:
    """Return the monday.com API key or raise ConfigurationError."""

    api_key = os.getenv(API_KEY_NAME)
    if api_key:
        return api_key
    if settings.secret_name:
        try:
            api_key = _from_secrets_manager(settings.secret_name)
        except Exception as e:
            raise ConfigurationError(
                "Monday API key could not be loaded", detail=str(e)
            ) from e
        if api_key:
            return api_key
    raise ConfigurationError("Monday API key not configured")
