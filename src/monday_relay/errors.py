"""
Error kinds raised by the relay, each mapped to the HTTP status the handler
answers with when it escapes the request boundary.
"""

from __future__ import annotations


class RelayError(Exception):
    status = 500
    title = "Error processing PDF files"

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class ValidationError(RelayError):
    status = 400
    title = "Missing required input fields: itemId, boardId, columnId"


class UnauthorizedError(RelayError):
    status = 401
    title = "unauthorized"


class NotFoundError(RelayError):
    status = 404
    title = "Item not found"


class ConfigurationError(RelayError):
    status = 500
    title = "Monday API key not configured"


class UpstreamError(RelayError):
    """Remote API, network or timeout failure."""

    status = 500
    title = "Error processing PDF files"
