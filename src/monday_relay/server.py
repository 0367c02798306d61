"""
Local FastAPI app that feeds requests to ``lambda_handler`` as Function URL
events. ``main()`` serves it with uvicorn on PORT (default 3000).
"""

from __future__ import annotations

import logging
import os
import urllib.parse
import uuid
from types import SimpleNamespace
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool

from . import __version__
from .config import load_settings
from .handler import lambda_handler
from .log import configure_logging, log_event

logger = logging.getLogger(__name__)


def to_event(method: str, target: str, headers: dict[str, str], body: bytes) -> dict[str, Any]:
    """Build a Lambda Function URL (payload v2) event from a raw request."""

    parsed = urllib.parse.urlsplit(target)
    query = dict(urllib.parse.parse_qsl(parsed.query))
    return {
        "rawPath": parsed.path or "/",
        "rawQueryString": parsed.query,
        "queryStringParameters": query or None,
        "headers": headers,
        "requestContext": {"http": {"method": method.upper(), "path": parsed.path or "/"}},
        "body": body.decode("utf-8", "replace") if body else None,
        "isBase64Encoded": False,
    }


app = FastAPI(
    title="monday.com PDF relay",
    version=__version__,
    description="Splits an item's PDF attachments across monday.com items.",
)


async def _relay(request: Request) -> Response:
    target = request.url.path
    if request.url.query:
        target += "?" + request.url.query
    event = to_event(request.method, target, dict(request.headers), await request.body())
    context = SimpleNamespace(aws_request_id=str(uuid.uuid4()))
    # The relay blocks on remote calls and throttle pauses.
    res = await run_in_threadpool(lambda_handler, event, context)
    return Response(
        content=res.get("body") or "",
        status_code=res.get("statusCode", 200),
        headers=res.get("headers") or {},
    )


app.add_api_route("/", _relay, methods=["GET"], tags=["system"])
app.add_api_route("/health", _relay, methods=["GET"], tags=["system"])
app.add_api_route("/file-handler", _relay, methods=["POST"], tags=["relay"])


def main() -> None:
    configure_logging()
    settings = load_settings()
    log_event(
        "server_started",
        port=settings.port,
        health=f"http://localhost:{settings.port}/health",
        api_key_configured=bool(os.getenv("MONDAY_API_KEY") or settings.secret_name),
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)  # nosec B104


if __name__ == "__main__":
    main()
