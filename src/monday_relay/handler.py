"""
AWS Lambda handler for the monday.com PDF relay webhook.
"""

from __future__ import annotations

import base64
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from . import __version__
from .assets import collect_assets, dedupe_assets, filter_pdfs
from .config import Settings, load_settings
from .credentials import load_api_key
from .errors import NotFoundError, RelayError, UnauthorizedError, ValidationError
from .log import configure_logging, log_event, request_id
from .monday import MondayClient
from .relay import Relay, Trigger, build_summary, no_pdfs_summary

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("itemId", "boardId", "columnId")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _response(status: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False),
    }


def _error_response(err: RelayError) -> dict[str, Any]:
    details = str(err)
    if err.detail:
        details = f"{details}: {err.detail}"
    return _response(err.status, {"error": err.title, "details": details, "timestamp": _now_iso()})


def _get_body(event: dict[str, Any]) -> dict[str, Any]:
    body = event.get("body")
    try:
        if event.get("isBase64Encoded"):
            body = base64.b64decode(body or b"", validate=True)
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8")
        data = json.loads(body or "{}")
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _get_header(event: dict[str, Any], name: str) -> str | None:
    headers = event.get("headers") or {}
    for k, v in headers.items():
        if k.lower() == name.lower():
            return v
    return None


def _get_query_param(event: dict[str, Any], name: str) -> str | None:
    qs = event.get("queryStringParameters") or {}
    if isinstance(qs, dict):
        val = qs.get(name)
        if val is not None:
            return val
    # Fallback to rawQueryString parsing (API variations)
    raw = event.get("rawQueryString") or ""
    for part in raw.split("&"):
        if part.startswith(name + "="):
            return part.split("=", 1)[1]
    return None


def _method_and_path(event: dict[str, Any]) -> tuple[str, str]:
    http = (event.get("requestContext") or {}).get("http") or {}
    method = (http.get("method") or event.get("httpMethod") or "GET").upper()
    path = event.get("rawPath") or event.get("path") or "/"
    if len(path) > 1:
        path = path.rstrip("/")
    return method, path


def _id_field(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    text = str(value).strip()
    return text if text.isdigit() else None


def parse_trigger(payload: dict[str, Any]) -> Trigger:
    """Pull itemId/boardId/columnId out of ``payload.inputFields``."""

    inner = payload.get("payload") or {}
    fields = inner.get("inputFields") if isinstance(inner, dict) else None
    if not isinstance(fields, dict):
        fields = {}
    missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise ValidationError("missing " + ", ".join(missing))
    item_id = _id_field(fields["itemId"])
    board_id = _id_field(fields["boardId"])
    if item_id is None or board_id is None:
        raise ValidationError("itemId and boardId must be numeric")
    return Trigger(item_id=item_id, board_id=board_id, column_id=str(fields["columnId"]))


# ----- Routes -----
def _health() -> dict[str, Any]:
    return _response(200, {"status": "healthy", "timestamp": _now_iso(), "version": __version__})


def _index() -> dict[str, Any]:
    return _response(
        200,
        {
            "message": "File Transfer App - Monday.com PDF Handler",
            "version": __version__,
            "endpoints": {"health": "/health", "fileHandler": "/file-handler (POST)"},
        },
    )


def _check_secret(event: dict[str, Any], settings: Settings) -> None:
    # Accept either header `X-Webhook-Secret` or query `?token=` (Function URL)
    if not settings.webhook_shared_secret:
        return
    supplied = _get_header(event, "X-Webhook-Secret") or _get_query_param(event, "token")
    if supplied != settings.webhook_shared_secret:
        raise UnauthorizedError("token mismatch")


def handle_file_request(event: dict[str, Any], settings: Settings, rid: str | None) -> dict[str, Any]:
    start_ts = time.time()
    try:
        _check_secret(event, settings)
        trigger = parse_trigger(_get_body(event))
        log_event(
            "trigger_received",
            rid=rid,
            itemId=trigger.item_id,
            boardId=trigger.board_id,
            columnId=trigger.column_id,
        )
        client = MondayClient(load_api_key(settings), settings)

        t0 = time.time()
        item = client.get_item(trigger.item_id)
        if not item:
            raise NotFoundError(f"no item with id {trigger.item_id}")
        assets = dedupe_assets(collect_assets(item))
        pdfs = filter_pdfs(assets)
        log_event(
            "assets_collected",
            rid=rid,
            itemId=trigger.item_id,
            files=[a.display_name for a in assets],
            pdfs=[p.name for p in pdfs],
            ignored=len(assets) - len(pdfs),
            ms=int((time.time() - t0) * 1000),
        )
        if not pdfs:
            log_event("no_pdfs_found", rid=rid, itemId=trigger.item_id)
            return _response(200, no_pdfs_summary(assets))

        outcomes = Relay(client, settings, rid).run(trigger, pdfs)
        summary = build_summary(pdfs, outcomes, assets)
    except RelayError as e:
        log_event(
            "request_failed",
            level=logging.WARNING if e.status < 500 else logging.ERROR,
            rid=rid,
            kind=type(e).__name__,
            error=str(e),
            detail=e.detail,
        )
        return _error_response(e)
    except Exception as e:
        logger.exception("Unexpected failure")
        return _response(
            500,
            {"error": "Error processing PDF files", "details": str(e), "timestamp": _now_iso()},
        )

    log_event(
        "ok",
        rid=rid,
        itemId=trigger.item_id,
        totalPDFs=summary["totalPDFs"],
        failed=len(summary["failedPDFs"]),
        ms_total=int((time.time() - start_ts) * 1000),
    )
    return _response(200, summary)


ROUTES = {
    "/": ("GET", lambda event, settings, rid: _index()),
    "/health": ("GET", lambda event, settings, rid: _health()),
    "/file-handler": ("POST", handle_file_request),
}


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    configure_logging()
    settings = load_settings()
    rid = request_id(context)
    method, path = _method_and_path(event)
    log_event("request", rid=rid, method=method, path=path)

    route = ROUTES.get(path)
    if route is None:
        return _response(404, {"error": "not found"})
    allowed, fn = route
    if method != allowed:
        return _response(405, {"error": "method not allowed", "allowed": allowed})
    return fn(event, settings, rid)
