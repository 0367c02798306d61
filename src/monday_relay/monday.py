"""
Minimal monday.com API client (v2 GraphQL + file endpoint).

GraphQL calls go through stdlib urllib; the multipart file upload uses httpx.
Every call is a typed GraphQLRequest. Ids and names travel as GraphQL
variables, except in the file upload, whose literals are validated/encoded.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

import httpx

from .config import DEFAULT_API_URL, DEFAULT_FILE_URL, Settings
from .errors import UpstreamError

USER_AGENT = "MondayPdfRelay/2.0"
PDF_CONTENT_TYPE = "application/pdf"

_ASSET_FIELDS = "public_url name file_extension"

ITEM_ASSETS_QUERY = f"""
query ($ids: [ID!]) {{
  items(ids: $ids) {{
    id
    name
    assets {{ {_ASSET_FIELDS} }}
    updates {{ assets {{ {_ASSET_FIELDS} }} }}
    column_values {{
      id
      type
      ... on FileValue {{
        files {{
          ... on FileAssetValue {{
            asset {{ {_ASSET_FIELDS} }}
          }}
        }}
      }}
    }}
  }}
}}
"""

ITEM_NAME_QUERY = """
query ($ids: [ID!]) {
  items(ids: $ids) { name }
}
"""

CREATE_ITEM_MUTATION = """
mutation ($boardId: ID!, $itemName: String!) {
  create_item(board_id: $boardId, item_name: $itemName) { id }
}
"""

RENAME_ITEM_MUTATION = """
mutation ($boardId: ID!, $itemId: ID!, $value: String!) {
  change_simple_column_value(
    board_id: $boardId, item_id: $itemId, column_id: "name", value: $value
  ) { id }
}
"""

ADD_FILE_MUTATION = """
mutation ($file: File!) {{
  add_file_to_column(file: $file, item_id: {item_id}, column_id: {column_id}) {{ id }}
}}
"""

# The file endpoint binds the upload to $file through this part name.
FILE_PART = "variables[file]"


@dataclass(frozen=True)
class GraphQLRequest:
    query: str
    variables: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> bytes:
        return json.dumps({"query": self.query, "variables": self.variables}).encode("utf-8")


def item_assets_request(item_id: str) -> GraphQLRequest:
    return GraphQLRequest(ITEM_ASSETS_QUERY, {"ids": [str(item_id)]})


def item_name_request(item_id: str) -> GraphQLRequest:
    return GraphQLRequest(ITEM_NAME_QUERY, {"ids": [str(item_id)]})


def create_item_request(board_id: str, item_name: str) -> GraphQLRequest:
    return GraphQLRequest(CREATE_ITEM_MUTATION, {"boardId": str(board_id), "itemName": item_name})


def rename_item_request(board_id: str, item_id: str, name: str) -> GraphQLRequest:
    return GraphQLRequest(
        RENAME_ITEM_MUTATION,
        {"boardId": str(board_id), "itemId": str(item_id), "value": name},
    )


def add_file_request(item_id: str, column_id: str) -> GraphQLRequest:
    """Upload mutation; $file is bound by the FILE_PART multipart field."""

    item_id = str(item_id)
    if not item_id.isdigit():
        raise UpstreamError(f"refusing upload to non-numeric item id {item_id!r}")
    # GraphQL string literals accept JSON string escaping
    query = ADD_FILE_MUTATION.format(item_id=item_id, column_id=json.dumps(str(column_id)))
    return GraphQLRequest(query)


class MondayClient:
    def __init__(self, api_key: str, settings: Settings | None = None) -> None:
        self.api_key = api_key
        self.api_url = settings.api_url if settings else DEFAULT_API_URL
        self.file_url = settings.file_url if settings else DEFAULT_FILE_URL
        self.api_version = settings.api_version if settings else None
        self.query_timeout = settings.query_timeout_seconds if settings else 30.0
        self.upload_timeout = settings.upload_timeout_seconds if settings else 60.0

    # ----- Helpers -----
    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {"User-Agent": USER_AGENT, "Authorization": self.api_key}
        if content_type:
            headers["Content-Type"] = content_type
        if self.api_version:
            headers["API-Version"] = self.api_version
        return headers

    def _open(self, req: urllib.request.Request, timeout: float, what: str) -> bytes:
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
                return resp.read()
        except urllib.error.HTTPError as e:
            body = e.read()[:500].decode("utf-8", "replace") if e.fp else ""
            raise UpstreamError(f"{what} failed: HTTP {e.code}", detail=body or None) from e
        except urllib.error.URLError as e:
            raise UpstreamError(f"{what} failed: {e.reason}") from e
        except OSError as e:
            # socket timeouts surface here
            raise UpstreamError(f"{what} failed: {e}") from e

    def _decode(self, raw: bytes, what: str) -> dict[str, Any]:
        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise UpstreamError(f"{what} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise UpstreamError(f"{what} returned unexpected payload")
        errors = data.get("errors") or data.get("error_message")
        if errors:
            raise UpstreamError(f"{what} returned errors", detail=json.dumps(errors, ensure_ascii=False))
        return data.get("data") or {}

    # ----- GraphQL -----
    def execute(self, request: GraphQLRequest, what: str = "monday query") -> dict[str, Any]:
        req = urllib.request.Request(
            self.api_url,
            data=request.to_json(),
            headers=self._headers("application/json"),
            method="POST",
        )
        return self._decode(self._open(req, self.query_timeout, what), what)

    def get_item(self, item_id: str) -> dict[str, Any] | None:
        data = self.execute(item_assets_request(item_id), "item query")
        items = data.get("items") or []
        return items[0] if items else None

    def get_item_name(self, item_id: str) -> str | None:
        data = self.execute(item_name_request(item_id), "item name query")
        items = data.get("items") or []
        return (items[0] or {}).get("name") if items else None

    def create_item(self, board_id: str, item_name: str) -> str:
        data = self.execute(create_item_request(board_id, item_name), "create_item")
        new_id = (data.get("create_item") or {}).get("id")
        if not new_id:
            raise UpstreamError("create_item returned no id")
        return str(new_id)

    def rename_item(self, board_id: str, item_id: str, name: str) -> None:
        self.execute(rename_item_request(board_id, item_id, name), "rename item")

    # ----- Files -----
    def download(self, url: str) -> bytes:
        req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
        return self._open(req, self.query_timeout, "download")

    def add_file_to_column(
        self, item_id: str, column_id: str, filename: str, content: bytes
    ) -> dict[str, Any]:
        request = add_file_request(item_id, column_id)
        try:
            resp = httpx.post(
                self.file_url,
                data={"query": request.query},
                files={FILE_PART: (filename, content, PDF_CONTENT_TYPE)},
                headers=self._headers(),
                timeout=self.upload_timeout,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:500]
            raise UpstreamError(
                f"upload failed: HTTP {e.response.status_code}", detail=detail or None
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError(f"upload failed: {e}") from e
        data = self._decode(resp.content, "upload")
        return data.get("add_file_to_column") or {}
