"""
Attachment collection helpers: flatten an item's files, de-duplicate them and
keep the PDFs.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterable

from .log import log_event


class AssetSource(str, enum.Enum):
    ITEM_ATTACHMENT = "ItemAttachment"
    UPDATE_ATTACHMENT = "UpdateAttachment"
    COLUMN_FILE = "ColumnFile"


@dataclass(frozen=True)
class Asset:
    name: str | None
    public_url: str | None
    file_extension: str | None = None
    source: AssetSource = AssetSource.ITEM_ATTACHMENT

    @classmethod
    def from_api(cls, raw: dict[str, Any], source: AssetSource) -> "Asset":
        return cls(
            name=raw.get("name"),
            public_url=raw.get("public_url"),
            file_extension=raw.get("file_extension"),
            source=source,
        )

    @property
    def display_name(self) -> str:
        return self.name or "unnamed"

    def details(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "extension": self.file_extension,
            "source": self.source.value,
            "hasUrl": bool(self.public_url),
        }


@dataclass(frozen=True)
class PdfCandidate:
    asset: Asset
    position: int  # 1-based
    total: int

    @property
    def name(self) -> str:
        return self.asset.name or ""

    @property
    def url(self) -> str:
        return self.asset.public_url or ""


def _column_assets(item: dict[str, Any]) -> list[Asset]:
    out: list[Asset] = []
    for col in item.get("column_values") or []:
        if (col or {}).get("type") != "file":
            continue
        for f in col.get("files") or []:
            asset = (f or {}).get("asset")
            if asset:
                out.append(Asset.from_api(asset, AssetSource.COLUMN_FILE))
    return out


def collect_assets(item: dict[str, Any]) -> list[Asset]:
    """Merge update attachments, item attachments and file-column files."""

    update_assets = [
        Asset.from_api(a, AssetSource.UPDATE_ATTACHMENT)
        for u in item.get("updates") or []
        for a in (u or {}).get("assets") or []
        if a
    ]
    item_assets = [
        Asset.from_api(a, AssetSource.ITEM_ATTACHMENT) for a in item.get("assets") or [] if a
    ]
    column_assets = _column_assets(item)
    for source, found in (
        (AssetSource.UPDATE_ATTACHMENT, update_assets),
        (AssetSource.ITEM_ATTACHMENT, item_assets),
        (AssetSource.COLUMN_FILE, column_assets),
    ):
        log_event("assets_found", source=source.value, names=[a.display_name for a in found])
    return update_assets + item_assets + column_assets


def dedupe_assets(assets: Iterable[Asset]) -> list[Asset]:
    """Drop repeats of the same (name, public_url); first occurrence wins."""

    seen: set[tuple[str | None, str | None]] = set()
    out: list[Asset] = []
    for a in assets:
        key = (a.name, a.public_url)
        if key in seen:
            continue
        seen.add(key)
        out.append(a)
    return out


def is_pdf(asset: Asset) -> bool:
    name = (asset.name or "").strip().lower()
    ext = (asset.file_extension or "").strip().lower().lstrip(".")
    return name.endswith(".pdf") or ext == "pdf"


def filter_pdfs(assets: Iterable[Asset]) -> list[PdfCandidate]:
    kept: list[Asset] = []
    for a in assets:
        if not a.name or not a.public_url:
            log_event("asset_skipped_missing_name_or_url", **a.details())
            continue
        if is_pdf(a):
            kept.append(a)
    total = len(kept)
    return [PdfCandidate(asset=a, position=i + 1, total=total) for i, a in enumerate(kept)]
