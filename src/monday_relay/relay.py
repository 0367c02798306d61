"""
PDF relay: pick a target item per PDF, then download and re-upload it.

Each PDF runs inside its own failure boundary so one bad file never stops
the rest. All pauses are fixed-duration throttles for monday.com rate limits.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any

from .assets import Asset, PdfCandidate
from .config import Settings
from .errors import RelayError
from .log import log_event
from .monday import MondayClient
from .naming import needs_first_suffix, suffixed_filename, suffixed_item_name
from .retry import call_with_retry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trigger:
    item_id: str
    board_id: str
    column_id: str


@dataclass(frozen=True)
class ProcessingOutcome:
    pdf_name: str
    filename: str
    target_item_id: str | None
    ok: bool
    created_item: bool = False
    item_renamed: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "pdf": self.pdf_name,
            "filename": self.filename,
            "targetItemId": self.target_item_id,
            "status": "uploaded" if self.ok else "failed",
        }
        if self.error:
            out["error"] = self.error
        return out


class Relay:
    def __init__(self, client: MondayClient, settings: Settings, rid: str | None = None) -> None:
        self.client = client
        self.settings = settings
        self.rid = rid

    # ----- Target item resolution -----
    def ensure_item_titled(self, trigger: Trigger, total: int) -> bool:
        """Append " [1ofN]" to the original item's name unless already there.

        Returns True when a rename was issued.
        """

        current = self.client.get_item_name(trigger.item_id)
        if not needs_first_suffix(current):
            log_event("rename_skipped", rid=self.rid, itemId=trigger.item_id, name=current)
            return False
        new_name = suffixed_item_name(current, 1, total)
        self.client.rename_item(trigger.board_id, trigger.item_id, new_name)
        log_event("item_renamed", rid=self.rid, itemId=trigger.item_id, name=new_name)
        time.sleep(self.settings.mutation_delay_seconds)
        return True

    def create_split_item(self, trigger: Trigger, pdf: PdfCandidate) -> str:
        current = self.client.get_item_name(trigger.item_id)
        name = suffixed_item_name(current, pdf.position, pdf.total)
        new_id = self.client.create_item(trigger.board_id, name)
        log_event("item_created", rid=self.rid, boardId=trigger.board_id, itemId=new_id, name=name)
        time.sleep(self.settings.mutation_delay_seconds)
        return new_id

    def resolve_target(self, trigger: Trigger, pdf: PdfCandidate) -> tuple[str, bool, bool]:
        """Return (target item id, newly created, original item renamed)."""

        if pdf.total == 1:
            return trigger.item_id, False, False
        if pdf.position == 1:
            renamed = self.ensure_item_titled(trigger, pdf.total)
            return trigger.item_id, False, renamed
        return self.create_split_item(trigger, pdf), True, False

    # ----- Transfer -----
    def transfer(self, pdf: PdfCandidate, target_item_id: str, filename: str, column_id: str) -> None:
        s = self.settings
        content = call_with_retry(
            lambda: self.client.download(pdf.url),
            attempts=s.transfer_max_attempts,
            delay_seconds=s.download_retry_delay_seconds,
            kind="download",
            rid=self.rid,
            pdf=pdf.name,
        )
        call_with_retry(
            lambda: self.client.add_file_to_column(target_item_id, column_id, filename, content),
            attempts=s.transfer_max_attempts,
            delay_seconds=s.upload_retry_delay_seconds,
            kind="upload",
            rid=self.rid,
            filename=filename,
        )
        log_event(
            "uploaded",
            rid=self.rid,
            filename=filename,
            itemId=target_item_id,
            bytes=len(content),
        )

    def process(self, trigger: Trigger, pdf: PdfCandidate) -> ProcessingOutcome:
        filename = suffixed_filename(pdf.name, pdf.position, pdf.total)
        target: str | None = None
        created = renamed = False
        log_event(
            "pdf_processing",
            rid=self.rid,
            position=pdf.position,
            total=pdf.total,
            filename=filename,
            source=pdf.asset.source.value,
        )
        try:
            target, created, renamed = self.resolve_target(trigger, pdf)
            self.transfer(pdf, target, filename, trigger.column_id)
        except RelayError as e:
            log_event(
                "pdf_failed",
                level=logging.ERROR,
                rid=self.rid,
                pdf=pdf.name,
                error=str(e),
                detail=e.detail,
            )
            return ProcessingOutcome(pdf.name, filename, target, False, created, renamed, str(e))
        except Exception as e:
            logger.exception("Unexpected error processing %s", pdf.name)
            return ProcessingOutcome(pdf.name, filename, target, False, created, renamed, str(e))
        return ProcessingOutcome(pdf.name, filename, target, True, created, renamed)

    def run(self, trigger: Trigger, pdfs: list[PdfCandidate]) -> list[ProcessingOutcome]:
        """Process PDFs strictly in order, pausing between successive files."""

        outcomes: list[ProcessingOutcome] = []
        for i, pdf in enumerate(pdfs):
            outcomes.append(self.process(trigger, pdf))
            if i < len(pdfs) - 1:
                time.sleep(self.settings.between_pdf_delay_seconds)
        return outcomes


# ----- Response bodies -----
SEARCHED_LOCATIONS = ["updates.assets", "item.assets", "column_values.files"]


def no_pdfs_summary(assets: list[Asset]) -> dict[str, Any]:
    return {
        "message": "No PDF files found in item files.",
        "allFiles": [a.display_name for a in assets],
        "fileDetails": [a.details() for a in assets],
        "totalFiles": len(assets),
        "totalPDFs": 0,
        "searchedLocations": SEARCHED_LOCATIONS,
    }


def build_summary(
    pdfs: list[PdfCandidate], outcomes: list[ProcessingOutcome], assets: list[Asset]
) -> dict[str, Any]:
    total = len(pdfs)
    failed = [o for o in outcomes if not o.ok]
    created = sum(1 for o in outcomes if o.created_item)
    if total == 1:
        message = (
            "Processed 1 PDF file successfully."
            if not failed
            else "Failed to process 1 PDF file."
        )
    else:
        clauses = []
        if any(o.item_renamed for o in outcomes):
            clauses.append(f"Original item updated with [1of{total}] suffix")
        clauses.append(f"{created} new items created")
        message = f"Processed {total} PDF files. " + ", ".join(clauses) + "."
        if failed:
            message += f" {len(failed)} of {total} failed."
    return {
        "message": message,
        "processedPDFs": [o.pdf_name for o in outcomes if o.ok],
        "failedPDFs": [{"name": o.pdf_name, "error": o.error} for o in failed],
        "totalPDFs": total,
        "ignoredFiles": len(assets) - total,
        "allFilesFound": [a.display_name for a in assets],
        "results": [o.to_dict() for o in outcomes],
    }
