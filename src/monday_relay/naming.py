"""
Positional "[iofN]" naming for split items and uploaded files.
"""

from __future__ import annotations

import re

RENAME_GUARD = "[1of"
FALLBACK_ITEM_NAME = "Item"

_FIRST_SUFFIX_RE = re.compile(r"\s*\[1of\d+\]\s*$")


def position_suffix(position: int, total: int) -> str:
    """Return " [iofN]" for multi-PDF items, "" when there is only one."""
    if total <= 1:
        return ""
    return f" [{position}of{total}]"


def suffixed_filename(filename: str, position: int, total: int) -> str:
    suffix = position_suffix(position, total)
    if not suffix:
        return filename
    name = filename.strip()
    if name.lower().endswith(".pdf"):
        return f"{name[:-4]}{suffix}{name[-4:]}"
    return f"{name}{suffix}"


def base_item_name(name: str | None) -> str:
    """Item name without the " [1ofN]" suffix a previous rename appended."""
    base = _FIRST_SUFFIX_RE.sub("", name or "")
    return base or FALLBACK_ITEM_NAME


def suffixed_item_name(name: str | None, position: int, total: int) -> str:
    return f"{base_item_name(name)}{position_suffix(position, total)}"


def needs_first_suffix(current_name: str | None) -> bool:
    # Guard against renaming again on webhook redelivery.
    return RENAME_GUARD not in (current_name or "")
