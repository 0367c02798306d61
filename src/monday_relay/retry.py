"""
Bounded retry with a fixed pause between attempts (no backoff, no jitter).
"""

from __future__ import annotations

import time
from typing import Any, Callable, TypeVar

from .errors import UpstreamError
from .log import log_event

T = TypeVar("T")


def call_with_retry(
    fn: Callable[[], T],
    *,
    attempts: int,
    delay_seconds: float,
    kind: str,
    **log_fields: Any,
) -> T:
    """Call ``fn`` up to ``attempts`` times, retrying only on UpstreamError."""

    last_err: UpstreamError | None = None
    attempts = max(1, attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except UpstreamError as e:
            last_err = e
            log_event(
                f"{kind}_attempt_failed",
                attempt=attempt,
                max_attempts=attempts,
                error=str(e),
                **log_fields,
            )
            if attempt < attempts:
                time.sleep(delay_seconds)
    raise last_err or UpstreamError(f"{kind} failed")
