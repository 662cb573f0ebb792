"""Maps a received response onto the failure taxonomy.

Only responses that were actually received are classified here; network
failures never reach this module (see RequestExecutor).
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from fxsync.core.interfaces.block_detection import BlockDetectorPort
from fxsync.core.models.outcome import (
    ClientFatal,
    EdgeBlocked,
    RateLimited,
    ServerTransient,
    Success,
)
from fxsync.core.models.request_spec import RawResponse


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Parse a Retry-After header into milliseconds.

    Accepts delta-seconds (``"5"``, ``"1.5"``) and HTTP-dates. Returns None
    when the header is absent or unparseable; dates in the past yield 0.
    """
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds) or seconds < 0:
            return None
        return seconds * 1000.0
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0.0, (when - now).total_seconds() * 1000.0)


def body_preview(response: RawResponse, limit: int = 500) -> str:
    """First ``limit`` characters of the body; never raises."""
    return response.body_text()[:limit]


class OutcomeClassifier:
    """Classifies a received response as success, retryable or fatal."""

    def __init__(self, block_detector: BlockDetectorPort, preview_limit: int = 500):
        self._block_detector = block_detector
        self._preview_limit = preview_limit

    def classify(self, response: RawResponse):
        status = response.status

        if 200 <= status < 300:
            return Success(body=response.body)

        if status == 429:
            return RateLimited(retry_after_ms=parse_retry_after(response.header("retry-after")))

        if status == 403 and self._block_detector.is_blocked(response.body_text()):
            return EdgeBlocked()

        if 500 <= status < 600:
            return ServerTransient(status=status)

        return ClientFatal(status=status, body_preview=body_preview(response, self._preview_limit))
