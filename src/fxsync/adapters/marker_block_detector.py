from typing import Iterable

# Wording seen on Cloudflare denial pages served in front of the CRM API.
DEFAULT_BLOCK_MARKERS = (
    "cloudflare",
    "error 1006",
    "access denied",
    "banned your ip address",
)


class MarkerBlockDetector:
    """Flags a body as an edge block when it contains any known marker.

    Matching is a case-insensitive substring test on the raw text.
    """

    def __init__(self, markers: Iterable[str] = DEFAULT_BLOCK_MARKERS):
        self.markers = tuple(marker.lower() for marker in markers if marker)

    def is_blocked(self, body_text: str) -> bool:
        if not body_text:
            return False
        lowered = body_text.lower()
        return any(marker in lowered for marker in self.markers)
