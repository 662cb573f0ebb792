from typing import Protocol


class BlockDetectorPort(Protocol):
    """Decides whether a response body is an edge-proxy/anti-bot denial page.

    The marker set is coupled to third-party error page wording, so it lives
    behind this port and can change without touching the retry logic.
    """

    def is_blocked(self, body_text: str) -> bool:  # pragma: no cover - protocol
        ...
