# fxsync/adapters/aiohttp_transport_adapter.py
import asyncio
import json
import aiohttp
from typing import Any, Optional

from fxsync.core.interfaces.http_client import HttpTransportPort
from fxsync.core.exceptions import TransportError
from fxsync.core.models.request_spec import RawResponse, RequestSpec
from fxsync.core.settings import logger


def _decode_body(text: str, content_type: str) -> Optional[Any]:
    """Parse JSON payloads; keep anything else (HTML block pages) as text."""
    if not text:
        return None
    if "json" in (content_type or ""):
        try:
            return json.loads(text)
        except ValueError:
            logger.debug("Response declared %s but is not valid JSON", content_type)
    return text


class AioHttpTransportAdapter(HttpTransportPort):
    """Single-shot HTTP dispatch over one aiohttp session.

    Returns every received response unchanged, whatever its status. Only
    failures that produced no response are translated into TransportError.
    """

    def __init__(self, sock_connect_timeout: float = 5.0):
        self._session: Optional[aiohttp.ClientSession] = None
        # Connect phase is bounded separately so a dead host fails fast even
        # when the request allows a long total.
        self._sock_connect: float = sock_connect_timeout

    async def __aenter__(self):
        """Async context manager entry"""
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
        return False

    async def dispatch(self, request: RequestSpec) -> RawResponse:
        if self._session is None:
            raise RuntimeError("HTTP client not initialized. Use 'async with' context manager.")

        total = request.timeout_ms / 1000.0
        client_timeout = aiohttp.ClientTimeout(
            total=total,
            sock_connect=min(self._sock_connect, total),
        )

        try:
            async with self._session.request(
                request.method.value,
                request.url,
                headers=dict(request.headers),
                data=request.encoded_body(),
                timeout=client_timeout,
            ) as response:
                text = await response.text(errors="replace")
                return RawResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=_decode_body(text, response.content_type),
                )

        except asyncio.TimeoutError as exc:
            logger.debug("Timeout after %sms. URL: %s", request.timeout_ms, request.url)
            raise TransportError(f"timeout after {request.timeout_ms}ms") from exc

        except aiohttp.ClientError as client_error:
            detail = str(client_error) or type(client_error).__name__
            logger.debug("Connection error. URL: %s, Error: %s", request.url, detail)
            raise TransportError(detail) from client_error

    async def close(self) -> None:
        """Close the session"""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
