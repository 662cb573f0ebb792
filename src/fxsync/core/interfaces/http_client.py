# fxsync/core/interfaces/http_client.py
from abc import ABC, abstractmethod

from fxsync.core.models.request_spec import RawResponse, RequestSpec


class HttpTransportPort(ABC):
    @abstractmethod
    async def __aenter__(self) -> "HttpTransportPort":
        """Async context manager entry method"""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit method"""
        pass

    @abstractmethod
    async def dispatch(self, request: RequestSpec) -> RawResponse:
        """Send one request and return the raw response.

        Returns for ANY status code received; status handling belongs to the
        caller. Failures that never produced a response (DNS, connection
        reset, timeout) are raised as TransportError.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the underlying HTTP session"""
        pass
