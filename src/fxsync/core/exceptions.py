from typing import Optional


class FxSyncError(Exception):
    """Base exception for the rate sync job."""


class ConfigurationError(FxSyncError):
    """Raised when a required setting is missing or invalid.

    A configuration error is a fatal precondition, never retried.
    """


class TransportError(FxSyncError):
    """Raised by transports when no HTTP response was obtained.

    Covers DNS failures, refused or reset connections and timeouts.

    Attributes:
        detail: Human-readable description of the network failure
    """
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ExchangeRateError(FxSyncError):
    """Raised when the exchange-rate source cannot provide a usable rate."""


class CrmResponseError(FxSyncError):
    """Raised when a successful CRM response does not have the expected shape.

    Attributes:
        path: URL path of the call that returned the payload
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path} -> unexpected response: {reason}")


# Terminal failures of the request executor. Only these cross its boundary.

class CrmRequestError(FxSyncError):
    """Base exception for CRM calls that could not be settled.

    Attributes:
        method: HTTP method of the failed call
        path: URL path of the failed call
    """
    def __init__(self, message: str, method: str, path: str):
        self.message = message
        self.method = method
        self.path = path
        super().__init__(message)


class ClientFatalError(CrmRequestError):
    """Raised on a 4xx response that retrying cannot fix.

    Attributes:
        status: HTTP status code received
        body_preview: Response body truncated for logging
    """
    def __init__(self, method: str, path: str, status: int, body_preview: str = ""):
        self.status = status
        self.body_preview = body_preview
        message = f"{method} {path} -> {status} | {body_preview}"
        super().__init__(message=message, method=method, path=path)


class RetryExhaustedError(CrmRequestError):
    """Raised when every attempt of the retry budget failed transiently.

    The last transport exception, if any, is chained as ``__cause__``.

    Attributes:
        attempts: Number of attempts made
        last_outcome: Outcome of the final attempt
    """
    def __init__(self, method: str, path: str, attempts: int, last_outcome: Optional[object] = None):
        self.attempts = attempts
        self.last_outcome = last_outcome
        message = f"{method} {path} -> failed after {attempts} attempts"
        label = getattr(last_outcome, "status_or_error", None)
        if label:
            message = f"{message} (last: {label})"
        super().__init__(message=message, method=method, path=path)


class RequestCancelledError(CrmRequestError):
    """Raised when the caller's cancellation token fires mid-call."""
    def __init__(self, method: str, path: str, attempts: int = 0):
        self.attempts = attempts
        message = f"{method} {path} -> cancelled after {attempts} attempts"
        super().__init__(message=message, method=method, path=path)
