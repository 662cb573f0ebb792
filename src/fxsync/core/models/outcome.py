"""Per-attempt outcome of a CRM call and the values derived from it.

Outcomes are produced fresh for every attempt and never persisted. The
variants form a tagged union discriminated on ``kind``.
"""

from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import BaseModel, Field


class _OutcomeBase(BaseModel):
    retryable: ClassVar[bool] = True
    # Which half of the executor observed the failure, used in retry logs.
    layer: ClassVar[str] = "crm"

    model_config = {"frozen": True}

    @property
    def status_or_error(self) -> str:
        raise NotImplementedError


class Success(_OutcomeBase):
    kind: Literal["success"] = "success"
    body: Optional[Any] = None

    retryable: ClassVar[bool] = False

    @property
    def status_or_error(self) -> str:
        return "ok"


class RateLimited(_OutcomeBase):
    kind: Literal["rate_limited"] = "rate_limited"
    retry_after_ms: Optional[float] = None

    @property
    def status_or_error(self) -> str:
        return "429 rate limit"


class EdgeBlocked(_OutcomeBase):
    kind: Literal["edge_blocked"] = "edge_blocked"

    @property
    def status_or_error(self) -> str:
        return "403 edge block"


class ServerTransient(_OutcomeBase):
    kind: Literal["server_transient"] = "server_transient"
    status: int

    @property
    def status_or_error(self) -> str:
        return f"{self.status} server error"


class ClientFatal(_OutcomeBase):
    kind: Literal["client_fatal"] = "client_fatal"
    status: int
    body_preview: str = ""

    retryable: ClassVar[bool] = False

    @property
    def status_or_error(self) -> str:
        return f"{self.status} client error"


class NetworkFailure(_OutcomeBase):
    kind: Literal["network_failure"] = "network_failure"
    detail: str

    layer: ClassVar[str] = "http"

    @property
    def status_or_error(self) -> str:
        return f"network error: {self.detail}"


Outcome = Annotated[
    Union[Success, RateLimited, EdgeBlocked, ServerTransient, ClientFatal, NetworkFailure],
    Field(discriminator="kind"),
]


class BackoffDecision(BaseModel):
    """Wait before the next attempt, or stop."""

    wait_ms: float = 0.0
    retry: bool = False

    model_config = {"frozen": True}


class RetryEvent(BaseModel):
    """What gets logged and sent to observers for one scheduled retry."""

    layer: str
    status_or_error: str
    wait_ms: float
    attempt: int
    ceiling: int
    method: str
    path: str

    model_config = {"frozen": True}
