"""Configuration models for core components.

Pydantic models that replace module-level constants with explicit,
immutable configuration passed in at construction time.
"""

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator

from fxsync.core.exceptions import ConfigurationError


def _invalid_settings(exc: ValidationError) -> ConfigurationError:
    fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
    return ConfigurationError(f"Invalid settings: {fields}")


class ExecutorConfig(BaseModel):
    """Configuration for RequestExecutor behavior.

    Attributes:
        token: Bearer token for the CRM API (required, non-empty)
        base_url: Scheme and host prepended to request paths
        max_attempts: Retry budget per logical call, first attempt included
        call_timeout_ms: Timeout of a single dispatch
        backoff_cap_ms: Ceiling of the exponential backoff branches
        backoff_base_ms: Wait after the first failed attempt, doubled per attempt
        jitter_ms: Upper bound of the random addition to generic waits
        edge_block_step_ms: Per-attempt increment of the edge-block wait
        edge_block_cap_ms: Ceiling of the edge-block wait
        edge_block_jitter_ms: Upper bound of the random addition to edge-block waits
        body_preview_limit: Characters of the response body kept in errors
    """

    token: SecretStr
    base_url: str = "https://api.hubapi.com"
    max_attempts: int = Field(default=6, ge=1, le=20)
    call_timeout_ms: int = Field(default=20000, gt=0)
    backoff_cap_ms: float = Field(default=30000, gt=0)
    backoff_base_ms: float = Field(default=2000, gt=0)
    jitter_ms: float = Field(default=1500, ge=0)
    edge_block_step_ms: float = Field(default=10000, gt=0)
    edge_block_cap_ms: float = Field(default=120000, gt=0)
    edge_block_jitter_ms: float = Field(default=3000, ge=0)
    body_preview_limit: int = Field(default=500, ge=0)

    model_config = {
        "frozen": True,  # Immutable after creation
        "extra": "forbid",  # Reject unknown fields
    }

    @field_validator("token")
    @classmethod
    def token_not_blank(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("token must not be empty")
        return value

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_app_settings(cls, settings) -> "ExecutorConfig":
        """Factory method to construct config from FxSyncSettings instance.

        Raises:
            ConfigurationError: If HUBSPOT_TOKEN is unset or blank, or a
                numeric setting is out of range
        """
        token = settings.HUBSPOT_TOKEN
        if token is None or not token.get_secret_value().strip():
            raise ConfigurationError("Missing environment variable HUBSPOT_TOKEN")
        try:
            return cls(
                token=token,
                base_url=settings.HUBSPOT_BASE_URL,
                max_attempts=settings.FXSYNC_MAX_ATTEMPTS,
                call_timeout_ms=settings.FXSYNC_CALL_TIMEOUT_MS,
                backoff_cap_ms=settings.FXSYNC_BACKOFF_CAP_MS,
            )
        except ValidationError as exc:
            raise _invalid_settings(exc) from exc


class SyncConfig(BaseModel):
    """Configuration for RateSyncService.

    Attributes:
        lookback_minutes: Window of recently modified records to refresh
        amount_property: Records without a value here are skipped
        rate_property: Receives the exchange rate
        rate_date_property: Receives the date of the rate
        search_limit: Page size of the search request
    """

    lookback_minutes: int = Field(default=10, gt=0)
    amount_property: str = "amount"
    rate_property: str = "tc_presupuesto_ars_usd"
    rate_date_property: str = "fecha_tc_presupuesto"
    search_limit: int = Field(default=100, ge=1, le=200)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @classmethod
    def from_app_settings(cls, settings) -> "SyncConfig":
        try:
            return cls(
                lookback_minutes=settings.FXSYNC_LOOKBACK_MINUTES,
                amount_property=settings.FXSYNC_AMOUNT_PROPERTY,
                rate_property=settings.FXSYNC_RATE_PROPERTY,
                rate_date_property=settings.FXSYNC_RATE_DATE_PROPERTY,
                search_limit=settings.FXSYNC_SEARCH_LIMIT,
            )
        except ValidationError as exc:
            raise _invalid_settings(exc) from exc
