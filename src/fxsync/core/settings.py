# Logging adapter for application-wide logging
from fxsync.adapters.logging_adapter import LoggingAdapter

from pydantic import SecretStr
from pydantic_settings import BaseSettings
from rich import print

from fxsync.core.interfaces.logging import LoggingPort

# using pydantic_settings to manage environment variables
# and do automatic type casting in a central place
class FxSyncSettings(BaseSettings):
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore"  # unknown environment variables are not ours
    }
    FXSYNC_LOG_LEVEL: str = "INFO"
    # Required; enforced by ExecutorConfig.from_app_settings
    HUBSPOT_TOKEN: SecretStr | None = None
    HUBSPOT_BASE_URL: str = "https://api.hubapi.com"
    DOLAR_API_URL: str = "https://dolarapi.com/v1/dolares/oficial"
    DOLAR_API_TIMEOUT_MS: int = 15000
    FXSYNC_MAX_ATTEMPTS: int = 6
    FXSYNC_CALL_TIMEOUT_MS: int = 20000
    FXSYNC_BACKOFF_CAP_MS: int = 30000
    FXSYNC_LOOKBACK_MINUTES: int = 10
    # Random delay before the run starts, spreads out concurrently scheduled jobs
    FXSYNC_START_JITTER_MS: int = 20000
    FXSYNC_OBJECT_TYPE: str = "deals"
    FXSYNC_AMOUNT_PROPERTY: str = "amount"
    FXSYNC_RATE_PROPERTY: str = "tc_presupuesto_ars_usd"
    FXSYNC_RATE_DATE_PROPERTY: str = "fecha_tc_presupuesto"
    FXSYNC_SEARCH_LIMIT: int = 100

    def print_settings(self, logger: LoggingPort):
        """Prints the settings for debugging purposes"""
        logger.info("FxSync Settings:")
        print(self)


app_settings = FxSyncSettings()

logger = LoggingAdapter("fxsync", app_settings.FXSYNC_LOG_LEVEL)
