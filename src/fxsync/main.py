# main.py
import asyncio
import random
import sys

from fxsync.adapters.aiohttp_transport_adapter import AioHttpTransportAdapter
from fxsync.adapters.dolarapi_adapter import DolarApiAdapter
from fxsync.adapters.hubspot_crm_adapter import HubSpotCrmAdapter
from fxsync.adapters.marker_block_detector import MarkerBlockDetector
from fxsync.adapters.retry_tenacity import TenacityRetryAdapter
from fxsync.core.config import ExecutorConfig, SyncConfig
from fxsync.core.exceptions import FxSyncError
from fxsync.core.logging_config import configure_logging, start_run
from fxsync.core.managers.request_executor import RequestExecutor
from fxsync.core.models.sync_report import SyncReport
from fxsync.core.services.rate_sync_service import RateSyncService
from fxsync.core.settings import FxSyncSettings, app_settings, logger


# main lives at the outermost layer (not in core)
# Instantiates all the concrete adapters
# Wires dependencies together
# Runs one sync

async def run_sync(settings: FxSyncSettings) -> SyncReport:
    executor_config = ExecutorConfig.from_app_settings(settings)
    sync_config = SyncConfig.from_app_settings(settings)

    # Spread out runs that a scheduler fires at the same instant
    start_jitter = random.uniform(0, settings.FXSYNC_START_JITTER_MS) / 1000.0
    logger.debug("Start jitter %.1fs", start_jitter)
    await asyncio.sleep(start_jitter)

    async with AioHttpTransportAdapter() as transport:
        executor = RequestExecutor(
            transport=transport,
            config=executor_config,
            retry_port=TenacityRetryAdapter(attempts=executor_config.max_attempts),
            block_detector=MarkerBlockDetector(),
        )
        service = RateSyncService(
            crm=HubSpotCrmAdapter(executor, object_type=settings.FXSYNC_OBJECT_TYPE),
            rates=DolarApiAdapter(
                transport,
                url=settings.DOLAR_API_URL,
                timeout_ms=settings.DOLAR_API_TIMEOUT_MS,
            ),
            config=sync_config,
        )
        return await service.run()


def main() -> int:
    configure_logging(app_settings.FXSYNC_LOG_LEVEL)
    start_run()
    app_settings.print_settings(logger)

    try:
        report = asyncio.run(run_sync(app_settings))
    except FxSyncError as exc:
        logger.error("Sync failed: %s", exc)
        return 1

    logger.info(
        "found=%d eligible=%d updated=%d rate=%s",
        report.found, report.eligible, report.updated, report.rate,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
