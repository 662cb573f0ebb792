"""RateSyncService: copies today's official rate onto recently edited deals.

Steps:
1. Fetch the exchange rate.
2. Search records modified within the lookback window.
3. Keep the ones with a non-empty amount.
4. Batch-update rate and rate date on them.

Any propagated error aborts the run; reruns are safe because the update is
idempotent.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fxsync.core.config import SyncConfig
from fxsync.core.interfaces.crm import CrmPort
from fxsync.core.interfaces.exchange_rate import ExchangeRatePort
from fxsync.core.models.crm import RecordUpdate, SearchCriteria
from fxsync.core.models.sync_report import SyncReport
from fxsync.core.settings import logger


def _iso_utc(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RateSyncService:
    def __init__(
        self,
        crm: CrmPort,
        rates: ExchangeRatePort,
        config: SyncConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._crm = crm
        self._rates = rates
        self.config = config
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_criteria(self) -> SearchCriteria:
        since = self._clock() - timedelta(minutes=self.config.lookback_minutes)
        return SearchCriteria.modified_since(
            _iso_utc(since),
            properties=[self.config.amount_property, self.config.rate_property],
            limit=self.config.search_limit,
        )

    async def run(self) -> SyncReport:
        logger.info("Fetching exchange rate...")
        rate = await self._rates.fetch()
        report = SyncReport(rate=rate.rate_text(), rate_date=rate.rate_date())
        logger.info("Current rate: %s ARS/USD - date: %s", report.rate, rate.updated_at.isoformat())

        logger.info("Searching records modified in the last %d minutes...", self.config.lookback_minutes)
        records = await self._crm.search(self.build_criteria())
        report.found = len(records)
        logger.info("Records found: %d", report.found)

        eligible = [record for record in records if record.has_value(self.config.amount_property)]
        report.eligible = len(eligible)
        logger.info("Records with non-empty %s: %d", self.config.amount_property, report.eligible)

        if not eligible:
            logger.info("No records to update.")
            return report

        updates = [
            RecordUpdate(
                id=record.id,
                properties={
                    self.config.rate_property: report.rate,
                    self.config.rate_date_property: report.rate_date,
                },
            )
            for record in eligible
        ]
        logger.info("Updating rate on %d records in batch...", len(updates))
        await self._crm.batch_update(updates)
        report.updated = len(updates)
        logger.info("Sync completed.")
        return report
