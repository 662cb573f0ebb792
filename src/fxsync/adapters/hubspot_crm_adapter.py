from typing import List, Sequence

from pydantic import ValidationError

from fxsync.core.exceptions import CrmResponseError
from fxsync.core.interfaces.crm import CrmPort
from fxsync.core.managers.request_executor import RequestExecutor
from fxsync.core.models.crm import BatchUpdateAck, CrmRecord, RecordUpdate, SearchCriteria
from fxsync.core.models.request_spec import HttpMethod
from fxsync.core.settings import logger

# HubSpot rejects batch requests with more inputs than this.
BATCH_LIMIT = 100


class HubSpotCrmAdapter(CrmPort):
    """CRM v3 objects API for one object type.

    Builds request bodies and hands them to the executor; retries and
    failure classification happen there, never here.
    """

    def __init__(self, executor: RequestExecutor, object_type: str = "deals"):
        self._executor = executor
        self.object_type = object_type

    @property
    def _base_path(self) -> str:
        return f"/crm/v3/objects/{self.object_type}"

    async def search(self, criteria: SearchCriteria) -> List[CrmRecord]:
        path = f"{self._base_path}/search"
        body = criteria.model_dump(exclude_none=True)
        data = await self._executor.request(HttpMethod.POST, path, body)
        if data is None:
            return []
        if not isinstance(data, dict):
            raise CrmResponseError(path, f"expected a JSON object, got {type(data).__name__}")
        results = data.get("results") or []
        logger.debug("[crm:search] object_type=%s results=%d", self.object_type, len(results))
        try:
            return [CrmRecord.model_validate(item) for item in results]
        except ValidationError as exc:
            raise CrmResponseError(path, f"{exc.error_count()} invalid search results") from exc

    async def batch_update(self, updates: Sequence[RecordUpdate]) -> BatchUpdateAck:
        ack = BatchUpdateAck()
        for start in range(0, len(updates), BATCH_LIMIT):
            chunk = updates[start:start + BATCH_LIMIT]
            body = {"inputs": [update.model_dump() for update in chunk]}
            data = await self._executor.request(
                HttpMethod.POST, f"{self._base_path}/batch/update", body
            )
            ack.requests += 1
            if isinstance(data, dict):
                ack.status = data.get("status", ack.status)
                ack.updated_ids.extend(
                    str(item["id"]) for item in data.get("results") or [] if "id" in item
                )
        return ack
