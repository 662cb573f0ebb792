# fxsync/core/interfaces/crm.py

from abc import ABC, abstractmethod
from typing import List, Sequence

from fxsync.core.models.crm import BatchUpdateAck, CrmRecord, RecordUpdate, SearchCriteria


class CrmPort(ABC):
    @abstractmethod
    async def search(self, criteria: SearchCriteria) -> List[CrmRecord]:
        """Return the records matching the criteria (first page only)"""
        pass

    @abstractmethod
    async def batch_update(self, updates: Sequence[RecordUpdate]) -> BatchUpdateAck:
        """Patch properties on the given records"""
        pass
