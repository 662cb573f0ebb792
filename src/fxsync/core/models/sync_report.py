from pydantic import BaseModel


class SyncReport(BaseModel):
    found: int = 0
    eligible: int = 0
    updated: int = 0
    rate: str | None = None
    rate_date: str | None = None
