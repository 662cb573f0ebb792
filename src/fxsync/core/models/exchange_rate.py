from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ExchangeRate(BaseModel):
    """Official selling rate as published by dolarapi.com."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    rate: Decimal = Field(alias="venta", gt=0)
    updated_at: datetime = Field(alias="fechaActualizacion")

    def rate_text(self) -> str:
        """Rate as a plain decimal string, e.g. ``1450`` or ``1450.5``."""
        text = format(self.rate, "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text

    def rate_date(self) -> str:
        """Calendar date of the rate timestamp as ``YYYY-MM-DD``."""
        return self.updated_at.date().isoformat()
