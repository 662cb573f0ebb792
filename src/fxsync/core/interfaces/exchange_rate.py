from abc import ABC, abstractmethod

from fxsync.core.models.exchange_rate import ExchangeRate


class ExchangeRatePort(ABC):
    @abstractmethod
    async def fetch(self) -> ExchangeRate:
        """Return the current official rate.

        Raises:
            ExchangeRateError: when the source is unreachable or answers with
                something that is not a rate.
        """
        pass
