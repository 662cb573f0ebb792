from pydantic import ValidationError

from fxsync.core.exceptions import ExchangeRateError, TransportError
from fxsync.core.interfaces.exchange_rate import ExchangeRatePort
from fxsync.core.interfaces.http_client import HttpTransportPort
from fxsync.core.models.exchange_rate import ExchangeRate
from fxsync.core.models.request_spec import HttpMethod, RequestSpec

DEFAULT_URL = "https://dolarapi.com/v1/dolares/oficial"


class DolarApiAdapter(ExchangeRatePort):
    """Official ARS/USD rate from dolarapi.com.

    Best-effort single GET: no retries, the next scheduled run tries again.
    """

    def __init__(self, transport: HttpTransportPort, url: str = DEFAULT_URL, timeout_ms: int = 15000):
        self._transport = transport
        self._spec = RequestSpec(
            method=HttpMethod.GET,
            url=url,
            headers={"Accept": "application/json"},
            timeout_ms=timeout_ms,
        )

    async def fetch(self) -> ExchangeRate:
        try:
            response = await self._transport.dispatch(self._spec)
        except TransportError as exc:
            raise ExchangeRateError(f"exchange rate source unreachable: {exc.detail}") from exc

        if not 200 <= response.status < 300:
            raise ExchangeRateError(
                f"exchange rate source answered {response.status}: {response.body_text()[:200]}"
            )
        if not isinstance(response.body, dict):
            raise ExchangeRateError("exchange rate source returned a non-JSON body")
        try:
            return ExchangeRate.model_validate(response.body)
        except ValidationError as exc:
            raise ExchangeRateError(f"unexpected exchange rate payload: {exc.error_count()} errors") from exc
