import asyncio
from typing import Any, Awaitable, Callable, Optional, Sequence, Type

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt


class TenacityRetryAdapter:
    """Tenacity-based retry adapter implementing RetryPort.

    The wait is computed by the caller from the failed attempt's exception,
    so the backoff policy stays in the core. Retries stop after ``attempts``
    calls and the last exception is re-raised as-is.
    """

    def __init__(
        self,
        attempts: int = 6,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.attempts = attempts
        self.sleep = sleep

    async def execute(
        self,
        func: Callable[[], Awaitable[Any]],
        *,
        attempts: Optional[int] = None,
        wait: Optional[Callable[[int, BaseException], float]] = None,
        retry_on: Sequence[Type[BaseException]] = (Exception,),
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        before_sleep: Optional[Callable[[int, BaseException, float], None]] = None,
    ) -> Any:
        def _wait(retry_state: RetryCallState) -> float:
            if wait is None or retry_state.outcome is None:
                return 0.0
            return wait(retry_state.attempt_number, retry_state.outcome.exception())

        def _before_sleep(retry_state: RetryCallState) -> None:
            if before_sleep is None or retry_state.outcome is None:
                return
            seconds = retry_state.next_action.sleep if retry_state.next_action else 0.0
            before_sleep(retry_state.attempt_number, retry_state.outcome.exception(), seconds)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts or self.attempts),
            wait=_wait,
            retry=retry_if_exception_type(tuple(retry_on)),
            sleep=sleep or self.sleep,
            before_sleep=_before_sleep,
            reraise=True,
        )
        async for attempt in retrying:  # pragma: no cover - control flow instrumentation
            with attempt:
                return await func()
