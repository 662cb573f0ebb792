"""RequestExecutor: resilient wrapper around every authenticated CRM call.

Responsibilities:
1. Dispatch a RequestSpec through the transport, absorbing network failures.
2. Classify each received response (success, retryable, fatal).
3. Wait out retryable outcomes with the policy's backoff, within one
   per-call attempt budget shared by both failure kinds.
4. Surface only ClientFatalError, RetryExhaustedError or
   RequestCancelledError to callers.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Dict, Optional

from fxsync.core.config import ExecutorConfig
from fxsync.core.exceptions import (
    ClientFatalError,
    RequestCancelledError,
    RetryExhaustedError,
    TransportError,
)
from fxsync.core.interfaces.block_detection import BlockDetectorPort
from fxsync.core.interfaces.http_client import HttpTransportPort
from fxsync.core.interfaces.observers import RetryObserver
from fxsync.core.interfaces.retry import RetryPort
from fxsync.core.managers.outcome_classifier import OutcomeClassifier
from fxsync.core.managers.retry_policy import RetryPolicy
from fxsync.core.models.outcome import ClientFatal, NetworkFailure, RetryEvent, Success
from fxsync.core.models.request_spec import HttpMethod, RequestSpec
from fxsync.core.settings import logger
from fxsync.core.utils.cancellation import OperationCancelled, await_or_cancel, sleep_or_cancel

SleepFunc = Callable[[float, Optional[asyncio.Event]], Awaitable[None]]


class RetryableOutcome(Exception):
    """Internal signal for the retry loop: this attempt may be repeated.

    Never leaves the executor; exhaustion is reported as RetryExhaustedError.
    """

    def __init__(self, outcome):
        self.outcome = outcome
        super().__init__(outcome.status_or_error)


class RequestExecutor:
    """Sends RequestSpecs with failure classification and bounded retries.

    Safe to share between concurrent callers: all retry state is local to
    one ``send()`` and every wait is an asyncio suspension.
    """

    def __init__(
        self,
        transport: HttpTransportPort,
        config: ExecutorConfig,
        retry_port: RetryPort,
        block_detector: BlockDetectorPort,
        observers: Optional[list[RetryObserver]] = None,
        rng: Optional[random.Random] = None,
        sleep: SleepFunc = sleep_or_cancel,
    ) -> None:
        self._transport = transport
        self.config = config
        self._retry = retry_port
        self._classifier = OutcomeClassifier(block_detector, config.body_preview_limit)
        self.policy = RetryPolicy(config, rng)
        self._observers = observers or []
        self._sleep = sleep

    def build_request(
        self,
        method: HttpMethod | str,
        path: str,
        body: Optional[Any] = None,
    ) -> RequestSpec:
        """RequestSpec for ``path`` on the configured API with bearer auth."""
        headers: Dict[str, str] = {
            "Authorization": f"Bearer {self.config.token.get_secret_value()}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        return RequestSpec(
            method=HttpMethod(method),
            url=f"{self.config.base_url}{path}",
            headers=headers,
            body=body,
            timeout_ms=self.config.call_timeout_ms,
        )

    async def request(
        self,
        method: HttpMethod | str,
        path: str,
        body: Optional[Any] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """Shortcut for ``send(build_request(...))``."""
        return await self.send(self.build_request(method, path, body), cancel=cancel)

    async def send(self, spec: RequestSpec, cancel: Optional[asyncio.Event] = None) -> Any:
        """Execute ``spec`` until it succeeds, fails fatally or runs out of attempts.

        Returns:
            Parsed response body of the first 2xx response.
        Raises:
            ClientFatalError: non-retryable status, raised on first sight.
            RetryExhaustedError: every attempt of the budget failed transiently.
            RequestCancelledError: ``cancel`` was set during dispatch or backoff.
        """
        method = spec.method.value
        path = spec.path
        ceiling = self.config.max_attempts
        attempts = 0
        scheduled: list[RetryEvent] = []

        async def attempt_once() -> Any:
            nonlocal attempts
            attempts += 1
            try:
                response = await await_or_cancel(self._transport.dispatch(spec), cancel)
            except TransportError as exc:
                raise RetryableOutcome(NetworkFailure(detail=exc.detail)) from exc

            outcome = self._classifier.classify(response)
            if isinstance(outcome, Success):
                logger.debug(
                    "[crm:send] ok method=%s path=%s status=%s attempt=%d",
                    method, path, response.status, attempts,
                )
                return outcome.body
            if isinstance(outcome, ClientFatal):
                raise ClientFatalError(method, path, outcome.status, outcome.body_preview)
            raise RetryableOutcome(outcome)

        def wait_seconds(attempt: int, exc: BaseException) -> float:
            if not isinstance(exc, RetryableOutcome):
                return 0.0
            # Stopping is owned by the retry port's attempt limit, which ends
            # the loop on the same attempt where decide() gives up.
            decision = self.policy.decide(exc.outcome, attempt)
            return decision.wait_ms / 1000.0 if decision.retry else 0.0

        async def sleep(seconds: float) -> None:
            while scheduled:
                await self._notify_retry(scheduled.pop(0))
            await self._sleep(seconds, cancel)

        def before_sleep(attempt: int, exc: BaseException, seconds: float) -> None:
            outcome = exc.outcome
            event = RetryEvent(
                layer=outcome.layer,
                status_or_error=outcome.status_or_error,
                wait_ms=round(seconds * 1000.0, 1),
                attempt=attempt,
                ceiling=ceiling,
                method=method,
                path=path,
            )
            self._log_retry(event)
            scheduled.append(event)

        try:
            return await self._retry.execute(
                attempt_once,
                attempts=ceiling,
                wait=wait_seconds,
                retry_on=(RetryableOutcome,),
                sleep=sleep,
                before_sleep=before_sleep,
            )
        except RetryableOutcome as exc:
            logger.error(
                "[crm:send] retries exhausted method=%s path=%s attempts=%d last=%s",
                method, path, attempts, exc.outcome.status_or_error,
            )
            raise RetryExhaustedError(method, path, attempts, exc.outcome) from exc.__cause__
        except OperationCancelled:
            logger.warning(
                "[crm:send] cancelled method=%s path=%s attempts=%d", method, path, attempts
            )
            raise RequestCancelledError(method, path, attempts) from None
        except ClientFatalError as exc:
            logger.error(
                "[crm:send] fatal method=%s path=%s status=%s attempt=%d",
                method, path, exc.status, attempts,
            )
            raise

    def _log_retry(self, event: RetryEvent) -> None:
        logger.warning(
            "[%s:retry] layer=%s status_or_error=%s wait_ms=%.0f attempt=%d ceiling=%d method=%s path=%s",
            event.layer, event.layer, event.status_or_error, event.wait_ms,
            event.attempt, event.ceiling, event.method, event.path,
        )

    async def _notify_retry(self, event: RetryEvent) -> None:
        """Notify all observers that a retry was scheduled."""
        for observer in self._observers:
            try:
                await observer.on_retry_scheduled(event)
            except Exception as exc:
                logger.error(
                    "[observer:error] on_retry_scheduled failed observer=%s path=%s error=%s",
                    type(observer).__name__, event.path, exc,
                )
