from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, Type


class RetryPort(Protocol):
    """Abstract retry interface for async operations.

    Implementations run an async callable until it succeeds, raises a
    non-retryable exception, or the attempt budget is spent. The contract
    keeps the core decoupled from a specific library (tenacity/backoff).
    """

    async def execute(
        self,
        func: Callable[[], Awaitable[Any]],
        *,
        attempts: int,
        wait: Callable[[int, BaseException], float],
        retry_on: Sequence[Type[BaseException]],
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        before_sleep: Optional[Callable[[int, BaseException, float], None]] = None,
    ) -> Any:  # pragma: no cover - protocol
        """Execute an async callable with retry semantics.

        Args:
            func: Zero-argument async callable returning a result.
            attempts: Total attempts allowed, first call included.
            wait: Seconds to wait after a failed attempt, given the 1-based
                attempt number and the exception it raised.
            retry_on: Exception types that trigger another attempt.
            sleep: Async sleep used between attempts.
            before_sleep: Hook called with (attempt, exception, wait seconds)
                right before each sleep.
        Returns:
            Result of the successful invocation.
        Raises:
            Propagates the last exception after exhausting attempts, and any
            exception not listed in ``retry_on`` immediately.
        """
        ...
