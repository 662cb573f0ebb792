"""Observer protocol for retry scheduling.

Observers receive one event per scheduled retry for operational diagnosis
(metrics, alerting, audit). They are notified after the wait has been
decided and before the sleep starts; whatever they do cannot alter it.
"""

from typing import Protocol

from fxsync.core.models.outcome import RetryEvent


class RetryObserver(Protocol):
    """Observer protocol for retry attempts.

    Implementations must not assume ordering between observers and should be
    stateless or safe to share, since one executor may serve several
    concurrent calls.
    """

    async def on_retry_scheduled(self, event: RetryEvent) -> None:
        """Called once per retry, before the backoff sleep.

        Args:
            event: Attempt number, computed wait and failure label
        """
        ...
