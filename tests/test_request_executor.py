"""Unit tests for RequestExecutor retry and classification behavior.

The transport is a scripted fake and the sleep only records durations, so
every test runs instantly and can assert on the exact number of attempts
and waits.
"""

import asyncio
import logging

import pytest

from fxsync.core.config import ExecutorConfig
from fxsync.core.exceptions import (
    ClientFatalError,
    RequestCancelledError,
    RetryExhaustedError,
    TransportError,
)
from fxsync.core.models.outcome import NetworkFailure, ServerTransient
from fxsync.core.utils.cancellation import sleep_or_cancel

from fakes import network_error, ok, status

CLOUDFLARE_PAGE = (
    "<html><head><title>Access denied | api.hubapi.com used Cloudflare to restrict access"
    "</title></head><body>Error 1006</body></html>"
)


# --- Success and fatal paths ---

class TestSettledOnFirstAttempt:

    @pytest.mark.asyncio
    async def test_success_returns_body_without_sleeping(self, make_executor, recording_sleep):
        executor, transport = make_executor([ok({"results": [{"id": "1"}]})])

        body = await executor.request("POST", "/crm/v3/objects/deals/search", {"limit": 1})

        assert body == {"results": [{"id": "1"}]}
        assert len(transport.sent) == 1
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_404_raises_client_fatal_without_retry(self, make_executor, recording_sleep):
        executor, transport = make_executor([status(404, {"message": "Object not found"})])

        with pytest.raises(ClientFatalError) as excinfo:
            await executor.request("POST", "/crm/v3/objects/deals/batch/update", {"inputs": []})

        err = excinfo.value
        assert err.status == 404
        assert err.method == "POST"
        assert err.path == "/crm/v3/objects/deals/batch/update"
        assert "Object not found" in err.body_preview
        assert len(transport.sent) == 1
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_401_is_not_retried(self, make_executor, recording_sleep):
        executor, transport = make_executor([status(401, {"message": "expired"})])

        with pytest.raises(ClientFatalError):
            await executor.request("GET", "/crm/v3/objects/deals")

        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_403_without_block_marker_is_fatal(self, make_executor, recording_sleep):
        executor, transport = make_executor([status(403, {"message": "missing scopes"})])

        with pytest.raises(ClientFatalError) as excinfo:
            await executor.request("GET", "/crm/v3/objects/deals")

        assert excinfo.value.status == 403
        assert len(transport.sent) == 1
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_body_preview_is_truncated(self, make_executor):
        executor, _ = make_executor([status(400, "x" * 2000)])

        with pytest.raises(ClientFatalError) as excinfo:
            await executor.request("POST", "/crm/v3/objects/deals/search", {})

        assert len(excinfo.value.body_preview) == 500


# --- Retry budget ---

class TestRetryBudget:

    @pytest.mark.asyncio
    async def test_six_server_errors_exhaust_after_exactly_six_attempts(
        self, make_executor, recording_sleep
    ):
        executor, transport = make_executor([status(500, "boom")])

        with pytest.raises(RetryExhaustedError) as excinfo:
            await executor.request("POST", "/crm/v3/objects/deals/search", {})

        assert len(transport.sent) == 6
        assert excinfo.value.attempts == 6
        assert isinstance(excinfo.value.last_outcome, ServerTransient)
        assert excinfo.value.path == "/crm/v3/objects/deals/search"
        # no sleep after the final attempt
        assert len(recording_sleep.calls) == 5

    @pytest.mark.asyncio
    async def test_every_scheduled_wait_is_a_retrying_decision(self, make_executor, recording_sleep):
        executor, _ = make_executor([status(503)])

        with pytest.raises(RetryExhaustedError):
            await executor.request("GET", "/x")

        # attempts 1..5 retry with the exponential base; the 6th stops without a wait
        bases = [2.0, 4.0, 8.0, 16.0, 30.0]
        assert len(recording_sleep.calls) == len(bases)
        for waited, base in zip(recording_sleep.calls, bases):
            assert base <= waited <= base + 1.5

    @pytest.mark.asyncio
    async def test_network_and_status_failures_share_one_budget(self, make_executor):
        script = [network_error(), network_error(), network_error(), status(503), status(502), status(500)]
        executor, transport = make_executor(script)

        with pytest.raises(RetryExhaustedError):
            await executor.request("GET", "/crm/v3/objects/deals")

        assert len(transport.sent) == 6

    @pytest.mark.asyncio
    async def test_exhausted_network_errors_keep_the_last_error(self, make_executor):
        executor, transport = make_executor(
            [network_error("dns failure")] * 5 + [network_error("Connection reset by peer")]
        )

        with pytest.raises(RetryExhaustedError) as excinfo:
            await executor.request("GET", "/crm/v3/objects/deals")

        err = excinfo.value
        assert isinstance(err.__cause__, TransportError)
        assert err.__cause__.detail == "Connection reset by peer"
        assert isinstance(err.last_outcome, NetworkFailure)
        assert "Connection reset by peer" in str(err)

    @pytest.mark.asyncio
    async def test_custom_budget_is_honoured(self, make_executor):
        config = ExecutorConfig(token="t", base_url="https://crm.test", max_attempts=2)
        executor, transport = make_executor([status(500)], config=config)

        with pytest.raises(RetryExhaustedError):
            await executor.request("GET", "/x")

        assert len(transport.sent) == 2


# --- Recovery and waits ---

class TestRecovery:

    @pytest.mark.asyncio
    async def test_network_failures_resend_identical_request(self, make_executor, recording_sleep):
        executor, transport = make_executor([network_error(), network_error(), ok({"ok": True})])
        spec = executor.build_request("POST", "/crm/v3/objects/deals/search", {"limit": 100})

        body = await executor.send(spec)

        assert body == {"ok": True}
        assert len(transport.sent) == 3
        assert all(sent is spec for sent in transport.sent)
        first = transport.sent[0]
        for sent in transport.sent[1:]:
            assert sent.method == first.method
            assert sent.url == first.url
            assert sent.headers == first.headers
            assert sent.encoded_body() == first.encoded_body()

    @pytest.mark.asyncio
    async def test_network_backoff_is_exponential_with_jitter(self, make_executor, recording_sleep):
        executor, _ = make_executor([network_error(), network_error(), ok({})])

        await executor.request("GET", "/x")

        first, second = recording_sleep.calls
        assert 2.0 <= first < 3.5
        assert 4.0 <= second < 5.5

    @pytest.mark.asyncio
    async def test_retry_after_header_drives_wait(self, make_executor, recording_sleep):
        executor, _ = make_executor([status(429, {}, {"retry-after": "5"}), ok({})])

        await executor.request("GET", "/x")

        assert len(recording_sleep.calls) == 1
        assert 5.0 <= recording_sleep.calls[0] < 6.5

    @pytest.mark.asyncio
    async def test_rate_limit_without_header_uses_exponential(self, make_executor, recording_sleep):
        executor, _ = make_executor([status(429, {}), ok({})])

        await executor.request("GET", "/x")

        assert 2.0 <= recording_sleep.calls[0] < 3.5

    @pytest.mark.asyncio
    async def test_edge_block_is_retried_with_conservative_wait(self, make_executor, recording_sleep):
        executor, transport = make_executor([status(403, CLOUDFLARE_PAGE), ok({"done": 1})])

        body = await executor.request("POST", "/crm/v3/objects/deals/search", {})

        assert body == {"done": 1}
        assert len(transport.sent) == 2
        assert 10.0 <= recording_sleep.calls[0] < 13.0

    @pytest.mark.asyncio
    async def test_edge_block_wait_grows_linearly(self, make_executor, recording_sleep):
        executor, _ = make_executor([status(403, CLOUDFLARE_PAGE)] * 3 + [ok({})])

        await executor.request("GET", "/x")

        assert [int(s // 10) for s in recording_sleep.calls] == [1, 2, 3]


# --- Observability ---

class RecordingObserver:
    def __init__(self):
        self.events = []

    async def on_retry_scheduled(self, event):
        self.events.append(event)


class BrokenObserver:
    async def on_retry_scheduled(self, event):
        raise RuntimeError("metrics backend down")


class TestRetryObservability:

    @pytest.mark.asyncio
    async def test_one_log_line_per_retry(self, make_executor, caplog):
        caplog.set_level(logging.WARNING, logger="fxsync")
        executor, _ = make_executor([network_error(), status(500), ok({})])

        await executor.request("GET", "/crm/v3/objects/deals")

        retry_lines = [r.getMessage() for r in caplog.records if ":retry]" in r.getMessage()]
        assert len(retry_lines) == 2
        assert retry_lines[0].startswith("[http:retry] layer=http")
        assert "attempt=1 ceiling=6" in retry_lines[0]
        assert retry_lines[1].startswith("[crm:retry] layer=crm status_or_error=500 server error")
        assert "attempt=2 ceiling=6" in retry_lines[1]

    @pytest.mark.asyncio
    async def test_observers_receive_events(self, make_executor, recording_sleep):
        observer = RecordingObserver()
        executor, _ = make_executor([status(502), status(429, {}, {"retry-after": "1"}), ok({})], observers=[observer])

        await executor.request("GET", "/crm/v3/objects/deals")

        assert [e.attempt for e in observer.events] == [1, 2]
        assert observer.events[0].status_or_error == "502 server error"
        assert observer.events[1].layer == "crm"
        assert observer.events[0].wait_ms == pytest.approx(recording_sleep.calls[0] * 1000, abs=0.1)

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_change_outcome(self, make_executor):
        recorder = RecordingObserver()
        executor, transport = make_executor([status(500), ok({"a": 1})], observers=[BrokenObserver(), recorder])

        body = await executor.request("GET", "/x")

        assert body == {"a": 1}
        assert len(transport.sent) == 2
        assert len(recorder.events) == 1


# --- Cancellation ---

class HangingTransport:
    def __init__(self):
        self.started = asyncio.Event()

    async def dispatch(self, request):
        self.started.set()
        await asyncio.Event().wait()


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_sleep(self, make_executor):
        executor, transport = make_executor([status(503)], sleep=sleep_or_cancel)
        cancel = asyncio.Event()

        task = asyncio.create_task(executor.request("GET", "/x", cancel=cancel))
        await asyncio.sleep(0.05)
        cancel.set()

        with pytest.raises(RequestCancelledError) as excinfo:
            await asyncio.wait_for(task, timeout=1.0)
        assert excinfo.value.attempts == 1
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_cancel_during_dispatch(self, make_executor):
        executor, _ = make_executor([ok({})])
        hanging = HangingTransport()
        executor._transport = hanging
        cancel = asyncio.Event()

        task = asyncio.create_task(executor.request("GET", "/x", cancel=cancel))
        await asyncio.wait_for(hanging.started.wait(), timeout=1.0)
        cancel.set()

        with pytest.raises(RequestCancelledError):
            await asyncio.wait_for(task, timeout=1.0)

    @pytest.mark.asyncio
    async def test_already_cancelled_token_stops_before_dispatch(self, make_executor, recording_sleep):
        executor, _ = make_executor([ok({})])
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(RequestCancelledError):
            await executor.request("GET", "/x", cancel=cancel)
        assert recording_sleep.calls == []

    @pytest.mark.asyncio
    async def test_concurrent_calls_do_not_serialize(self, make_executor):
        # One call stuck in a long backoff must not delay an unrelated call.
        slow, _ = make_executor([status(503), ok({})], sleep=sleep_or_cancel)
        fast, _ = make_executor([ok({"fast": True})], sleep=sleep_or_cancel)
        cancel = asyncio.Event()

        slow_task = asyncio.create_task(slow.request("GET", "/slow", cancel=cancel))
        await asyncio.sleep(0)
        result = await asyncio.wait_for(fast.request("GET", "/fast"), timeout=1.0)

        assert result == {"fast": True}
        assert not slow_task.done()
        cancel.set()
        with pytest.raises(RequestCancelledError):
            await slow_task
