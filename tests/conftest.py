import random

import pytest

from fxsync.adapters.marker_block_detector import MarkerBlockDetector
from fxsync.adapters.retry_tenacity import TenacityRetryAdapter
from fxsync.core.config import ExecutorConfig
from fxsync.core.managers.request_executor import RequestExecutor

from fakes import RecordingSleep, ScriptedTransport


@pytest.fixture
def executor_config():
    return ExecutorConfig(token="test-token", base_url="https://crm.test")


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def make_executor(executor_config, recording_sleep):
    """Factory building a RequestExecutor around a scripted transport."""
    def _make(script, observers=None, config=None, sleep=None):
        transport = ScriptedTransport(script)
        executor = RequestExecutor(
            transport=transport,
            config=config or executor_config,
            retry_port=TenacityRetryAdapter(),
            block_detector=MarkerBlockDetector(),
            observers=observers,
            rng=random.Random(7),
            sleep=sleep or recording_sleep,
        )
        return executor, transport
    return _make
