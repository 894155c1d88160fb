import os

import pytest

from contextsmith.services.resilient_caller import ResilientCaller
from contextsmith.services.worker_registry import WorkerSpecRegistry


@pytest.fixture
def clean_environment(monkeypatch):
    """Ensure tests run with a clean environment.

    - Unset CONTEXTSMITH_* variables that can alter configuration.
    - Unset provider API keys to avoid accidental network use.
    """
    to_clear = [k for k in os.environ.keys() if k.startswith("CONTEXTSMITH_")]
    to_clear += ["GEMINI_API_KEY", "OPENAI_API_KEY"]
    for key in to_clear:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def registry() -> WorkerSpecRegistry:
    return WorkerSpecRegistry.default()


@pytest.fixture
def make_caller():
    """Build a ResilientCaller that never really sleeps.

    The returned factory records requested delays on ``caller.delays``.
    """

    def _make(provider, max_retries: int = 0, jitter: float = 0.0) -> ResilientCaller:
        delays: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)

        caller = ResilientCaller(
            provider,
            max_retries=max_retries,
            base_delay=2.0,
            sleep=fake_sleep,
            jitter=lambda: jitter,
        )
        caller.delays = delays
        return caller

    return _make
