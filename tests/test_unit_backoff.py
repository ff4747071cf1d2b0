import asyncio

import pytest

from aggregator.utils.backoff import compute_backoff_seconds, retry_async


def test_backoff_grows_linearly():
    assert compute_backoff_seconds(1, base=0.6) == pytest.approx(0.6)
    assert compute_backoff_seconds(2, base=0.6) == pytest.approx(1.2)
    assert compute_backoff_seconds(3, base=0.6) == pytest.approx(1.8)
    # attempt numbers below 1 are clamped
    assert compute_backoff_seconds(0, base=0.6) == pytest.approx(0.6)


def test_backoff_defaults_to_configured_base():
    assert compute_backoff_seconds(2) == pytest.approx(1.2)


def test_retry_succeeds_after_transient_failures():
    attempts = []
    delays = []

    async def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("boom")
        return "ok"

    async def fake_sleep(delay):
        delays.append(delay)

    result = asyncio.run(retry_async(flaky, max_attempts=3, base_delay=0.6, sleep=fake_sleep))
    assert result == "ok"
    assert len(attempts) == 3
    assert delays == pytest.approx([0.6, 1.2])


def test_retry_reraises_last_error_without_trailing_sleep():
    delays = []

    async def always_fails():
        raise ValueError("still down")

    async def fake_sleep(delay):
        delays.append(delay)

    with pytest.raises(ValueError, match="still down"):
        asyncio.run(retry_async(always_fails, max_attempts=3, base_delay=0.5, sleep=fake_sleep))
    assert delays == pytest.approx([0.5, 1.0])


def test_retry_raises_the_error_of_the_final_attempt():
    raised = []

    async def fails_differently():
        error = RuntimeError(f"attempt {len(raised) + 1}")
        raised.append(error)
        raise error

    async def fake_sleep(delay):
        pass

    with pytest.raises(RuntimeError) as excinfo:
        asyncio.run(retry_async(fails_differently, max_attempts=3, base_delay=0.1, sleep=fake_sleep))
    assert len(raised) == 3
    assert excinfo.value is raised[-1]


def test_single_attempt_never_sleeps():
    delays = []

    async def fails():
        raise KeyError("x")

    async def fake_sleep(delay):
        delays.append(delay)

    with pytest.raises(KeyError):
        asyncio.run(retry_async(fails, max_attempts=1, sleep=fake_sleep))
    assert delays == []
