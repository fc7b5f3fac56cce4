"""Unit tests for the delivery executor retry loop.

Sends go through ScriptedTransport and backoff waits through RecordingSleep,
so no test touches the network. Only the concurrency test sleeps for real,
with a backoff unit of a tenth of a second.
"""

import asyncio

import pytest

from order_notifier.notifications.delivery import DeliveryExecutor, backoff_delay
from order_notifier.notifications.models import (
    DeliveryExhaustedError,
    RenderedMessage,
    UnsupportedProviderError,
)
from tests.helpers import RecordingSleep, ScriptedTransport, make_registry


@pytest.fixture
def message():
    return RenderedMessage(
        sender="shop@example.com",
        to="ana@example.com",
        subject="Your purchase was completed successfully",
        html="<p>ok</p>",
    )


@pytest.fixture
def sleep():
    return RecordingSleep()


def build_executor(transport, sleep, max_attempts=3, backoff_unit=1.0):
    return DeliveryExecutor(
        make_registry(transport), max_attempts=max_attempts, backoff_unit=backoff_unit, sleep=sleep
    )


@pytest.mark.parametrize("attempt,expected", [(1, 2.0), (2, 4.0), (3, 8.0)])
def test_backoff_delay(attempt, expected):
    assert backoff_delay(attempt) == expected


def test_backoff_delay_scales_with_unit():
    assert backoff_delay(2, unit=0.5) == 2.0


def test_first_attempt_success(message, sleep):
    transport = ScriptedTransport()
    result = asyncio.run(build_executor(transport, sleep).deliver(message))

    assert result.attempt == 1
    assert result.provider == "mailtrap"
    assert result.message_id == "<msg-1@example.com>"
    assert transport.sent == [message]
    assert sleep.delays == []


@pytest.mark.parametrize("failures", [1, 2])
def test_success_after_failures(message, sleep, failures):
    """Test k failures then success reports attempt k+1 after waiting sum(2**i)."""
    transport = ScriptedTransport(failures=failures)
    result = asyncio.run(build_executor(transport, sleep).deliver(message))

    assert result.attempt == failures + 1
    assert transport.calls == failures + 1
    assert sleep.delays == [2.0 ** i for i in range(1, failures + 1)]
    assert sleep.total == sum(2 ** i for i in range(1, failures + 1))


def test_always_failing_exhausts_attempts(message, sleep):
    transport = ScriptedTransport(failures=None)

    with pytest.raises(DeliveryExhaustedError) as exc_info:
        asyncio.run(build_executor(transport, sleep).deliver(message))

    error = exc_info.value
    assert transport.calls == 3
    assert error.attempts == 3
    assert error.last_error is transport.errors[-1]
    assert error.__cause__ is transport.errors[-1]
    assert "after 3 attempts" in str(error)
    # No wait after the final attempt
    assert sleep.delays == [2.0, 4.0]


def test_max_attempts_override(message, sleep):
    transport = ScriptedTransport(failures=None)

    with pytest.raises(DeliveryExhaustedError):
        asyncio.run(build_executor(transport, sleep).deliver(message, max_attempts=5))

    assert transport.calls == 5
    assert sleep.delays == [2.0, 4.0, 8.0, 16.0]


def test_single_attempt_never_sleeps(message, sleep):
    transport = ScriptedTransport(failures=None)

    with pytest.raises(DeliveryExhaustedError):
        asyncio.run(build_executor(transport, sleep, max_attempts=1).deliver(message))

    assert transport.calls == 1
    assert sleep.delays == []


def test_backoff_unit_scales_waits(message, sleep):
    transport = ScriptedTransport(failures=2)
    asyncio.run(build_executor(transport, sleep, backoff_unit=0.01).deliver(message))
    assert sleep.delays == pytest.approx([0.02, 0.04])


def test_unknown_provider_is_not_retried(message, sleep):
    transport = ScriptedTransport()

    with pytest.raises(UnsupportedProviderError):
        asyncio.run(build_executor(transport, sleep).deliver(message, provider_key="yahoo"))

    assert transport.calls == 0
    assert sleep.delays == []


def test_non_transport_errors_propagate_immediately(message, sleep):
    class BrokenTransport:
        calls = 0

        def send(self, message):
            BrokenTransport.calls += 1
            raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        asyncio.run(build_executor(BrokenTransport(), sleep).deliver(message))

    assert BrokenTransport.calls == 1
    assert sleep.delays == []


def test_invalid_max_attempts_rejected(message, sleep):
    with pytest.raises(ValueError):
        build_executor(ScriptedTransport(), sleep, max_attempts=0)

    executor = build_executor(ScriptedTransport(), sleep)
    with pytest.raises(ValueError):
        asyncio.run(executor.deliver(message, max_attempts=0))


def test_backoff_does_not_block_other_deliveries():
    """Test a delivery waiting between attempts lets another one complete."""
    slow = ScriptedTransport(failures=2)
    fast = ScriptedTransport()
    # Real asyncio.sleep: the slow delivery waits 0.2s then 0.4s
    slow_executor = DeliveryExecutor(make_registry(slow), backoff_unit=0.1)
    fast_executor = DeliveryExecutor(make_registry(fast), backoff_unit=0.1)
    finished = []

    async def deliver(name, executor, start_delay):
        await asyncio.sleep(start_delay)
        message = RenderedMessage("shop@example.com", f"{name}@example.com", "Subject", "<p></p>")
        result = await executor.deliver(message)
        finished.append((name, asyncio.get_running_loop().time()))
        return result

    async def run():
        started = asyncio.get_running_loop().time()
        results = await asyncio.gather(
            deliver("slow", slow_executor, 0), deliver("fast", fast_executor, 0.01)
        )
        return started, results

    started, (slow_result, fast_result) = asyncio.run(run())

    assert [name for name, _ in finished] == ["fast", "slow"]
    # The fast delivery completes inside the slow one's first backoff window
    assert finished[0][1] - started < 0.15
    assert slow_result.attempt == 3
    assert fast_result.attempt == 1


def test_failure_logs_carry_attempt_and_provider(message, sleep, caplog):
    transport = ScriptedTransport(failures=1)

    with caplog.at_level("INFO"):
        asyncio.run(build_executor(transport, sleep).deliver(message))

    failures = [r for r in caplog.records if getattr(r, "event", None) == "notification.send.failure"]
    assert len(failures) == 1
    assert failures[0].attempt == 1
    assert failures[0].retry_remaining is True

    success = [r for r in caplog.records if getattr(r, "event", None) == "notification.send.success"]
    assert success[0].attempt == 2
    assert success[0].component == "delivery"
