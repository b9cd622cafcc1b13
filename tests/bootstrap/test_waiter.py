import pytest

from dbentry.bootstrap.waiter import ConnectionWaiter
from dbentry.errors import StartupTimeoutError
from dbentry.utils.retry import RetryPolicy


class ScriptedProbe:
    """Fails `failures` times, then succeeds."""
    def __init__(self, failures: int):
        self.failures = failures
        self.calls = 0

    def __call__(self) -> bool:
        self.calls += 1
        return self.calls > self.failures


def make_waiter(sleeps):
    return ConnectionWaiter(RetryPolicy(interval=1.0, attempts=30), sleep=sleeps.append)


def test_immediate_success_does_not_sleep():
    sleeps = []
    probe = ScriptedProbe(0)
    assert make_waiter(sleeps).wait(probe) == 1
    assert sleeps == []


def test_success_on_last_attempt_of_budget():
    sleeps = []
    probe = ScriptedProbe(29)
    assert make_waiter(sleeps).wait(probe) == 30
    assert probe.calls == 30
    assert sleeps == [1.0] * 29


def test_timeout_after_exactly_the_budget():
    sleeps = []
    probe = ScriptedProbe(30)
    with pytest.raises(StartupTimeoutError):
        make_waiter(sleeps).wait(probe)
    assert probe.calls == 30
    assert len(sleeps) == 29


def test_unbounded_policy_is_rejected():
    with pytest.raises(ValueError):
        ConnectionWaiter(RetryPolicy(interval=1.0, attempts=None))
