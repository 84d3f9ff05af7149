"""Tests for the retry decorator."""
from __future__ import annotations

from unittest.mock import patch

import pytest

from jobscout.retry import backoff_delay, retry


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("jobscout.retry.time.sleep") as sleep:
        yield sleep


def _flaky(*outcomes):
    """Function returning/raising *outcomes* in order; ``.calls`` counts invocations."""
    pending = list(outcomes)

    def fn():
        fn.calls += 1
        outcome = pending.pop(0) if len(pending) > 1 else pending[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    fn.calls = 0
    return fn


class TestRetry:
    def test_returns_first_success(self):
        fn = _flaky(ValueError("x"), "ok")
        assert retry(max_attempts=3)(fn)() == "ok"
        assert fn.calls == 2

    def test_raises_after_max_attempts(self, no_sleep):
        fn = _flaky(ValueError("x"))
        with pytest.raises(ValueError):
            retry(max_attempts=3, jitter=False, base_delay=1.0)(fn)()
        assert fn.calls == 3
        assert [c.args[0] for c in no_sleep.call_args_list] == [1.0, 2.0]

    def test_non_retryable_propagates_immediately(self):
        fn = _flaky(KeyError("x"))
        with pytest.raises(KeyError):
            retry(max_attempts=3, retryable=(ValueError,))(fn)()
        assert fn.calls == 1

    def test_give_up_predicate(self):
        fn = _flaky(ValueError("fatal"))
        with pytest.raises(ValueError):
            retry(max_attempts=3, give_up=lambda exc: "fatal" in str(exc))(fn)()
        assert fn.calls == 1

    def test_delay_is_capped(self, no_sleep):
        fn = _flaky(ValueError(), ValueError(), ValueError(), "ok")
        retry(max_attempts=4, base_delay=10, max_delay=15, jitter=False)(fn)()
        assert [c.args[0] for c in no_sleep.call_args_list] == [10, 15, 15]


class TestBackoffDelay:
    def test_jitter_bounds(self):
        assert backoff_delay(2, base_delay=4, rand=lambda: 0.0) == 4.0
        assert backoff_delay(2, base_delay=4, rand=lambda: 0.999) == pytest.approx(11.992)

    def test_without_jitter(self):
        assert backoff_delay(3, base_delay=1, jitter=False) == 4
