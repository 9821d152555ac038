import threading
import time
from datetime import timedelta

import pytest

from vigilante.retrying import RetryAborted, retry


class _Flaky:
    def __init__(self, failures, result="ok"):
        self.failures = failures
        self.calls = 0
        self.result = result

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError(f"failure {self.calls}")
        return self.result


def test_success_first_try():
    fn = _Flaky(0, result=42)
    assert retry(fn, attempts=3, delay=0, max_jitter=0) == 42
    assert fn.calls == 1


def test_retries_until_success_and_reports():
    fn = _Flaky(2)
    seen = []
    result = retry(fn, attempts=5, delay=0, max_jitter=0, on_retry=lambda n, e: seen.append(n))
    assert result == "ok"
    assert fn.calls == 3
    assert seen == [0, 1]


def test_exhausted_raises_last_error():
    fn = _Flaky(10)
    with pytest.raises(RuntimeError, match="failure 3") as info:
        retry(fn, attempts=3, delay=0, max_jitter=0, last_error_only=True)
    assert fn.calls == 3
    assert info.value.__context__ is None


def test_exhausted_chains_earlier_errors():
    fn = _Flaky(10)
    with pytest.raises(RuntimeError) as info:
        retry(fn, attempts=3, delay=0, max_jitter=0)
    assert str(info.value.__context__) == "failure 2"
    assert str(info.value.__context__.__context__) == "failure 1"


def test_zero_attempts_retries_forever():
    fn = _Flaky(25)
    assert retry(fn, attempts=0, delay=0, max_jitter=0) == "ok"
    assert fn.calls == 26


def test_stop_event_set_before_start():
    stop = threading.Event()
    stop.set()
    fn = _Flaky(0)
    with pytest.raises(RetryAborted):
        retry(fn, stop_event=stop)
    assert fn.calls == 0


def test_stop_event_interrupts_wait():
    stop = threading.Event()
    fn = _Flaky(100)
    threading.Timer(0.05, stop.set).start()
    start = time.monotonic()
    with pytest.raises(RetryAborted) as info:
        retry(fn, attempts=0, delay=timedelta(seconds=30), max_jitter=0, stop_event=stop)
    assert time.monotonic() - start < 5
    assert isinstance(info.value.errors[-1], RuntimeError)
    assert len(info.value.errors) == fn.calls


def test_max_delay_caps_wait():
    fn = _Flaky(2)
    start = time.monotonic()
    assert retry(fn, attempts=5, delay=30, max_delay=0.01, max_jitter=30) == "ok"
    assert time.monotonic() - start < 5


def test_non_exception_result_passthrough():
    assert retry(lambda: None, attempts=1) is None