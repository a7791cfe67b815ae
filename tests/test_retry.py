"""Test the retry combinator"""

import pytest

from playlist_archiver.core.retry import RetryOptions, RetryPolicy, retry_call


class Flaky:
    """Callable that fails a fixed number of times before succeeding"""

    def __init__(self, failures, error=RuntimeError):
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error(f"failure {self.calls}")
        return "ok"


class TestRetryPolicy:
    """Test wait time computation"""

    def test_immediate(self):
        """Test immediate never waits"""
        assert RetryPolicy.immediate().wait_time(5) == 0.0

    def test_delay(self):
        """Test delay waits the same every time"""
        policy = RetryPolicy.delay(3.0)

        assert [policy.wait_time(n) for n in range(3)] == [3.0, 3.0, 3.0]

    def test_exponential(self):
        """Test exponential doubles from the base"""
        policy = RetryPolicy.exponential(2.0)

        assert [policy.wait_time(n) for n in range(4)] == [2.0, 4.0, 8.0, 16.0]

    def test_hot_loop_detection(self):
        """Test only unlimited immediate retries count as a hot loop"""
        assert RetryOptions(max_retries=None).is_unbounded_hot_loop
        assert not RetryOptions(max_retries=3).is_unbounded_hot_loop
        assert not RetryOptions(
            max_retries=None, policy=RetryPolicy.delay(1.0)
        ).is_unbounded_hot_loop


class TestRetryCall:
    """Test retry_call behavior"""

    def test_success_first_try(self):
        """Test a successful call returns without sleeping"""
        sleeps = []
        func = Flaky(0)

        assert retry_call(func, RetryOptions(max_retries=3), sleep=sleeps.append) == "ok"
        assert func.calls == 1
        assert sleeps == []

    def test_recovers_after_failures(self):
        """Test failures within the budget are retried"""
        sleeps = []
        func = Flaky(2)
        options = RetryOptions(max_retries=3, policy=RetryPolicy.exponential(1.0))

        assert retry_call(func, options, sleep=sleeps.append) == "ok"
        assert func.calls == 3
        assert sleeps == [1.0, 2.0]

    def test_gives_up_after_max_retries(self):
        """Test the last error propagates once retries are spent"""
        func = Flaky(10)
        options = RetryOptions(max_retries=2, policy=RetryPolicy.delay(5.0))

        with pytest.raises(RuntimeError, match="failure 3"):
            retry_call(func, options, sleep=lambda _: None)

        assert func.calls == 3

    def test_zero_retries_calls_once(self):
        """Test max_retries=0 means a single attempt"""
        func = Flaky(1)

        with pytest.raises(RuntimeError):
            retry_call(func, RetryOptions(max_retries=0), sleep=lambda _: None)

        assert func.calls == 1

    def test_unlimited_retries_keep_going(self):
        """Test max_retries=None retries until success"""
        func = Flaky(25)

        assert retry_call(func, RetryOptions(max_retries=None), sleep=lambda _: None) == "ok"
        assert func.calls == 26

    def test_immediate_policy_does_not_sleep(self):
        """Test immediate retries skip the sleep call"""
        sleeps = []

        retry_call(Flaky(2), RetryOptions(max_retries=2), sleep=sleeps.append)

        assert sleeps == []

    def test_unlisted_errors_propagate_immediately(self):
        """Test errors outside retry_on are not retried"""
        func = Flaky(1, error=KeyError)

        with pytest.raises(KeyError):
            retry_call(
                func,
                RetryOptions(max_retries=5),
                retry_on=(RuntimeError,),
                sleep=lambda _: None,
            )

        assert func.calls == 1

    def test_logs_each_failure(self, caplog):
        """Test each failure is logged with its retry count"""
        with caplog.at_level("ERROR"):
            retry_call(Flaky(2), RetryOptions(max_retries=2), "Refresh failed", sleep=lambda _: None)

        messages = [record.getMessage() for record in caplog.records]
        assert "Refresh failed (0): failure 1" in messages
        assert "Refresh failed (1): failure 2" in messages
