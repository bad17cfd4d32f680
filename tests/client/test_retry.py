"""Tests for retry helpers."""

import pytest

from toolsync.client.sync.retry import RetryPolicy, retry_with_backoff


class TestRetryPolicy:
    """Tests for the backoff schedule."""

    def test_delays_grow_and_cap(self) -> None:
        policy = RetryPolicy(max_attempts=6, initial_backoff=1.0, max_backoff=5.0)
        assert list(policy.delays()) == [1.0, 2.0, 4.0, 5.0, 5.0]

    def test_single_attempt_has_no_delays(self) -> None:
        assert list(RetryPolicy(max_attempts=1).delays()) == []


class TestRetryWithBackoff:
    """Tests for retry_with_backoff."""

    def test_returns_first_success(self) -> None:
        delays: list[float] = []
        assert retry_with_backoff(lambda: 42, sleep=delays.append) == 42
        assert delays == []

    def test_retries_until_success(self) -> None:
        calls = {"n": 0}

        def flaky() -> str:
            calls["n"] += 1
            if calls["n"] < 3:
                raise ConnectionError("nope")
            return "ok"

        delays: list[float] = []
        assert retry_with_backoff(flaky, max_retries=5, sleep=delays.append) == "ok"
        assert delays == [1.0, 2.0]

    def test_raises_after_max_retries(self) -> None:
        delays: list[float] = []

        def broken() -> None:
            raise ConnectionError("still down")

        with pytest.raises(ConnectionError):
            retry_with_backoff(broken, max_retries=2, sleep=delays.append)
        assert len(delays) == 2

    def test_non_retryable_propagates_immediately(self) -> None:
        delays: list[float] = []

        def broken() -> None:
            raise ValueError("bug")

        with pytest.raises(ValueError):
            retry_with_backoff(
                broken,
                retryable_exceptions=(ConnectionError,),
                sleep=delays.append,
            )
        assert delays == []

    def test_should_retry_rejects(self) -> None:
        """An exception the predicate refuses is raised on the first attempt."""
        calls: list[int] = []
        delays: list[float] = []

        def broken() -> None:
            calls.append(1)
            raise ConnectionError("refused for good")

        with pytest.raises(ConnectionError):
            retry_with_backoff(
                broken,
                retryable_exceptions=(ConnectionError,),
                should_retry=lambda e: "for good" not in str(e),
                sleep=delays.append,
            )
        assert calls == [1]
        assert delays == []
