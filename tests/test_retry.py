"""
Tests for connection-error retries around database work.
"""
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from storesync.utils.retry import calculate_backoff, is_connection_error, retry_sync


def _operational(message: str) -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception(message))


class TestConnectionErrorDetection:

    def test_connection_reset(self):
        assert is_connection_error(_operational("server closed the connection unexpectedly"))

    def test_lock_timeout_is_not_connection_error(self):
        assert not is_connection_error(_operational("database is locked"))

    def test_integrity_error(self):
        assert not is_connection_error(IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")))

    def test_plain_value_error(self):
        assert not is_connection_error(ValueError("bad data"))


class TestBackoff:

    def test_exponential_without_jitter(self):
        assert calculate_backoff(1, base_delay=0.1, jitter=False) == pytest.approx(0.1)
        assert calculate_backoff(3, base_delay=0.1, jitter=False) == pytest.approx(0.4)

    def test_capped(self):
        assert calculate_backoff(20, base_delay=1.0, max_delay=5.0, jitter=False) == 5.0

    def test_jitter_bounded(self):
        delay = calculate_backoff(2, base_delay=1.0, jitter=True)
        assert 2.0 <= delay <= 2.5


class TestRetrySync:

    def test_retries_connection_errors_then_succeeds(self):
        attempts = []

        @retry_sync(max_attempts=3, base_delay=0)
        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise _operational("connection reset by peer")
            return "ok"

        assert flaky() == "ok"
        assert len(attempts) == 3
        assert flaky.get_retry_stats().success is True

    def test_gives_up_after_max_attempts(self):
        attempts = []

        @retry_sync(max_attempts=2, base_delay=0)
        def always_down():
            attempts.append(1)
            raise _operational("connection refused")

        with pytest.raises(OperationalError):
            always_down()
        assert len(attempts) == 2

    def test_does_not_retry_other_errors(self):
        attempts = []

        @retry_sync(max_attempts=3, base_delay=0)
        def bad_row():
            attempts.append(1)
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        with pytest.raises(IntegrityError):
            bad_row()
        assert len(attempts) == 1

    def test_on_retry_callback(self):
        calls = []

        @retry_sync(max_attempts=2, base_delay=0, on_retry=lambda attempt, error, delay: calls.append(attempt))
        def once_flaky():
            if not calls:
                raise _operational("terminating connection due to administrator command")
            return True

        assert once_flaky() is True
        assert calls == [1]
