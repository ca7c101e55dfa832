import pytest

from booking.services.errors import DataAccessFailure, InvalidInput, MalformedData
from booking.services.retry import call_with_retry


def test_retries_data_access_failures_then_succeeds():
    attempts = []

    def flaky(value):
        attempts.append(value)
        if len(attempts) < 3:
            raise DataAccessFailure("connection reset")
        return value * 2

    assert call_with_retry(flaky, 21, attempts=3) == 42
    assert attempts == [21, 21, 21]


def test_last_failure_is_reraised():
    def down():
        raise DataAccessFailure("unreachable")

    with pytest.raises(DataAccessFailure, match="unreachable"):
        call_with_retry(down, attempts=2)


def test_other_errors_are_not_retried():
    attempts = []

    def bad():
        attempts.append(1)
        raise InvalidInput("nope")

    with pytest.raises(InvalidInput):
        call_with_retry(bad)
    assert attempts == [1]


def test_malformed_data_fails_fast():
    attempts = []

    def broken_row():
        attempts.append(1)
        raise MalformedData("duration 0")

    with pytest.raises(DataAccessFailure):
        call_with_retry(broken_row, attempts=3)
    assert attempts == [1]
