"""Unit tests for services.lockout_policy."""

from datetime import datetime, timedelta, timezone

import pytest

from services.lockout_policy import (
    MAX_FAILED_ATTEMPTS,
    attempts_remaining,
    is_locked,
    remaining_wait_seconds,
    required_delay_seconds,
)

NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

EXPECTED_DELAYS = {
    0: 0,
    1: 0,
    2: 0,
    3: 30,
    4: 30,
    5: 60,
    6: 60,
    7: 300,
    8: 300,
    9: 900,
    10: 900,
    15: 900,
    100: 900,
}


@pytest.mark.parametrize("failed_attempts, expected", sorted(EXPECTED_DELAYS.items()))
def test_required_delay_table(failed_attempts, expected):
    assert required_delay_seconds(failed_attempts) == expected


@pytest.mark.parametrize(
    "failed_attempts, locked",
    [(0, False), (9, False), (10, True), (11, True)],
)
def test_is_locked(failed_attempts, locked):
    assert is_locked(failed_attempts) is locked


def test_lockout_threshold_is_ten():
    assert MAX_FAILED_ATTEMPTS == 10


@pytest.mark.parametrize(
    "failed_attempts, expected",
    [(0, 10), (1, 9), (9, 1), (10, 0), (12, 0)],
)
def test_attempts_remaining_floors_at_zero(failed_attempts, expected):
    assert attempts_remaining(failed_attempts) == expected


class TestRemainingWait:
    def test_no_wait_at_or_below_threshold(self):
        assert remaining_wait_seconds(2, NOW, NOW) == 0

    def test_no_wait_without_previous_attempt(self):
        assert remaining_wait_seconds(5, None, NOW) == 0

    def test_full_wait_right_after_attempt(self):
        assert remaining_wait_seconds(3, NOW, NOW) == 30

    def test_partial_wait_rounds_up(self):
        last = NOW - timedelta(seconds=10, milliseconds=500)
        assert remaining_wait_seconds(3, last, NOW) == 20

    def test_zero_once_delay_elapsed(self):
        last = NOW - timedelta(seconds=30)
        assert remaining_wait_seconds(3, last, NOW) == 0

    def test_naive_last_attempt_treated_as_utc(self):
        last = (NOW - timedelta(minutes=1)).replace(tzinfo=None)
        assert remaining_wait_seconds(7, last, NOW) == 240

    def test_top_band(self):
        last = NOW - timedelta(minutes=5)
        assert remaining_wait_seconds(9, last, NOW) == 600
