"""
Lockout and progressive-delay policy for verification attempts.

Pure functions over the failed-attempt counter; the Verification Gate is
the only caller that mutates state.

| failed_attempts | wait before next attempt |
|-----------------|--------------------------|
| <= 2            | none                     |
| 3-4             | 30 s                     |
| 5-6             | 60 s                     |
| 7-8             | 5 min                    |
| >= 9            | 15 min                   |

At MAX_FAILED_ATTEMPTS the record is locked for good; only a new code
request (which replaces the record) unlocks the email.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from shared.datetime_utils import as_utc

MAX_FAILED_ATTEMPTS = 10
DELAY_THRESHOLD = 2

# (highest failed_attempts value in band, delay in seconds)
_DELAY_BANDS: tuple[tuple[int, int], ...] = (
    (2, 0),
    (4, 30),
    (6, 60),
    (8, 5 * 60),
)
_MAX_DELAY_SECONDS = 15 * 60


def required_delay_seconds(failed_attempts: int) -> int:
    """Mandatory wait after *failed_attempts* mismatches."""
    for upper, delay in _DELAY_BANDS:
        if failed_attempts <= upper:
            return delay
    return _MAX_DELAY_SECONDS


def is_locked(failed_attempts: int) -> bool:
    return failed_attempts >= MAX_FAILED_ATTEMPTS


def remaining_wait_seconds(
    failed_attempts: int, last_attempt_at: Optional[datetime], now: datetime
) -> int:
    """Whole seconds (rounded up) the caller must still wait, 0 if none.

    The delay only applies once failed_attempts exceeds DELAY_THRESHOLD and
    a previous attempt time is known.
    """
    if failed_attempts <= DELAY_THRESHOLD or last_attempt_at is None:
        return 0
    required = required_delay_seconds(failed_attempts)
    elapsed = (as_utc(now) - as_utc(last_attempt_at)).total_seconds()
    if elapsed >= required:
        return 0
    return math.ceil(required - elapsed)


def attempts_remaining(failed_attempts: int) -> int:
    return max(0, MAX_FAILED_ATTEMPTS - failed_attempts)
