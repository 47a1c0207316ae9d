"""
Cleanup job for pre-signup verification records.

Three independent delete passes, run one after the other against the
live collection:

1. expired         expires_at < now
2. old unverified  verified = False and created_at < now - 24h
3. suspicious      verified = False and failed_attempts >= 15

A record matching several predicates is deleted (and counted) by the
first pass that reaches it, so total_cleaned never double-counts.
Running the job twice in a row is harmless; the second run reports zeros.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from repositories.verification_repository import VerificationRepository
from schemas.dto.responses.admin import CleanupCandidates, CleanupStats, CleanupSummary
from shared.datetime_utils import utcnow
from shared.logging import get_logger

log = get_logger(__name__)

STALE_AFTER = timedelta(hours=24)
ABUSE_THRESHOLD = 15

# Rough per-document footprint used for the size estimate
_ESTIMATED_DOC_SIZE_KB = 0.5


def estimate_size_mb(total_records: int) -> float:
    return round(total_records * _ESTIMATED_DOC_SIZE_KB / 1024, 2)


class CleanupService:
    def __init__(
        self,
        repository: VerificationRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def cleanup(self) -> CleanupStats:
        now = self._clock()
        stale_cutoff = now - STALE_AFTER

        total_before = await self._repo.count_all()
        log.info("verification_cleanup_started", total_before=total_before)

        expired = await self._repo.delete_expired(now)
        old_unverified = await self._repo.delete_stale_unverified(stale_cutoff)
        suspicious = await self._repo.delete_abusive(ABUSE_THRESHOLD)

        total_after = await self._repo.count_all()
        stats = CleanupStats(
            expired_records=expired,
            old_unverified_records=old_unverified,
            suspicious_records=suspicious,
            total_cleaned=expired + old_unverified + suspicious,
            total_before=total_before,
            total_after=total_after,
            db_size_before_mb=estimate_size_mb(total_before),
            db_size_after_mb=estimate_size_mb(total_after),
        )
        log.info("verification_cleanup_completed", **stats.model_dump())
        return stats

    async def status(self) -> CleanupSummary:
        """Current cleanup candidates, without deleting anything."""
        now = self._clock()
        stale_cutoff = now - STALE_AFTER

        total_records = await self._repo.count_all()
        expired = await self._repo.count_expired(now)
        old_unverified = await self._repo.count_stale_unverified(stale_cutoff)
        suspicious = await self._repo.count_abusive(ABUSE_THRESHOLD)
        distinct_total = await self._repo.count_cleanup_candidates(
            now, stale_cutoff, ABUSE_THRESHOLD
        )
        recent_verified = await self._repo.count_verified_since(now - STALE_AFTER)

        return CleanupSummary(
            total_records=total_records,
            database_size_mb=estimate_size_mb(total_records),
            cleanup_candidates=CleanupCandidates(
                expired=expired,
                old_unverified=old_unverified,
                suspicious=suspicious,
                total=expired + old_unverified + suspicious,
                distinct_total=distinct_total,
            ),
            recent_successful_verifications=recent_verified,
        )
