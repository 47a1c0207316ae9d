"""
Shared test fixtures.

InMemoryVerificationRepository mirrors VerificationRepository's async
interface over a dict keyed by email, so service tests can exercise real
state transitions without MongoDB. Settings never read a local .env file.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from schemas.models.verification import VerificationRecordDoc

# Ensure a MONGODB_URI is present so AppSettings can be instantiated
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/")

T0 = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for the services' ``clock`` argument."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryVerificationRepository:
    def __init__(self) -> None:
        self.records: dict[str, VerificationRecordDoc] = {}

    def add(self, **fields) -> VerificationRecordDoc:
        base = dict(
            email="a@b.com",
            code="123456",
            name="Alice",
            client_ip="1.2.3.4",
            created_at=T0,
            expires_at=T0 + timedelta(minutes=10),
        )
        base.update(fields)
        record = VerificationRecordDoc(**base)
        self.records[record.email] = record
        return record

    def _active(self, email: str, now: datetime) -> Optional[VerificationRecordDoc]:
        record = self.records.get(email)
        if record is None or record.expires_at <= now:
            return None
        return record

    async def find_active(self, email, now):
        record = self._active(email, now)
        return record.model_copy() if record else None

    async def record_failed_attempt(self, email, now):
        record = self._active(email, now)
        if record is None:
            return None
        record.failed_attempts += 1
        record.last_attempt_at = now
        return record.model_copy()

    async def mark_verified(self, email, now):
        record = self._active(email, now)
        if record is None or record.verified:
            return False
        record.verified = True
        record.verified_at = now
        record.failed_attempts = 0
        record.last_attempt_at = now
        return True

    async def replace_for_email(self, record):
        self.records[record.email] = record.model_copy()

    async def delete_for_email(self, email, code):
        record = self.records.get(email)
        if record is not None and record.code == code:
            del self.records[email]
            return 1
        return 0

    async def count_by_ip_since(self, client_ip, since):
        return sum(
            1
            for r in self.records.values()
            if r.client_ip == client_ip and r.created_at > since
        )

    def _delete_where(self, predicate) -> int:
        doomed = [e for e, r in self.records.items() if predicate(r)]
        for email in doomed:
            del self.records[email]
        return len(doomed)

    def _count_where(self, predicate) -> int:
        return sum(1 for r in self.records.values() if predicate(r))

    @staticmethod
    def _expired(now):
        return lambda r: r.expires_at < now

    @staticmethod
    def _stale(cutoff):
        return lambda r: not r.verified and r.created_at < cutoff

    @staticmethod
    def _abusive(threshold):
        return lambda r: not r.verified and r.failed_attempts >= threshold

    async def delete_expired(self, now):
        return self._delete_where(self._expired(now))

    async def delete_stale_unverified(self, cutoff):
        return self._delete_where(self._stale(cutoff))

    async def delete_abusive(self, threshold):
        return self._delete_where(self._abusive(threshold))

    async def count_all(self):
        return len(self.records)

    async def count_expired(self, now):
        return self._count_where(self._expired(now))

    async def count_stale_unverified(self, cutoff):
        return self._count_where(self._stale(cutoff))

    async def count_abusive(self, threshold):
        return self._count_where(self._abusive(threshold))

    async def count_cleanup_candidates(self, now, cutoff, threshold):
        preds = (self._expired(now), self._stale(cutoff), self._abusive(threshold))
        return self._count_where(lambda r: any(p(r) for p in preds))

    async def count_verified_since(self, since):
        return self._count_where(
            lambda r: r.verified and r.verified_at is not None and r.verified_at > since
        )

    async def count_created_since(self, since):
        return self._count_where(lambda r: r.created_at > since)

    async def iter_created_since(self, since):
        for record in list(self.records.values()):
            if record.created_at > since:
                yield record.model_copy()


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    """Keep a developer .env file from leaking into settings under test."""
    import pydantic_settings.sources.providers.dotenv as dotenv_source

    monkeypatch.setattr(dotenv_source, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo():
    return InMemoryVerificationRepository()


@pytest.fixture
def events():
    """SecurityEventLogger double; log_event is an AsyncMock returning True."""
    sink = AsyncMock()
    sink.log_event = AsyncMock(return_value=True)
    return sink
