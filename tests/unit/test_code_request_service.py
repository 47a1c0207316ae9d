"""Unit tests for CodeRequestService (POST /api/auth/send-verification-code)."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from config import VerificationSettings
from errors import ConflictError, EmailDeliveryError, RateLimitError, ValidationError
from infrastructure.rate_limiter import RateLimitDecision
from schemas.models.security_event import SecurityEventType
from services.code_request_service import CodeRequestService
from services.verification_service import ClientContext

EMAIL = "jane.doe@gmail.com"
CLIENT = ClientContext(ip="198.51.100.4", user_agent="pytest")


@pytest.fixture
def settings():
    return VerificationSettings(allowed_email_domains=["gmail.com"])


@pytest.fixture
def users():
    users = AsyncMock()
    users.exists_by_email = AsyncMock(return_value=False)
    return users


@pytest.fixture
def email_provider():
    provider = AsyncMock()
    provider.send_verification_code_email = AsyncMock(return_value=True)
    return provider


@pytest.fixture
def limiter():
    limiter = AsyncMock()
    limiter.hit = AsyncMock(return_value=RateLimitDecision(allowed=True, remaining=2))
    return limiter


@pytest.fixture
def service(repo, users, events, email_provider, limiter, settings, clock):
    return CodeRequestService(
        repo, users, events, email_provider, limiter, settings, clock=clock
    )


def _event_types(events):
    return [c.args[0] for c in events.log_event.call_args_list]


class TestHappyPath:
    async def test_stores_record_and_sends_code(self, service, repo, email_provider, clock):
        result = await service.request_code(EMAIL, "Jane", CLIENT)

        assert result.email == EMAIL
        assert result.expires_in_minutes == 10
        record = repo.records[EMAIL]
        assert record.name == "Jane"
        assert record.client_ip == CLIENT.ip
        assert record.created_at == clock.now
        assert record.expires_at == clock.now + timedelta(minutes=10)
        assert len(record.code) == 6 and record.code.isdigit()
        email_provider.send_verification_code_email.assert_awaited_once_with(
            EMAIL, "Jane", record.code, 10
        )

    async def test_normalises_email_and_name(self, service, repo):
        result = await service.request_code("  Jane.Doe@Gmail.com ", "  Jane ", CLIENT)
        assert result.email == EMAIL
        assert repo.records[EMAIL].name == "Jane"

    async def test_logs_request_event(self, service, events):
        await service.request_code(EMAIL, "Jane", CLIENT)
        assert _event_types(events) == [SecurityEventType.VERIFICATION_REQUEST]

    async def test_new_request_replaces_locked_record(self, service, repo, clock):
        repo.add(email=EMAIL, code="111111", failed_attempts=10)
        await service.request_code(EMAIL, "Jane", CLIENT)
        record = repo.records[EMAIL]
        assert record.failed_attempts == 0
        assert record.verified is False

    async def test_purges_expired_records_first(self, service, repo, clock):
        repo.add(email="gone@gmail.com", expires_at=clock.now - timedelta(minutes=1))
        await service.request_code(EMAIL, "Jane", CLIENT)
        assert "gone@gmail.com" not in repo.records

    async def test_purge_failure_is_not_fatal(self, service, repo, mocker):
        mocker.patch.object(
            repo, "delete_expired", AsyncMock(side_effect=RuntimeError("down"))
        )
        result = await service.request_code(EMAIL, "Jane", CLIENT)
        assert result.email == EMAIL

    async def test_code_length_follows_settings(
        self, repo, users, events, email_provider, limiter, clock
    ):
        settings = VerificationSettings(code_length=8, allowed_email_domains=[])
        service = CodeRequestService(
            repo, users, events, email_provider, limiter, settings, clock=clock
        )
        await service.request_code("jane.doe@example.org", "Jane", CLIENT)
        assert len(repo.records["jane.doe@example.org"].code) == 8


class TestValidation:
    @pytest.mark.parametrize("email, name", [("", "Jane"), (EMAIL, ""), (None, None)])
    async def test_missing_fields(self, service, email, name):
        with pytest.raises(ValidationError, match="required"):
            await service.request_code(email, name, CLIENT)

    async def test_bad_format(self, service):
        with pytest.raises(ValidationError) as exc_info:
            await service.request_code("not-an-email", "Jane", CLIENT)
        assert exc_info.value.field == "email"

    async def test_domain_outside_allow_list(self, service, email_provider):
        with pytest.raises(ValidationError, match="gmail.com"):
            await service.request_code("jane.doe@yahoo.com", "Jane", CLIENT)
        email_provider.send_verification_code_email.assert_not_awaited()

    @pytest.mark.parametrize(
        "email", ["ab@gmail.com", "12345@gmail.com", "test1@gmail.com", "abc1234@gmail.com"]
    )
    async def test_fake_email_blocked_and_logged(self, service, events, email):
        with pytest.raises(ValidationError):
            await service.request_code(email, "Jane", CLIENT)
        assert _event_types(events) == [SecurityEventType.SUSPICIOUS_ACTIVITY]

    async def test_existing_user_conflicts(self, service, users, repo):
        users.exists_by_email.return_value = True
        with pytest.raises(ConflictError):
            await service.request_code(EMAIL, "Jane", CLIENT)
        assert EMAIL not in repo.records


class TestRateLimits:
    async def test_ip_hourly_limit(self, service, repo, events, clock):
        for i in range(10):
            repo.add(
                email=f"other{i}@gmail.com",
                client_ip=CLIENT.ip,
                created_at=clock.now - timedelta(minutes=50),
                expires_at=clock.now + timedelta(minutes=5),
            )
        with pytest.raises(RateLimitError) as exc_info:
            await service.request_code(EMAIL, "Jane", CLIENT)
        assert exc_info.value.retry_after == 3600
        assert _event_types(events) == [SecurityEventType.RATE_LIMIT_HIT]

    async def test_ip_burst_limit(self, service, repo, clock):
        for i in range(3):
            repo.add(
                email=f"other{i}@gmail.com",
                client_ip=CLIENT.ip,
                created_at=clock.now - timedelta(minutes=2),
            )
        with pytest.raises(RateLimitError) as exc_info:
            await service.request_code(EMAIL, "Jane", CLIENT)
        assert exc_info.value.retry_after == 600

    async def test_other_ips_do_not_count(self, service, repo, clock):
        for i in range(5):
            repo.add(email=f"other{i}@gmail.com", client_ip="10.0.0.1")
        result = await service.request_code(EMAIL, "Jane", CLIENT)
        assert result.email == EMAIL

    async def test_ip_check_failure_fails_open(self, service, repo, mocker):
        mocker.patch.object(
            repo, "count_by_ip_since", AsyncMock(side_effect=RuntimeError("down"))
        )
        result = await service.request_code(EMAIL, "Jane", CLIENT)
        assert result.email == EMAIL

    async def test_per_email_limit(self, service, limiter, email_provider):
        limiter.hit.return_value = RateLimitDecision(
            allowed=False, remaining=0, retry_after=1200
        )
        with pytest.raises(RateLimitError) as exc_info:
            await service.request_code(EMAIL, "Jane", CLIENT)
        assert exc_info.value.retry_after == 1200
        limiter.hit.assert_awaited_once_with("code_request_email", EMAIL, 3, 3600)
        email_provider.send_verification_code_email.assert_not_awaited()


class TestDelivery:
    async def test_failed_send_removes_record(self, service, repo, email_provider, events):
        email_provider.send_verification_code_email.return_value = False
        with pytest.raises(EmailDeliveryError):
            await service.request_code(EMAIL, "Jane", CLIENT)
        assert EMAIL not in repo.records
        events.log_event.assert_not_awaited()
