"""Unit tests for MongoDB document models."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId
from pydantic import ValidationError

from schemas.models.base import MongoBaseModel, PyObjectId
from schemas.models.security_event import SecurityEventDoc, SecurityEventType
from schemas.models.verification import VerificationRecordDoc


# ── Helpers ───────────────────────────────────────────────────────────────────

def now():
    return datetime.now(timezone.utc)


def oid():
    return ObjectId()


# ── PyObjectId ────────────────────────────────────────────────────────────────

class TestPyObjectId:
    def test_accepts_objectid_instance(self):
        o = oid()
        assert PyObjectId._validate(o) == o

    def test_accepts_valid_string(self):
        s = str(oid())
        result = PyObjectId._validate(s)
        assert isinstance(result, ObjectId)
        assert str(result) == s

    def test_rejects_invalid_string(self):
        with pytest.raises(ValueError):
            PyObjectId._validate("not-an-objectid")

    def test_rejects_none(self):
        with pytest.raises((ValueError, TypeError)):
            PyObjectId._validate(None)


# ── MongoBaseModel ─────────────────────────────────────────────────────────────

class TestMongoBaseModel:
    def test_from_mongo_returns_none_for_none(self):
        assert MongoBaseModel.from_mongo(None) is None

    def test_id_alias(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        assert m.id == o

    def test_to_mongo_drops_none_id(self):
        m = MongoBaseModel()
        d = m.to_mongo()
        assert "_id" not in d

    def test_to_mongo_keeps_set_id(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        d = m.to_mongo()
        assert d["_id"] == o

    def test_to_mongo_can_drop_set_id(self):
        m = MongoBaseModel.model_validate({"_id": oid()})
        assert "_id" not in m.to_mongo(include_id=False)

    def test_json_dump_stringifies_id(self):
        o = oid()
        m = MongoBaseModel.model_validate({"_id": o})
        assert m.model_dump(mode="json", by_alias=True)["_id"] == str(o)



# ── VerificationRecordDoc ─────────────────────────────────────────────────────

class TestVerificationRecordDoc:
    def _make(self, **overrides):
        t = now()
        base = {
            "email": "jane.doe@gmail.com",
            "code": "482913",
            "name": "Jane",
            "client_ip": "1.2.3.4",
            "created_at": t,
            "expires_at": t,
        }
        base.update(overrides)
        return VerificationRecordDoc.model_validate(base)

    def test_defaults(self):
        doc = self._make()
        assert doc.verified is False
        assert doc.verified_at is None
        assert doc.failed_attempts == 0
        assert doc.last_attempt_at is None

    def test_naive_datetimes_become_utc(self):
        naive = datetime(2026, 10, 18, 12, 0, 0)
        doc = self._make(created_at=naive, last_attempt_at=naive)
        assert doc.created_at.tzinfo is not None
        assert doc.created_at.utcoffset().total_seconds() == 0
        assert doc.last_attempt_at.hour == 12

    def test_negative_failed_attempts_rejected(self):
        with pytest.raises(ValidationError):
            self._make(failed_attempts=-1)

    def test_to_mongo_round_trip(self):
        o = oid()
        doc = self._make(**{"_id": o, "failed_attempts": 3})
        mongo = doc.to_mongo()
        assert mongo["_id"] == o
        assert mongo["failed_attempts"] == 3
        restored = VerificationRecordDoc.from_mongo(mongo)
        assert restored.email == doc.email
        assert restored.failed_attempts == 3

    def test_to_mongo_field_names(self):
        mongo = self._make().to_mongo()
        assert set(mongo) == {
            "email",
            "code",
            "name",
            "client_ip",
            "created_at",
            "expires_at",
            "verified",
            "verified_at",
            "failed_attempts",
            "last_attempt_at",
        }


# ── SecurityEventDoc ──────────────────────────────────────────────────────────

class TestSecurityEventDoc:
    def test_accepts_string_event_type(self):
        doc = SecurityEventDoc.model_validate(
            {"event_type": "rate_limit_hit", "timestamp": now()}
        )
        assert doc.event_type is SecurityEventType.RATE_LIMIT_HIT

    def test_rejects_unknown_event_type(self):
        with pytest.raises(ValidationError):
            SecurityEventDoc.model_validate({"event_type": "login", "timestamp": now()})

    def test_to_mongo(self):
        doc = SecurityEventDoc(
            event_type=SecurityEventType.SUSPICIOUS_ACTIVITY,
            email="a@b.com",
            metadata={"reason": "fake_email_blocked"},
            timestamp=now(),
        )
        mongo = doc.to_mongo()
        assert mongo["event_type"] == "suspicious_activity"
        assert mongo["processed"] is False
        assert mongo["metadata"] == {"reason": "fake_email_blocked"}
        assert "_id" not in mongo
