"""
Request DTOs for the pre-signup verification endpoints.

SendVerificationCodeRequest — POST /api/auth/send-verification-code
VerifyCodeRequest           — POST /api/auth/verify-code

Fields are optional at the schema level so a missing value is reported by
the service itself; a wrongly typed value fails here and the error
handlers answer it with a 400 validation_error.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class SendVerificationCodeRequest(BaseModel):
    """Request body for POST /api/auth/send-verification-code."""

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    name: Optional[str] = None


class VerifyCodeRequest(BaseModel):
    """Request body for POST /api/auth/verify-code.

    ``code`` is the numeric code sent by email. Clients that post it as a
    JSON number are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    code: Optional[str] = None

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v
