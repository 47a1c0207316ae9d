"""
Response DTOs for the pre-signup verification endpoints.

SendVerificationCodeResponse — POST /api/auth/send-verification-code (200)
VerifyCodeResponse           — POST /api/auth/verify-code (200)
VerifyCodeFailureResponse    — POST /api/auth/verify-code (400 / 429)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class SendVerificationCodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    email: str
    expires_in_minutes: int


class VerifyCodeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    verification_token: str
    email: str
    name: str


class VerifyCodeFailureResponse(BaseModel):
    """Failure body; the optional fields tell the client what to do next."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: str
    code: str
    retry_after: Optional[int] = None
    attempts_remaining: Optional[int] = None
