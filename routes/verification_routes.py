"""
Pre-signup verification endpoints.

POST /api/auth/send-verification-code — email a fresh code
POST /api/auth/verify-code            — check a code, hand out a correlation token

verify-code status mapping:
- INVALID_INPUT, NOT_FOUND_OR_EXPIRED, MISMATCH, ALREADY_USED → 400
- LOCKED, TOO_SOON → 429 (TOO_SOON also sets Retry-After)
- SUCCESS → 200
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from dependencies import (
    get_client_context,
    get_code_request_service,
    get_verification_service,
    limit_verify_requests,
)
from schemas.dto.requests.verification import SendVerificationCodeRequest, VerifyCodeRequest
from schemas.dto.responses.common import ErrorResponse
from schemas.dto.responses.verification import (
    SendVerificationCodeResponse,
    VerifyCodeFailureResponse,
    VerifyCodeResponse,
)
from services.code_request_service import CodeRequestService
from services.verification_service import (
    ClientContext,
    VerificationOutcome,
    VerificationService,
)

router = APIRouter(prefix="/api/auth", tags=["verification"])

OUTCOME_STATUS: dict[VerificationOutcome, int] = {
    VerificationOutcome.SUCCESS: 200,
    VerificationOutcome.INVALID_INPUT: 400,
    VerificationOutcome.NOT_FOUND_OR_EXPIRED: 400,
    VerificationOutcome.MISMATCH: 400,
    VerificationOutcome.ALREADY_USED: 400,
    VerificationOutcome.LOCKED: 429,
    VerificationOutcome.TOO_SOON: 429,
}


@router.post(
    "/send-verification-code",
    response_model=SendVerificationCodeResponse,
    responses={
        status_code: {"model": ErrorResponse} for status_code in (400, 409, 429, 502)
    },
)
async def send_verification_code(
    body: SendVerificationCodeRequest,
    client: ClientContext = Depends(get_client_context),
    service: CodeRequestService = Depends(get_code_request_service),
) -> SendVerificationCodeResponse:
    result = await service.request_code(body.email, body.name, client)
    return SendVerificationCodeResponse(
        message="Verification code sent successfully",
        email=result.email,
        expires_in_minutes=result.expires_in_minutes,
    )


@router.post(
    "/verify-code",
    response_model=VerifyCodeResponse,
    responses={400: {"model": VerifyCodeFailureResponse}, 429: {"model": VerifyCodeFailureResponse}},
    dependencies=[Depends(limit_verify_requests)],
)
async def verify_code(
    body: VerifyCodeRequest,
    client: ClientContext = Depends(get_client_context),
    service: VerificationService = Depends(get_verification_service),
):
    result = await service.verify(body.email, body.code, client)

    if result.ok:
        return VerifyCodeResponse(
            message=result.message,
            verification_token=result.verification_token,
            email=result.email,
            name=result.name,
        )

    failure = VerifyCodeFailureResponse(
        error=result.message,
        code=result.outcome.value,
        retry_after=result.retry_after,
        attempts_remaining=result.attempts_remaining,
    )
    headers = None
    if result.retry_after is not None:
        headers = {"Retry-After": str(result.retry_after)}
    return JSONResponse(
        status_code=OUTCOME_STATUS[result.outcome],
        content=failure.model_dump(exclude_none=True),
        headers=headers,
    )
