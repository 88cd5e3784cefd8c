"""Email verification endpoints."""

import logging

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr

from shiftcheck.api.deps import AuthRateLimit, IssuerDep, VerifierDep, VerifyRateLimit
from shiftcheck.config import settings
from shiftcheck.services.email import email_service
from shiftcheck.services.verification import TokenError, build_verification_link

logger = logging.getLogger(__name__)

router = APIRouter()


class SendVerificationRequest(BaseModel):
    """Request body for sending a verification email."""

    email: EmailStr


class SendVerificationResponse(BaseModel):
    """Response for a verification email request."""

    success: bool = True
    message: str
    # In development, include the link for testing
    verification_link: str | None = None


class VerifyTokenRequest(BaseModel):
    """Request body for token verification."""

    token: str


class VerifyTokenResponse(BaseModel):
    """Result of verifying a token."""

    valid: bool
    email: str | None = None
    error: str | None = None


@router.post("/send-verification", response_model=SendVerificationResponse)
async def send_verification(
    request: SendVerificationRequest,
    issuer: IssuerDep,
    _rate_limit: AuthRateLimit,
):
    """
    Send an email verification link.

    The link carries a signed token that expires after the configured TTL.
    """
    email = str(request.email)

    try:
        token = issuer.issue(email)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email format",
        ) from e

    verification_link = build_verification_link(settings.app_url, token)

    email_sent = await email_service.send_verification_email(
        to=email, verification_link=verification_link
    )
    if not email_sent:
        logger.error(f"Failed to send verification email to {email}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send verification email",
        )

    logger.info(f"Verification email sent to {email}")
    response = SendVerificationResponse(message="Check your email for a verification link")

    if settings.is_development:
        response.verification_link = verification_link

    return response


@router.post(
    "/verify-token",
    response_model=VerifyTokenResponse,
    responses={400: {"model": VerifyTokenResponse}},
)
async def verify_token(
    request: VerifyTokenRequest,
    verifier: VerifierDep,
    _rate_limit: VerifyRateLimit,
):
    """
    Verify a signed email verification token.

    Returns the email it was issued for. Marking the account as verified is
    left to the caller.
    """
    if not request.token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token is required",
        )

    try:
        email = verifier.verify(request.token)
    except TokenError as e:
        logger.info(f"Token verification failed: {e.code}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=VerifyTokenResponse(valid=False, error=str(e)).model_dump(),
        )

    return VerifyTokenResponse(valid=True, email=email)
