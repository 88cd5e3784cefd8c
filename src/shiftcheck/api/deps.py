"""FastAPI dependencies for dependency injection."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from shiftcheck.config import settings
from shiftcheck.services.rate_limit import RateLimitType, check_rate_limit
from shiftcheck.services.verification import TokenConfig, TokenIssuer, TokenVerifier

logger = logging.getLogger(__name__)


def get_token_config() -> TokenConfig:
    """Build the token signing config from settings, or raise 500 if unset."""
    try:
        return TokenConfig(
            secret=settings.signing_secret.encode("utf-8"),
            ttl_ms=settings.token_ttl_ms,
            check_signature_first=settings.verification_check_signature_first,
        )
    except ValueError as e:
        logger.error("Verification secret is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Verification is not configured",
        ) from e


TokenConfigDep = Annotated[TokenConfig, Depends(get_token_config)]


def get_token_issuer(config: TokenConfigDep) -> TokenIssuer:
    return TokenIssuer(config)


def get_token_verifier(config: TokenConfigDep) -> TokenVerifier:
    return TokenVerifier(config)


IssuerDep = Annotated[TokenIssuer, Depends(get_token_issuer)]
VerifierDep = Annotated[TokenVerifier, Depends(get_token_verifier)]


class RateLimitDependency:
    """Dependency class for rate limiting endpoints.

    Usage:
        @router.post("/endpoint")
        async def endpoint(
            rate_limit: Annotated[None, Depends(RateLimitDependency(RateLimitType.AUTH))]
        ):
            ...
    """

    def __init__(self, limit_type: RateLimitType) -> None:
        self.limit_type = limit_type

    async def __call__(self, request: Request) -> None:
        """Check rate limit and raise 429 if exceeded."""
        result = await check_rate_limit(request, self.limit_type)

        if not result.success:
            headers = result.headers()
            retry_after = headers.get("Retry-After", "60")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Rate limit exceeded. Please try again in {retry_after} seconds.",
                headers=headers,
            )


# Pre-configured rate limit dependencies
AuthRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.AUTH))]
VerifyRateLimit = Annotated[None, Depends(RateLimitDependency(RateLimitType.VERIFY))]
