"""Pre-launch configuration checks.

Run before a deploy (``shiftcheck check``) and by the readiness endpoint to catch
missing or weak signing configuration before any token is issued.
"""

import logging
from dataclasses import dataclass

from shiftcheck.config import Settings
from shiftcheck.services.verification import (
    TokenConfig,
    TokenError,
    TokenIssuer,
    TokenVerifier,
)

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32

# Fragments left behind by copied .env templates
PLACEHOLDER_MARKERS = ("xxxxx", "[")

# Address used for the issue/verify round trip, never emailed
ROUNDTRIP_EMAIL = "prelaunch-check@shiftcheck.app"


@dataclass
class CheckResult:
    """Outcome of a single pre-launch check."""

    name: str
    passed: bool
    message: str
    critical: bool = True


def _check_secret(settings: Settings) -> list[CheckResult]:
    secret = settings.signing_secret
    if not secret:
        return [
            CheckResult(
                name="verification_secret",
                passed=False,
                message="Neither VERIFICATION_SECRET nor STRIPE_WEBHOOK_SECRET is set",
            )
        ]
    if any(marker in secret for marker in PLACEHOLDER_MARKERS):
        return [
            CheckResult(
                name="verification_secret",
                passed=False,
                message="Signing secret contains a placeholder value",
            )
        ]

    results = [
        CheckResult(name="verification_secret", passed=True, message="Signing secret configured"),
        CheckResult(
            name="verification_secret_strength",
            passed=len(secret) >= MIN_SECRET_LENGTH,
            message=f"Signing secret is {len(secret)} characters (recommended {MIN_SECRET_LENGTH}+)",
            critical=False,
        ),
    ]
    dedicated = bool(settings.verification_secret)
    results.append(
        CheckResult(
            name="dedicated_secret",
            passed=dedicated,
            message="Using VERIFICATION_SECRET" if dedicated
            else "Falling back to STRIPE_WEBHOOK_SECRET for token signing",
            critical=False,
        )
    )
    return results


def _check_roundtrip(settings: Settings) -> CheckResult:
    name = "token_roundtrip"
    try:
        config = TokenConfig(
            secret=settings.signing_secret.encode("utf-8"),
            ttl_ms=settings.token_ttl_ms,
            check_signature_first=settings.verification_check_signature_first,
        )
    except ValueError as e:
        return CheckResult(name=name, passed=False, message=str(e))

    token = TokenIssuer(config).issue(ROUNDTRIP_EMAIL)
    try:
        email = TokenVerifier(config).verify(token)
    except TokenError as e:
        return CheckResult(name=name, passed=False, message=f"Round trip failed: {e}")

    if email != ROUNDTRIP_EMAIL:
        return CheckResult(name=name, passed=False, message=f"Round trip returned {email!r}")
    return CheckResult(name=name, passed=True, message="Issued token verifies")


def _check_app_url(settings: Settings) -> CheckResult:
    secure = settings.app_url.startswith("https://")
    return CheckResult(
        name="app_url",
        passed=secure or not settings.is_production,
        message=f"Verification links point at {settings.app_url}",
        critical=settings.is_production,
    )


def run_prelaunch_checks(settings: Settings) -> list[CheckResult]:
    """Run every pre-launch check against ``settings``."""
    results = _check_secret(settings)
    results.append(_check_roundtrip(settings))
    results.append(_check_app_url(settings))

    for result in results:
        if not result.passed:
            level = logging.ERROR if result.critical else logging.WARNING
            logger.log(level, f"Pre-launch check {result.name} failed: {result.message}")

    return results


def critical_failures(results: list[CheckResult]) -> list[CheckResult]:
    """Return the failed checks that should block a launch."""
    return [r for r in results if r.critical and not r.passed]
