"""Signed email verification tokens.

Token format: base64url(email:expiry:signature), unpadded, where ``expiry`` is
an absolute Unix time in milliseconds and ``signature`` is the lowercase hex
HMAC-SHA256 of ``email:expiry`` keyed with the signing secret.

Tokens are stateless. Nothing is persisted, so a token stays valid for
repeated verification until it expires.
"""

import base64
import binascii
import hashlib
import hmac
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import urlencode

DELIMITER = ":"
_EXPIRY_RE = re.compile(r"-?[0-9]+")
_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]*")

# 24 hours
DEFAULT_TTL_MS = 24 * 60 * 60 * 1000

Clock = Callable[[], int]


def current_time_ms() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


class TokenError(Exception):
    """Base class for token verification failures."""

    code = "token_error"
    message = "Token verification failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class MalformedTokenError(TokenError):
    """Token could not be decoded into email, expiry and signature."""

    code = "malformed_token"
    message = "Invalid token format"


class ExpiredTokenError(TokenError):
    """Token expiry is in the past."""

    code = "expired"
    message = "Token has expired"


class InvalidSignatureError(TokenError):
    """Token signature does not match its contents."""

    code = "invalid_signature"
    message = "Invalid token signature"


@dataclass(frozen=True)
class TokenConfig:
    """Signing configuration shared by issuer and verifier."""

    secret: bytes
    ttl_ms: int = DEFAULT_TTL_MS
    check_signature_first: bool = False

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("Verification secret must not be empty")


@dataclass(frozen=True)
class DecodedToken:
    """Fields carried by a token, before any expiry or signature check."""

    email: str
    expiry_ms: int
    signature: str

    def is_expired(self, now_ms: int) -> bool:
        return now_ms > self.expiry_ms


def _as_bytes(secret: bytes | str) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else secret


def _sign(secret: bytes, payload: str) -> str:
    return hmac.new(secret, payload.encode("utf-8"), hashlib.sha256).hexdigest()


def _b64encode(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def _b64decode(token: str) -> str:
    # URL-safe alphabet only, no padding
    if not _TOKEN_RE.fullmatch(token):
        raise MalformedTokenError()
    padding = "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(token + padding, altchars=b"-_", validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise MalformedTokenError() from e


def _split(token: str) -> tuple[str, str, str]:
    """Decode a token into its raw email, expiry and signature strings."""
    parts = _b64decode(token).split(DELIMITER)
    if len(parts) != 3:
        raise MalformedTokenError()
    email, expiry_str, signature = parts
    return email, expiry_str, signature


def _parse_expiry(expiry_str: str) -> int:
    # ASCII digits only, optional sign
    if not _EXPIRY_RE.fullmatch(expiry_str):
        raise MalformedTokenError()
    try:
        return int(expiry_str)
    except ValueError as e:
        # Longer than the interpreter int conversion limit
        raise MalformedTokenError() from e


def decode(token: str) -> DecodedToken:
    """Decode a token without checking its expiry or signature.

    Raises:
        MalformedTokenError: If the token is not a well-formed token
    """
    email, expiry_str, signature = _split(token)
    return DecodedToken(email=email, expiry_ms=_parse_expiry(expiry_str), signature=signature)


class TokenIssuer:
    """Mints verification tokens."""

    def __init__(self, config: TokenConfig, clock: Clock = current_time_ms):
        self.config = config
        self.clock = clock

    def issue(self, email: str) -> str:
        """Create a signed token for ``email`` expiring ``ttl_ms`` from now.

        Args:
            email: Address being verified, already validated by the caller

        Returns:
            URL-safe token string

        Raises:
            ValueError: If the email contains the token delimiter
        """
        if DELIMITER in email:
            raise ValueError(f"Email must not contain {DELIMITER!r}")

        expiry = self.clock() + self.config.ttl_ms
        payload = f"{email}{DELIMITER}{expiry}"
        signature = _sign(self.config.secret, payload)
        return _b64encode(f"{payload}{DELIMITER}{signature}")


class TokenVerifier:
    """Checks verification tokens and recovers the email they were issued for."""

    def __init__(self, config: TokenConfig, clock: Clock = current_time_ms):
        self.config = config
        self.clock = clock

    def verify(self, token: str) -> str:
        """Verify a token and return its email.

        Checks run in order: decode, field count, expiry parse, expiry,
        signature. With ``check_signature_first`` the signature is checked
        before the expiry.

        Raises:
            MalformedTokenError: Token does not decode to three fields
            ExpiredTokenError: Token expiry has passed
            InvalidSignatureError: Signature does not match
        """
        email, expiry_str, signature = _split(token)
        expiry = _parse_expiry(expiry_str)

        if self.config.check_signature_first:
            self._check_signature(email, expiry_str, signature)
            self._check_expiry(expiry)
        else:
            self._check_expiry(expiry)
            self._check_signature(email, expiry_str, signature)

        return email

    def inspect(self, token: str) -> DecodedToken:
        """Decode a token for diagnostics, without validating it."""
        return decode(token)

    def _check_expiry(self, expiry: int) -> None:
        if self.clock() > expiry:
            raise ExpiredTokenError()

    def _check_signature(self, email: str, expiry_str: str, signature: str) -> None:
        expected = _sign(self.config.secret, f"{email}{DELIMITER}{expiry_str}")
        if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
            raise InvalidSignatureError()


def issue(
    email: str,
    secret: bytes | str,
    ttl_ms: int = DEFAULT_TTL_MS,
    clock: Clock = current_time_ms,
) -> str:
    """Create a signed verification token. See :meth:`TokenIssuer.issue`."""
    config = TokenConfig(secret=_as_bytes(secret), ttl_ms=ttl_ms)
    return TokenIssuer(config, clock=clock).issue(email)


def verify(
    token: str,
    secret: bytes | str,
    clock: Clock = current_time_ms,
    check_signature_first: bool = False,
) -> str:
    """Verify a token and return its email. See :meth:`TokenVerifier.verify`."""
    config = TokenConfig(secret=_as_bytes(secret), check_signature_first=check_signature_first)
    return TokenVerifier(config, clock=clock).verify(token)


def build_verification_link(app_url: str, token: str) -> str:
    """Build the callback URL a user follows to verify their email."""
    query = urlencode({"type": "email_verification", "token": token})
    return f"{app_url.rstrip('/')}/auth/callback?{query}"
