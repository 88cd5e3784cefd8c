"""Verification token tests."""

import base64

import pytest

from shiftcheck.services.verification import (
    DEFAULT_TTL_MS,
    ExpiredTokenError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenConfig,
    TokenError,
    TokenIssuer,
    TokenVerifier,
    build_verification_link,
    decode,
    issue,
    verify,
)
from tests.conftest import DAY_MS, FROZEN_NOW_MS, FrozenClock

HOUR_MS = 60 * 60 * 1000

# Token for user@example.com signed with "topsecret", expiring at FROZEN_NOW_MS + 24h
KNOWN_TOKEN = (
    "dXNlckBleGFtcGxlLmNvbToxNzAwMDg2NDAwMDAwOjY2MzU5NzcwNWRiZGVkZGViZmM0N2Ux"
    "YmI4ZWE1OWFlMTIyNmJkNGNiNzZhMjBiYjIyZWU0N2IyMzFkM2I3ZmQ"
)
KNOWN_SIGNATURE = "663597705dbdeddebfc47e1bb8ea59ae1226bd4cb76a20bb22ee47b231d3b7fd"


def _b64(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def _flip(char: str) -> str:
    return "0" if char != "0" else "1"


class TestTokenConfig:
    """Tests for TokenConfig."""

    def test_defaults(self):
        config = TokenConfig(secret=b"topsecret")
        assert config.ttl_ms == DEFAULT_TTL_MS == DAY_MS
        assert config.check_signature_first is False

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError, match="must not be empty"):
            TokenConfig(secret=b"")

    def test_helpers_accept_str_secret(self, clock: FrozenClock):
        token = issue("user@example.com", "topsecret", DAY_MS, clock=clock)
        assert token == KNOWN_TOKEN
        assert verify(token, "topsecret", clock=clock) == "user@example.com"


class TestTokenIssuer:
    """Tests for token issuance."""

    def test_matches_known_vector(self, token_config: TokenConfig, clock: FrozenClock):
        token = TokenIssuer(token_config, clock=clock).issue("user@example.com")
        assert token == KNOWN_TOKEN

    def test_wire_layout(self, token_config: TokenConfig, clock: FrozenClock):
        token = TokenIssuer(token_config, clock=clock).issue("user@example.com")

        assert "=" not in token
        assert "+" not in token
        assert "/" not in token

        padded = token + "=" * (-len(token) % 4)
        raw = base64.urlsafe_b64decode(padded).decode()
        assert raw == f"user@example.com:{FROZEN_NOW_MS + DAY_MS}:{KNOWN_SIGNATURE}"

    def test_deterministic_with_frozen_clock(self, token_config: TokenConfig, clock: FrozenClock):
        issuer = TokenIssuer(token_config, clock=clock)
        assert issuer.issue("user@example.com") == issuer.issue("user@example.com")

    def test_expiry_moves_with_clock(self, token_config: TokenConfig, clock: FrozenClock):
        issuer = TokenIssuer(token_config, clock=clock)
        first = issuer.issue("user@example.com")
        clock.advance(1)
        second = issuer.issue("user@example.com")

        assert first != second
        assert decode(second).expiry_ms == decode(first).expiry_ms + 1

    def test_rejects_delimiter_in_email(self, token_config: TokenConfig, clock: FrozenClock):
        with pytest.raises(ValueError, match="must not contain"):
            TokenIssuer(token_config, clock=clock).issue("bad:user@example.com")

    def test_module_level_issue(self, clock: FrozenClock):
        assert issue("user@example.com", b"topsecret", DAY_MS, clock=clock) == KNOWN_TOKEN


class TestTokenVerifier:
    """Tests for token verification."""

    def test_roundtrip(self, token_config: TokenConfig, clock: FrozenClock):
        token = TokenIssuer(token_config, clock=clock).issue("user@example.com")
        assert TokenVerifier(token_config, clock=clock).verify(token) == "user@example.com"

    def test_roundtrip_real_clock(self):
        token = issue("owner@restaurant.example", b"topsecret")
        assert verify(token, b"topsecret") == "owner@restaurant.example"

    def test_verify_known_vector(self, token_config: TokenConfig, clock: FrozenClock):
        clock.advance(1000)
        assert TokenVerifier(token_config, clock=clock).verify(KNOWN_TOKEN) == "user@example.com"

    def test_repeat_verification_is_stable(self, token_config: TokenConfig, clock: FrozenClock):
        verifier = TokenVerifier(token_config, clock=clock)
        assert verifier.verify(KNOWN_TOKEN) == "user@example.com"
        assert verifier.verify(KNOWN_TOKEN) == "user@example.com"

    def test_wrong_secret(self, clock: FrozenClock):
        with pytest.raises(InvalidSignatureError, match="Invalid token signature"):
            verify(KNOWN_TOKEN, b"wrong", clock=clock)

    def test_expired_after_25_hours(self, token_config: TokenConfig, clock: FrozenClock):
        clock.advance(25 * HOUR_MS)
        with pytest.raises(ExpiredTokenError, match="Token has expired"):
            TokenVerifier(token_config, clock=clock).verify(KNOWN_TOKEN)

    def test_expiry_boundary(self, token_config: TokenConfig, clock: FrozenClock):
        verifier = TokenVerifier(token_config, clock=clock)

        clock.advance(DAY_MS)
        assert verifier.verify(KNOWN_TOKEN) == "user@example.com"

        clock.advance(1)
        with pytest.raises(ExpiredTokenError):
            verifier.verify(KNOWN_TOKEN)

    def test_negative_ttl_is_expired(self, clock: FrozenClock):
        token = issue("user@example.com", b"topsecret", ttl_ms=-1, clock=clock)
        with pytest.raises(ExpiredTokenError):
            verify(token, b"topsecret", clock=clock)

    @pytest.mark.parametrize("index", [0, 17, 63])
    def test_tampered_signature(self, token_config: TokenConfig, clock: FrozenClock, index: int):
        tampered_signature = (
            KNOWN_SIGNATURE[:index] + _flip(KNOWN_SIGNATURE[index]) + KNOWN_SIGNATURE[index + 1 :]
        )
        token = _b64(f"user@example.com:{FROZEN_NOW_MS + DAY_MS}:{tampered_signature}")

        with pytest.raises(InvalidSignatureError):
            TokenVerifier(token_config, clock=clock).verify(token)

    def test_tampered_email(self, token_config: TokenConfig, clock: FrozenClock):
        token = _b64(f"admin@example.com:{FROZEN_NOW_MS + DAY_MS}:{KNOWN_SIGNATURE}")
        with pytest.raises(InvalidSignatureError):
            TokenVerifier(token_config, clock=clock).verify(token)

    def test_extended_expiry_breaks_signature(self, token_config: TokenConfig, clock: FrozenClock):
        token = _b64(f"user@example.com:{FROZEN_NOW_MS + 2 * DAY_MS}:{KNOWN_SIGNATURE}")
        with pytest.raises(InvalidSignatureError):
            TokenVerifier(token_config, clock=clock).verify(token)

    def test_uppercase_signature_rejected(self, token_config: TokenConfig, clock: FrozenClock):
        token = _b64(f"user@example.com:{FROZEN_NOW_MS + DAY_MS}:{KNOWN_SIGNATURE.upper()}")
        with pytest.raises(InvalidSignatureError):
            TokenVerifier(token_config, clock=clock).verify(token)

    @pytest.mark.parametrize(
        "token",
        [
            "not-valid-base64!!",
            "",
            "YTpi",  # a:b
            "YTphYmM6ZmY",  # a:abc:ff
            _b64("a:b:c:d"),
            _b64("user@example.com: 123:ff"),
            _b64("user@example.com:1_000:ff"),
            _b64("user@example.com::ff"),
            "abcde",
            KNOWN_TOKEN + "==",
            KNOWN_TOKEN.replace("Y", "+", 1),
            KNOWN_TOKEN[:-4] + "ZmQ/",
            " " + KNOWN_TOKEN,
        ],
    )
    def test_malformed(self, token_config: TokenConfig, clock: FrozenClock, token: str):
        with pytest.raises(MalformedTokenError, match="Invalid token format"):
            TokenVerifier(token_config, clock=clock).verify(token)

    def test_oversized_expiry_is_malformed(self, token_config: TokenConfig, clock: FrozenClock):
        token = _b64("user@example.com:" + "9" * 5000 + ":ff")

        with pytest.raises(MalformedTokenError):
            TokenVerifier(token_config, clock=clock).verify(token)
        with pytest.raises(MalformedTokenError):
            decode(token)

    def test_invalid_utf8_is_malformed(self, token_config: TokenConfig, clock: FrozenClock):
        token = base64.urlsafe_b64encode(b"\xff\xfe:1:ff").decode().rstrip("=")
        with pytest.raises(MalformedTokenError):
            TokenVerifier(token_config, clock=clock).verify(token)

    def test_errors_share_base_class(self):
        for error in (MalformedTokenError(), ExpiredTokenError(), InvalidSignatureError()):
            assert isinstance(error, TokenError)
        assert {MalformedTokenError.code, ExpiredTokenError.code, InvalidSignatureError.code} == {
            "malformed_token",
            "expired",
            "invalid_signature",
        }


class TestCheckOrdering:
    """Tests for expiry vs signature check ordering."""

    def _expired_forgery(self, clock: FrozenClock) -> str:
        token = issue("user@example.com", b"other-secret", ttl_ms=-1, clock=clock)
        return token

    def test_expiry_checked_first_by_default(self, clock: FrozenClock):
        with pytest.raises(ExpiredTokenError):
            verify(self._expired_forgery(clock), b"topsecret", clock=clock)

    def test_signature_checked_first_when_configured(self, clock: FrozenClock):
        with pytest.raises(InvalidSignatureError):
            verify(
                self._expired_forgery(clock),
                b"topsecret",
                clock=clock,
                check_signature_first=True,
            )

    def test_valid_expired_token_still_expired(self, clock: FrozenClock):
        token = issue("user@example.com", b"topsecret", ttl_ms=-1, clock=clock)
        with pytest.raises(ExpiredTokenError):
            verify(token, b"topsecret", clock=clock, check_signature_first=True)


class TestDecode:
    """Tests for decoding without validation."""

    def test_decode_fields(self):
        decoded = decode(KNOWN_TOKEN)
        assert decoded.email == "user@example.com"
        assert decoded.expiry_ms == FROZEN_NOW_MS + DAY_MS
        assert decoded.signature == KNOWN_SIGNATURE

    def test_is_expired(self):
        decoded = decode(KNOWN_TOKEN)
        assert decoded.is_expired(FROZEN_NOW_MS) is False
        assert decoded.is_expired(FROZEN_NOW_MS + DAY_MS + 1) is True

    def test_inspect_ignores_signature(self, clock: FrozenClock):
        verifier = TokenVerifier(TokenConfig(secret=b"wrong"), clock=clock)
        assert verifier.inspect(KNOWN_TOKEN).email == "user@example.com"


class TestVerificationLink:
    """Tests for verification link building."""

    def test_link(self):
        link = build_verification_link("https://shiftcheck.app", KNOWN_TOKEN)
        assert link == (
            "https://shiftcheck.app/auth/callback?type=email_verification&token=" + KNOWN_TOKEN
        )

    def test_trailing_slash(self):
        link = build_verification_link("http://localhost:5173/", "abc")
        assert link == "http://localhost:5173/auth/callback?type=email_verification&token=abc"
