"""
Unit tests for JwtSessionIssuer.

Tokens are issued at the real current time because PyJWT checks ``exp``
against the wall clock.
"""

import time

import jwt
import pytest

from credchain.adapters.session.jwt_tokens import JwtSessionIssuer, build_session_issuer
from credchain.config.settings import Settings
from credchain.domain.exceptions import AuthError, StartupError

SECRET = "unit-test-session-secret-0123456789abcdef"
ADDRESS = "0x1111111111111111111111111111111111111111"


def now_ms() -> int:
    return int(time.time() * 1000)


@pytest.fixture
def issuer() -> JwtSessionIssuer:
    return JwtSessionIssuer(SECRET, ttl_seconds=3600)


class TestIssue:
    """Tests for token minting."""

    def test_claims(self, issuer: JwtSessionIssuer) -> None:
        issued_at = now_ms()
        token = issuer.issue(ADDRESS, "holder@example.com", issued_at)

        claims = jwt.decode(token, SECRET, algorithms=["HS256"])

        assert claims["sub"] == ADDRESS
        assert claims["address"] == ADDRESS
        assert claims["email"] == "holder@example.com"
        assert claims["issuedAt"] == issued_at
        assert claims["exp"] - claims["iat"] == 3600

    def test_round_trip_identity(self, issuer: JwtSessionIssuer) -> None:
        issued_at = now_ms()
        identity = issuer.decode(issuer.issue(ADDRESS, None, issued_at))

        assert identity.address == ADDRESS
        assert identity.email is None
        assert identity.issued_at == issued_at
        assert identity.expires_at == (issued_at // 1000 + 3600) * 1000


class TestDecode:
    """Tests for token verification failures."""

    def test_expired_token(self, issuer: JwtSessionIssuer) -> None:
        two_hours_ago = now_ms() - 2 * 3600 * 1000
        token = issuer.issue(ADDRESS, None, two_hours_ago)

        with pytest.raises(AuthError) as exc_info:
            issuer.decode(token)

        assert exc_info.value.code == "TOKEN_EXPIRED"

    def test_wrong_secret(self, issuer: JwtSessionIssuer) -> None:
        other = JwtSessionIssuer("another-secret-of-sufficient-length-0123456789")
        token = other.issue(ADDRESS, None, now_ms())

        with pytest.raises(AuthError) as exc_info:
            issuer.decode(token)

        assert exc_info.value.code == "INVALID_TOKEN"

    def test_garbage_token(self, issuer: JwtSessionIssuer) -> None:
        with pytest.raises(AuthError) as exc_info:
            issuer.decode("not.a.jwt")
        assert exc_info.value.code == "INVALID_TOKEN"

    def test_missing_subject(self, issuer: JwtSessionIssuer) -> None:
        token = jwt.encode({"exp": int(time.time()) + 60}, SECRET, algorithm="HS256")
        with pytest.raises(AuthError) as exc_info:
            issuer.decode(token)
        assert exc_info.value.code == "INVALID_TOKEN"


class TestBuildSessionIssuer:
    """Tests for startup construction from settings."""

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_fails_startup(self, secret: str | None) -> None:
        with pytest.raises(StartupError) as exc_info:
            build_session_issuer(Settings(session_secret=secret, environment="production"))
        assert exc_info.value.component == "session"

    def test_short_secret_fails_startup_in_production(self) -> None:
        with pytest.raises(StartupError) as exc_info:
            build_session_issuer(Settings(session_secret="change-me", environment="production"))
        assert exc_info.value.component == "session"
        assert "32 characters" in exc_info.value.message

    def test_missing_secret_fails_startup_in_development(self) -> None:
        with pytest.raises(StartupError):
            build_session_issuer(Settings(session_secret=None, environment="development"))

    def test_short_secret_allowed_in_development(self) -> None:
        issuer = build_session_issuer(Settings(session_secret="dev", environment="development"))
        assert isinstance(issuer, JwtSessionIssuer)

    def test_configured_issuer_round_trips(self) -> None:
        issuer = build_session_issuer(
            Settings(session_secret=SECRET, environment="production", session_ttl_seconds=60)
        )

        token = issuer.issue(ADDRESS, None, now_ms())

        assert issuer.decode(token).address == ADDRESS
        claims = jwt.decode(token, SECRET, algorithms=["HS256"])
        assert claims["exp"] - claims["iat"] == 60
