"""
JWT session adapter - Implements SessionIssuer protocol.

Sessions are HMAC-signed JWTs. Claims:

- ``sub`` / ``address``: lowercase wallet address
- ``email``: profile email or null
- ``issuedAt``: login time in epoch milliseconds
- ``iat`` / ``exp``: standard issue and expiry times in epoch seconds
"""

import jwt

from credchain.config.settings import Settings
from credchain.domain.exceptions import AuthError, StartupError
from credchain.domain.models import Identity


class JwtSessionIssuer:
    """
    Implements SessionIssuer protocol via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 3600) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = ttl_seconds

    def issue(self, address: str, email: str | None, issued_at: int) -> str:
        """
        Mint a session token.

        Args:
            address: Lowercase wallet address
            email: Profile email, if any
            issued_at: Login time in epoch milliseconds
        """
        issued_at_seconds = issued_at // 1000
        claims = {
            "sub": address,
            "address": address,
            "email": email,
            "issuedAt": issued_at,
            "iat": issued_at_seconds,
            "exp": issued_at_seconds + self._ttl_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Identity:
        """
        Verify a session token and return its identity.

        Raises:
            AuthError: TOKEN_EXPIRED or INVALID_TOKEN
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token has expired", code="TOKEN_EXPIRED") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid token", code="INVALID_TOKEN") from exc

        return Identity(
            address=claims.get("address") or claims["sub"],
            email=claims.get("email"),
            issued_at=claims.get("issuedAt", claims.get("iat", 0) * 1000),
            expires_at=claims["exp"] * 1000,
        )


MIN_SECRET_LENGTH = 32


def build_session_issuer(settings: Settings) -> JwtSessionIssuer:
    """
    Construct the session issuer from settings.

    Raises:
        StartupError: signing secret missing, or shorter than
            MIN_SECRET_LENGTH outside development
    """
    secret = settings.session_secret
    if not secret:
        raise StartupError("session", "SESSION_SECRET is not configured")
    if len(secret) < MIN_SECRET_LENGTH and not settings.is_development:
        raise StartupError(
            "session", f"SESSION_SECRET must be at least {MIN_SECRET_LENGTH} characters"
        )

    return JwtSessionIssuer(
        secret,
        algorithm=settings.session_algorithm,
        ttl_seconds=settings.session_ttl_seconds,
    )
