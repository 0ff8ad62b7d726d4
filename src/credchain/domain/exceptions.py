"""
Domain exceptions - Semantic error types for credential verification.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Each error carries a stable machine-readable ``code``; the API layer
maps error kinds to HTTP status codes.
"""


class CredchainError(Exception):
    """Base class for all credchain domain errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(CredchainError):
    """Malformed input (bad signature encoding, unparsable date, bad message)."""

    code = "VALIDATION_ERROR"


class AuthError(CredchainError):
    """Missing, invalid or expired session, or a signature that does not match."""

    code = "AUTH_ERROR"


class NotFound(CredchainError):
    """Requested credential or share link does not exist."""

    code = "NOT_FOUND"


class GoneExpiredOrLimited(CredchainError):
    """Share link exists but is revoked, expired or out of accesses."""

    code = "SHARE_UNAVAILABLE"


class RateLimited(CredchainError):
    """Operation attempted too often."""

    code = "RATE_LIMIT_EXCEEDED"


class CooldownActive(RateLimited):
    """Domain verification attempted again inside the cooldown window."""

    code = "DOMAIN_COOLDOWN_ACTIVE"

    def __init__(self, remaining_hours: int) -> None:
        super().__init__(
            f"Domain verification cooldown active. Try again in {remaining_hours} hours."
        )
        self.remaining_hours = remaining_hours


class ExternalServiceError(CredchainError):
    """Ledger or document store unreachable or erroring."""

    code = "EXTERNAL_SERVICE_ERROR"
    retryable = False


class LedgerError(ExternalServiceError):
    """Ledger RPC call failed."""

    code = "BLOCKCHAIN_ERROR"


class LedgerTimeout(LedgerError):
    """Transaction was not confirmed within the configured wait."""

    code = "LEDGER_TIMEOUT"
    retryable = True


class StoreError(ExternalServiceError):
    """Document store call failed."""

    code = "DATABASE_ERROR"


class DomainVerificationFailed(CredchainError):
    """Ledger write or status update failed during domain verification."""

    code = "DOMAIN_VERIFICATION_FAILED"


class StartupError(CredchainError):
    """A client handle could not be constructed at startup."""

    code = "STARTUP_ERROR"

    def __init__(self, component: str, message: str) -> None:
        super().__init__(f"{component}: {message}")
        self.component = component
