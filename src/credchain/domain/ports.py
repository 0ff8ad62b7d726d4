"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from .models import (
    Credential,
    DomainVerificationAttempt,
    Identity,
    IssuerProfile,
    LedgerCredentialRecord,
    ShareLink,
    UserProfile,
)


class ShareState(str, Enum):
    """
    Lifecycle states of a share link.

    Evaluated in fixed precedence, first match wins:
    NOT_FOUND -> REVOKED -> EXPIRED -> ACCESS_LIMIT_REACHED -> ACTIVE

    Only ACTIVE links release credentials. The error codes reported to
    callers are derived from the state name.
    """

    NOT_FOUND = "NOT_FOUND"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
    ACCESS_LIMIT_REACHED = "ACCESS_LIMIT_REACHED"
    ACTIVE = "ACTIVE"


class LedgerClient(Protocol):
    """Port interface for the credential ledger contract."""

    def get_credential(self, credential_id: int) -> LedgerCredentialRecord:
        """
        Read the on-chain record for a credential.

        A record whose issuer is the zero address means the credential
        does not exist; that is not an error at this level.

        Raises:
            LedgerError: RPC failure
        """
        ...

    def verify_credential_data(self, credential_id: int, canonical_data: str) -> bool:
        """Ask the contract whether the hash of ``canonical_data`` matches the stored hash."""
        ...

    def get_issuer_profile(self, issuer_address: str) -> IssuerProfile:
        ...

    def set_domain_verified(self, issuer_address: str, verified: bool) -> str:
        """
        Submit a domain-ownership transaction and wait for its receipt.

        Returns:
            Transaction hash (0x-prefixed hex)

        Raises:
            LedgerTimeout: receipt not seen within the configured wait
            LedgerError: submission failed or the transaction reverted
        """
        ...


class SignatureVerifier(Protocol):
    """Port interface for wallet message-signature recovery."""

    def recover_signer(self, message: str, signature: str) -> str:
        """
        Recover the address that signed ``message``.

        Raises:
            ValidationError: signature cannot be parsed (INVALID_SIGNATURE_FORMAT)
        """
        ...


class SessionIssuer(Protocol):
    """Port interface for session token minting and checking."""

    def issue(self, address: str, email: str | None, issued_at: int) -> str:
        ...

    def decode(self, token: str) -> Identity:
        """
        Raises:
            AuthError: token expired or invalid
        """
        ...


class UserRepository(Protocol):
    """Port interface for user profiles and their credentials."""

    def get_profile(self, address: str) -> UserProfile | None:
        ...

    def list_credentials(self, address: str) -> list[Credential]:
        """All credentials held by ``address``, with issuer names joined in."""
        ...


class ShareLinkRepository(Protocol):
    """Port interface for share link persistence."""

    def get(self, share_id: str) -> ShareLink | None:
        ...

    def record_access(self, share_id: str, now: datetime) -> ShareLink | None:
        """
        Atomically increment the access count of an ACTIVE link.

        The increment is a single conditional update that re-checks the
        ACTIVE predicate at ``now``; the returned link carries the
        post-increment count from that same update.

        Returns:
            Updated link, or None if the link no longer qualifies
        """
        ...


class DomainVerificationRepository(Protocol):
    """Port interface for domain verification attempt tracking."""

    def get_attempt(self, domain: str, issuer_address: str) -> DomainVerificationAttempt | None:
        ...

    def claim_attempt(
        self, domain: str, issuer_address: str, at: datetime, cooldown: timedelta
    ) -> bool:
        """
        Atomically start an attempt if the cooldown has elapsed.

        Stamps ``last_attempt`` and bumps ``attempts`` only when there is no
        previous attempt or the previous one is at least ``cooldown`` old.
        Returns False (and writes nothing) otherwise.
        """
        ...

    def record_success(self, domain: str, issuer_address: str, at: datetime) -> None:
        """Set ``last_success`` on a claimed attempt."""
        ...


class IssuerStatusRepository(Protocol):
    """Port interface for off-chain issuer verification status."""

    def mark_verified(self, issuer_address: str, domain: str, at: datetime) -> None:
        ...
