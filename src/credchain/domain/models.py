"""
Domain models - Value objects shared by services, ports and adapters.

All models are frozen dataclasses. Timestamps are timezone-aware UTC
datetimes; addresses are stored as returned by their source and compared
case-insensitively.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
UNKNOWN_ISSUER = "Unknown Issuer"


@dataclass(frozen=True)
class Identity:
    """Claim set carried by a session token."""

    address: str
    email: str | None
    issued_at: int  # epoch milliseconds
    expires_at: int | None = None


@dataclass(frozen=True)
class UserProfile:
    address: str
    email: str | None


@dataclass(frozen=True)
class SessionGrant:
    """Result of a successful wallet login."""

    token: str
    address: str
    email: str | None
    has_profile: bool


@dataclass(frozen=True)
class Credential:
    """
    Off-chain descriptive record of an issued credential.

    ``issuer_ref`` is the foreign key of the issuing organization;
    ``organization_name`` is filled by the repository's explicit join.
    """

    local_id: str
    on_chain_id: int | None
    credential_name: str | None
    description: str | None
    organization_name: str
    holder: str
    issuer_ref: str
    issued_date: datetime | None
    can_expire: bool
    expiry_date: datetime | None
    skill_level: str | None
    status: bool
    certificate_url: str | None
    tx_hash: str | None
    additional_notes: str = ""


@dataclass(frozen=True)
class LedgerCredentialRecord:
    """Authoritative on-chain credential record."""

    issuer: str
    holder: str
    data_hash: str
    issued_at: int
    revoked: bool

    @property
    def exists(self) -> bool:
        return self.issuer.lower() != ZERO_ADDRESS


@dataclass(frozen=True)
class IssuerProfile:
    """On-chain issuer profile."""

    domain: str
    is_verified: bool
    verified_at: int
    organization_name: str
    description: str


@dataclass(frozen=True)
class CredentialVerification:
    credential_id: int
    record: LedgerCredentialRecord
    issuer_profile: IssuerProfile | None


@dataclass(frozen=True)
class BatchEntry:
    credential_id: int | str
    success: bool
    record: LedgerCredentialRecord | None = None
    error: str | None = None


@dataclass(frozen=True)
class BatchVerification:
    results: list[BatchEntry] = field(default_factory=list)

    @property
    def total_verified(self) -> int:
        return sum(1 for entry in self.results if entry.success)

    @property
    def total_requested(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class DataVerification:
    """Outcome of reconciling descriptive fields against the ledger hash."""

    credential_id: int
    is_valid: bool
    canonical_form: str
    local_hash: str
    used_notes: Any  # notes value as serialized in the canonical form
    used_issued_at: str


@dataclass(frozen=True)
class ShareLink:
    share_id: str
    owner: str
    credential_ids: tuple[str, ...]
    created_at: datetime
    expiry_date: datetime | None = None
    description: str | None = None
    is_active: bool = True
    access_count: int = 0
    max_access_count: int | None = None
    last_accessed_at: datetime | None = None


@dataclass(frozen=True)
class SharedCredentials:
    """Credentials released through a share link, with the post-access link state."""

    link: ShareLink
    credentials: list[Credential]


@dataclass(frozen=True)
class DomainVerificationAttempt:
    domain: str
    issuer_address: str
    last_attempt: datetime
    last_success: datetime | None
    attempts: int


@dataclass(frozen=True)
class DomainVerificationResult:
    transaction_hash: str
    domain: str
    issuer_address: str


@dataclass(frozen=True)
class WellKnownDescriptor:
    content: dict
    instructions: str
