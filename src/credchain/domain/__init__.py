"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for credential verification
and sharing. It defines its own port interfaces for infrastructure
abstraction, ensuring true hexagonal architecture decoupling.
"""

from .canonical import canonical_form, data_hash
from .domain_ownership import DomainOwnershipService
from .exceptions import (
    AuthError,
    CooldownActive,
    CredchainError,
    DomainVerificationFailed,
    ExternalServiceError,
    GoneExpiredOrLimited,
    LedgerError,
    LedgerTimeout,
    NotFound,
    RateLimited,
    StartupError,
    StoreError,
    ValidationError,
)
from .ports import (
    DomainVerificationRepository,
    IssuerStatusRepository,
    LedgerClient,
    SessionIssuer,
    ShareLinkRepository,
    ShareState,
    SignatureVerifier,
    UserRepository,
)
from .sharing import ShareLinkService, evaluate_share_state
from .verification import CredentialVerificationService
from .wallet_auth import WalletAuthService

__all__ = [
    "AuthError",
    "CooldownActive",
    "CredchainError",
    "CredentialVerificationService",
    "DomainOwnershipService",
    "DomainVerificationFailed",
    "DomainVerificationRepository",
    "ExternalServiceError",
    "GoneExpiredOrLimited",
    "IssuerStatusRepository",
    "LedgerClient",
    "LedgerError",
    "LedgerTimeout",
    "NotFound",
    "RateLimited",
    "SessionIssuer",
    "ShareLinkRepository",
    "ShareLinkService",
    "ShareState",
    "SignatureVerifier",
    "StartupError",
    "StoreError",
    "UserRepository",
    "ValidationError",
    "WalletAuthService",
    "canonical_form",
    "data_hash",
    "evaluate_share_state",
]
