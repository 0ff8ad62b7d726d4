"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes. Client handles
(connection pool, ledger client, session issuer) are built once in the
application lifespan and read from ``app.state``.
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from psycopg_pool import ConnectionPool

from credchain.adapters.repository.postgres import (
    PostgresDomainVerificationRepository,
    PostgresIssuerStatusRepository,
    PostgresShareLinkRepository,
    PostgresUserRepository,
)
from credchain.adapters.wallet.eth_signature import EthAccountSignatureVerifier
from credchain.config.settings import Settings, get_settings
from credchain.domain.domain_ownership import DomainOwnershipService
from credchain.domain.exceptions import AuthError
from credchain.domain.models import Identity
from credchain.domain.ports import LedgerClient, SessionIssuer
from credchain.domain.sharing import ShareLinkService
from credchain.domain.verification import CredentialVerificationService
from credchain.domain.wallet_auth import WalletAuthService

# Module-level singleton - signature recovery is stateless
_signature_verifier = EthAccountSignatureVerifier()


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_ledger(request: Request) -> LedgerClient:
    """Get the ledger client built at startup."""
    return request.app.state.ledger


def get_session_issuer(request: Request) -> SessionIssuer:
    return request.app.state.session_issuer


def get_signature_verifier() -> EthAccountSignatureVerifier:
    """Get signature verifier (singleton)."""
    return _signature_verifier


def get_wallet_auth_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> WalletAuthService:
    """Wire signature recovery, session minting and profile lookup."""
    return WalletAuthService(
        signature_verifier=get_signature_verifier(),
        session_issuer=get_session_issuer(request),
        users=PostgresUserRepository(get_pool(request)),
        service_name=settings.service_name,
        max_age_seconds=settings.message_max_age_seconds,
    )


def get_verification_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> CredentialVerificationService:
    return CredentialVerificationService(
        ledger=get_ledger(request), max_workers=settings.batch_max_workers
    )


def get_share_link_service(request: Request) -> ShareLinkService:
    pool = get_pool(request)
    return ShareLinkService(
        share_links=PostgresShareLinkRepository(pool),
        users=PostgresUserRepository(pool),
    )


def get_domain_ownership_service(
    request: Request, settings: Settings = Depends(get_settings)
) -> DomainOwnershipService:
    pool = get_pool(request)
    return DomainOwnershipService(
        ledger=get_ledger(request),
        attempts=PostgresDomainVerificationRepository(pool),
        issuer_status=PostgresIssuerStatusRepository(pool),
        service_name=settings.service_name,
        cooldown_hours=settings.domain_cooldown_hours,
    )


# Bearer scheme for OpenAPI documentation; header checks happen below
http_bearer = HTTPBearer(auto_error=False)


def get_current_identity(
    request: Request,
    _credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> Identity:
    """
    Resolve the session identity from the ``Authorization: Bearer`` header.

    Raises:
        AuthError: AUTH_HEADER_MISSING, TOKEN_MISSING, TOKEN_EXPIRED or INVALID_TOKEN
    """
    header = request.headers.get("Authorization")
    if not header:
        raise AuthError("Authorization header missing", code="AUTH_HEADER_MISSING")

    parts = header.split(" ")
    token = parts[1] if len(parts) > 1 else ""
    if not token:
        raise AuthError("Token missing from authorization header", code="TOKEN_MISSING")

    return get_session_issuer(request).decode(token)
