"""Repository adapters - Database implementations."""

from .postgres import (
    PostgresDomainVerificationRepository,
    PostgresIssuerStatusRepository,
    PostgresShareLinkRepository,
    PostgresUserRepository,
    run_migrations,
)

__all__ = [
    "PostgresDomainVerificationRepository",
    "PostgresIssuerStatusRepository",
    "PostgresShareLinkRepository",
    "PostgresUserRepository",
    "run_migrations",
]
