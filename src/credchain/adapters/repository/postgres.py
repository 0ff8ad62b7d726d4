"""
PostgreSQL repository adapters - Implement the domain's store ports.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design - Share Link Access Counting:
------------------------------------------------
``record_access`` never reads the count and writes it back. It issues a
single conditional UPDATE that increments ``access_count`` server-side and
re-asserts every ACTIVE condition (active, not expired, under the limit)
in its WHERE clause, returning the updated row. Concurrent accesses to the
same link therefore serialize on the row lock and:

1. No increment is lost: final count == initial + successful accesses.
2. A limited link never exceeds ``max_access_count``: once the limit is
   reached the WHERE clause stops matching and the caller sees no row.
3. The count returned to the caller is the post-increment value from the
   same statement that performed the increment.

Domain verification attempts follow the same rule: ``claim_attempt`` folds
the cooldown check into the upsert, so concurrent requests for one
(domain, issuer) cannot both start a ledger transaction.

Issuer names are resolved with an explicit LEFT JOIN on the credential's
``issuer_address`` foreign key.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta
from pathlib import Path

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from credchain.domain.exceptions import StartupError, StoreError
from credchain.domain.models import (
    UNKNOWN_ISSUER,
    Credential,
    DomainVerificationAttempt,
    ShareLink,
    UserProfile,
)

logger = logging.getLogger(__name__)

_SHARE_COLUMNS = """
    share_id, owner, credential_ids, created_at, expiry_date, description,
    is_active, access_count, max_access_count, last_accessed_at
"""


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate driver errors into the domain's StoreError."""
    try:
        yield
    except psycopg.Error as exc:
        logger.error("Database operation %s failed: %s", operation, exc)
        raise StoreError(f"Database error during {operation}") from exc


class PostgresUserRepository:
    """
    Implements UserRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get_profile(self, address: str) -> UserProfile | None:
        sql = "SELECT address, email FROM users WHERE address = %s"

        with _store_errors("get_profile"), self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (address.lower(),))
                row = cursor.fetchone()

        if row is None:
            return None
        return UserProfile(address=row["address"], email=row["email"])

    def list_credentials(self, address: str) -> list[Credential]:
        """
        List every credential held by ``address``.

        The issuing organization's name comes from an explicit join on
        ``issuer_address``; a missing issuer row or empty name reads as
        "Unknown Issuer".
        """
        sql = """
            SELECT c.id, c.credential_id, c.credential_name, c.description,
                   c.holder_address, c.issuer_address, c.issued_date, c.can_expire,
                   c.expiry_date, c.skill_level, c.status, c.certificate_url,
                   c.tx_hash, c.additional_notes, i.organization_name
            FROM credentials c
            LEFT JOIN issuers i ON i.address = c.issuer_address
            WHERE c.holder_address = %s
            ORDER BY c.id
        """

        with _store_errors("list_credentials"), self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (address.lower(),))
                rows = cursor.fetchall()

        return [
            Credential(
                local_id=row["id"],
                on_chain_id=row["credential_id"],
                credential_name=row["credential_name"],
                description=row["description"],
                organization_name=row["organization_name"] or UNKNOWN_ISSUER,
                holder=row["holder_address"],
                issuer_ref=row["issuer_address"] or "",
                issued_date=row["issued_date"],
                can_expire=row["can_expire"],
                expiry_date=row["expiry_date"],
                skill_level=row["skill_level"],
                status=row["status"],
                certificate_url=row["certificate_url"],
                tx_hash=row["tx_hash"],
                additional_notes=row["additional_notes"] or "",
            )
            for row in rows
        ]


class PostgresShareLinkRepository:
    """Implements ShareLinkRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get(self, share_id: str) -> ShareLink | None:
        sql = f"SELECT {_SHARE_COLUMNS} FROM shared_credentials WHERE share_id = %s"

        with _store_errors("get_share_link"), self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (share_id,))
                row = cursor.fetchone()

        return _share_link_from_row(row) if row is not None else None

    def record_access(self, share_id: str, now: datetime) -> ShareLink | None:
        """
        Atomically count one access to an ACTIVE link.

        Returns:
            The link as updated by this access, or None if the link is
            missing or no longer ACTIVE at ``now``
        """
        sql = f"""
            UPDATE shared_credentials
            SET access_count = access_count + 1,
                last_accessed_at = %(now)s
            WHERE share_id = %(share_id)s
              AND is_active
              AND (expiry_date IS NULL OR expiry_date > %(now)s)
              AND (max_access_count IS NULL
                   OR max_access_count = 0
                   OR access_count < max_access_count)
            RETURNING {_SHARE_COLUMNS}
        """

        with _store_errors("record_share_access"), self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, {"share_id": share_id, "now": now})
                row = cursor.fetchone()
            conn.commit()

        return _share_link_from_row(row) if row is not None else None


class PostgresDomainVerificationRepository:
    """Implements DomainVerificationRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def get_attempt(self, domain: str, issuer_address: str) -> DomainVerificationAttempt | None:
        sql = """
            SELECT domain, issuer_address, last_attempt, last_success, attempts
            FROM domain_verifications
            WHERE domain = %s AND issuer_address = %s
        """

        with _store_errors("get_domain_attempt"), self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(sql, (domain, issuer_address))
                row = cursor.fetchone()

        if row is None:
            return None
        return DomainVerificationAttempt(**row)

    def claim_attempt(
        self, domain: str, issuer_address: str, at: datetime, cooldown: timedelta
    ) -> bool:
        """
        Claim the next attempt for (domain, issuer_address).

        Uses INSERT ... ON CONFLICT DO UPDATE ... WHERE so the cooldown
        check and the attempt stamp are one statement. PostgreSQL evaluates
        the WHERE clause against the locked, latest row version, so of two
        concurrent claims inside one cooldown window only one returns a row.
        ``last_success`` is left untouched.
        """
        sql = """
            INSERT INTO domain_verifications (domain, issuer_address, last_attempt, attempts)
            VALUES (%s, %s, %s, 1)
            ON CONFLICT (domain, issuer_address) DO UPDATE
            SET last_attempt = EXCLUDED.last_attempt,
                attempts = domain_verifications.attempts + 1
            WHERE domain_verifications.last_attempt <= %s
            RETURNING attempts
        """

        with _store_errors("claim_domain_attempt"), self._pool.connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(sql, (domain, issuer_address, at, at - cooldown))
                row = cursor.fetchone()
            conn.commit()

        return row is not None

    def record_success(self, domain: str, issuer_address: str, at: datetime) -> None:
        sql = """
            UPDATE domain_verifications
            SET last_success = %s
            WHERE domain = %s AND issuer_address = %s
        """

        with _store_errors("record_domain_success"), self._pool.connection() as conn:
            conn.execute(sql, (at, domain, issuer_address))
            conn.commit()


class PostgresIssuerStatusRepository:
    """Implements IssuerStatusRepository protocol via psycopg3."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def mark_verified(self, issuer_address: str, domain: str, at: datetime) -> None:
        sql = """
            INSERT INTO issuers (address, is_verified, verified_at, domain, last_updated)
            VALUES (%s, TRUE, %s, %s, %s)
            ON CONFLICT (address) DO UPDATE
            SET is_verified = TRUE,
                verified_at = EXCLUDED.verified_at,
                domain = EXCLUDED.domain,
                last_updated = EXCLUDED.last_updated
        """

        with _store_errors("mark_issuer_verified"), self._pool.connection() as conn:
            conn.execute(sql, (issuer_address.lower(), at, domain, at))
            conn.commit()


def _share_link_from_row(row: dict) -> ShareLink:
    return ShareLink(
        share_id=row["share_id"],
        owner=row["owner"],
        credential_ids=tuple(row["credential_ids"] or ()),
        created_at=row["created_at"],
        expiry_date=row["expiry_date"],
        description=row["description"],
        is_active=row["is_active"],
        access_count=row["access_count"],
        max_access_count=row["max_access_count"],
        last_accessed_at=row["last_accessed_at"],
    )


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance

    Raises:
        StartupError: a migration could not be applied
    """
    # Structure: src/credchain/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parents[4] / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except (OSError, psycopg.Error) as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise StartupError("database", f"migration failed: {sql_file.name}") from e
