"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A fixed clock
- Deterministic wallet keys and message signing
- Factories for credentials and share links
- PostgreSQL pool and row factories (skipped when the database is unreachable)
"""

from collections.abc import Callable, Generator
from datetime import UTC, datetime

import psycopg
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from psycopg_pool import ConnectionPool

from credchain.adapters.repository.postgres import run_migrations
from credchain.config.settings import get_settings
from credchain.domain.models import Credential, ShareLink

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)

HOLDER = "0x1111111111111111111111111111111111111111"
ISSUER = "0xabc0000000000000000000000000000000000abc"


@pytest.fixture
def now() -> datetime:
    """Fixed 'current' time used by service clocks."""
    return FIXED_NOW


@pytest.fixture
def wallet() -> LocalAccount:
    """Deterministic test wallet."""
    return Account.from_key("0x" + "4c" * 32)


@pytest.fixture
def other_wallet() -> LocalAccount:
    return Account.from_key("0x" + "8f" * 32)


@pytest.fixture
def sign() -> Callable[[LocalAccount, str], str]:
    """Sign a personal message, returning a 0x-prefixed hex signature."""

    def _sign(account: LocalAccount, message: str) -> str:
        signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
        return "0x" + bytes(signed.signature).hex()

    return _sign


@pytest.fixture
def make_credential() -> Callable[..., Credential]:
    def _make(local_id: str = "cred-1", **overrides) -> Credential:
        fields = {
            "local_id": local_id,
            "on_chain_id": 42,
            "credential_name": "Python Engineering",
            "description": "Backend services",
            "organization_name": "Acme Academy",
            "holder": HOLDER,
            "issuer_ref": ISSUER,
            "issued_date": datetime(2024, 1, 15, tzinfo=UTC),
            "can_expire": False,
            "expiry_date": None,
            "skill_level": "Advanced",
            "status": True,
            "certificate_url": None,
            "tx_hash": "0x" + "ab" * 32,
            "additional_notes": "",
        }
        fields.update(overrides)
        return Credential(**fields)

    return _make


@pytest.fixture
def make_share_link() -> Callable[..., ShareLink]:
    def _make(**overrides) -> ShareLink:
        fields = {
            "share_id": "share_abc123_xyz789",
            "owner": HOLDER,
            "credential_ids": ("cred-1",),
            "created_at": datetime(2026, 2, 1, tzinfo=UTC),
            "expiry_date": None,
            "description": "For recruiters",
            "is_active": True,
            "access_count": 0,
            "max_access_count": None,
            "last_accessed_at": None,
        }
        fields.update(overrides)
        return ShareLink(**fields)

    return _make


# Database fixtures

TABLES = ("shared_credentials", "credentials", "issuers", "users", "domain_verifications")


@pytest.fixture(scope="module")
def pool() -> Generator[ConnectionPool, None, None]:
    """Create connection pool for integration tests and apply migrations."""
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=False)
    try:
        pool.open(wait=True, timeout=5)
    except psycopg.OperationalError as exc:
        pool.close()
        pytest.skip(f"PostgreSQL not available: {exc}")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty every table before each test."""
    with pool.connection() as conn:
        for table in TABLES:
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
    yield


@pytest.fixture
def insert_share_link(pool: ConnectionPool) -> Callable[..., None]:
    def _insert(share_id: str, owner: str, credential_ids: list[str], **columns) -> None:
        values = {
            "share_id": share_id,
            "owner": owner,
            "credential_ids": credential_ids,
            "created_at": datetime(2026, 2, 1, tzinfo=UTC),
            "expiry_date": None,
            "description": None,
            "is_active": True,
            "access_count": 0,
            "max_access_count": None,
        }
        values.update(columns)
        names = ", ".join(values)
        placeholders = ", ".join(f"%({name})s" for name in values)
        with pool.connection() as conn:
            conn.execute(
                f"INSERT INTO shared_credentials ({names}) VALUES ({placeholders})", values
            )
            conn.commit()

    return _insert


@pytest.fixture
def insert_credential(pool: ConnectionPool) -> Callable[..., None]:
    def _insert(local_id: str, holder: str, issuer: str | None, **columns) -> None:
        values = {
            "id": local_id,
            "holder_address": holder,
            "issuer_address": issuer,
            "credential_id": 42,
            "credential_name": "Python Engineering",
            "issued_date": datetime(2024, 1, 15, tzinfo=UTC),
        }
        values.update(columns)
        names = ", ".join(values)
        placeholders = ", ".join(f"%({name})s" for name in values)
        with pool.connection() as conn:
            conn.execute(f"INSERT INTO credentials ({names}) VALUES ({placeholders})", values)
            conn.commit()

    return _insert
