"""
Unit tests for WalletAuthService domain logic.

Signatures are produced with real eth-account keys and recovered with the
production EthAccountSignatureVerifier; the session issuer and user
repository are mocked.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from eth_account.signers.local import LocalAccount

from credchain.adapters.wallet.eth_signature import EthAccountSignatureVerifier
from credchain.domain.clock import to_millis
from credchain.domain.exceptions import AuthError, ValidationError
from credchain.domain.models import UserProfile
from credchain.domain.wallet_auth import WalletAuthService


def login_message(timestamp_ms: int, service: str = "SkillChain") -> str:
    return f"Sign this message to log in to {service}: {timestamp_ms}"


@pytest.fixture
def users() -> Mock:
    repo = Mock()
    repo.get_profile.return_value = None
    return repo


@pytest.fixture
def session_issuer() -> Mock:
    issuer = Mock()
    issuer.issue.return_value = "session-token"
    return issuer


@pytest.fixture
def service(users: Mock, session_issuer: Mock, now: datetime) -> WalletAuthService:
    return WalletAuthService(
        signature_verifier=EthAccountSignatureVerifier(),
        session_issuer=session_issuer,
        users=users,
        clock=lambda: now,
    )


class TestSuccessfulLogin:
    """Tests for the happy path."""

    def test_fresh_signature_issues_session(
        self,
        service: WalletAuthService,
        session_issuer: Mock,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        """Valid signature and fresh timestamp mint a session for the lowercase address."""
        message = login_message(to_millis(now) - 1000)

        grant = service.verify_wallet(wallet.address, message, sign(wallet, message))

        assert grant.token == "session-token"
        assert grant.address == wallet.address.lower()
        session_issuer.issue.assert_called_once_with(wallet.address.lower(), None, to_millis(now))

    def test_address_case_insensitive(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        """Claimed address is compared case-insensitively."""
        message = login_message(to_millis(now))
        grant = service.verify_wallet(wallet.address.upper().replace("0X", "0x"), message, sign(wallet, message))
        assert grant.address == wallet.address.lower()

    def test_profile_email_included(
        self,
        service: WalletAuthService,
        users: Mock,
        session_issuer: Mock,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        """Existing profile supplies the email claim and sets has_profile."""
        users.get_profile.return_value = UserProfile(
            address=wallet.address.lower(), email="holder@example.com"
        )
        message = login_message(to_millis(now))

        grant = service.verify_wallet(wallet.address, message, sign(wallet, message))

        assert grant.email == "holder@example.com"
        assert grant.has_profile is True
        users.get_profile.assert_called_once_with(wallet.address.lower())
        assert session_issuer.issue.call_args[0][1] == "holder@example.com"

    def test_missing_profile_is_not_an_error(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        message = login_message(to_millis(now))
        grant = service.verify_wallet(wallet.address, message, sign(wallet, message))
        assert grant.email is None
        assert grant.has_profile is False

    def test_exactly_five_minutes_old_accepted(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        message = login_message(to_millis(now - timedelta(minutes=5)))
        grant = service.verify_wallet(wallet.address, message, sign(wallet, message))
        assert grant.token == "session-token"

    def test_future_timestamp_accepted(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        """Freshness is one-sided: future-dated challenges pass."""
        message = login_message(to_millis(now + timedelta(hours=1)))
        grant = service.verify_wallet(wallet.address, message, sign(wallet, message))
        assert grant.token == "session-token"

    def test_custom_service_name(
        self,
        users: Mock,
        session_issuer: Mock,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        service = WalletAuthService(
            signature_verifier=EthAccountSignatureVerifier(),
            session_issuer=session_issuer,
            users=users,
            service_name="Cred.io",
            clock=lambda: now,
        )
        message = login_message(to_millis(now), service="Cred.io")
        assert service.verify_wallet(wallet.address, message, sign(wallet, message)).token


class TestRejectedLogin:
    """Tests for each rejection reason."""

    def test_message_older_than_five_minutes_expired(
        self,
        service: WalletAuthService,
        session_issuer: Mock,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        """Timestamp aged 5 minutes and 1 second is rejected."""
        message = login_message(to_millis(now - timedelta(minutes=5, seconds=1)))

        with pytest.raises(ValidationError) as exc_info:
            service.verify_wallet(wallet.address, message, sign(wallet, message))

        assert exc_info.value.code == "MESSAGE_EXPIRED"
        session_issuer.issue.assert_not_called()

    def test_signer_mismatch(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        other_wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        now: datetime,
    ) -> None:
        """Signature by a different key is a SIGNATURE_MISMATCH."""
        message = login_message(to_millis(now))

        with pytest.raises(AuthError) as exc_info:
            service.verify_wallet(wallet.address, message, sign(other_wallet, message))

        assert exc_info.value.code == "SIGNATURE_MISMATCH"

    def test_signer_mismatch_reported_before_message_format(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        other_wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
    ) -> None:
        """Mismatch is reported even when the message itself is malformed."""
        message = "hello there, please let me in"

        with pytest.raises(AuthError) as exc_info:
            service.verify_wallet(wallet.address, message, sign(other_wallet, message))

        assert exc_info.value.code == "SIGNATURE_MISMATCH"

    @pytest.mark.parametrize(
        "message",
        [
            "hello there, please let me in",
            "Sign this message to log in to OtherService: 1700000000000",
            "Sign this message to log in to SkillChain: soon",
            "Sign this message to log in to SkillChain: 1700000000000 extra",
        ],
    )
    def test_invalid_message_format(
        self,
        service: WalletAuthService,
        wallet: LocalAccount,
        sign: Callable[[LocalAccount, str], str],
        message: str,
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            service.verify_wallet(wallet.address, message, sign(wallet, message))
        assert exc_info.value.code == "INVALID_MESSAGE_FORMAT"

    def test_unparsable_signature(
        self, service: WalletAuthService, wallet: LocalAccount, now: datetime
    ) -> None:
        message = login_message(to_millis(now))
        with pytest.raises(ValidationError) as exc_info:
            service.verify_wallet(wallet.address, message, "0x" + "zz" * 65)
        assert exc_info.value.code == "INVALID_SIGNATURE_FORMAT"
