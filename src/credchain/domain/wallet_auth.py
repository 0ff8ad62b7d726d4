"""
Wallet login domain service - signed challenge verification.

A client proves control of an address by signing the challenge

    Sign this message to log in to <ServiceName>: <epoch-ms>

with the wallet's personal-message scheme. Checks run in this order:

1. Signature recovery (unparsable -> INVALID_SIGNATURE_FORMAT)
2. Recovered signer equals the claimed address, case-insensitive
   (-> SIGNATURE_MISMATCH)
3. Message grammar (-> INVALID_MESSAGE_FORMAT)
4. Freshness: at most ``max_age_seconds`` old (-> MESSAGE_EXPIRED).
   Only stale messages are rejected; a future timestamp is accepted.

On success a session token is minted for the lowercase address.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from .clock import to_millis, utcnow
from .exceptions import AuthError, ValidationError
from .models import SessionGrant
from .ports import SessionIssuer, SignatureVerifier, UserRepository

logger = logging.getLogger(__name__)


@dataclass
class WalletAuthService:
    """
    Domain service for wallet-signature login.

    Recovers the signer, validates the challenge and mints a session.
    """

    signature_verifier: SignatureVerifier
    session_issuer: SessionIssuer
    users: UserRepository
    service_name: str = "SkillChain"
    max_age_seconds: int = 300
    clock: Callable[[], datetime] = field(default=utcnow)

    def __post_init__(self) -> None:
        self._message_pattern = re.compile(
            rf"Sign this message to log in to {re.escape(self.service_name)}: (\d+)"
        )

    def verify_wallet(self, address: str, message: str, signature: str) -> SessionGrant:
        """
        Verify a signed login challenge and issue a session.

        Args:
            address: Claimed wallet address (any case)
            message: Signed challenge text
            signature: Hex-encoded signature

        Returns:
            SessionGrant with token, lowercase address, email and profile flag

        Raises:
            ValidationError: bad signature encoding, message format or stale message
            AuthError: signature made by a different address
        """
        signer = self.signature_verifier.recover_signer(message, signature)
        if signer.lower() != address.lower():
            raise AuthError("Signature does not match address", code="SIGNATURE_MISMATCH")

        match = self._message_pattern.fullmatch(message)
        if match is None:
            raise ValidationError("Invalid message format", code="INVALID_MESSAGE_FORMAT")

        now_ms = to_millis(self.clock())
        timestamp = int(match.group(1))
        if now_ms - timestamp > self.max_age_seconds * 1000:
            raise ValidationError("Message expired", code="MESSAGE_EXPIRED")

        normalized_address = address.lower()
        profile = self.users.get_profile(normalized_address)
        email = profile.email if profile is not None else None

        token = self.session_issuer.issue(normalized_address, email, now_ms)
        logger.info("Wallet login verified for %s", normalized_address)
        return SessionGrant(
            token=token,
            address=normalized_address,
            email=email,
            has_profile=profile is not None,
        )
