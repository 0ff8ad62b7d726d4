"""
Domain ownership domain service - binds a web domain to an issuer address.

Verification is cooldown-gated per (domain, issuer address): a new attempt
is refused while less than the cooldown period has passed since the last
attempt, whether that attempt succeeded or failed. The check and the
attempt record are one atomic claim on the store, taken before the ledger
is touched, so every attempt past the cooldown is recorded, successful or
not, and concurrent requests cannot both pass the gate.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .clock import to_millis, utcnow
from .exceptions import CooldownActive, CredchainError, DomainVerificationFailed, LedgerTimeout
from .models import (
    DomainVerificationAttempt,
    DomainVerificationResult,
    Identity,
    WellKnownDescriptor,
)
from .ports import DomainVerificationRepository, IssuerStatusRepository, LedgerClient

logger = logging.getLogger(__name__)

WELL_KNOWN_VERSION = "1.0"


@dataclass
class DomainOwnershipService:
    """Domain service for issuer domain verification."""

    ledger: LedgerClient
    attempts: DomainVerificationRepository
    issuer_status: IssuerStatusRepository
    service_name: str = "SkillChain"
    cooldown_hours: int = 24
    clock: Callable[[], datetime] = field(default=utcnow)

    def verify_domain(
        self, domain: str, issuer_address: str, identity: Identity
    ) -> DomainVerificationResult:
        """
        Mark ``issuer_address`` as domain-verified on the ledger and off-chain.

        Args:
            domain: Fully qualified domain name
            issuer_address: Issuer wallet address
            identity: Authenticated session making the request

        Returns:
            DomainVerificationResult with the confirmed transaction hash

        Raises:
            CooldownActive: previous attempt inside the cooldown window
            LedgerTimeout: transaction not confirmed in time (retryable)
            DomainVerificationFailed: ledger write or status update failed
        """
        domain = domain.lower()
        issuer_address = issuer_address.lower()
        now = self.clock()
        cooldown = timedelta(hours=self.cooldown_hours)
        if not self.attempts.claim_attempt(domain, issuer_address, now, cooldown):
            attempt = self.attempts.get_attempt(domain, issuer_address)
            raise CooldownActive(self._remaining_hours(attempt, now))

        logger.info(
            "Domain verification of %s for %s requested by %s",
            domain,
            issuer_address,
            identity.address,
        )
        try:
            tx_hash = self.ledger.set_domain_verified(issuer_address, True)
            self.issuer_status.mark_verified(issuer_address, domain, now)
            self.attempts.record_success(domain, issuer_address, now)
        except LedgerTimeout:
            raise
        except CredchainError as exc:
            logger.error("Domain verification of %s failed: %s", domain, exc)
            raise DomainVerificationFailed(exc.message) from exc

        logger.info("Domain %s verified for %s in tx %s", domain, issuer_address, tx_hash)
        return DomainVerificationResult(
            transaction_hash=tx_hash, domain=domain, issuer_address=issuer_address
        )

    def generate_well_known_descriptor(self, domain: str, identity: Identity) -> WellKnownDescriptor:
        """Build the file an issuer publishes to prove control of ``domain``."""
        content = {
            "domain": domain,
            "issuer": identity.address,
            "timestamp": to_millis(self.clock()),
            "version": WELL_KNOWN_VERSION,
            "purpose": f"{self.service_name} domain verification",
        }
        slug = self.service_name.lower().replace(" ", "-")
        return WellKnownDescriptor(
            content=content,
            instructions=f"Place this content in https://{domain}/.well-known/{slug}-credentials",
        )

    def _remaining_hours(self, attempt: DomainVerificationAttempt | None, now: datetime) -> int:
        # Row vanished between the claim and the read: report a full window
        if attempt is None:
            return self.cooldown_hours
        remaining = timedelta(hours=self.cooldown_hours) - (now - attempt.last_attempt)
        return max(1, math.ceil(remaining / timedelta(hours=1)))
