"""
Credential verification domain service - ledger-backed checks.

Reads authoritative records from the ledger, enriches them with the
issuer's on-chain profile, verifies batches with per-id isolation and
reconciles off-chain descriptive fields against the stored data hash.
"""

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from .canonical import canonical_payload, data_hash, serialize
from .exceptions import (
    CredchainError,
    ExternalServiceError,
    LedgerError,
    NotFound,
    ValidationError,
)
from .models import (
    BatchEntry,
    BatchVerification,
    CredentialVerification,
    DataVerification,
)
from .ports import LedgerClient

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10


@dataclass
class CredentialVerificationService:
    """Domain service for verifying credentials against the ledger."""

    ledger: LedgerClient
    max_workers: int = 5

    def get_credential(self, credential_id: int) -> CredentialVerification:
        """
        Read a credential from the ledger with its issuer profile.

        A failed issuer profile read degrades to ``issuer_profile=None``
        rather than failing the whole read.

        Raises:
            NotFound: issuer is the zero address (CREDENTIAL_NOT_FOUND)
            LedgerError: the credential read itself failed
        """
        record = self.ledger.get_credential(credential_id)
        if not record.exists:
            raise NotFound("Credential not found on blockchain", code="CREDENTIAL_NOT_FOUND")

        try:
            issuer_profile = self.ledger.get_issuer_profile(record.issuer)
        except ExternalServiceError as exc:
            logger.warning("Could not fetch issuer profile for %s: %s", record.issuer, exc)
            issuer_profile = None

        return CredentialVerification(
            credential_id=credential_id, record=record, issuer_profile=issuer_profile
        )

    def verify_batch(self, credential_ids: Sequence[int | str]) -> BatchVerification:
        """
        Verify up to ten credentials independently.

        Ids run in parallel on a bounded pool; results keep input order.
        An error on one id becomes an unsuccessful entry and never aborts
        the others.

        Raises:
            ValidationError: fewer than 1 or more than 10 ids
        """
        if not 1 <= len(credential_ids) <= MAX_BATCH_SIZE:
            raise ValidationError(f"Must provide 1-{MAX_BATCH_SIZE} credential IDs")

        workers = max(1, min(self.max_workers, len(credential_ids)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(self._verify_one, credential_ids))
        return BatchVerification(results=results)

    def verify_credential_data(
        self, credential_id: int, fields: Mapping[str, Any]
    ) -> DataVerification:
        """
        Check descriptive fields against the hash stored on-chain.

        The canonical string is handed to the contract's pure verification
        call, which hashes it and compares against the stored data hash.

        Raises:
            ValidationError: fields cannot be put into canonical form
            LedgerError: the verification call failed (VERIFICATION_ERROR)
        """
        payload = canonical_payload(fields)
        canonical = serialize(payload)
        try:
            is_valid = self.ledger.verify_credential_data(credential_id, canonical)
        except LedgerError as exc:
            raise LedgerError(exc.message, code="VERIFICATION_ERROR") from exc
        return DataVerification(
            credential_id=credential_id,
            is_valid=bool(is_valid),
            canonical_form=canonical,
            local_hash=data_hash(canonical),
            used_notes=payload["notes"],
            used_issued_at=payload["issuedAt"],
        )

    def _verify_one(self, raw_id: int | str) -> BatchEntry:
        credential_id = _parse_credential_id(raw_id)
        if credential_id is None:
            return BatchEntry(credential_id=raw_id, success=False, error="Invalid credential ID")

        try:
            record = self.ledger.get_credential(credential_id)
        except CredchainError as exc:
            logger.warning("Batch verification failed for credential %s: %s", credential_id, exc)
            return BatchEntry(credential_id=credential_id, success=False, error=exc.message)

        if not record.exists:
            return BatchEntry(credential_id=credential_id, success=False, error="Credential not found")
        return BatchEntry(credential_id=credential_id, success=True, record=record)


def _parse_credential_id(raw_id: int | str) -> int | None:
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, int):
        return raw_id if raw_id >= 0 else None
    if isinstance(raw_id, str):
        text = raw_id.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return None
