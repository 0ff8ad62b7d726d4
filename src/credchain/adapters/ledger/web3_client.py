"""
web3.py ledger adapter - Implements LedgerClient protocol.

Talks to the credential registry contract over JSON-RPC. Read calls are
plain ``eth_call``s; the domain-ownership write is signed locally with the
configured key, submitted as a raw transaction and waited on for at most
``tx_timeout_seconds``. Every RPC failure is translated into the domain's
LedgerError; a receipt wait that runs out of time becomes LedgerTimeout,
which callers may retry.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.exceptions import TimeExhausted

from credchain.config.settings import Settings
from credchain.domain.exceptions import CredchainError, LedgerError, LedgerTimeout, StartupError
from credchain.domain.models import IssuerProfile, LedgerCredentialRecord

logger = logging.getLogger(__name__)

CREDENTIAL_REGISTRY_ABI = [
    {
        "name": "credentials",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "uint256"}],
        "outputs": [
            {"name": "issuer", "type": "address"},
            {"name": "holder", "type": "address"},
            {"name": "dataHash", "type": "bytes32"},
            {"name": "issuedAt", "type": "uint256"},
            {"name": "revoked", "type": "bool"},
        ],
    },
    {
        "name": "verifyCredentialData",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "credentialId", "type": "uint256"},
            {"name": "credentialData", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "getIssuerProfile",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "issuer", "type": "address"}],
        "outputs": [
            {"name": "domain", "type": "string"},
            {"name": "isVerified", "type": "bool"},
            {"name": "verifiedAt", "type": "uint256"},
            {"name": "organizationName", "type": "string"},
            {"name": "description", "type": "string"},
        ],
    },
    {
        "name": "verifyDomainOwnership",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "issuer", "type": "address"},
            {"name": "verified", "type": "bool"},
        ],
        "outputs": [],
    },
]


@contextmanager
def _ledger_errors(operation: str) -> Iterator[None]:
    """Translate web3/RPC failures into LedgerError, leaving domain errors intact."""
    try:
        yield
    except CredchainError:
        raise
    except Exception as exc:
        raise LedgerError(f"Ledger call {operation} failed: {exc}") from exc


def _to_hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


class Web3LedgerClient:
    """
    Implements LedgerClient protocol via web3.py.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        web3: Web3,
        contract_address: str,
        signer: LocalAccount | None = None,
        tx_timeout_seconds: float = 120.0,
    ) -> None:
        """
        Args:
            web3: Connected Web3 instance
            contract_address: Credential registry contract address
            signer: Account used for state-changing calls; reads work without it
            tx_timeout_seconds: Upper bound on waiting for a transaction receipt
        """
        self._web3 = web3
        self._contract = web3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=CREDENTIAL_REGISTRY_ABI,
        )
        self._signer = signer
        self._tx_timeout_seconds = tx_timeout_seconds

    def get_credential(self, credential_id: int) -> LedgerCredentialRecord:
        with _ledger_errors("credentials"):
            issuer, holder, data_hash, issued_at, revoked = self._contract.functions.credentials(
                credential_id
            ).call()

        return LedgerCredentialRecord(
            issuer=issuer,
            holder=holder,
            data_hash=_to_hex(data_hash),
            issued_at=int(issued_at),
            revoked=bool(revoked),
        )

    def verify_credential_data(self, credential_id: int, canonical_data: str) -> bool:
        with _ledger_errors("verifyCredentialData"):
            result = self._contract.functions.verifyCredentialData(
                credential_id, canonical_data
            ).call()
        return bool(result)

    def get_issuer_profile(self, issuer_address: str) -> IssuerProfile:
        with _ledger_errors("getIssuerProfile"):
            domain, is_verified, verified_at, organization_name, description = (
                self._contract.functions.getIssuerProfile(
                    Web3.to_checksum_address(issuer_address)
                ).call()
            )

        return IssuerProfile(
            domain=domain,
            is_verified=bool(is_verified),
            verified_at=int(verified_at),
            organization_name=organization_name,
            description=description,
        )

    def set_domain_verified(self, issuer_address: str, verified: bool) -> str:
        """
        Submit ``verifyDomainOwnership`` and wait for inclusion.

        Raises:
            LedgerError: no signer configured, submission failed or tx reverted
            LedgerTimeout: receipt not seen within ``tx_timeout_seconds``
        """
        if self._signer is None:
            raise LedgerError(
                "No signing key configured for ledger writes", code="LEDGER_SIGNER_MISSING"
            )

        with _ledger_errors("verifyDomainOwnership"):
            tx = self._contract.functions.verifyDomainOwnership(
                Web3.to_checksum_address(issuer_address), verified
            ).build_transaction(
                {
                    "from": self._signer.address,
                    "nonce": self._web3.eth.get_transaction_count(self._signer.address, "pending"),
                }
            )
            signed = self._signer.sign_transaction(tx)
            tx_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hex = _to_hex(tx_hash)
        logger.info("Submitted verifyDomainOwnership tx %s", tx_hex)

        with _ledger_errors("wait_for_transaction_receipt"):
            try:
                receipt = self._web3.eth.wait_for_transaction_receipt(
                    tx_hash, timeout=self._tx_timeout_seconds
                )
            except TimeExhausted as exc:
                raise LedgerTimeout(
                    f"Transaction {tx_hex} not confirmed within {self._tx_timeout_seconds:g}s"
                ) from exc

        if receipt["status"] != 1:
            raise LedgerError(f"Transaction {tx_hex} reverted", code="LEDGER_TX_REVERTED")
        return tx_hex


def build_ledger_client(settings: Settings) -> Web3LedgerClient:
    """
    Construct the ledger client from settings.

    Raises:
        StartupError: contract address or signing key invalid
    """
    if not settings.contract_address:
        raise StartupError("ledger", "CONTRACT_ADDRESS is not configured")

    web3 = Web3(
        Web3.HTTPProvider(
            settings.rpc_url,
            request_kwargs={"timeout": settings.chain_call_timeout_seconds},
        )
    )

    signer = None
    if settings.signer_private_key:
        try:
            signer = Account.from_key(settings.signer_private_key)
        except Exception as exc:
            raise StartupError("ledger", "SIGNER_PRIVATE_KEY is not a valid private key") from exc

    try:
        return Web3LedgerClient(
            web3,
            settings.contract_address,
            signer=signer,
            tx_timeout_seconds=settings.tx_timeout_seconds,
        )
    except ValueError as exc:
        raise StartupError("ledger", f"invalid contract address {settings.contract_address!r}") from exc
