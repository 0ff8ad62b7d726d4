"""Ledger adapters - Blockchain contract clients."""

from .web3_client import CREDENTIAL_REGISTRY_ABI, Web3LedgerClient, build_ledger_client

__all__ = ["CREDENTIAL_REGISTRY_ABI", "Web3LedgerClient", "build_ledger_client"]
