"""Wallet adapters - Message signature recovery."""

from .eth_signature import EthAccountSignatureVerifier

__all__ = ["EthAccountSignatureVerifier"]
