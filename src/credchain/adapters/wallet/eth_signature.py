"""
Ethereum signature adapter - Implements SignatureVerifier protocol.

Recovers the signer of an EIP-191 personal message ("\\x19Ethereum Signed
Message:\\n<len><message>"), the scheme wallets use for ``personal_sign``.
"""

import logging

from eth_account import Account
from eth_account.messages import encode_defunct

from credchain.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


class EthAccountSignatureVerifier:
    """
    Implements SignatureVerifier protocol via eth-account.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Stateless; a single instance can be shared across requests.
    """

    def recover_signer(self, message: str, signature: str) -> str:
        """
        Recover the checksummed address that signed ``message``.

        Raises:
            ValidationError: signature is not a recoverable 65-byte signature
        """
        try:
            return Account.recover_message(encode_defunct(text=message), signature=signature)
        except Exception as exc:
            logger.debug("Signature recovery failed: %s", exc)
            raise ValidationError(
                "Invalid signature format", code="INVALID_SIGNATURE_FORMAT"
            ) from exc
