"""Session adapters - Session token minting and verification."""

from .jwt_tokens import JwtSessionIssuer

__all__ = ["JwtSessionIssuer"]
