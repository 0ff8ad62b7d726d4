"""
Authentication routes.

Wallet-signature login: exchanges a signed challenge for a session token.
"""

from fastapi import APIRouter, Depends

from credchain.api.dependencies import get_wallet_auth_service
from credchain.api.models import ErrorResponse, SessionUser, VerifyWalletRequest, VerifyWalletResponse
from credchain.domain.wallet_auth import WalletAuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/verify-wallet",
    response_model=VerifyWalletResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Malformed signature, message or stale challenge"},
        401: {"model": ErrorResponse, "description": "Signature does not match address"},
    },
    summary="Log in with a wallet signature",
    description="Submit an address, the signed login challenge and its signature. "
    "Returns a session token for the lowercase address.",
)
def verify_wallet(
    request_data: VerifyWalletRequest,
    service: WalletAuthService = Depends(get_wallet_auth_service),
) -> VerifyWalletResponse:
    """
    Verify a wallet-signed login challenge.

    - **address**: Wallet address that signed the message
    - **message**: `Sign this message to log in to <Service>: <epoch-ms>`
    - **signature**: Personal-message signature (hex)
    """
    grant = service.verify_wallet(
        request_data.address, request_data.message, request_data.signature
    )
    return VerifyWalletResponse(
        firebase_token=grant.token,
        user=SessionUser(address=grant.address, email=grant.email, has_profile=grant.has_profile),
    )
