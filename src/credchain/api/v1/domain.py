"""
Domain ownership routes (authenticated).

Issuers bind a web domain to their address on the ledger, at most once per
cooldown window per (domain, issuer).
"""

from fastapi import APIRouter, Depends

from credchain.api.dependencies import get_current_identity, get_domain_ownership_service
from credchain.api.models import (
    DomainVerifyRequest,
    DomainVerifyResponse,
    ErrorResponse,
    WellKnownContent,
    WellKnownRequest,
    WellKnownResponse,
)
from credchain.domain.domain_ownership import DomainOwnershipService
from credchain.domain.models import Identity

router = APIRouter(prefix="/domain", tags=["domain"])


@router.post(
    "/verify",
    response_model=DomainVerifyResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Verification failed"},
        401: {"model": ErrorResponse, "description": "Missing or invalid session"},
        429: {"model": ErrorResponse, "description": "Cooldown active"},
        504: {"model": ErrorResponse, "description": "Transaction not confirmed in time (retryable)"},
    },
    summary="Verify domain ownership for an issuer",
)
def verify_domain(
    request_data: DomainVerifyRequest,
    identity: Identity = Depends(get_current_identity),
    service: DomainOwnershipService = Depends(get_domain_ownership_service),
) -> DomainVerifyResponse:
    """
    Record on the ledger that the issuer controls the domain.

    - **domain**: Fully qualified domain name
    - **issuerAddress**: Issuer wallet address
    """
    result = service.verify_domain(request_data.domain, request_data.issuer_address, identity)
    return DomainVerifyResponse(
        transaction_hash=result.transaction_hash,
        domain=result.domain,
        issuer_address=result.issuer_address,
    )


@router.post(
    "/generate-wellknown",
    response_model=WellKnownResponse,
    responses={401: {"model": ErrorResponse, "description": "Missing or invalid session"}},
    summary="Generate the .well-known verification file",
)
def generate_well_known(
    request_data: WellKnownRequest,
    identity: Identity = Depends(get_current_identity),
    service: DomainOwnershipService = Depends(get_domain_ownership_service),
) -> WellKnownResponse:
    """Build the descriptor the issuer publishes on their domain. No side effects."""
    descriptor = service.generate_well_known_descriptor(request_data.domain, identity)
    return WellKnownResponse(
        content=WellKnownContent(**descriptor.content),
        instructions=descriptor.instructions,
    )
