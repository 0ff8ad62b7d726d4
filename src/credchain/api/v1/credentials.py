"""
Credential routes.

Ledger-backed verification (single, batch, descriptive-data reconciliation)
and read access through share links.
"""

from fastapi import APIRouter, Depends, Path

from credchain.api.dependencies import get_share_link_service, get_verification_service
from credchain.api.models import (
    BatchEntryOut,
    BatchVerifyRequest,
    BatchVerifyResponse,
    CredentialDataRequest,
    CredentialDataResponse,
    CredentialOut,
    DebugInfo,
    ErrorResponse,
    IssuerProfileOut,
    LedgerCredentialOut,
    LedgerRecordOut,
    ShareInfo,
    SharedCredentialsResponse,
    VerifyBlockchainResponse,
)
from credchain.domain.clock import format_iso, utcnow
from credchain.domain.models import Credential, LedgerCredentialRecord, SharedCredentials
from credchain.domain.sharing import ShareLinkService
from credchain.domain.verification import CredentialVerificationService

router = APIRouter(prefix="/credentials", tags=["credentials"])

SHARE_ID_PATTERN = r"^share_[a-z0-9]+_[a-z0-9]+$"

_SHARE_ERRORS = {
    400: {"description": "Invalid share ID format"},
    404: {"model": ErrorResponse, "description": "Share or its credentials not found"},
    410: {"model": ErrorResponse, "description": "Share revoked, expired or out of accesses"},
}


def _record_out(record: LedgerCredentialRecord) -> LedgerRecordOut:
    return LedgerRecordOut(
        issuer=record.issuer,
        holder=record.holder,
        data_hash=record.data_hash,
        issued_at=record.issued_at,
        revoked=record.revoked,
    )


def _credential_out(credential: Credential) -> CredentialOut:
    return CredentialOut(
        id=credential.local_id,
        credential_id=credential.on_chain_id,
        credential_name=credential.credential_name,
        description=credential.description,
        organization_name=credential.organization_name,
        holder=credential.holder.lower(),
        issuer=credential.issuer_ref,
        issued_date=format_iso(credential.issued_date),
        can_expire=credential.can_expire,
        expiry_date=format_iso(credential.expiry_date),
        skill_level=credential.skill_level,
        status=credential.status,
        certificate_url=credential.certificate_url,
        tx_hash=credential.tx_hash,
        additional_notes=credential.additional_notes,
    )


def _shared_response(shared: SharedCredentials) -> SharedCredentialsResponse:
    link = shared.link
    return SharedCredentialsResponse(
        credentials=[_credential_out(c) for c in shared.credentials],
        share_info=ShareInfo(
            share_id=link.share_id,
            owner=link.owner,
            created_at=format_iso(link.created_at),
            expiry_date=format_iso(link.expiry_date),
            description=link.description,
            access_count=link.access_count,
            max_access_count=link.max_access_count,
            total_credentials=len(shared.credentials),
        ),
        timestamp=format_iso(utcnow()),
    )


@router.get(
    "/verify-blockchain/{credential_id}",
    response_model=VerifyBlockchainResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Credential not found on blockchain"},
        502: {"model": ErrorResponse, "description": "Ledger unavailable"},
    },
    summary="Verify a credential on the ledger",
)
def verify_blockchain(
    credential_id: int = Path(..., ge=0),
    service: CredentialVerificationService = Depends(get_verification_service),
) -> VerifyBlockchainResponse:
    """Read the on-chain record of a credential, with its issuer profile if available."""
    verification = service.get_credential(credential_id)
    profile = verification.issuer_profile
    record = _record_out(verification.record)
    return VerifyBlockchainResponse(
        credential=LedgerCredentialOut(
            **record.model_dump(),
            issuer_profile=(
                IssuerProfileOut(
                    domain=profile.domain,
                    is_verified=profile.is_verified,
                    organization_name=profile.organization_name,
                    description=profile.description,
                )
                if profile is not None
                else None
            ),
        ),
        timestamp=format_iso(utcnow()),
    )


@router.post(
    "/verify-credential-data/{credential_id}",
    response_model=CredentialDataResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Credential data cannot be canonicalized"},
        502: {"model": ErrorResponse, "description": "Ledger unavailable"},
    },
    summary="Check descriptive data against the on-chain hash",
)
def verify_credential_data(
    request_data: CredentialDataRequest,
    credential_id: int = Path(..., ge=0),
    service: CredentialVerificationService = Depends(get_verification_service),
) -> CredentialDataResponse:
    """
    Rebuild the canonical form of the submitted fields and ask the ledger
    whether its hash matches the stored data hash.
    """
    fields = request_data.credential_data
    result = service.verify_credential_data(credential_id, fields)
    return CredentialDataResponse(
        is_valid=result.is_valid,
        credential_id=result.credential_id,
        original_data_format=result.canonical_form,
        local_data_hash=result.local_hash,
        debug_info=DebugInfo(
            received_additional_notes=fields.get("additionalNotes"),
            used_notes=result.used_notes,
            received_issued_date=fields.get("issuedDate"),
            used_issued_at=result.used_issued_at,
            credential_name=fields.get("credentialName"),
            description=fields.get("description"),
        ),
        timestamp=format_iso(utcnow()),
    )


@router.post(
    "/verify-batch",
    response_model=BatchVerifyResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse, "description": "Must provide 1-10 credential IDs"}},
    summary="Verify up to ten credentials",
)
def verify_batch(
    request_data: BatchVerifyRequest,
    service: CredentialVerificationService = Depends(get_verification_service),
) -> BatchVerifyResponse:
    """Verify each id independently; results are returned in request order."""
    batch = service.verify_batch(request_data.credential_ids)
    return BatchVerifyResponse(
        results=[
            BatchEntryOut(
                credential_id=entry.credential_id,
                success=entry.success,
                credential=_record_out(entry.record) if entry.record is not None else None,
                error=entry.error,
            )
            for entry in batch.results
        ],
        total_verified=batch.total_verified,
        total_requested=batch.total_requested,
        timestamp=format_iso(utcnow()),
    )


@router.get(
    "/shared/{share_id}/credentials",
    response_model=SharedCredentialsResponse,
    responses=_SHARE_ERRORS,
    summary="Read credentials through a share link",
)
def shared_credentials(
    share_id: str = Path(..., pattern=SHARE_ID_PATTERN),
    service: ShareLinkService = Depends(get_share_link_service),
) -> SharedCredentialsResponse:
    """Counts one access against the link; `accessCount` is the post-access value."""
    return _shared_response(service.access_shared_credentials(share_id))


@router.get(
    "/verify/{share_id}",
    response_model=SharedCredentialsResponse,
    responses=_SHARE_ERRORS,
    summary="Verify a share link and read its credentials",
)
def verify_share(
    share_id: str = Path(..., pattern=SHARE_ID_PATTERN),
    service: ShareLinkService = Depends(get_share_link_service),
) -> SharedCredentialsResponse:
    """Same semantics as the shared-credentials read."""
    return _shared_response(service.access_shared_credentials(share_id))
