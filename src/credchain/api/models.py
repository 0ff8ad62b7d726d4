"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON field names are camelCase on the wire.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator
from pydantic.alias_generators import to_camel

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"

_FQDN_LABEL = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$")
_TLD = re.compile(r"^(?:[a-zA-Z]{2,63}|xn--[a-zA-Z0-9-]{1,59})$")


def validate_fqdn(value: str) -> str:
    """Accept fully qualified domain names such as ``example.com``."""
    domain = value.strip().rstrip(".")
    labels = domain.split(".")
    if (
        len(domain) > 253
        or len(labels) < 2
        or not all(_FQDN_LABEL.match(label) for label in labels)
        or not _TLD.match(labels[-1])
    ):
        raise ValueError("Invalid domain format")
    return domain


class CamelModel(BaseModel):
    """Base model serializing snake_case fields as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Requests


class VerifyWalletRequest(CamelModel):
    """Request model for wallet-signature login."""

    address: str = Field(..., pattern=ADDRESS_PATTERN, description="Wallet address")
    message: str = Field(
        ...,
        min_length=10,
        max_length=500,
        description="Signed challenge: 'Sign this message to log in to <Service>: <epoch-ms>'",
    )
    signature: str = Field(..., min_length=100, max_length=200, description="Hex signature")


class CredentialDataRequest(CamelModel):
    """Descriptive credential fields to check against the on-chain hash."""

    credential_data: dict[str, Any]


class BatchVerifyRequest(CamelModel):
    # Malformed ids are reported per entry by the service, not rejected here
    credential_ids: list[StrictInt | StrictStr] = Field(
        ...,
        min_length=1,
        max_length=10,
        description="1-10 credential IDs (numbers or numeric strings)",
    )


class DomainVerifyRequest(CamelModel):
    domain: str
    issuer_address: str = Field(..., pattern=ADDRESS_PATTERN)

    @field_validator("domain")
    @classmethod
    def check_domain(cls, value: str) -> str:
        return validate_fqdn(value)


class WellKnownRequest(CamelModel):
    domain: str

    @field_validator("domain")
    @classmethod
    def check_domain(cls, value: str) -> str:
        return validate_fqdn(value)


# Responses


class SessionUser(CamelModel):
    address: str
    email: str | None
    has_profile: bool


class VerifyWalletResponse(CamelModel):
    """Response model for a successful wallet login."""

    firebase_token: str = Field(..., description="Session token (Bearer)")
    user: SessionUser


class IssuerProfileOut(CamelModel):
    domain: str
    is_verified: bool
    organization_name: str
    description: str


class LedgerRecordOut(CamelModel):
    issuer: str
    holder: str
    data_hash: str
    issued_at: int
    revoked: bool


class LedgerCredentialOut(LedgerRecordOut):
    issuer_profile: IssuerProfileOut | None


class VerifyBlockchainResponse(CamelModel):
    success: bool = True
    credential: LedgerCredentialOut
    verification_method: str = "API"
    timestamp: str


class DebugInfo(CamelModel):
    received_additional_notes: Any = None
    used_notes: Any
    received_issued_date: Any = None
    used_issued_at: str
    credential_name: Any = None
    description: Any = None


class CredentialDataResponse(CamelModel):
    success: bool = True
    is_valid: bool
    credential_id: int
    verification_method: str = "API"
    original_data_format: str
    local_data_hash: str
    debug_info: DebugInfo
    timestamp: str


class BatchEntryOut(CamelModel):
    credential_id: int | str
    success: bool
    credential: LedgerRecordOut | None = None
    error: str | None = None


class BatchVerifyResponse(CamelModel):
    success: bool = True
    results: list[BatchEntryOut]
    total_verified: int
    total_requested: int
    verification_method: str = "API"
    timestamp: str


class CredentialOut(CamelModel):
    id: str
    credential_id: int | None
    credential_name: str | None
    description: str | None
    organization_name: str
    holder: str
    issuer: str
    issued_date: str | None
    can_expire: bool
    expiry_date: str | None
    skill_level: str | None
    status: bool
    certificate_url: str | None
    tx_hash: str | None
    additional_notes: str


class ShareInfo(CamelModel):
    share_id: str
    owner: str
    created_at: str
    expiry_date: str | None
    description: str | None
    access_count: int
    max_access_count: int | None
    is_expired: bool = False
    total_credentials: int


class SharedCredentialsResponse(CamelModel):
    success: bool = True
    credentials: list[CredentialOut]
    share_info: ShareInfo
    timestamp: str


class DomainVerifyResponse(CamelModel):
    success: bool = True
    message: str = "Domain verified successfully"
    transaction_hash: str
    domain: str
    issuer_address: str
    firestore_updated: bool = True


class WellKnownContent(CamelModel):
    domain: str
    issuer: str
    timestamp: int
    version: str
    purpose: str


class WellKnownResponse(CamelModel):
    content: WellKnownContent
    instructions: str


class ErrorResponse(CamelModel):
    """Standard error response model."""

    success: bool = False
    error: str
    code: str
