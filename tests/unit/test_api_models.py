"""
Unit tests for API request/response models.

Tests Pydantic model validation and camelCase wire names.
"""

import pytest
from pydantic import ValidationError

from credchain.api.models import (
    BatchVerifyRequest,
    DomainVerifyRequest,
    ErrorResponse,
    SessionUser,
    VerifyWalletRequest,
    VerifyWalletResponse,
    WellKnownRequest,
)

ADDRESS = "0x1111111111111111111111111111111111111111"
SIGNATURE = "0x" + "ab" * 65


class TestVerifyWalletRequest:
    """Tests for VerifyWalletRequest model."""

    def test_valid_request(self) -> None:
        request = VerifyWalletRequest(
            address=ADDRESS,
            message="Sign this message to log in to SkillChain: 1772366400000",
            signature=SIGNATURE,
        )
        assert request.address == ADDRESS

    @pytest.mark.parametrize(
        "address",
        ["1111111111111111111111111111111111111111", "0x123", "0x" + "g" * 40, ""],
    )
    def test_invalid_address_rejected(self, address: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            VerifyWalletRequest(address=address, message="x" * 20, signature=SIGNATURE)
        assert "address" in str(exc_info.value)

    def test_short_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VerifyWalletRequest(address=ADDRESS, message="too short", signature=SIGNATURE)

    def test_long_message_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VerifyWalletRequest(address=ADDRESS, message="x" * 501, signature=SIGNATURE)

    @pytest.mark.parametrize("length", [99, 201])
    def test_signature_length_bounds(self, length: int) -> None:
        with pytest.raises(ValidationError):
            VerifyWalletRequest(address=ADDRESS, message="x" * 20, signature="a" * length)


class TestBatchVerifyRequest:
    """Tests for BatchVerifyRequest model."""

    def test_camel_case_input(self) -> None:
        request = BatchVerifyRequest.model_validate({"credentialIds": [1, 2, 3]})
        assert request.credential_ids == [1, 2, 3]

    @pytest.mark.parametrize("ids", [[], list(range(11))])
    def test_size_bounds(self, ids: list[int]) -> None:
        with pytest.raises(ValidationError):
            BatchVerifyRequest.model_validate({"credentialIds": ids})

    def test_string_ids_kept_verbatim(self) -> None:
        """Strings pass through untouched so the service can judge each one."""
        request = BatchVerifyRequest.model_validate({"credentialIds": [1, "7", "abc"]})
        assert request.credential_ids == [1, "7", "abc"]

    @pytest.mark.parametrize("bad_id", [True, None, 1.5, {"id": 1}])
    def test_non_id_values_rejected(self, bad_id: object) -> None:
        with pytest.raises(ValidationError):
            BatchVerifyRequest.model_validate({"credentialIds": [bad_id]})


class TestDomainRequests:
    """Tests for FQDN validation on domain requests."""

    @pytest.mark.parametrize(
        "domain", ["acme.example", "sub.acme-academy.co.uk", "xn--bcher-kva.example"]
    )
    def test_valid_domains(self, domain: str) -> None:
        assert WellKnownRequest(domain=domain).domain == domain

    def test_trailing_dot_stripped(self) -> None:
        assert WellKnownRequest(domain="acme.example.").domain == "acme.example"

    @pytest.mark.parametrize(
        "domain",
        ["localhost", "-acme.example", "acme-.example", "acme..example", "acme.c", "http://acme.example"],
    )
    def test_invalid_domains(self, domain: str) -> None:
        with pytest.raises(ValidationError):
            WellKnownRequest(domain=domain)

    def test_domain_verify_request_aliases(self) -> None:
        request = DomainVerifyRequest.model_validate(
            {"domain": "acme.example", "issuerAddress": ADDRESS}
        )
        assert request.issuer_address == ADDRESS

    def test_domain_verify_request_bad_address(self) -> None:
        with pytest.raises(ValidationError):
            DomainVerifyRequest.model_validate({"domain": "acme.example", "issuerAddress": "0x1"})


class TestResponses:
    """Tests for response serialization."""

    def test_verify_wallet_response_camel_case(self) -> None:
        response = VerifyWalletResponse(
            firebase_token="token",
            user=SessionUser(address=ADDRESS, email=None, has_profile=False),
        )
        assert response.model_dump(by_alias=True) == {
            "firebaseToken": "token",
            "user": {"address": ADDRESS, "email": None, "hasProfile": False},
        }

    def test_error_response_defaults(self) -> None:
        error = ErrorResponse(error="Shared credential not found", code="SHARE_NOT_FOUND")
        assert error.success is False
