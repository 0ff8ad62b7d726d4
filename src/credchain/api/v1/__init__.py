"""
API v1 package.

Contains the versioned routes of the Credential Verification API.
"""

from fastapi import APIRouter

from credchain.api.v1.auth import router as auth_router
from credchain.api.v1.credentials import router as credentials_router
from credchain.api.v1.domain import router as domain_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(credentials_router)
router.include_router(domain_router)

__all__ = ["router"]
