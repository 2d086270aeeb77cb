"""
API routes for the authentication service.
"""

from fastapi import APIRouter

from authcore.api import tokens, users

router = APIRouter()

# Sub-routers carry their own /v1/... prefixes
router.include_router(users.router)
router.include_router(tokens.router)
