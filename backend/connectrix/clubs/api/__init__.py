"""FastAPI routers for the clubs domain."""

from __future__ import annotations

from fastapi import APIRouter

from connectrix.clubs.api import clubs, members

router = APIRouter()

router.include_router(clubs.router)
router.include_router(members.router)

__all__ = ["router"]
