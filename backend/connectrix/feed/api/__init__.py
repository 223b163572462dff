"""FastAPI routers for the feed domain."""

from __future__ import annotations

from fastapi import APIRouter

from connectrix.feed.api import comments, likes, posts

router = APIRouter()

router.include_router(posts.router)
router.include_router(comments.router)
router.include_router(likes.router)

__all__ = ["router"]
