"""Like toggle routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from connectrix.api.errors import to_http_error
from connectrix.feed.domain.engagement import EngagementService
from connectrix.feed.schemas import dto
from connectrix.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["feed:likes"])
_service = EngagementService()


@router.post("/posts/{post_id}/like", response_model=dto.LikeResponse)
async def toggle_post_like_endpoint(
	post_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.LikeResponse:
	try:
		return await _service.toggle_like(auth_user, post_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/comments/{comment_id}/like", response_model=dto.LikeResponse)
async def toggle_comment_like_endpoint(
	comment_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.LikeResponse:
	try:
		return await _service.toggle_comment_like(auth_user, comment_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
