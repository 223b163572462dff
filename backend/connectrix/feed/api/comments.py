"""Comment routes."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query

from connectrix.api.errors import to_http_error
from connectrix.feed.domain.services import FeedService
from connectrix.feed.schemas import dto
from connectrix.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["feed:comments"])
_service = FeedService()


@router.get("/posts/{post_id}/comments", response_model=dto.CommentPage)
async def list_comments_endpoint(
	post_id: UUID,
	page: int = Query(default=1),
	limit: Optional[int] = Query(default=None),
	viewer: AuthenticatedUser | None = Depends(get_optional_user),
) -> dto.CommentPage:
	try:
		return await _service.list_comments(viewer, post_id, page=page, limit=limit)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/posts/{post_id}/comments", response_model=dto.CommentResponse, status_code=201)
async def create_comment_endpoint(
	post_id: UUID,
	payload: dto.CommentCreateRequest,
	idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.CommentResponse:
	try:
		return await _service.add_comment(auth_user, post_id, payload, idempotency_key=idempotency_key)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
