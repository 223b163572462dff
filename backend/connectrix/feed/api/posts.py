"""Post and feed routes."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Query

from connectrix.api.errors import to_http_error
from connectrix.feed.domain.services import FeedService
from connectrix.feed.schemas import dto
from connectrix.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["feed:posts"])
_service = FeedService()


@router.get("/posts", response_model=dto.FeedPage)
async def list_feed_endpoint(
	club_id: Optional[UUID] = Query(default=None, alias="club"),
	author_id: Optional[UUID] = Query(default=None, alias="author"),
	tag: Optional[str] = Query(default=None, max_length=50),
	search: Optional[str] = Query(default=None, alias="q", max_length=200),
	page: int = Query(default=1),
	limit: Optional[int] = Query(default=None),
	viewer: AuthenticatedUser | None = Depends(get_optional_user),
) -> dto.FeedPage:
	try:
		return await _service.list_feed(
			viewer,
			club_id=club_id,
			author_id=author_id,
			tag=tag,
			search=search,
			page=page,
			limit=limit,
		)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/posts", response_model=dto.PostResponse, status_code=201)
async def create_post_endpoint(
	payload: dto.PostCreateRequest,
	idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.PostResponse:
	try:
		return await _service.create_post(auth_user, payload, idempotency_key=idempotency_key)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/posts/{post_id}", response_model=dto.PostResponse)
async def get_post_endpoint(
	post_id: UUID,
	viewer: AuthenticatedUser | None = Depends(get_optional_user),
) -> dto.PostResponse:
	try:
		return await _service.get_post(viewer, post_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/posts/{post_id}/pin", response_model=dto.PostResponse)
async def pin_post_endpoint(
	post_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.PostResponse:
	try:
		return await _service.set_pinned(auth_user, post_id, True)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/posts/{post_id}/pin", response_model=dto.PostResponse)
async def unpin_post_endpoint(
	post_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.PostResponse:
	try:
		return await _service.set_pinned(auth_user, post_id, False)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/posts/{post_id}/share", response_model=dto.ShareResponse)
async def share_post_endpoint(
	post_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ShareResponse:
	try:
		return await _service.record_share(auth_user, post_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
