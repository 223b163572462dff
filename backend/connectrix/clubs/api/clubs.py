"""Club directory, join/leave and dues routes."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from connectrix.api.errors import to_http_error
from connectrix.clubs.domain.services import ClubsService
from connectrix.clubs.schemas import dto
from connectrix.infra.auth import AuthenticatedUser, get_current_user, get_optional_user

router = APIRouter(tags=["clubs"])
_service = ClubsService()


@router.get("/clubs", response_model=dto.ClubListResponse)
async def list_clubs_endpoint(
	club_type: Optional[str] = Query(default=None, alias="type"),
	viewer: AuthenticatedUser | None = Depends(get_optional_user),
) -> dto.ClubListResponse:
	try:
		return await _service.list_clubs(viewer, club_type=club_type)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs", response_model=dto.ClubResponse, status_code=201)
async def create_club_endpoint(
	payload: dto.ClubCreateRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.ClubResponse:
	try:
		return await _service.create_club(auth_user, payload)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}", response_model=dto.ClubResponse)
async def get_club_endpoint(
	club_id: UUID,
	viewer: AuthenticatedUser | None = Depends(get_optional_user),
) -> dto.ClubResponse:
	try:
		return await _service.get_club(viewer, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/join", response_model=dto.MembershipResponse, status_code=201)
async def join_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MembershipResponse:
	try:
		return await _service.join(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.delete("/clubs/{club_id}/join", response_model=dto.LeaveResponse)
async def leave_club_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.LeaveResponse:
	try:
		return await _service.leave(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.get("/clubs/{club_id}/dues", response_model=dto.DuesQuoteResponse)
async def dues_quote_endpoint(
	club_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.DuesQuoteResponse:
	try:
		return await _service.dues_quote(auth_user, club_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/clubs/{club_id}/dues/paid", response_model=dto.MembershipResponse)
async def mark_dues_paid_endpoint(
	club_id: UUID,
	payload: Optional[dto.DuesPaidRequest] = None,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MembershipResponse:
	payload = payload or dto.DuesPaidRequest()
	try:
		return await _service.mark_dues_paid(
			auth_user,
			club_id,
			user_id=payload.user_id,
			reference=payload.payment_reference,
		)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
