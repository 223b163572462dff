"""Per-user membership routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from connectrix.api.errors import to_http_error
from connectrix.clubs.domain.services import ClubsService
from connectrix.clubs.schemas import dto
from connectrix.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["clubs:members"])
_service = ClubsService()


@router.get("/users/me/clubs", response_model=dto.UserClubListResponse)
async def list_my_clubs_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.UserClubListResponse:
	try:
		return await _service.list_user_clubs(auth_user)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc


@router.post("/users/{user_id}/club-matches", response_model=dto.MatchResponse)
async def match_clubs_endpoint(
	user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
) -> dto.MatchResponse:
	try:
		return await _service.match_clubs(auth_user, user_id)
	except Exception as exc:  # pragma: no cover
		raise to_http_error(exc) from exc
