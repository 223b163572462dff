"""Service layer for the club directory and membership lifecycle."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from connectrix.clubs.domain import models, policies
from connectrix.clubs.domain import repo as repo_module
from connectrix.clubs.domain.directory import normalise_criteria
from connectrix.clubs.domain.matcher import ClubMatcher
from connectrix.clubs.schemas import dto
from connectrix.domain import validation
from connectrix.domain.exceptions import AlreadyMemberError, NotAMemberError, NotFoundError, ValidationError
from connectrix.domain.identity.student_id import department_name, faculty_name
from connectrix.domain.identity.users import UsersRepository
from connectrix.infra.auth import AuthenticatedUser
from connectrix.obs import metrics as obs_metrics
from connectrix.settings import settings

_LOG = logging.getLogger(__name__)


class ClubsService:
	"""Club directory reads, admin writes, join/leave, dues and matching."""

	def __init__(
		self,
		repository: repo_module.ClubsRepository | None = None,
		users: UsersRepository | None = None,
		matcher: ClubMatcher | None = None,
	) -> None:
		self.repo = repository or repo_module.ClubsRepository()
		self.users = users or UsersRepository()
		self.matcher = matcher or ClubMatcher(self.repo)

	# ------------------------------------------------------------------
	# Helpers

	@staticmethod
	def _club_to_response(club: models.Club, *, membership: models.Membership | None = None) -> dto.ClubResponse:
		return dto.ClubResponse(
			id=club.id,
			name=club.name,
			abbreviation=club.abbreviation,
			description=club.description,
			type=club.type,
			faculty_code=club.faculty_code,
			faculty_name=faculty_name(club.faculty_code),
			department_code=club.department_code,
			department_name=department_name(club.department_code),
			state=club.state,
			religion=club.religion,
			status=club.status,
			member_count=club.member_count,
			dues_applied=club.dues_applied,
			dues_amount=club.dues_amount,
			created_at=club.created_at,
			is_member=membership is not None,
			membership_origin=membership.origin if membership else None,
		)

	@staticmethod
	def _membership_to_response(membership: models.Membership, *, member_count: int | None = None) -> dto.MembershipResponse:
		return dto.MembershipResponse(
			club_id=membership.club_id,
			user_id=membership.user_id,
			origin=membership.origin,
			joined_at=membership.joined_at,
			dues_paid=membership.dues_paid,
			dues_paid_at=membership.dues_paid_at,
			payment_reference=membership.payment_reference,
			member_count=member_count,
		)

	# ------------------------------------------------------------------
	# Directory

	async def list_clubs(self, viewer: AuthenticatedUser | None, *, club_type: str | None = None) -> dto.ClubListResponse:
		if club_type is not None and club_type not in models.CLUB_TYPES:
			raise ValidationError("invalid_club_type")
		clubs = await self.repo.list_clubs(club_type=club_type)
		memberships: dict[UUID, models.Membership] = {}
		if viewer is not None and clubs:
			viewer_id = policies.require_user(viewer)
			for entry in await self.repo.list_user_memberships(viewer_id):
				memberships[entry.membership.club_id] = entry.membership
		return dto.ClubListResponse(
			items=[self._club_to_response(club, membership=memberships.get(club.id)) for club in clubs]
		)

	async def get_club(self, viewer: AuthenticatedUser | None, club_id: UUID) -> dto.ClubResponse:
		club = policies.require_club(await self.repo.get_club(club_id))
		membership = None
		if viewer is not None:
			membership = await self.repo.get_membership(policies.require_user(viewer), club_id)
		return self._club_to_response(club, membership=membership)

	async def create_club(self, actor: AuthenticatedUser | None, payload: Any) -> dto.ClubResponse:
		policies.require_admin(actor)
		request = validation.require(dto.ClubCreateRequest, payload)
		criteria = normalise_criteria(request.type, request.model_dump())
		club = await self.repo.create_club(
			name=request.name.strip(),
			abbreviation=request.abbreviation.strip().upper(),
			description=request.description.strip(),
			club_type=request.type,
			faculty_code=criteria.get("faculty_code"),
			department_code=criteria.get("department_code"),
			state=criteria.get("state"),
			religion=criteria.get("religion"),
			status=request.status,
			dues_applied=request.dues_applied,
			dues_amount=request.dues_amount,
		)
		_LOG.info("club created", extra={"event": "club_created", "club_id": str(club.id), "club_type": club.type})
		return self._club_to_response(club)

	# ------------------------------------------------------------------
	# Membership lifecycle

	async def join(self, user: AuthenticatedUser | None, club_id: UUID) -> dto.MembershipResponse:
		user_id = policies.require_user(user)
		club = policies.require_club(await self.repo.get_club(club_id))
		policies.ensure_joinable(club)
		if await self.repo.get_membership(user_id, club_id) is not None:
			raise AlreadyMemberError()
		membership, member_count = await self.repo.insert_membership(user_id, club_id, origin="voluntary")
		if membership is None:
			# Lost a race with a concurrent join for the same pair.
			raise AlreadyMemberError()
		obs_metrics.inc_memberships_created("voluntary")
		_LOG.info("club joined", extra={"event": "club_joined", "club_id": str(club_id)})
		return self._membership_to_response(membership, member_count=member_count)

	async def leave(self, user: AuthenticatedUser | None, club_id: UUID) -> dto.LeaveResponse:
		user_id = policies.require_user(user)
		policies.require_club(await self.repo.get_club(club_id))
		policies.ensure_can_leave(await self.repo.get_membership(user_id, club_id))
		member_count = await self.repo.delete_membership(user_id, club_id)
		if member_count is None:
			raise NotAMemberError()
		obs_metrics.inc_memberships_removed()
		_LOG.info("club left", extra={"event": "club_left", "club_id": str(club_id)})
		return dto.LeaveResponse(club_id=club_id, member_count=member_count)

	async def list_user_clubs(self, user: AuthenticatedUser | None) -> dto.UserClubListResponse:
		user_id = policies.require_user(user)
		entries = await self.repo.list_user_memberships(user_id)
		return dto.UserClubListResponse(
			items=[
				dto.UserClubResponse(
					club=dto.ClubSummary(
						id=entry.club.id,
						name=entry.club.name,
						abbreviation=entry.club.abbreviation,
						type=entry.club.type,
						status=entry.club.status,
						dues_applied=entry.club.dues_applied,
						dues_amount=entry.club.dues_amount,
					),
					origin=entry.membership.origin,
					joined_at=entry.membership.joined_at,
					dues_paid=entry.membership.dues_paid,
					dues_paid_at=entry.membership.dues_paid_at,
				)
				for entry in entries
			]
		)

	# ------------------------------------------------------------------
	# Dues

	async def dues_quote(self, user: AuthenticatedUser | None, club_id: UUID) -> dto.DuesQuoteResponse:
		user_id = policies.require_user(user)
		club = policies.require_club(await self.repo.get_club(club_id))
		membership = policies.ensure_dues_member(club, await self.repo.get_membership(user_id, club_id))
		return dto.DuesQuoteResponse(
			club_id=club.id,
			amount=club.dues_amount,
			currency=settings.dues_currency,
			description=f"{club.abbreviation} dues",
			dues_paid=membership.dues_paid,
		)

	async def mark_dues_paid(
		self,
		actor: AuthenticatedUser | None,
		club_id: UUID,
		*,
		user_id: UUID | None = None,
		reference: str | None = None,
	) -> dto.MembershipResponse:
		"""Record the unpaid -> paid transition; repeating it is a no-op."""
		actor_id = policies.require_user(actor)
		member_id = user_id or actor_id
		policies.ensure_can_confirm_dues(actor, actor_id, member_id)
		club = policies.require_club(await self.repo.get_club(club_id))
		membership = policies.ensure_dues_member(club, await self.repo.get_membership(member_id, club_id))
		if membership.dues_paid:
			return self._membership_to_response(membership)
		updated = await self.repo.mark_dues_paid(member_id, club_id, reference=reference)
		if updated is None:
			raise NotAMemberError()
		obs_metrics.inc_dues_paid()
		_LOG.info("dues paid", extra={"event": "dues_paid", "club_id": str(club_id), "member_id": str(member_id)})
		return self._membership_to_response(updated)

	# ------------------------------------------------------------------
	# Matching

	async def match_clubs(self, actor: AuthenticatedUser | None, user_id: UUID) -> dto.MatchResponse:
		actor_id = policies.require_user(actor)
		policies.ensure_can_match(actor, actor_id, user_id)
		user = await self.users.get_user(user_id)
		if user is None:
			raise NotFoundError("user_not_found")
		result = await self.matcher.match_and_enroll(user)
		return dto.MatchResponse(user_id=user_id, matched_club_ids=result.matched_club_ids, created=result.created)
