"""Authorization and lifecycle policies for clubs."""

from __future__ import annotations

from uuid import UUID

from connectrix.clubs.domain import models
from connectrix.domain.exceptions import (
	ForbiddenError,
	InvalidOperationError,
	NotAMemberError,
	NotApplicableError,
	NotFoundError,
	UnauthorizedError,
)
from connectrix.infra.auth import AuthenticatedUser

DUES_ROLES = frozenset({"admin", "payments"})


def require_user(user: AuthenticatedUser | None) -> UUID:
	"""Return the caller's id or fail when no verified identity is present."""
	if user is None:
		raise UnauthorizedError()
	try:
		return UUID(str(user.id))
	except ValueError as exc:
		raise UnauthorizedError("invalid_subject") from exc


def require_admin(user: AuthenticatedUser | None) -> UUID:
	user_id = require_user(user)
	if not user.is_admin:
		raise ForbiddenError("admin_role_required")
	return user_id


def require_club(club: models.Club | None) -> models.Club:
	if club is None:
		raise NotFoundError("club_not_found")
	return club


def ensure_joinable(club: models.Club) -> None:
	if club.type != "general":
		raise InvalidOperationError("club_not_joinable")
	if not club.is_active:
		raise InvalidOperationError("club_inactive")


def ensure_can_leave(membership: models.Membership | None) -> models.Membership:
	if membership is None:
		raise NotAMemberError()
	if membership.is_auto:
		raise InvalidOperationError("auto_membership_locked")
	return membership


def ensure_dues_member(club: models.Club, membership: models.Membership | None) -> models.Membership:
	"""Dues gating applies only to auto memberships of dues-applied clubs."""
	if not club.dues_applied:
		raise NotApplicableError("dues_not_applied")
	if membership is None:
		raise NotAMemberError()
	if not membership.is_auto:
		raise NotApplicableError("dues_not_applicable")
	return membership


def ensure_can_confirm_dues(user: AuthenticatedUser, actor_id: UUID, member_id: UUID) -> None:
	if member_id == actor_id:
		return
	if user.role in DUES_ROLES:
		return
	raise ForbiddenError("dues_confirmation_forbidden")


def ensure_can_match(user: AuthenticatedUser, actor_id: UUID, target_id: UUID) -> None:
	if target_id == actor_id or user.is_admin:
		return
	raise ForbiddenError("match_forbidden")
