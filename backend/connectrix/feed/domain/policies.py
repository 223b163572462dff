"""Authorization policies for feed operations."""

from __future__ import annotations

from uuid import UUID

from connectrix.clubs.domain.models import Club, Membership
from connectrix.domain.exceptions import ForbiddenError, NotFoundError, ValidationError
from connectrix.feed.domain import models
from connectrix.infra.auth import AuthenticatedUser


def require_visible_post(
	post: models.Post | None,
	viewer: AuthenticatedUser | None,
	viewer_id: UUID | None,
) -> models.Post:
	"""Non-public posts exist only for their author and admins."""
	if post is None:
		raise NotFoundError("post_not_found")
	if post.is_public:
		return post
	if viewer is not None and (viewer.is_admin or post.author_id == viewer_id):
		return post
	raise NotFoundError("post_not_found")


def assert_can_post_to_club(
	club: Club | None,
	membership: Membership | None,
	*,
	is_admin: bool,
) -> Club:
	if club is None:
		raise NotFoundError("club_not_found")
	if membership is None and not is_admin:
		raise ForbiddenError("club_membership_required")
	return club


def clamp_pinned(requested: bool, *, is_admin: bool) -> bool:
	return bool(requested) and is_admin


def assert_can_pin(user: AuthenticatedUser) -> None:
	if not user.is_admin:
		raise ForbiddenError("admin_role_required")


def require_reply_parent(parent: models.Comment | None, post_id: UUID) -> models.Comment:
	if parent is None:
		raise NotFoundError("comment_not_found")
	if parent.post_id != post_id:
		raise ValidationError("parent_post_mismatch")
	if parent.parent_id is not None:
		raise ValidationError("max_depth_exceeded")
	return parent
