"""Like toggling for posts and comments."""

from __future__ import annotations

import logging
from uuid import UUID

from connectrix.clubs.domain.policies import require_user
from connectrix.domain.exceptions import NotFoundError
from connectrix.feed.domain import policies
from connectrix.feed.domain import repo as repo_module
from connectrix.feed.schemas import dto
from connectrix.infra.auth import AuthenticatedUser
from connectrix.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


class EngagementService:
	"""Toggles like-set membership; counts come back from the same atomic write."""

	def __init__(self, repository: repo_module.FeedRepository | None = None) -> None:
		self.repo = repository or repo_module.FeedRepository()

	async def toggle_like(self, user: AuthenticatedUser | None, post_id: UUID) -> dto.LikeResponse:
		user_id = require_user(user)
		policies.require_visible_post(await self.repo.get_post(post_id), user, user_id)
		result = await self.repo.toggle_post_like(post_id, user_id)
		if result is None:
			raise NotFoundError("post_not_found")
		obs_metrics.inc_like_toggled("post", liked=result.liked)
		_LOG.debug("post like toggled", extra={"post_id": str(post_id), "liked": result.liked})
		return dto.LikeResponse(liked=result.liked, like_count=result.like_count)

	async def toggle_comment_like(self, user: AuthenticatedUser | None, comment_id: UUID) -> dto.LikeResponse:
		user_id = require_user(user)
		comment = await self.repo.get_comment(comment_id)
		if comment is None:
			raise NotFoundError("comment_not_found")
		policies.require_visible_post(await self.repo.get_post(comment.post_id), user, user_id)
		result = await self.repo.toggle_comment_like(comment_id, user_id)
		if result is None:
			raise NotFoundError("comment_not_found")
		obs_metrics.inc_like_toggled("comment", liked=result.liked)
		return dto.LikeResponse(liked=result.liked, like_count=result.like_count)
