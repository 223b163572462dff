"""Service layer for posts, comments and feed listing."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional
from uuid import UUID

from connectrix.clubs.domain.policies import require_user
from connectrix.clubs.domain.repo import ClubsRepository
from connectrix.domain import validation
from connectrix.domain.exceptions import NotFoundError
from connectrix.domain.identity.users import User, UsersRepository
from connectrix.feed.domain import models, pagination, policies
from connectrix.feed.domain import repo as repo_module
from connectrix.feed.infra import idempotency
from connectrix.feed.schemas import dto
from connectrix.infra.auth import AuthenticatedUser
from connectrix.obs import metrics as obs_metrics
from connectrix.settings import settings

_LOG = logging.getLogger(__name__)


def _viewer_id(viewer: AuthenticatedUser | None) -> UUID | None:
	return require_user(viewer) if viewer is not None else None


def _clean(value: Optional[str], *, lower: bool = False) -> Optional[str]:
	if value is None:
		return None
	text = value.strip()
	if lower:
		text = text.lower()
	return text or None


class FeedService:
	"""Implements post creation, ranked feed listing and comment threads."""

	def __init__(
		self,
		repository: repo_module.FeedRepository | None = None,
		clubs: ClubsRepository | None = None,
		users: UsersRepository | None = None,
	) -> None:
		self.repo = repository or repo_module.FeedRepository()
		self.clubs = clubs or ClubsRepository()
		self.users = users or UsersRepository()

	# ------------------------------------------------------------------
	# Helpers

	@staticmethod
	def _author(author_id: UUID, users: dict[UUID, User]) -> dto.AuthorSummary:
		user = users.get(author_id)
		if user is None:
			return dto.AuthorSummary(id=author_id)
		return dto.AuthorSummary(id=author_id, name=user.name, avatar_url=user.avatar_url)

	def _comment_to_response(
		self,
		comment: models.Comment,
		users: dict[UUID, User],
		liked: set[UUID],
	) -> dto.CommentResponse:
		return dto.CommentResponse(
			id=comment.id,
			post_id=comment.post_id,
			parent_id=comment.parent_id,
			author=self._author(comment.author_id, users),
			content=comment.content,
			like_count=comment.like_count,
			liked_by_viewer=comment.id in liked,
			created_at=comment.created_at,
		)

	async def _liked_comments(self, viewer_id: UUID | None, comments: Iterable[models.Comment]) -> set[UUID]:
		if viewer_id is None:
			return set()
		return await self.repo.liked_comment_ids(viewer_id, [comment.id for comment in comments])

	async def _hydrate_posts(self, posts: list[models.Post], viewer_id: UUID | None) -> list[dto.PostResponse]:
		"""Resolve authors, clubs, viewer likes and the comment preview for each post."""
		if not posts:
			return []
		post_ids = [post.id for post in posts]
		previews = await self.repo.recent_comments(post_ids, per_post=settings.feed_preview_comments)
		preview_comments = [comment for comments in previews.values() for comment in comments]
		author_ids = {post.author_id for post in posts} | {comment.author_id for comment in preview_comments}
		users = await self.users.get_users(author_ids)
		clubs = await self.clubs.get_clubs(post.club_id for post in posts if post.club_id is not None)
		liked_posts: set[UUID] = set()
		if viewer_id is not None:
			liked_posts = await self.repo.liked_post_ids(viewer_id, post_ids)
		liked_comments = await self._liked_comments(viewer_id, preview_comments)

		items: list[dto.PostResponse] = []
		for post in posts:
			club = clubs.get(post.club_id) if post.club_id else None
			items.append(
				dto.PostResponse(
					id=post.id,
					author=self._author(post.author_id, users),
					club=dto.ClubRef(id=club.id, name=club.name, abbreviation=club.abbreviation) if club else None,
					title=post.title,
					content=post.content,
					tags=post.tags,
					is_public=post.is_public,
					is_pinned=post.is_pinned,
					like_count=post.like_count,
					comment_count=post.comment_count,
					share_count=post.share_count,
					liked_by_viewer=post.id in liked_posts,
					created_at=post.created_at,
					updated_at=post.updated_at,
					recent_comments=[
						self._comment_to_response(comment, users, liked_comments)
						for comment in previews.get(post.id, [])
					],
				)
			)
		return items

	async def _visible_post(self, viewer: AuthenticatedUser | None, post_id: UUID) -> models.Post:
		return policies.require_visible_post(await self.repo.get_post(post_id), viewer, _viewer_id(viewer))

	# ------------------------------------------------------------------
	# Posts

	async def create_post(
		self,
		user: AuthenticatedUser | None,
		payload: Any,
		*,
		idempotency_key: str | None = None,
	) -> dto.PostResponse:
		user_id = require_user(user)
		request = validation.require(dto.PostCreateRequest, payload)
		if request.club_id is not None:
			club = await self.clubs.get_club(request.club_id)
			membership = await self.clubs.get_membership(user_id, request.club_id) if club else None
			policies.assert_can_post_to_club(club, membership, is_admin=user.is_admin)
		is_pinned = policies.clamp_pinned(request.is_pinned, is_admin=user.is_admin)
		body_hash = idempotency.compute_hash(body=request.model_dump(mode="json"))

		async def _producer() -> dto.PostResponse:
			post = await self.repo.create_post(
				author_id=user_id,
				club_id=request.club_id,
				title=request.title,
				content=request.content,
				tags=request.tags,
				is_public=request.is_public,
				is_pinned=is_pinned,
			)
			obs_metrics.inc_posts_created()
			_LOG.info("post created", extra={"event": "post_created", "post_id": str(post.id)})
			(response,) = await self._hydrate_posts([post], user_id)
			return response

		return await idempotency.resolve(
			scope=f"post:{user_id}",
			key=idempotency_key,
			body_hash=body_hash,
			producer=_producer,
			serializer=lambda response: response.model_dump(mode="json"),
			deserializer=lambda raw: dto.PostResponse.model_validate(raw),
		)

	async def list_feed(
		self,
		viewer: AuthenticatedUser | None,
		*,
		club_id: UUID | None = None,
		author_id: UUID | None = None,
		tag: str | None = None,
		search: str | None = None,
		page: int | None = None,
		limit: int | None = None,
	) -> dto.FeedPage:
		viewer_id = _viewer_id(viewer)
		window = pagination.window(
			page,
			limit,
			default=settings.feed_default_limit,
			maximum=settings.feed_max_limit,
		)
		feed_filter = models.FeedFilter(
			club_id=club_id,
			author_id=author_id,
			tag=_clean(tag, lower=True),
			search=_clean(search),
		)
		posts, total = await self.repo.list_posts(feed_filter, limit=window.limit, offset=window.offset)
		items = await self._hydrate_posts(posts, viewer_id)
		return dto.FeedPage(items=items, **window.envelope(total))

	async def get_post(self, viewer: AuthenticatedUser | None, post_id: UUID) -> dto.PostResponse:
		post = await self._visible_post(viewer, post_id)
		(response,) = await self._hydrate_posts([post], _viewer_id(viewer))
		return response

	async def set_pinned(self, user: AuthenticatedUser | None, post_id: UUID, pinned: bool) -> dto.PostResponse:
		user_id = require_user(user)
		policies.assert_can_pin(user)
		post = await self.repo.set_pinned(post_id, pinned)
		if post is None:
			raise NotFoundError("post_not_found")
		_LOG.info("post pin changed", extra={"event": "post_pinned", "post_id": str(post_id), "pinned": pinned})
		(response,) = await self._hydrate_posts([post], user_id)
		return response

	async def record_share(self, user: AuthenticatedUser | None, post_id: UUID) -> dto.ShareResponse:
		require_user(user)
		await self._visible_post(user, post_id)
		share_count = await self.repo.increment_shares(post_id)
		if share_count is None:
			raise NotFoundError("post_not_found")
		obs_metrics.inc_post_shares()
		return dto.ShareResponse(post_id=post_id, share_count=share_count)

	# ------------------------------------------------------------------
	# Comments

	async def add_comment(
		self,
		user: AuthenticatedUser | None,
		post_id: UUID,
		payload: Any,
		*,
		idempotency_key: str | None = None,
	) -> dto.CommentResponse:
		user_id = require_user(user)
		request = validation.require(dto.CommentCreateRequest, payload)
		await self._visible_post(user, post_id)
		if request.parent_comment_id is not None:
			parent = await self.repo.get_comment(request.parent_comment_id)
			policies.require_reply_parent(parent, post_id)
		body_hash = idempotency.compute_hash(body=request.model_dump(mode="json"))

		async def _producer() -> dto.CommentResponse:
			comment = await self.repo.create_comment(
				post_id=post_id,
				author_id=user_id,
				content=request.content,
				parent_id=request.parent_comment_id,
			)
			obs_metrics.inc_comments_created()
			_LOG.info("comment created", extra={"event": "comment_created", "post_id": str(post_id)})
			users = await self.users.get_users([user_id])
			return self._comment_to_response(comment, users, set())

		return await idempotency.resolve(
			scope=f"comment:{user_id}:{post_id}",
			key=idempotency_key,
			body_hash=body_hash,
			producer=_producer,
			serializer=lambda response: response.model_dump(mode="json"),
			deserializer=lambda raw: dto.CommentResponse.model_validate(raw),
		)

	async def list_comments(
		self,
		viewer: AuthenticatedUser | None,
		post_id: UUID,
		*,
		page: int | None = None,
		limit: int | None = None,
	) -> dto.CommentPage:
		viewer_id = _viewer_id(viewer)
		await self._visible_post(viewer, post_id)
		window = pagination.window(
			page,
			limit,
			default=settings.comments_default_limit,
			maximum=settings.feed_max_limit,
		)
		top_level, total = await self.repo.list_top_level_comments(post_id, limit=window.limit, offset=window.offset)
		replies = await self.repo.replies_for(
			[comment.id for comment in top_level],
			per_parent=settings.comment_reply_preview,
		)
		everything = list(top_level) + [reply for thread, _count in replies.values() for reply in thread]
		users = await self.users.get_users(comment.author_id for comment in everything)
		liked = await self._liked_comments(viewer_id, everything)

		items: list[dto.CommentThreadResponse] = []
		for comment in top_level:
			thread, reply_count = replies.get(comment.id, ([], 0))
			base = self._comment_to_response(comment, users, liked)
			items.append(
				dto.CommentThreadResponse(
					**base.model_dump(),
					replies=[self._comment_to_response(reply, users, liked) for reply in thread],
					reply_count=reply_count,
				)
			)
		return dto.CommentPage(items=items, **window.envelope(total))
