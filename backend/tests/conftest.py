import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from fakeredis.aioredis import FakeRedis

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from connectrix.clubs.domain import models as club_models
from connectrix.domain.exceptions import ValidationError
from connectrix.domain.identity.users import User
from connectrix.feed.domain import models as feed_models
from connectrix.infra import postgres
from connectrix.main import app
from connectrix.settings import settings

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class Clock:
	"""Monotonic fake clock so ordering by created_at is deterministic."""

	def __init__(self) -> None:
		self._ticks = 0

	def now(self) -> datetime:
		self._ticks += 1
		return _EPOCH + timedelta(seconds=self._ticks)


class FakeUsersRepository:
	def __init__(self) -> None:
		self.users: dict[UUID, User] = {}

	def add_user(
		self,
		*,
		student_id: str = "UG20/SCCS/1026",
		state: str | None = None,
		religion: str | None = None,
		name: str = "Student",
		role: str = "student",
	) -> User:
		user = User(
			id=uuid4(),
			name=name,
			student_id=student_id,
			state=state,
			religion=religion,
			role=role,
			created_at=_EPOCH,
		)
		self.users[user.id] = user
		return user

	async def get_user(self, user_id: UUID) -> User | None:
		return self.users.get(user_id)

	async def get_users(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
		return {uid: self.users[uid] for uid in set(user_ids) if uid in self.users}


class FakeClubsRepository:
	"""In-memory stand-in for ClubsRepository with the same uniqueness rules."""

	def __init__(self, clock: Clock) -> None:
		self.clock = clock
		self.clubs: dict[UUID, club_models.Club] = {}
		self.memberships: dict[tuple[UUID, UUID], club_models.Membership] = {}

	@staticmethod
	def _criteria_key(club_type: str, values: dict) -> tuple:
		return (
			club_type,
			values.get("faculty_code"),
			values.get("department_code"),
			values.get("state"),
			values.get("religion"),
		)

	def add_club(self, club_type: str = "general", *, name: str | None = None, **fields) -> club_models.Club:
		now = self.clock.now()
		club = club_models.Club(
			id=uuid4(),
			name=name or f"{club_type.title()} club",
			abbreviation=fields.pop("abbreviation", club_type[:3].upper()),
			type=club_type,
			created_at=now,
			updated_at=now,
			**fields,
		)
		self.clubs[club.id] = club
		return club

	async def create_club(self, *, club_type: str, **fields) -> club_models.Club:
		for existing in self.clubs.values():
			if club_type == "src" and existing.type == "src":
				raise ValidationError("duplicate_club")
			if club_type in {"faculty", "department", "state", "religion"} and self._criteria_key(
				club_type, fields
			) == self._criteria_key(existing.type, existing.model_dump()):
				raise ValidationError("duplicate_club")
		return self.add_club(club_type, **fields)

	async def get_club(self, club_id: UUID) -> club_models.Club | None:
		return self.clubs.get(club_id)

	async def get_clubs(self, club_ids: Iterable[UUID]) -> dict[UUID, club_models.Club]:
		return {cid: self.clubs[cid] for cid in set(club_ids) if cid in self.clubs}

	async def list_clubs(self, *, club_type: str | None = None) -> list[club_models.Club]:
		clubs = [club for club in self.clubs.values() if club_type is None or club.type == club_type]
		return sorted(clubs, key=lambda club: (club.type, club.name))

	async def find_by_criteria(self, club_type: str, criteria: dict[str, str]) -> club_models.Club | None:
		for club in self.clubs.values():
			if club.type != club_type:
				continue
			if all(getattr(club, column) == value for column, value in criteria.items()):
				return club
		return None

	async def increment_members(self, club_id: UUID, delta: int) -> int | None:
		club = self.clubs.get(club_id)
		if club is None:
			return None
		club.member_count = max(club.member_count + delta, 0)
		return club.member_count

	async def get_membership(self, user_id: UUID, club_id: UUID) -> club_models.Membership | None:
		return self.memberships.get((user_id, club_id))

	async def insert_membership(self, user_id: UUID, club_id: UUID, *, origin: str):
		if (user_id, club_id) in self.memberships:
			return None, None
		membership = club_models.Membership(
			id=uuid4(),
			user_id=user_id,
			club_id=club_id,
			origin=origin,
			joined_at=self.clock.now(),
		)
		self.memberships[(user_id, club_id)] = membership
		return membership, await self.increment_members(club_id, 1)

	async def delete_membership(self, user_id: UUID, club_id: UUID) -> int | None:
		membership = self.memberships.get((user_id, club_id))
		if membership is None or membership.origin != "voluntary":
			return None
		del self.memberships[(user_id, club_id)]
		return await self.increment_members(club_id, -1)

	async def mark_dues_paid(self, user_id: UUID, club_id: UUID, *, reference: str | None):
		membership = self.memberships.get((user_id, club_id))
		if membership is None:
			return None
		membership.dues_paid = True
		membership.dues_paid_at = membership.dues_paid_at or self.clock.now()
		membership.payment_reference = membership.payment_reference or reference
		return membership

	async def list_user_memberships(self, user_id: UUID) -> list[club_models.MembershipWithClub]:
		entries = [
			club_models.MembershipWithClub(membership=membership, club=self.clubs[club_id])
			for (uid, club_id), membership in self.memberships.items()
			if uid == user_id
		]
		return sorted(entries, key=lambda entry: (entry.membership.joined_at, entry.club.name))

	def members_of(self, club_id: UUID) -> int:
		return sum(1 for (_uid, cid) in self.memberships if cid == club_id)


class FakeFeedRepository:
	"""In-memory stand-in for FeedRepository."""

	def __init__(self, clock: Clock) -> None:
		self.clock = clock
		self.posts: dict[UUID, feed_models.Post] = {}
		self.comments: dict[UUID, feed_models.Comment] = {}
		self.post_likes: set[tuple[UUID, UUID]] = set()
		self.comment_likes: set[tuple[UUID, UUID]] = set()

	async def create_post(self, *, author_id, club_id, title, content, tags, is_public, is_pinned) -> feed_models.Post:
		now = self.clock.now()
		post = feed_models.Post(
			id=uuid4(),
			author_id=author_id,
			club_id=club_id,
			title=title,
			content=content,
			tags=list(tags),
			is_public=is_public,
			is_pinned=is_pinned,
			created_at=now,
			updated_at=now,
		)
		self.posts[post.id] = post
		return post

	async def get_post(self, post_id: UUID) -> feed_models.Post | None:
		return self.posts.get(post_id)

	@staticmethod
	def _matches(post: feed_models.Post, feed_filter: feed_models.FeedFilter) -> bool:
		if not post.is_public:
			return False
		if feed_filter.club_id is not None and post.club_id != feed_filter.club_id:
			return False
		if feed_filter.author_id is not None and post.author_id != feed_filter.author_id:
			return False
		if feed_filter.tag and feed_filter.tag not in post.tags:
			return False
		if feed_filter.search:
			needle = feed_filter.search.lower()
			haystack = [post.title.lower(), post.content.lower(), *(tag.lower() for tag in post.tags)]
			if not any(needle in text for text in haystack):
				return False
		return True

	async def list_posts(self, feed_filter, *, limit: int, offset: int):
		matching = [post for post in self.posts.values() if self._matches(post, feed_filter)]
		matching.sort(key=lambda post: (post.is_pinned, post.created_at, post.id), reverse=True)
		return matching[offset : offset + limit], len(matching)

	async def set_pinned(self, post_id: UUID, pinned: bool):
		post = self.posts.get(post_id)
		if post is None:
			return None
		post.is_pinned = pinned
		return post

	async def increment_shares(self, post_id: UUID) -> int | None:
		post = self.posts.get(post_id)
		if post is None:
			return None
		post.share_count += 1
		return post.share_count

	@staticmethod
	def _toggle(likes: set, key: tuple, subject) -> feed_models.ToggleResult:
		if key in likes:
			likes.discard(key)
			subject.like_count = max(subject.like_count - 1, 0)
			return feed_models.ToggleResult(liked=False, like_count=subject.like_count)
		likes.add(key)
		subject.like_count += 1
		return feed_models.ToggleResult(liked=True, like_count=subject.like_count)

	async def toggle_post_like(self, post_id: UUID, user_id: UUID):
		post = self.posts.get(post_id)
		if post is None:
			return None
		return self._toggle(self.post_likes, (post_id, user_id), post)

	async def toggle_comment_like(self, comment_id: UUID, user_id: UUID):
		comment = self.comments.get(comment_id)
		if comment is None:
			return None
		return self._toggle(self.comment_likes, (comment_id, user_id), comment)

	async def liked_post_ids(self, user_id: UUID, post_ids: Iterable[UUID]) -> set[UUID]:
		return {pid for pid in post_ids if (pid, user_id) in self.post_likes}

	async def liked_comment_ids(self, user_id: UUID, comment_ids: Iterable[UUID]) -> set[UUID]:
		return {cid for cid in comment_ids if (cid, user_id) in self.comment_likes}

	async def get_comment(self, comment_id: UUID):
		return self.comments.get(comment_id)

	async def create_comment(self, *, post_id, author_id, content, parent_id):
		comment = feed_models.Comment(
			id=uuid4(),
			post_id=post_id,
			author_id=author_id,
			parent_id=parent_id,
			content=content,
			created_at=self.clock.now(),
		)
		self.comments[comment.id] = comment
		self.posts[post_id].comment_count += 1
		return comment

	def _newest_first(self, comments):
		return sorted(comments, key=lambda comment: (comment.created_at, comment.id), reverse=True)

	async def recent_comments(self, post_ids, *, per_post: int):
		grouped = {}
		for post_id in set(post_ids):
			comments = self._newest_first(c for c in self.comments.values() if c.post_id == post_id)[:per_post]
			if comments:
				grouped[post_id] = comments
		return grouped

	async def list_top_level_comments(self, post_id: UUID, *, limit: int, offset: int):
		top = self._newest_first(
			c for c in self.comments.values() if c.post_id == post_id and c.parent_id is None
		)
		return top[offset : offset + limit], len(top)

	async def replies_for(self, parent_ids, *, per_parent: int):
		grouped = {}
		for parent_id in set(parent_ids):
			replies = sorted(
				(c for c in self.comments.values() if c.parent_id == parent_id),
				key=lambda comment: (comment.created_at, comment.id),
			)
			if replies:
				grouped[parent_id] = (replies[:per_parent], len(replies))
		return grouped


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from connectrix.infra.redis import redis_client, set_redis_client
	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-Id/X-User-Role, which are only accepted in dev mode."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture()
def clock() -> Clock:
	return Clock()


@pytest.fixture()
def users_repo() -> FakeUsersRepository:
	return FakeUsersRepository()


@pytest.fixture()
def clubs_repo(clock) -> FakeClubsRepository:
	return FakeClubsRepository(clock)


@pytest.fixture()
def feed_repo(clock) -> FakeFeedRepository:
	return FakeFeedRepository(clock)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
