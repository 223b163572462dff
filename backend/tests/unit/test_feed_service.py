from __future__ import annotations

import math
from uuid import UUID, uuid4

import pytest

from connectrix.clubs.domain.services import ClubsService
from connectrix.domain.exceptions import (
	ForbiddenError,
	IdempotencyConflict,
	NotFoundError,
	UnauthorizedError,
	ValidationError,
)
from connectrix.feed.domain.services import FeedService
from connectrix.infra.auth import AuthenticatedUser


def _as_user(user_id: UUID | None = None, role: str = "student") -> AuthenticatedUser:
	return AuthenticatedUser(id=str(user_id or uuid4()), role=role)


def _post_payload(**overrides) -> dict:
	payload = {"title": "Welcome week", "content": "Orientation starts on Monday morning.", "tags": []}
	payload.update(overrides)
	return payload


@pytest.fixture()
def service(feed_repo, clubs_repo, users_repo) -> FeedService:
	return FeedService(repository=feed_repo, clubs=clubs_repo, users=users_repo)


@pytest.mark.asyncio
async def test_create_post_resolves_author(service, users_repo) -> None:
	author = users_repo.add_user(name="Amina")

	post = await service.create_post(_as_user(author.id), _post_payload())

	assert post.author.id == author.id
	assert post.author.name == "Amina"
	assert post.club is None
	assert post.like_count == 0 and post.comment_count == 0 and post.share_count == 0
	assert post.liked_by_viewer is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"overrides",
	[
		{"title": "Hi"},
		{"title": "x" * 201},
		{"content": "too short"},
		{"content": "x" * 5001},
		{"tags": [f"tag{i}" for i in range(11)]},
		{"tags": ["x" * 51]},
	],
)
async def test_create_post_validation(service, feed_repo, overrides) -> None:
	with pytest.raises(ValidationError) as excinfo:
		await service.create_post(_as_user(), _post_payload(**overrides))
	assert excinfo.value.violations
	assert feed_repo.posts == {}


@pytest.mark.asyncio
async def test_create_post_rejects_non_object_payload(service) -> None:
	with pytest.raises(ValidationError):
		await service.create_post(_as_user(), ["not", "a", "mapping"])


@pytest.mark.asyncio
async def test_tags_are_normalised_and_deduplicated(service) -> None:
	post = await service.create_post(_as_user(), _post_payload(tags=["Music", " music ", "MUSIC"]))
	assert post.tags == ["music"]


@pytest.mark.asyncio
async def test_tag_cap_applies_after_normalisation(service) -> None:
	tags = [f"Tag{i}" for i in range(10)] + [f" tag{i} " for i in range(10)] + ["", "  "]
	post = await service.create_post(_as_user(), _post_payload(tags=tags))
	assert post.tags == [f"tag{i}" for i in range(10)]


@pytest.mark.asyncio
async def test_pin_is_clamped_for_non_admin(service) -> None:
	student_post = await service.create_post(_as_user(), _post_payload(is_pinned=True))
	admin_post = await service.create_post(_as_user(role="admin"), _post_payload(is_pinned=True))

	assert student_post.is_pinned is False
	assert admin_post.is_pinned is True


@pytest.mark.asyncio
async def test_club_post_requires_membership_until_join(service, clubs_repo, users_repo) -> None:
	club = clubs_repo.add_club("general", name="Drama Club")
	user = _as_user()

	with pytest.raises(ForbiddenError):
		await service.create_post(user, _post_payload(club_id=str(club.id)))

	clubs = ClubsService(repository=clubs_repo, users=users_repo)
	before = clubs_repo.clubs[club.id].member_count
	await clubs.join(user, club.id)
	assert clubs_repo.clubs[club.id].member_count == before + 1

	post = await service.create_post(user, _post_payload(club_id=str(club.id)))
	assert post.club is not None and post.club.id == club.id


@pytest.mark.asyncio
async def test_admin_may_post_to_any_club_and_unknown_club_is_not_found(service, clubs_repo) -> None:
	club = clubs_repo.add_club("src")
	post = await service.create_post(_as_user(role="admin"), _post_payload(club_id=str(club.id)))
	assert post.club.id == club.id

	with pytest.raises(NotFoundError):
		await service.create_post(_as_user(), _post_payload(club_id=str(uuid4())))


@pytest.mark.asyncio
async def test_auto_membership_also_allows_club_posts(service, clubs_repo) -> None:
	club = clubs_repo.add_club("state", state="GOMBE")
	user_id = uuid4()
	await clubs_repo.insert_membership(user_id, club.id, origin="auto")

	post = await service.create_post(_as_user(user_id), _post_payload(club_id=str(club.id)))
	assert post.club.id == club.id


@pytest.mark.asyncio
async def test_create_post_requires_identity(service) -> None:
	with pytest.raises(UnauthorizedError):
		await service.create_post(None, _post_payload())


@pytest.mark.asyncio
async def test_create_post_idempotency_key(service, feed_repo) -> None:
	user = _as_user()
	first = await service.create_post(user, _post_payload(), idempotency_key="abc")
	replay = await service.create_post(user, _post_payload(), idempotency_key="abc")

	assert replay.id == first.id
	assert len(feed_repo.posts) == 1

	with pytest.raises(IdempotencyConflict):
		await service.create_post(user, _post_payload(title="Another title"), idempotency_key="abc")


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [1, 3, 7, 10, 50])
async def test_pagination_covers_every_post_once(service, limit) -> None:
	author = _as_user()
	for idx in range(23):
		await service.create_post(author, _post_payload(title=f"Post number {idx}"))

	first = await service.list_feed(None, page=1, limit=limit)
	assert first.total == 23
	assert first.total_pages == math.ceil(23 / limit)
	assert first.has_prev is False

	seen = []
	for page in range(1, first.total_pages + 1):
		result = await service.list_feed(None, page=page, limit=limit)
		assert result.has_next == (page < first.total_pages)
		assert result.has_prev == (page > 1)
		seen.extend(item.id for item in result.items)
	assert len(seen) == len(set(seen)) == 23


@pytest.mark.asyncio
async def test_limit_and_page_are_clamped(service) -> None:
	await service.create_post(_as_user(), _post_payload())

	too_big = await service.list_feed(None, limit=500)
	too_small = await service.list_feed(None, limit=0, page=-3)
	default = await service.list_feed(None)

	assert too_big.limit == 50
	assert too_small.limit == 1 and too_small.page == 1
	assert default.limit == 10


@pytest.mark.asyncio
async def test_ranking_pinned_first_then_newest(service) -> None:
	student = _as_user()
	admin = _as_user(role="admin")
	old_pinned = await service.create_post(admin, _post_payload(title="Pinned notice", is_pinned=True))
	plain_a = await service.create_post(student, _post_payload(title="First plain"))
	plain_b = await service.create_post(student, _post_payload(title="Second plain"))
	new_pinned = await service.create_post(admin, _post_payload(title="Newer pinned", is_pinned=True))

	feed = await service.list_feed(None, limit=50)

	assert [item.id for item in feed.items] == [new_pinned.id, old_pinned.id, plain_b.id, plain_a.id]
	for earlier, later in zip(feed.items, feed.items[1:]):
		assert earlier.is_pinned >= later.is_pinned
		if earlier.is_pinned == later.is_pinned:
			assert earlier.created_at >= later.created_at


@pytest.mark.asyncio
async def test_feed_filters(service, clubs_repo) -> None:
	club = clubs_repo.add_club("general")
	alice = _as_user()
	bob = _as_user()
	await clubs_repo.insert_membership(UUID(alice.id), club.id, origin="voluntary")
	club_post = await service.create_post(alice, _post_payload(title="Club rehearsal", club_id=str(club.id), tags=["Drama"]))
	music = await service.create_post(bob, _post_payload(title="Open mic night", tags=["music"]))
	await service.create_post(bob, _post_payload(title="Hidden draft", is_public=False, tags=["music"]))
	percent = await service.create_post(bob, _post_payload(title="Save 100% today", content="A literal percent sign here."))

	assert [p.id for p in (await service.list_feed(None, club_id=club.id)).items] == [club_post.id]
	assert [p.id for p in (await service.list_feed(None, author_id=UUID(alice.id))).items] == [club_post.id]
	assert [p.id for p in (await service.list_feed(None, tag=" MUSIC ")).items] == [music.id]
	assert [p.id for p in (await service.list_feed(None, search="MIC NIGHT")).items] == [music.id]
	assert [p.id for p in (await service.list_feed(None, search="drama")).items] == [club_post.id]
	assert [p.id for p in (await service.list_feed(None, search="100%")).items] == [percent.id]
	assert (await service.list_feed(None)).total == 3


@pytest.mark.asyncio
async def test_feed_embeds_three_most_recent_comments(service) -> None:
	author = _as_user()
	post = await service.create_post(author, _post_payload())
	created = []
	for idx in range(5):
		comment = await service.add_comment(_as_user(), post.id, {"content": f"comment {idx}"})
		created.append(comment.id)

	feed = await service.list_feed(None)
	item = feed.items[0]

	assert item.comment_count == 5
	assert [c.id for c in item.recent_comments] == list(reversed(created))[:3]


@pytest.mark.asyncio
async def test_non_public_post_visible_only_to_author_and_admin(service) -> None:
	author = _as_user()
	post = await service.create_post(author, _post_payload(is_public=False))

	assert (await service.get_post(author, post.id)).id == post.id
	assert (await service.get_post(_as_user(role="admin"), post.id)).id == post.id
	with pytest.raises(NotFoundError):
		await service.get_post(_as_user(), post.id)
	with pytest.raises(NotFoundError):
		await service.get_post(None, post.id)
	with pytest.raises(NotFoundError):
		await service.get_post(None, uuid4())


@pytest.mark.asyncio
async def test_add_comment_and_replies(service, feed_repo) -> None:
	post = await service.create_post(_as_user(), _post_payload())
	top = await service.add_comment(_as_user(), post.id, {"content": "Great news"})
	reply = await service.add_comment(_as_user(), post.id, {"content": "Agreed", "parent_comment_id": str(top.id)})

	assert reply.parent_id == top.id
	assert feed_repo.posts[post.id].comment_count == 2

	with pytest.raises(ValidationError) as too_deep:
		await service.add_comment(_as_user(), post.id, {"content": "Nested", "parent_comment_id": str(reply.id)})
	assert too_deep.value.detail == "max_depth_exceeded"

	with pytest.raises(NotFoundError):
		await service.add_comment(_as_user(), post.id, {"content": "Orphan", "parent_comment_id": str(uuid4())})
	with pytest.raises(NotFoundError):
		await service.add_comment(_as_user(), uuid4(), {"content": "No post"})
	with pytest.raises(ValidationError):
		await service.add_comment(_as_user(), post.id, {"content": "   "})
	with pytest.raises(ValidationError):
		await service.add_comment(_as_user(), post.id, {"content": "x" * 1001})

	other = await service.create_post(_as_user(), _post_payload(title="Other post"))
	with pytest.raises(ValidationError) as mismatch:
		await service.add_comment(_as_user(), other.id, {"content": "Wrong thread", "parent_comment_id": str(top.id)})
	assert mismatch.value.detail == "parent_post_mismatch"
	assert feed_repo.posts[post.id].comment_count == 2


@pytest.mark.asyncio
async def test_list_comments_threads(service) -> None:
	post = await service.create_post(_as_user(), _post_payload())
	first = await service.add_comment(_as_user(), post.id, {"content": "first"})
	second = await service.add_comment(_as_user(), post.id, {"content": "second"})
	replies = [
		await service.add_comment(_as_user(), post.id, {"content": f"reply {idx}", "parent_comment_id": str(first.id)})
		for idx in range(7)
	]

	page = await service.list_comments(None, post.id)

	assert page.total == 2
	assert page.limit == 20
	assert [item.id for item in page.items] == [second.id, first.id]
	thread = page.items[1]
	assert thread.reply_count == 7
	assert [r.id for r in thread.replies] == [r.id for r in replies[:5]]
	assert page.items[0].replies == [] and page.items[0].reply_count == 0


@pytest.mark.asyncio
async def test_set_pinned_is_admin_only(service) -> None:
	post = await service.create_post(_as_user(), _post_payload())

	with pytest.raises(ForbiddenError):
		await service.set_pinned(_as_user(), post.id, True)

	pinned = await service.set_pinned(_as_user(role="admin"), post.id, True)
	assert pinned.is_pinned is True
	unpinned = await service.set_pinned(_as_user(role="admin"), post.id, False)
	assert unpinned.is_pinned is False

	with pytest.raises(NotFoundError):
		await service.set_pinned(_as_user(role="admin"), uuid4(), True)


@pytest.mark.asyncio
async def test_record_share_increments(service) -> None:
	post = await service.create_post(_as_user(), _post_payload())
	sharer = _as_user()

	assert (await service.record_share(sharer, post.id)).share_count == 1
	assert (await service.record_share(sharer, post.id)).share_count == 2
	with pytest.raises(NotFoundError):
		await service.record_share(sharer, uuid4())
