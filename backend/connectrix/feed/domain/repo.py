"""Async repository helpers for posts, comments and like-sets."""

from __future__ import annotations

from typing import Iterable
from uuid import UUID, uuid4

import asyncpg

from connectrix.feed.domain import models
from connectrix.infra.postgres import get_pool

_ESCAPE = "ESCAPE '\\'"

# (like table, subject column, counter table) per likeable subject.
_LIKE_TARGETS = {
	"post": ("post_like", "post_id", "post"),
	"comment": ("comment_like", "comment_id", "comment"),
}


def escape_like(term: str) -> str:
	"""Escape LIKE wildcards so user search text matches literally."""
	return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_feed_conditions(feed_filter: models.FeedFilter) -> tuple[list[str], list[object]]:
	conditions = ["p.is_public = TRUE"]
	params: list[object] = []
	if feed_filter.club_id is not None:
		params.append(feed_filter.club_id)
		conditions.append(f"p.club_id = ${len(params)}")
	if feed_filter.author_id is not None:
		params.append(feed_filter.author_id)
		conditions.append(f"p.author_id = ${len(params)}")
	if feed_filter.tag:
		params.append(feed_filter.tag)
		conditions.append(f"${len(params)} = ANY(p.tags)")
	if feed_filter.search:
		params.append(f"%{escape_like(feed_filter.search)}%")
		idx = len(params)
		conditions.append(
			f"(p.title ILIKE ${idx} {_ESCAPE} OR p.content ILIKE ${idx} {_ESCAPE}"
			f" OR EXISTS (SELECT 1 FROM unnest(p.tags) AS t(tag) WHERE t.tag ILIKE ${idx} {_ESCAPE}))"
		)
	return conditions, params


async def _toggle_like(conn: asyncpg.Connection, subject: str, subject_id: UUID, user_id: UUID) -> models.ToggleResult | None:
	"""Flip the user's membership in a like-set and move the counter with it.

	Uses set-remove then set-add primitives inside the caller's transaction;
	the like count returned is the value written by the same statement.
	The subject row is locked first so toggles on one subject apply one at a time.
	"""
	like_table, column, counter_table = _LIKE_TARGETS[subject]
	exists = await conn.fetchval(f"SELECT 1 FROM {counter_table} WHERE id=$1 FOR UPDATE", subject_id)
	if exists is None:
		return None
	removed = await conn.fetchval(
		f"DELETE FROM {like_table} WHERE {column}=$1 AND user_id=$2 RETURNING 1",
		subject_id,
		user_id,
	)
	if removed:
		count = await conn.fetchval(
			f"UPDATE {counter_table} SET like_count = GREATEST(like_count - 1, 0) WHERE id=$1 RETURNING like_count",
			subject_id,
		)
		return models.ToggleResult(liked=False, like_count=count)
	await conn.execute(
		f"INSERT INTO {like_table} ({column}, user_id) VALUES ($1, $2)",
		subject_id,
		user_id,
	)
	count = await conn.fetchval(
		f"UPDATE {counter_table} SET like_count = like_count + 1 WHERE id=$1 RETURNING like_count",
		subject_id,
	)
	return models.ToggleResult(liked=True, like_count=count)


class FeedRepository:
	"""Thin data-access layer around asyncpg."""

	# --- Posts ------------------------------------------------------------

	async def create_post(
		self,
		*,
		author_id: UUID,
		club_id: UUID | None,
		title: str,
		content: str,
		tags: list[str],
		is_public: bool,
		is_pinned: bool,
	) -> models.Post:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				INSERT INTO post (id, author_id, club_id, title, content, tags, is_public, is_pinned)
				VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
				RETURNING *
				""",
				uuid4(),
				author_id,
				club_id,
				title,
				content,
				tags,
				is_public,
				is_pinned,
			)
		return models.Post.model_validate(dict(record))

	async def get_post(self, post_id: UUID) -> models.Post | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM post WHERE id=$1", post_id)
		return models.Post.model_validate(dict(record)) if record else None

	async def list_posts(
		self,
		feed_filter: models.FeedFilter,
		*,
		limit: int,
		offset: int,
	) -> tuple[list[models.Post], int]:
		conditions, params = build_feed_conditions(feed_filter)
		where_clause = " AND ".join(conditions)
		count_sql = f"SELECT COUNT(*) FROM post p WHERE {where_clause}"
		page_sql = f"""
			SELECT p.*
			FROM post p
			WHERE {where_clause}
			ORDER BY p.is_pinned DESC, p.created_at DESC, p.id DESC
			LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			total = await conn.fetchval(count_sql, *params)
			rows = await conn.fetch(page_sql, *params, limit, offset)
		return [models.Post.model_validate(dict(row)) for row in rows], int(total or 0)

	async def set_pinned(self, post_id: UUID, pinned: bool) -> models.Post | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"UPDATE post SET is_pinned=$2, updated_at=NOW() WHERE id=$1 RETURNING *",
				post_id,
				pinned,
			)
		return models.Post.model_validate(dict(record)) if record else None

	async def increment_shares(self, post_id: UUID) -> int | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			return await conn.fetchval(
				"UPDATE post SET share_count = share_count + 1 WHERE id=$1 RETURNING share_count",
				post_id,
			)

	# --- Likes ------------------------------------------------------------

	async def toggle_post_like(self, post_id: UUID, user_id: UUID) -> models.ToggleResult | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				return await _toggle_like(conn, "post", post_id, user_id)

	async def toggle_comment_like(self, comment_id: UUID, user_id: UUID) -> models.ToggleResult | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				return await _toggle_like(conn, "comment", comment_id, user_id)

	async def liked_post_ids(self, user_id: UUID, post_ids: Iterable[UUID]) -> set[UUID]:
		ids = list(set(post_ids))
		if not ids:
			return set()
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT post_id FROM post_like WHERE user_id=$1 AND post_id = ANY($2::uuid[])",
				user_id,
				ids,
			)
		return {row["post_id"] for row in rows}

	async def liked_comment_ids(self, user_id: UUID, comment_ids: Iterable[UUID]) -> set[UUID]:
		ids = list(set(comment_ids))
		if not ids:
			return set()
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"SELECT comment_id FROM comment_like WHERE user_id=$1 AND comment_id = ANY($2::uuid[])",
				user_id,
				ids,
			)
		return {row["comment_id"] for row in rows}

	# --- Comments ---------------------------------------------------------

	async def get_comment(self, comment_id: UUID) -> models.Comment | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM comment WHERE id=$1", comment_id)
		return models.Comment.model_validate(dict(record)) if record else None

	async def create_comment(
		self,
		*,
		post_id: UUID,
		author_id: UUID,
		content: str,
		parent_id: UUID | None,
	) -> models.Comment:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					INSERT INTO comment (id, post_id, author_id, parent_id, content)
					VALUES ($1, $2, $3, $4, $5)
					RETURNING *
					""",
					uuid4(),
					post_id,
					author_id,
					parent_id,
					content,
				)
				await conn.execute(
					"UPDATE post SET comment_count = comment_count + 1 WHERE id=$1",
					post_id,
				)
		return models.Comment.model_validate(dict(record))

	async def recent_comments(self, post_ids: Iterable[UUID], *, per_post: int) -> dict[UUID, list[models.Comment]]:
		ids = list(set(post_ids))
		if not ids or per_post <= 0:
			return {}
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT *
				FROM (
					SELECT c.*, row_number() OVER (PARTITION BY c.post_id ORDER BY c.created_at DESC, c.id DESC) AS rn
					FROM comment c
					WHERE c.post_id = ANY($1::uuid[])
				) ranked
				WHERE rn <= $2
				ORDER BY post_id, created_at DESC, id DESC
				""",
				ids,
				per_post,
			)
		grouped: dict[UUID, list[models.Comment]] = {}
		for row in rows:
			comment = models.Comment.model_validate(dict(row))
			grouped.setdefault(comment.post_id, []).append(comment)
		return grouped

	async def list_top_level_comments(
		self,
		post_id: UUID,
		*,
		limit: int,
		offset: int,
	) -> tuple[list[models.Comment], int]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			total = await conn.fetchval(
				"SELECT COUNT(*) FROM comment WHERE post_id=$1 AND parent_id IS NULL",
				post_id,
			)
			rows = await conn.fetch(
				"""
				SELECT *
				FROM comment
				WHERE post_id=$1 AND parent_id IS NULL
				ORDER BY created_at DESC, id DESC
				LIMIT $2 OFFSET $3
				""",
				post_id,
				limit,
				offset,
			)
		return [models.Comment.model_validate(dict(row)) for row in rows], int(total or 0)

	async def replies_for(
		self,
		parent_ids: Iterable[UUID],
		*,
		per_parent: int,
	) -> dict[UUID, tuple[list[models.Comment], int]]:
		"""Oldest replies first per parent, plus the parent's total reply count."""
		ids = list(set(parent_ids))
		if not ids:
			return {}
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT *
				FROM (
					SELECT c.*,
						row_number() OVER (PARTITION BY c.parent_id ORDER BY c.created_at ASC, c.id ASC) AS rn,
						COUNT(*) OVER (PARTITION BY c.parent_id) AS reply_total
					FROM comment c
					WHERE c.parent_id = ANY($1::uuid[])
				) ranked
				WHERE rn <= $2
				ORDER BY parent_id, created_at ASC, id ASC
				""",
				ids,
				per_parent,
			)
		grouped: dict[UUID, tuple[list[models.Comment], int]] = {}
		for row in rows:
			comment = models.Comment.model_validate(dict(row))
			replies, _total = grouped.get(comment.parent_id, ([], 0))
			replies.append(comment)
			grouped[comment.parent_id] = (replies, int(row["reply_total"]))
		return grouped
