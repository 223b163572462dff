"""Async repository helpers for clubs and memberships."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable
from uuid import UUID, uuid4

import asyncpg

from connectrix.clubs.domain import models
from connectrix.domain.exceptions import ValidationError
from connectrix.infra.postgres import get_pool

_CRITERIA_COLUMNS = ("faculty_code", "department_code", "state", "religion")


class ClubsRepository:
	"""Thin data-access layer around asyncpg."""

	# --- Club directory ---------------------------------------------------

	async def create_club(
		self,
		*,
		name: str,
		abbreviation: str,
		description: str,
		club_type: str,
		faculty_code: str | None,
		department_code: str | None,
		state: str | None,
		religion: str | None,
		status: str,
		dues_applied: bool,
		dues_amount: Decimal,
	) -> models.Club:
		pool = await get_pool()
		async with pool.acquire() as conn:
			try:
				record = await conn.fetchrow(
					"""
					INSERT INTO club (id, name, abbreviation, description, type, faculty_code, department_code,
						state, religion, status, dues_applied, dues_amount)
					VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
					RETURNING *
					""",
					uuid4(),
					name,
					abbreviation,
					description,
					club_type,
					faculty_code,
					department_code,
					state,
					religion,
					status,
					dues_applied,
					dues_amount,
				)
			except asyncpg.UniqueViolationError as exc:  # type: ignore[attr-defined]
				raise ValidationError("duplicate_club") from exc
		return models.Club.model_validate(dict(record))

	async def get_club(self, club_id: UUID) -> models.Club | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM club WHERE id=$1", club_id)
		return models.Club.model_validate(dict(record)) if record else None

	async def get_clubs(self, club_ids: Iterable[UUID]) -> dict[UUID, models.Club]:
		ids = list(set(club_ids))
		if not ids:
			return {}
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch("SELECT * FROM club WHERE id = ANY($1::uuid[])", ids)
		clubs = [models.Club.model_validate(dict(row)) for row in rows]
		return {club.id: club for club in clubs}

	async def list_clubs(self, *, club_type: str | None = None) -> list[models.Club]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			if club_type:
				rows = await conn.fetch("SELECT * FROM club WHERE type=$1 ORDER BY name ASC", club_type)
			else:
				rows = await conn.fetch("SELECT * FROM club ORDER BY type ASC, name ASC")
		return [models.Club.model_validate(dict(row)) for row in rows]

	async def find_by_criteria(self, club_type: str, criteria: dict[str, str]) -> models.Club | None:
		"""Exact lookup served by the (type, criteria) unique indexes."""
		conditions = ["type=$1"]
		params: list[object] = [club_type]
		for column in _CRITERIA_COLUMNS:
			value = criteria.get(column)
			if value is None:
				continue
			params.append(value)
			conditions.append(f"{column}=${len(params)}")
		query = f"SELECT * FROM club WHERE {' AND '.join(conditions)} LIMIT 1"
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(query, *params)
		return models.Club.model_validate(dict(record)) if record else None

	async def increment_members(self, club_id: UUID, delta: int) -> int | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			return await conn.fetchval(
				"""
				UPDATE club SET member_count = GREATEST(member_count + $2, 0), updated_at = NOW()
				WHERE id=$1
				RETURNING member_count
				""",
				club_id,
				delta,
			)

	# --- Memberships ------------------------------------------------------

	async def get_membership(self, user_id: UUID, club_id: UUID) -> models.Membership | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"SELECT * FROM club_membership WHERE user_id=$1 AND club_id=$2",
				user_id,
				club_id,
			)
		return models.Membership.model_validate(dict(record)) if record else None

	async def insert_membership(
		self,
		user_id: UUID,
		club_id: UUID,
		*,
		origin: str,
	) -> tuple[models.Membership | None, int | None]:
		"""Create the membership unless the (user, club) pair exists.

		Returns the new membership and the club's member count, or ``(None, None)``
		when a membership was already present. The counter moves in the same
		transaction as the insert.
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					INSERT INTO club_membership (id, user_id, club_id, origin)
					VALUES ($1, $2, $3, $4)
					ON CONFLICT (user_id, club_id) DO NOTHING
					RETURNING *
					""",
					uuid4(),
					user_id,
					club_id,
					origin,
				)
				if not record:
					return None, None
				member_count = await conn.fetchval(
					"""
					UPDATE club SET member_count = member_count + 1, updated_at = NOW()
					WHERE id=$1
					RETURNING member_count
					""",
					club_id,
				)
		return models.Membership.model_validate(dict(record)), member_count

	async def delete_membership(self, user_id: UUID, club_id: UUID) -> int | None:
		"""Delete a voluntary membership; returns the new member count or None if nothing was removed."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				deleted = await conn.fetchval(
					"""
					DELETE FROM club_membership
					WHERE user_id=$1 AND club_id=$2 AND origin='voluntary'
					RETURNING id
					""",
					user_id,
					club_id,
				)
				if deleted is None:
					return None
				return await conn.fetchval(
					"""
					UPDATE club SET member_count = GREATEST(member_count - 1, 0), updated_at = NOW()
					WHERE id=$1
					RETURNING member_count
					""",
					club_id,
				)

	async def mark_dues_paid(
		self,
		user_id: UUID,
		club_id: UUID,
		*,
		reference: str | None,
	) -> models.Membership | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow(
				"""
				UPDATE club_membership
				SET dues_paid = TRUE,
					dues_paid_at = COALESCE(dues_paid_at, NOW()),
					payment_reference = COALESCE(payment_reference, $3)
				WHERE user_id=$1 AND club_id=$2
				RETURNING *
				""",
				user_id,
				club_id,
				reference,
			)
		return models.Membership.model_validate(dict(record)) if record else None

	async def list_user_memberships(self, user_id: UUID) -> list[models.MembershipWithClub]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(
				"""
				SELECT m.id AS m_id, m.user_id, m.club_id, m.origin, m.joined_at, m.dues_paid,
					m.dues_paid_at, m.payment_reference, c.*
				FROM club_membership m
				JOIN club c ON c.id = m.club_id
				WHERE m.user_id=$1
				ORDER BY m.joined_at ASC, c.name ASC
				""",
				user_id,
			)
		items: list[models.MembershipWithClub] = []
		for row in rows:
			data = dict(row)
			membership = models.Membership(
				id=data["m_id"],
				user_id=data["user_id"],
				club_id=data["club_id"],
				origin=data["origin"],
				joined_at=data["joined_at"],
				dues_paid=data["dues_paid"],
				dues_paid_at=data["dues_paid_at"],
				payment_reference=data["payment_reference"],
			)
			items.append(models.MembershipWithClub(membership=membership, club=models.Club.model_validate(data)))
		return items
