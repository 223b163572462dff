"""Read-only access to registered users.

User rows are written by the registration service; this backend only reads
them to run club matching and to resolve display identities.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from connectrix.domain.identity.student_id import ParsedIdentity, normalize, parse_student_id
from connectrix.infra.postgres import get_pool


class User(BaseModel):
	id: UUID
	name: str
	avatar_url: Optional[str] = None
	student_id: str
	state: Optional[str] = None
	religion: Optional[str] = None
	role: str = "student"
	created_at: datetime

	model_config = ConfigDict(from_attributes=True, frozen=True)

	@property
	def identity(self) -> ParsedIdentity:
		return parse_student_id(self.student_id)

	@property
	def normalized_state(self) -> Optional[str]:
		return normalize(self.state)

	@property
	def normalized_religion(self) -> Optional[str]:
		return normalize(self.religion)


class UsersRepository:
	async def get_user(self, user_id: UUID) -> User | None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			record = await conn.fetchrow("SELECT * FROM app_user WHERE id=$1", user_id)
		return User.model_validate(dict(record)) if record else None

	async def get_users(self, user_ids: Iterable[UUID]) -> dict[UUID, User]:
		ids = list({uid for uid in user_ids})
		if not ids:
			return {}
		pool = await get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch("SELECT * FROM app_user WHERE id = ANY($1::uuid[])", ids)
		users = [User.model_validate(dict(row)) for row in rows]
		return {user.id: user for user in users}
