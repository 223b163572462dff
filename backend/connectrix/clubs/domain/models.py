"""Domain models for clubs and memberships."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

CLUB_TYPES = ("general", "faculty", "department", "state", "religion", "src")
# Types whose memberships are assigned by the matcher and cannot be self-removed.
AUTO_CLUB_TYPES = frozenset({"src", "faculty", "department", "state", "religion"})
CLUB_STATUSES = ("active", "pending")
MEMBERSHIP_ORIGINS = ("auto", "voluntary")


class Club(BaseModel):
	"""A club row; criteria fields are only set for criteria-bearing types."""

	id: UUID
	name: str
	abbreviation: str
	description: str = ""
	type: str
	faculty_code: Optional[str] = None
	department_code: Optional[str] = None
	state: Optional[str] = None
	religion: Optional[str] = None
	status: str = "active"
	member_count: int = 0
	dues_applied: bool = False
	dues_amount: Decimal = Decimal("0")
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_auto(self) -> bool:
		return self.type in AUTO_CLUB_TYPES

	@property
	def is_active(self) -> bool:
		return self.status == "active"


class Membership(BaseModel):
	"""A (user, club) pair."""

	id: UUID
	user_id: UUID
	club_id: UUID
	origin: str
	joined_at: datetime
	dues_paid: bool = False
	dues_paid_at: Optional[datetime] = None
	payment_reference: Optional[str] = None

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_auto(self) -> bool:
		return self.origin == "auto"


class MembershipWithClub(BaseModel):
	membership: Membership
	club: Club
