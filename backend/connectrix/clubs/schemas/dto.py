"""Pydantic schemas for the clubs API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ClubCreateRequest(BaseModel):
	name: str = Field(..., min_length=2, max_length=120)
	abbreviation: str = Field(..., min_length=1, max_length=20)
	description: str = Field(default="", max_length=2000)
	type: str = Field(..., pattern="^(general|faculty|department|state|religion|src)$")
	faculty_code: Optional[str] = Field(default=None, max_length=80)
	department_code: Optional[str] = Field(default=None, max_length=80)
	state: Optional[str] = Field(default=None, max_length=80)
	religion: Optional[str] = Field(default=None, max_length=80)
	status: str = Field(default="active", pattern="^(active|pending)$")
	dues_applied: bool = False
	dues_amount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)


class ClubResponse(BaseModel):
	id: UUID
	name: str
	abbreviation: str
	description: str
	type: str
	faculty_code: Optional[str] = None
	faculty_name: Optional[str] = None
	department_code: Optional[str] = None
	department_name: Optional[str] = None
	state: Optional[str] = None
	religion: Optional[str] = None
	status: str
	member_count: int
	dues_applied: bool
	dues_amount: Decimal
	created_at: datetime
	is_member: bool = False
	membership_origin: Optional[str] = None


class ClubListResponse(BaseModel):
	items: List[ClubResponse]


class MembershipResponse(BaseModel):
	club_id: UUID
	user_id: UUID
	origin: str
	joined_at: datetime
	dues_paid: bool
	dues_paid_at: Optional[datetime] = None
	payment_reference: Optional[str] = None
	member_count: Optional[int] = None


class LeaveResponse(BaseModel):
	club_id: UUID
	member_count: int


class ClubSummary(BaseModel):
	id: UUID
	name: str
	abbreviation: str
	type: str
	status: str
	dues_applied: bool
	dues_amount: Decimal


class UserClubResponse(BaseModel):
	club: ClubSummary
	origin: str
	joined_at: datetime
	dues_paid: bool
	dues_paid_at: Optional[datetime] = None


class UserClubListResponse(BaseModel):
	items: List[UserClubResponse]


class DuesQuoteResponse(BaseModel):
	club_id: UUID
	amount: Decimal
	currency: str
	description: str
	dues_paid: bool


class DuesPaidRequest(BaseModel):
	user_id: Optional[UUID] = None
	payment_reference: Optional[str] = Field(default=None, min_length=1, max_length=120)


class MatchResponse(BaseModel):
	user_id: UUID
	matched_club_ids: List[UUID]
	created: List[UUID]
