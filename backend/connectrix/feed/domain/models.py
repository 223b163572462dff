"""Domain models for feed posts and comments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Post(BaseModel):
	id: UUID
	author_id: UUID
	club_id: Optional[UUID] = None
	title: str
	content: str
	tags: List[str] = Field(default_factory=list)
	is_public: bool = True
	is_pinned: bool = False
	like_count: int = 0
	comment_count: int = 0
	share_count: int = 0
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class Comment(BaseModel):
	id: UUID
	post_id: UUID
	author_id: UUID
	parent_id: Optional[UUID] = None
	content: str
	like_count: int = 0
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)


@dataclass(slots=True)
class FeedFilter:
	"""Feed listing filter; unset fields do not constrain the result."""

	club_id: UUID | None = None
	author_id: UUID | None = None
	tag: str | None = None
	search: str | None = None


@dataclass(slots=True)
class ToggleResult:
	liked: bool
	like_count: int
