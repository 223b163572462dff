"""Pydantic schemas for the feed API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_TAGS = 10
MAX_TAG_LENGTH = 50


def normalise_tags(raw: List[str]) -> List[str]:
	"""Trim and lower-case tags, dropping blanks and repeats (first occurrence wins)."""
	seen: set[str] = set()
	tags: List[str] = []
	for value in raw:
		tag = value.strip().lower()
		if not tag or tag in seen:
			continue
		seen.add(tag)
		tags.append(tag)
	return tags


class PostCreateRequest(BaseModel):
	title: str = Field(..., min_length=3, max_length=200)
	content: str = Field(..., min_length=10, max_length=5000)
	tags: List[str] = Field(default_factory=list)
	club_id: Optional[UUID] = None
	is_public: bool = True
	is_pinned: bool = False

	model_config = ConfigDict(str_strip_whitespace=True)

	@field_validator("tags")
	@classmethod
	def _check_tags(cls, value: List[str]) -> List[str]:
		tags = normalise_tags(value)
		if len(tags) > MAX_TAGS:
			raise ValueError(f"at most {MAX_TAGS} tags are allowed")
		too_long = [tag for tag in tags if len(tag) > MAX_TAG_LENGTH]
		if too_long:
			raise ValueError(f"tags must be at most {MAX_TAG_LENGTH} characters")
		return tags


class CommentCreateRequest(BaseModel):
	content: str = Field(..., min_length=1, max_length=1000)
	parent_comment_id: Optional[UUID] = None

	model_config = ConfigDict(str_strip_whitespace=True)


class AuthorSummary(BaseModel):
	id: UUID
	name: Optional[str] = None
	avatar_url: Optional[str] = None


class ClubRef(BaseModel):
	id: UUID
	name: str
	abbreviation: str


class CommentResponse(BaseModel):
	id: UUID
	post_id: UUID
	parent_id: Optional[UUID] = None
	author: AuthorSummary
	content: str
	like_count: int
	liked_by_viewer: bool = False
	created_at: datetime


class CommentThreadResponse(CommentResponse):
	replies: List[CommentResponse] = Field(default_factory=list)
	reply_count: int = 0


class PostResponse(BaseModel):
	id: UUID
	author: AuthorSummary
	club: Optional[ClubRef] = None
	title: str
	content: str
	tags: List[str]
	is_public: bool
	is_pinned: bool
	like_count: int
	comment_count: int
	share_count: int
	liked_by_viewer: bool = False
	created_at: datetime
	updated_at: datetime
	recent_comments: List[CommentResponse] = Field(default_factory=list)


class PageEnvelope(BaseModel):
	page: int
	limit: int
	total: int
	total_pages: int
	has_next: bool
	has_prev: bool


class FeedPage(PageEnvelope):
	items: List[PostResponse]


class CommentPage(PageEnvelope):
	items: List[CommentThreadResponse]


class LikeResponse(BaseModel):
	liked: bool
	like_count: int


class ShareResponse(BaseModel):
	post_id: UUID
	share_count: int
