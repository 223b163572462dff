"""Page/limit clamping and the pagination envelope."""

from __future__ import annotations

import math
from dataclasses import dataclass


def clamp_limit(limit: int | None, *, default: int, maximum: int) -> int:
	if limit is None:
		return default
	return max(1, min(int(limit), maximum))


def clamp_page(page: int | None) -> int:
	if page is None:
		return 1
	return max(1, int(page))


@dataclass(frozen=True, slots=True)
class PageWindow:
	page: int
	limit: int

	@property
	def offset(self) -> int:
		return (self.page - 1) * self.limit

	def envelope(self, total: int) -> dict[str, int | bool]:
		total_pages = math.ceil(total / self.limit) if total else 0
		return {
			"page": self.page,
			"limit": self.limit,
			"total": total,
			"total_pages": total_pages,
			"has_next": self.page < total_pages,
			"has_prev": self.page > 1,
		}


def window(page: int | None, limit: int | None, *, default: int, maximum: int) -> PageWindow:
	return PageWindow(page=clamp_page(page), limit=clamp_limit(limit, default=default, maximum=maximum))
