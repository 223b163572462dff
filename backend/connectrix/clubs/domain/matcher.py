"""Automatic club enrollment for newly registered users.

Each rule maps a user to the criteria of one auto-join club type. Rules are
evaluated in order and every resulting club is enrolled with origin ``auto``;
re-running the matcher for the same user is a no-op thanks to the
(user, club) uniqueness guard in the repository.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional
from uuid import UUID

from connectrix.clubs.domain import models
from connectrix.clubs.domain.directory import ClubDirectory
from connectrix.clubs.domain.repo import ClubsRepository
from connectrix.domain.identity.student_id import ParsedIdentity
from connectrix.domain.identity.users import User
from connectrix.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)

CriteriaFn = Callable[[User, ParsedIdentity], Optional[dict[str, str]]]


@dataclass(frozen=True, slots=True)
class MatchRule:
	club_type: str
	criteria: CriteriaFn


def _src(user: User, identity: ParsedIdentity) -> dict[str, str]:
	return {}


def _faculty(user: User, identity: ParsedIdentity) -> dict[str, str] | None:
	if not identity.parsed:
		return None
	return {"faculty_code": identity.faculty_code}


def _department(user: User, identity: ParsedIdentity) -> dict[str, str] | None:
	if not identity.parsed:
		return None
	return {"faculty_code": identity.faculty_code, "department_code": identity.department_code}


def _state(user: User, identity: ParsedIdentity) -> dict[str, str] | None:
	state = user.normalized_state
	return {"state": state} if state else None


def _religion(user: User, identity: ParsedIdentity) -> dict[str, str] | None:
	religion = user.normalized_religion
	return {"religion": religion} if religion else None


MATCH_RULES: tuple[MatchRule, ...] = (
	MatchRule("src", _src),
	MatchRule("faculty", _faculty),
	MatchRule("department", _department),
	MatchRule("state", _state),
	MatchRule("religion", _religion),
)


@dataclass(slots=True)
class MatchResult:
	matched: list[models.Club] = field(default_factory=list)
	created: list[UUID] = field(default_factory=list)

	@property
	def matched_club_ids(self) -> list[UUID]:
		return [club.id for club in self.matched]


class ClubMatcher:
	def __init__(
		self,
		repository: ClubsRepository | None = None,
		*,
		directory: ClubDirectory | None = None,
		rules: tuple[MatchRule, ...] = MATCH_RULES,
	) -> None:
		self.repo = repository or ClubsRepository()
		self.directory = directory or ClubDirectory(self.repo)
		self.rules = rules

	async def resolve(self, user: User) -> list[models.Club]:
		"""Clubs the user must belong to, in rule order; absent clubs are skipped."""
		identity = user.identity
		clubs: list[models.Club] = []
		for rule in self.rules:
			criteria = rule.criteria(user, identity)
			if criteria is None:
				continue
			club = await self.directory.find_by_criteria(rule.club_type, criteria)
			if club is None:
				_LOG.debug("no %s club for user %s", rule.club_type, user.id)
				continue
			if all(existing.id != club.id for existing in clubs):
				clubs.append(club)
		return clubs

	async def match_and_enroll(self, user: User) -> MatchResult:
		result = MatchResult(matched=await self.resolve(user))
		for club in result.matched:
			membership, _count = await self.repo.insert_membership(user.id, club.id, origin="auto")
			if membership is not None:
				result.created.append(club.id)
		if result.created:
			obs_metrics.inc_memberships_created("auto", len(result.created))
		obs_metrics.observe_clubs_matched(len(result.matched))
		_LOG.info(
			"clubs matched",
			extra={"event": "clubs_matched", "user_id": str(user.id), "matched": len(result.matched), "created_count": len(result.created)},
		)
		return result
