"""Club directory: criteria normalisation and criteria-keyed lookup."""

from __future__ import annotations

from typing import Mapping, Optional
from uuid import UUID

from connectrix.clubs.domain import models
from connectrix.clubs.domain.repo import ClubsRepository
from connectrix.domain.exceptions import ValidationError
from connectrix.domain.identity.student_id import normalize, resolve_department_code, resolve_faculty_code

# Criteria columns each club type must carry; every other column must be empty.
REQUIRED_CRITERIA: dict[str, tuple[str, ...]] = {
	"general": (),
	"src": (),
	"faculty": ("faculty_code",),
	"department": ("faculty_code", "department_code"),
	"state": ("state",),
	"religion": ("religion",),
}

_NORMALISERS = {
	"faculty_code": resolve_faculty_code,
	"department_code": resolve_department_code,
	"state": normalize,
	"religion": normalize,
}


def normalise_criteria(club_type: str, raw: Mapping[str, Optional[str]]) -> dict[str, str]:
	"""Return the canonical criteria for `club_type`.

	Codes may be given as full names ("SCIENCE") and are stored as codes ("SC").
	Criteria that the type does not use are discarded.
	"""
	if club_type not in REQUIRED_CRITERIA:
		raise ValidationError("invalid_club_type")
	criteria: dict[str, str] = {}
	missing: list[dict[str, str]] = []
	for column in REQUIRED_CRITERIA[club_type]:
		value = _NORMALISERS[column](raw.get(column))
		if value is None:
			missing.append({"field": column, "code": "missing", "message": f"{club_type} clubs require {column}"})
			continue
		criteria[column] = value
	if missing:
		raise ValidationError("invalid_club_criteria", violations=missing)
	return criteria


class ClubDirectory:
	"""Lookup surface used by the matcher and the admin write path."""

	def __init__(self, repository: ClubsRepository | None = None) -> None:
		self.repo = repository or ClubsRepository()

	async def find_by_criteria(self, club_type: str, criteria: Mapping[str, Optional[str]]) -> models.Club | None:
		"""Zero-or-one club for (type, criteria); missing criteria means no match."""
		try:
			canonical = normalise_criteria(club_type, criteria)
		except ValidationError:
			return None
		return await self.repo.find_by_criteria(club_type, canonical)

	async def increment_members(self, club_id: UUID, delta: int) -> int | None:
		return await self.repo.increment_members(club_id, delta)
