"""Student identifier parsing.

Identifiers look like ``UG20/SCCS/1026``: an entry prefix with its year digits,
a four-letter block holding the faculty code and the department code, and a
serial number. Parsing never raises; an identifier that does not match yields
``UNPARSED`` and callers simply skip faculty/department matching.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

FACULTY_NAMES: dict[str, str] = {
	"AS": "ARTS AND SOCIAL SCIENCES",
	"ED": "EDUCATION",
	"LL": "LAW",
	"MD": "MEDICINE",
	"PH": "PHARMACY",
	"SC": "SCIENCE",
}

DEPARTMENT_NAMES: dict[str, str] = {
	"AC": "ACCOUNTING",
	"AR": "ARCHITECTURE",
	"BA": "BUSINESS ADMINISTRATION",
	"BF": "BANKING AND FINANCE",
	"CR": "CRIMINOLOGY",
	"EC": "ECONOMICS",
	"ECE": "ECONOMIC EDUCATION",
	"EM": "EDUCATIONAL MANAGEMENT",
	"EN": "ENGLISH",
	"HS": "HISTORY",
	"IN": "INTERNATIONAL RELATIONS",
	"IR": "ISLAMIC STUDIES",
	"LS": "LIBRARY AND INFORMATION SCIENCE",
	"PA": "PUBLIC ADMINISTRATION",
	"PC": "PEACE STUDIES AND CONFLICT RESOLUTION",
	"PS": "POLITICAL SCIENCE",
	"PSE": "POLITICAL SCIENCE EDUCATION",
	"SG": "SOCIOLOGY",
	"BL": "LAW",
	"HA": "HUMAN ANATOMY",
	"HN": "HUMAN NUTRITION AND DIETETICS",
	"HP": "HUMAN PHYSIOLOGY",
	"MD": "MEDICINE",
	"NS": "NURSING",
	"PH": "PHARM D.",
	"PHT": "PUBLIC HEALTH",
	"PM": "PHARMACOLOGY",
	"BC": "BIOCHEMISTRY",
	"BH": "BIOTECHNOLOGY",
	"BS": "BIOLOGY",
	"BT": "BOTANY",
	"CH": "CHEMISTRY",
	"CS": "COMPUTER SCIENCE",
	"ET": "ENVIRONMENTAL TECHNOLOGY",
	"GL": "GEOLOGY",
	"GS": "GEOGRAPHY",
	"MC": "MICROBIOLOGY",
	"MT": "MATHEMATICS",
	"PV": "PHYSICS",
	"PY": "PURE AND APPLIED PHYSICS",
	"SL": "SCIENCE LABORATORY TECHNOLOGY",
	"ST": "STATISTICS",
	"ZO": "ZOOLOGY",
}

# First code wins when two codes share a display name.
_FACULTY_BY_NAME = {name: code for code, name in reversed(list(FACULTY_NAMES.items()))}
_DEPARTMENT_BY_NAME = {name: code for code, name in reversed(list(DEPARTMENT_NAMES.items()))}

_STUDENT_ID_RE = re.compile(r"^[A-Z]+-?\d+/([A-Z]{2})([A-Z]{2})/\d+$")


@dataclass(frozen=True, slots=True)
class ParsedIdentity:
	faculty_code: Optional[str] = None
	department_code: Optional[str] = None

	@property
	def parsed(self) -> bool:
		return self.faculty_code is not None and self.department_code is not None

	@property
	def faculty_name(self) -> Optional[str]:
		return faculty_name(self.faculty_code)

	@property
	def department_name(self) -> Optional[str]:
		return department_name(self.department_code)


UNPARSED = ParsedIdentity()


def normalize(value: object) -> Optional[str]:
	"""Trim and upper-case a free-text attribute; blank becomes None."""
	if not isinstance(value, str):
		return None
	text = value.strip().upper()
	return text or None


def parse_student_id(raw: object) -> ParsedIdentity:
	text = normalize(raw)
	if text is None:
		return UNPARSED
	match = _STUDENT_ID_RE.match(text)
	if not match:
		return UNPARSED
	return ParsedIdentity(faculty_code=match.group(1), department_code=match.group(2))


def faculty_name(code: Optional[str]) -> Optional[str]:
	if code is None:
		return None
	return FACULTY_NAMES.get(code, code)


def department_name(code: Optional[str]) -> Optional[str]:
	if code is None:
		return None
	return DEPARTMENT_NAMES.get(code, code)


def resolve_faculty_code(value: object) -> Optional[str]:
	"""Accept a faculty code or its full name and return the code."""
	text = normalize(value)
	if text is None:
		return None
	return _FACULTY_BY_NAME.get(text, text)


def resolve_department_code(value: object) -> Optional[str]:
	text = normalize(value)
	if text is None:
		return None
	return _DEPARTMENT_BY_NAME.get(text, text)
