"""Boundary parsing of untyped payloads into schema models.

Callers get a tagged result instead of an exception so the decision about how
to report violations stays with the service layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar, Union

import pydantic
from pydantic import BaseModel

from connectrix.domain.exceptions import ValidationError

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True, slots=True)
class Ok(Generic[M]):
	value: M


@dataclass(frozen=True, slots=True)
class Err:
	violations: list[dict[str, Any]] = field(default_factory=list)


ParseResult = Union[Ok[M], Err]


def _violation(error: Mapping[str, Any]) -> dict[str, Any]:
	loc = ".".join(str(part) for part in error.get("loc", ()))
	return {"field": loc or None, "code": error.get("type", "invalid"), "message": error.get("msg", "")}


def parse(model: type[M], payload: Any) -> ParseResult[M]:
	"""Validate `payload` against `model`.

	Model instances are re-validated through their dict form so that schemas
	built with `model_construct` cannot bypass the bounds.
	"""
	if isinstance(payload, BaseModel):
		payload = payload.model_dump()
	if not isinstance(payload, Mapping):
		return Err([{"field": None, "code": "type_error", "message": "payload must be an object"}])
	try:
		return Ok(model.model_validate(dict(payload)))
	except pydantic.ValidationError as exc:
		return Err([_violation(error) for error in exc.errors()])


def require(model: type[M], payload: Any) -> M:
	"""Parse and raise ValidationError carrying every violation on failure."""
	result = parse(model, payload)
	if isinstance(result, Err):
		raise ValidationError(violations=result.violations)
	return result.value
