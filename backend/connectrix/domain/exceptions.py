"""Domain error taxonomy shared by the clubs and feed services."""

from __future__ import annotations

from typing import Any, Sequence

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class CoreError(Exception):
	"""Base class for per-request domain outcomes."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "core_error"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationError(CoreError):
	"""Malformed input: lengths, counts, bad references inside a payload."""

	status_code = _HTTP_422
	detail = "validation_error"

	def __init__(self, detail: str | None = None, *, violations: Sequence[dict[str, Any]] = ()) -> None:
		super().__init__(detail)
		self.violations = list(violations)


class UnauthorizedError(CoreError):
	"""No verified identity was supplied."""

	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "unauthorized"


class ForbiddenError(CoreError):
	"""Identity is known but the action is not permitted."""

	status_code = status.HTTP_403_FORBIDDEN
	detail = "forbidden"


class NotFoundError(CoreError):
	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class AlreadyMemberError(CoreError):
	status_code = status.HTTP_409_CONFLICT
	detail = "already_member"


class NotAMemberError(CoreError):
	status_code = status.HTTP_409_CONFLICT
	detail = "not_a_member"


class InvalidOperationError(ForbiddenError):
	"""Membership transition not available to the caller (e.g. leaving an auto club)."""

	detail = "invalid_operation"


class NotApplicableError(CoreError):
	status_code = status.HTTP_409_CONFLICT
	detail = "not_applicable"


class IdempotencyConflict(CoreError):
	"""Raised when an idempotency key is reused with a mismatched payload."""

	status_code = status.HTTP_409_CONFLICT
	detail = "idempotency_conflict"
