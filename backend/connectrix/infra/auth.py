"""Authentication helpers for FastAPI endpoints.

Identity is supplied by the external auth service as an HS256 access JWT.
Dev headers (X-User-Id / X-User-Role) are only respected in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from connectrix.infra import jwt as jwt_helper
from connectrix.settings import settings

ROLES = ("student", "dean", "admin", "payments")


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	role: str = "student"
	name: Optional[str] = None

	@property
	def is_admin(self) -> bool:
		return self.role == "admin"


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	role = str(payload.get("role") or "student").strip().lower()
	if not sub or role not in ROLES:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	name = payload.get("name")
	return AuthenticatedUser(id=sub, role=role, name=str(name) if name is not None else None)


def _resolve_user(
	x_user_id: Optional[str],
	x_user_role: Optional[str],
	credentials: Optional[HTTPAuthorizationCredentials],
) -> AuthenticatedUser | None:
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)
	if settings.is_dev() and x_user_id:
		role = (x_user_role or "student").strip().lower()
		if role not in ROLES:
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_role")
		return AuthenticatedUser(id=x_user_id.strip(), role=role)
	return None


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user or fail with 401."""
	user = _resolve_user(x_user_id, x_user_role, credentials)
	if user is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	return user


async def get_optional_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser | None:
	"""Same as get_current_user but anonymous callers resolve to None."""
	return _resolve_user(x_user_id, x_user_role, credentials)

