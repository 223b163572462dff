"""Error translation helpers shared by every router."""

from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from connectrix.domain import exceptions
from connectrix.obs import logging as obs_logging


def to_http_error(exc: Exception) -> HTTPException:
	"""Translate domain exceptions to FastAPI HTTP errors."""
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, exceptions.ValidationError) and exc.violations:
		return HTTPException(
			status_code=exc.status_code,
			detail={"code": exc.detail, "violations": exc.violations},
		)
	if isinstance(exc, exceptions.CoreError):
		return HTTPException(status_code=exc.status_code, detail=exc.detail)
	return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _request_id(request: Request) -> str | None:
	return getattr(request.state, "request_id", None) or obs_logging.current_request_id()


def install_error_handlers(app: FastAPI) -> None:
	"""Attach the request id to every JSON error body."""

	@app.exception_handler(StarletteHTTPException)
	async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
		body = {"detail": exc.detail, "request_id": _request_id(request)}
		return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))

	@app.exception_handler(exceptions.CoreError)
	async def _core_error_handler(request: Request, exc: exceptions.CoreError) -> JSONResponse:
		http_exc = to_http_error(exc)
		body = {"detail": http_exc.detail, "request_id": _request_id(request)}
		return JSONResponse(status_code=http_exc.status_code, content=body)

	@app.exception_handler(RequestValidationError)
	async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
		violations = [
			{
				"field": ".".join(str(part) for part in error.get("loc", ())),
				"code": error.get("type", "invalid"),
				"message": error.get("msg", ""),
			}
			for error in exc.errors()
		]
		body = {
			"detail": {"code": exceptions.ValidationError.detail, "violations": violations},
			"request_id": _request_id(request),
		}
		return JSONResponse(status_code=exceptions.ValidationError.status_code, content=body)
