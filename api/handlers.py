"""
api/handlers.py — maps gateway exceptions to HTTP responses.

Every error body has the same shape:
    {"success": false, "error": "<message>", "code": "<ERROR_CODE>"}

NetdiskError subclasses carry their own status (see netdisk/errors.py):
  FormatError / ParamError     → 400
  UpstreamError                → 400  (netdisk's own message passed through)
  UpstreamUnavailableError     → 502
  CredentialsError             → 401
Anything else is a bug → 500 with a generic message.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from netdisk.errors import NetdiskError

log = logging.getLogger("netdisk_gateway.api")


def error_body(message: str, code: str, **extra) -> dict:
    return {"success": False, "error": message, "code": code, **extra}


def register_exception_handlers(app: FastAPI) -> None:
    """Call once in api/main.py after creating the app instance."""

    @app.exception_handler(NetdiskError)
    async def netdisk_error_handler(request: Request, exc: NetdiskError):
        if exc.status_code >= 500:
            log.error("%s on %s: %s", exc.code, request.url.path, exc.message, extra={"detail": exc.detail})
        else:
            log.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.code),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed JSON body or wrong field types (422)."""
        errors = [
            {"loc": list(e.get("loc", [])), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        log.warning("Request validation error on %s: %s", request.url.path, errors)
        return JSONResponse(
            status_code=422,
            content=error_body("Invalid request data.", "VALIDATION_ERROR", detail=errors),
        )

    # Catch-all, must stay last.
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        log.exception("Unhandled exception on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error.", "SERVER_ERROR"),
        )
