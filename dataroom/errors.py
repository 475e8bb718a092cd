import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def _error_payload(code: str, message: str, details):
    return {"code": code, "message": message, "details": details}


class ServiceError(HTTPException):
    """HTTPException with a stable machine-readable code."""

    status_code = 400
    code = "invalid_request"
    message = "Request failed"

    def __init__(self, message: str | None = None, details=None, headers=None):
        super().__init__(
            status_code=type(self).status_code,
            detail=_error_payload(self.code, message or self.message, details),
            headers=headers,
        )


class ValidationFailed(ServiceError):
    status_code = 400
    code = "invalid_request"
    message = "Invalid request"


class Unauthenticated(ServiceError):
    status_code = 401
    code = "unauthenticated"
    message = "Authentication required"

    def __init__(self, message: str | None = None, details=None):
        super().__init__(message, details, headers={"WWW-Authenticate": "Bearer"})


class AuthorizationError(ServiceError):
    status_code = 403
    code = "forbidden"
    message = "Admin access required"


class AccessDenied(ServiceError):
    status_code = 403
    code = "access_denied"
    message = "Access required"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"
    message = "Conflict"


class InvalidOrExpired(ServiceError):
    status_code = 410
    code = "invite_invalid"
    message = "This invite link is invalid or has expired"


class UpstreamUnavailable(ServiceError):
    status_code = 502
    code = "upstream_unavailable"
    message = "Upstream service unavailable"


class StorageUnavailable(ServiceError):
    status_code = 503
    code = "storage_unavailable"
    message = "Document storage is not available"


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        code = f"http_{exc.status_code}"
        message = "Request failed"
        details = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(code, message, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # ctx may carry raw Exception objects, which are not JSON-serialisable.
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items() if k != "url"}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=_error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", None),
        )
