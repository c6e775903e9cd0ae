import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from delphi_api.config import settings

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto a client-facing status code."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def kind(self) -> str:
        return type(self).__name__

    def to_dict(self, include_details: bool = True) -> dict:
        error = {
            "type": self.kind,
            "message": self.message,
            "code": self.code,
            "status_code": self.status_code,
        }
        if include_details and self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    status_code = 401
    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str = "Authentication required", details: Optional[dict] = None):
        super().__init__(message, details)


class AuthorizationError(AppError):
    status_code = 403
    code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str = "Access forbidden", details: Optional[dict] = None):
        super().__init__(message, details)


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", details: Optional[dict] = None, message: Optional[str] = None):
        super().__init__(message or f"{resource} not found", details)
        self.resource = resource


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT_ERROR"


class DatabaseError(AppError):
    code = "DATABASE_ERROR"

    def __init__(self, message: str = "Database operation failed", details: Optional[dict] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message, details)
        self.cause = cause


# ---------------------------
# FastAPI exception handlers
# ---------------------------

def _error_body(kind: str, message: str, code: str, status_code: int, details: Any = None) -> dict:
    error = {"type": kind, "message": message, "code": code, "status_code": status_code}
    if details:
        error["details"] = details
    return {"success": False, "error": error}


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message,
                     exc_info=getattr(exc, "cause", None) or exc)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)

    # Storage engine details never leave the server outside development
    include_details = settings.is_development or not isinstance(exc, DatabaseError)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(include_details=include_details))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    logger.warning("%s %s -> 400: request validation failed", request.method, request.url.path)
    return JSONResponse(
        status_code=400,
        content=_error_body("ValidationError", "Request validation failed", "VALIDATION_ERROR", 400,
                            {"errors": errors}),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Endpoint {request.method} {request.url.path} not found"
        return JSONResponse(status_code=404,
                            content=_error_body("NotFoundError", message, "ENDPOINT_NOT_FOUND", 404))
    kind = "AuthenticationError" if exc.status_code == 401 else "HTTPError"
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(kind, str(exc.detail), "HTTP_ERROR", exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.is_development else "An unexpected error occurred"
    return JSONResponse(status_code=500,
                        content=_error_body("InternalServerError", message, "INTERNAL_ERROR", 500))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
