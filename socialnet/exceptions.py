"""
Error taxonomy shared by every concept, and the handlers that turn it into
HTTP responses.

Concepts raise these; the route layer lets them propagate untouched and the
handlers registered by ``register_exception_handlers`` map each class to its
status code with a ``{"msg": ...}`` body, the same shape as success payloads.

    SocialError (base)                 500
    ├── NotAuthenticatedError          401
    ├── AlreadyAuthenticatedError      403
    ├── NotAuthorizedError             403
    ├── NotFoundError                  404
    ├── ValidationError                400
    └── ConflictError                  409
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class SocialError(Exception):
    """
    Base class for all domain errors.

    ``message`` is returned to the client; ``context`` is only logged.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotAuthenticatedError(SocialError):
    """No user is bound to the session, or credentials were rejected."""

    status_code = 401

    def __init__(self, message: str = "Must be logged in!", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class AlreadyAuthenticatedError(SocialError):
    status_code = 403

    def __init__(self, message: str = "Must be logged out!", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class NotAuthorizedError(SocialError):
    """The caller is authenticated but does not own the resource."""

    status_code = 403

    def __init__(
        self,
        message: str = "Not authorized to perform this action!",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(SocialError):
    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found!"
        if resource_id is not None:
            message = f"{resource.capitalize()} {resource_id} does not exist!"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(SocialError):
    """Input the client can fix, e.g. an empty username."""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ConflictError(SocialError):
    """Duplicate like, duplicate friend request, taken username, ..."""

    status_code = 409


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SocialError)
    async def social_error_handler(request: Request, exc: SocialError):
        log = logger.warning if exc.status_code >= 500 else logger.info
        log(
            "%s on %s %s: %s %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=exc.status_code, content={"msg": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"msg": "Internal server error"})
