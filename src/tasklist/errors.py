"""Error taxonomy and the FastAPI handlers that render it.

Learn: Services raise domain errors (NotFound, Conflict, ...) without
knowing anything about HTTP. Each error carries its status code and a
stable machine-readable `kind`, and one global handler turns any of them
into `{"detail": ..., "kind": ...}`. Clients get the status and a string;
the `kind` field lets them branch without parsing messages.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class TasklistError(Exception):
    """Base class for every error the API knows how to render."""

    status_code: int = 500
    kind: str = "internal"
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)


class Unauthenticated(TasklistError):
    """Missing, malformed, badly signed or expired credentials."""

    status_code = 401
    kind = "unauthenticated"
    detail = "Authentication required"


class NotFound(TasklistError):
    """Missing resource, or one owned by somebody else (same response)."""

    status_code = 404
    kind = "not_found"
    detail = "Not found"


class Conflict(TasklistError):
    status_code = 409
    kind = "conflict"
    detail = "Conflict"


class Internal(TasklistError):
    pass


def register_error_handlers(app: FastAPI) -> None:
    """Register the global error handlers on the app."""

    @app.exception_handler(TasklistError)
    async def tasklist_error_handler(request: Request, exc: TasklistError):
        headers = None
        if exc.status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "kind": exc.kind},
            headers=headers,
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        # Store errors are not retried; surface them as a 500 with a hint.
        logger.error(
            "db.error",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc.__cause__ or exc),
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": f"Database error: {type(exc).__name__}",
                "kind": Internal.kind,
            },
        )
