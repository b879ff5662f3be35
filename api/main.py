"""
api/main.py -- FastAPI application entry point for OrgGate.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- adds CORS headers for allowed browser origins
  2. log_requests   -- one log line per request with status and latency

Lifespan opens the MembershipStore on startup and disposes its engine on
shutdown. Route handlers reach the store through auth.dependencies.get_store.

Error translation:
  auth/ raises typed AuthError subclasses and knows nothing about HTTP.
  This module is the only place those errors become status codes, via
  _STATUS_FOR. Request validation failures become a 422 list of
  {field, message} pairs. Store errors and anything unexpected become a
  generic 500 with no internal detail in the body.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import FIELD_MESSAGES, ErrorResponse, FieldError, HealthResponse, ValidationErrorResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.organisations import router as organisations_router
from api.routes.v1.users import router as users_router
from auth.errors import (
    AuthenticationFailed,
    AuthError,
    DuplicateEmail,
    Forbidden,
    NotMember,
    OrganisationNotFound,
    RegistrationFailed,
    Unauthenticated,
    UserNotFound,
)
from auth.store import MembershipStore
from core.config import get_settings

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("orggate.api")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the process-wide store for the full server lifetime."""
    logger.info("OrgGate API starting up")
    app.state.store = MembershipStore(_settings.database_url)
    logger.info("Store initialized")

    yield

    app.state.store.close()
    logger.info("OrgGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="OrgGate API",
    description="User registration, bearer-token login and membership-scoped organisation access.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(organisations_router, prefix="/api", tags=["Organisations"])


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

# Wire status for every domain error kind. NotMember shares 404 with the
# lookups so a non-member cannot tell a missing organisation from a foreign one.
_STATUS_FOR: dict[type[AuthError], int] = {
    RegistrationFailed: 400,
    AuthenticationFailed: 401,
    Unauthenticated: 401,
    Forbidden: 403,
    NotMember: 404,
    UserNotFound: 404,
    OrganisationNotFound: 404,
}


def status_for(exc: AuthError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_FOR:
            return _STATUS_FOR[cls]
    return 500


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            status=HTTPStatus(status_code).phrase,
            message=message,
            status_code=status_code,
        ).model_dump(by_alias=True),
    )


def _field_errors_response(errors: list[FieldError]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content=ValidationErrorResponse(errors=errors).model_dump(),
    )


@app.exception_handler(DuplicateEmail)
async def duplicate_email_handler(request: Request, exc: DuplicateEmail) -> JSONResponse:
    """Report a taken email as a field error, like any other validation failure."""
    return _field_errors_response([FieldError(field=exc.field, message=exc.message)])


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code == 500:
        logger.error("Unmapped %s on %s %s", type(exc).__name__, request.method, request.url.path)
        return _error_response(500, "Something went wrong")
    return _error_response(status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with one {field, message} entry per failing field.

    Messages come from FIELD_MESSAGES. A custom validator's own ValueError
    text wins where one was raised (e.g. the email length check).
    """
    errors: list[FieldError] = []
    seen: set[str] = set()
    for err in exc.errors():
        loc = err.get("loc", ())
        field = str(loc[-1]) if len(loc) > 1 else "body"
        if field in seen:
            continue
        seen.add(field)
        raised = (err.get("ctx") or {}).get("error")
        if isinstance(raised, ValueError):
            message = str(raised)
        else:
            message = FIELD_MESSAGES.get(field, err.get("msg", "Invalid value"))
        errors.append(FieldError(field=field, message=message))
    return _field_errors_response(errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes and wrong methods use the same envelope as domain errors."""
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """The store failed. Logged with traceback; the client sees a generic 500."""
    logger.exception("Store error on %s %s", request.method, request.url.path)
    return _error_response(500, "Something went wrong")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, "Something went wrong")


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness plus a store round-trip check. No authentication."""
    components = {"app": "ok"}
    try:
        with request.app.state.store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        components["database"] = "ok"
    except SQLAlchemyError:
        logger.exception("Health check could not reach the store")
        components["database"] = "error"
    return HealthResponse(version=VERSION, components=components)
