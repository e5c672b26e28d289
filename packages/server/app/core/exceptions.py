"""
Typed domain errors and their HTTP rendering.

Services raise these; callers (HTTP handlers, scripts, tests) catch them by
category. Every subclass carries a stable ``code`` and an HTTP status.
"""

from __future__ import annotations

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from signdir_shared.schemas.common import APIError, APIResponse

log = structlog.get_logger()


class DomainError(Exception):
    code = "domain_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Authorization failures (always checked before domain validation)
# ---------------------------------------------------------------------------

class AuthorizationError(DomainError):
    status_code = 403


class Unauthenticated(AuthorizationError):
    code = "unauthenticated"
    status_code = 401


class NoActiveCompany(AuthorizationError):
    code = "no_active_company"


class NotAMember(AuthorizationError):
    code = "not_a_member"


class InsufficientRole(AuthorizationError):
    code = "insufficient_role"


# ---------------------------------------------------------------------------
# Domain failures
# ---------------------------------------------------------------------------

class NotFound(DomainError):
    code = "not_found"
    status_code = 404


class Conflict(DomainError):
    code = "conflict"
    status_code = 409


class InvalidState(DomainError):
    code = "invalid_state"
    status_code = 409


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    log.info(
        "request.rejected",
        path=request.url.path,
        code=exc.code,
        message=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=APIResponse(
            error=APIError(code=exc.code, message=exc.message)
        ).model_dump(exclude_none=True),
    )
