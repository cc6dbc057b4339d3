"""Exception handlers for FastAPI integration."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from sqla_rls.exceptions import AuthorizationError, ConfigurationError, EnforcementViolation

__all__ = ["install_error_handlers"]

logger = logging.getLogger("sqla_rls")

_INTERNAL_ERROR = "Internal server error"


def install_error_handlers(app: FastAPI) -> None:
    """Install exception handlers for sqla-rls errors on a FastAPI app.

    Converts RLS exceptions into HTTP responses:

    - ``AuthorizationError`` -> 403 Forbidden with ``detail`` and ``code``
    - ``ConfigurationError`` -> 500 Internal Server Error
    - ``EnforcementViolation`` -> 500 Internal Server Error

    500 responses carry a generic body; the exception itself is logged
    server side.

    Args:
        app: The FastAPI application instance.

    Example::

        from fastapi import FastAPI
        from sqla_rls.integrations.fastapi import install_error_handlers

        app = FastAPI()
        install_error_handlers(app)
    """

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(  # pyright: ignore[reportUnusedFunction]
        request: object, exc: AuthorizationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(  # pyright: ignore[reportUnusedFunction]
        request: object, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("RLS configuration error: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": _INTERNAL_ERROR, "code": "RLS_CONFIGURATION_ERROR"},
        )

    @app.exception_handler(EnforcementViolation)
    async def enforcement_violation_handler(  # pyright: ignore[reportUnusedFunction]
        request: object, exc: EnforcementViolation
    ) -> JSONResponse:
        logger.critical("RLS enforcement violation: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": _INTERNAL_ERROR, "code": "RLS_VALIDATION_FAILED"},
        )
