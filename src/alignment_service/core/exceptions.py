"""
Service errors and the handlers that turn them into JSON responses.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse

from alignment_service.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI, Request


class ServiceError(Exception):
    """
    Base exception for service errors.

    Attributes:
        error: Machine-readable error code
        message: Human-readable description
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        details: dict[str, object] | None,
    ) -> None:
        self.error = error
        self.message = message
        self.status_code = status_code
        if details is None:
            self.details: dict[str, object] = {}
        else:
            self.details = details
        super().__init__(message)


class WaitingForOtherSideError(ServiceError):
    """A point was placed while the open pairing awaits the other side."""

    def __init__(self, side: str, pending_side: str) -> None:
        super().__init__(
            error="waiting_for_other_side",
            message=f"Waiting for a {pending_side} keypoint",
            status_code=409,
            details={"side": side, "pending_side": pending_side},
        )


class InvalidIndexError(ServiceError):
    """An operation referenced a point or pairing that does not exist."""

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(
            error="invalid_index",
            message=message,
            status_code=404,
            details=details,
        )


class InsufficientPairsError(ServiceError):
    """Too few resolved pairs to estimate a transform."""

    def __init__(self, available: int, required: int) -> None:
        super().__init__(
            error="insufficient_pairs",
            message=f"Need at least {required} pairs, got {available}",
            status_code=422,
            details={"available": available, "required": required},
        )


class DegenerateEstimateError(ServiceError):
    """The right-side points collapse to a single location, or the fit overflows."""

    def __init__(
        self,
        denominator: float,
        message: str = "Right points are coincident; scale is undefined",
    ) -> None:
        # JSON bodies cannot carry inf or nan.
        shown = denominator if math.isfinite(denominator) else str(denominator)
        super().__init__(
            error="degenerate_estimate",
            message=message,
            status_code=422,
            details={"denominator": shown},
        )


async def service_error_handler(
    request: Request,
    exc: ServiceError,
) -> JSONResponse:
    """Handle ServiceError exceptions."""
    logger = get_logger()
    logger.warning(
        "Service error",
        extra={
            "error_code": exc.error,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": str(request.url.path),
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def unhandled_exception_handler(
    request: Request,
    _exc: Exception,
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs full traceback but returns sanitized error to client.
    """
    logger = get_logger()
    logger.exception(
        "Unhandled exception",
        extra={
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the app."""
    app.add_exception_handler(
        ServiceError,
        service_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
