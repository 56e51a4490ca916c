"""Mapping of engine errors to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from paycycle.api.schemas import ErrorResponse
from paycycle.errors import (
    ConflictError,
    DependencyError,
    IntegrityViolation,
    NotFoundError,
    PayrollError,
    StateError,
    ValidationError,
)

logger = logging.getLogger(__name__)

STATUS_CODES: dict[type[PayrollError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StateError: status.HTTP_409_CONFLICT,
    IntegrityViolation: status.HTTP_422_UNPROCESSABLE_ENTITY,
    DependencyError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: PayrollError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def _payroll_exception_handler(request: Request, exc: PayrollError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(exc),
        content=jsonable_encoder(
            ErrorResponse(detail=exc.message, code=exc.code, context=exc.details or None)
        ),
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=jsonable_encoder(
            ErrorResponse(
                detail="Request body or parameters are invalid",
                code=ValidationError.code,
                context={"errors": jsonable_encoder(exc.errors())},
            )
        ),
    )


async def _general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(PayrollError, _payroll_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _general_exception_handler)
