"""
Exception handlers - map domain errors to HTTP responses.

Every error body has ``success: false`` and a client-safe ``message``.
Store failures and unexpected exceptions collapse to a generic 500.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.models import ErrorResponse
from src.domain.exceptions import (
    AccountNotFound,
    AuthFlowError,
    DeliveryFailed,
    DuplicateAccount,
    InvalidCredentials,
    InvalidOrExpiredCode,
    InvalidResetToken,
    NoPendingRequest,
    OtpNotVerified,
    PasswordTooLong,
    ResendCooldown,
    UnexpectedStoreError,
    WeakPassword,
)

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[AuthFlowError], int] = {
    DuplicateAccount: status.HTTP_400_BAD_REQUEST,
    NoPendingRequest: status.HTTP_400_BAD_REQUEST,
    InvalidOrExpiredCode: status.HTTP_400_BAD_REQUEST,
    OtpNotVerified: status.HTTP_400_BAD_REQUEST,
    WeakPassword: status.HTTP_400_BAD_REQUEST,
    PasswordTooLong: status.HTTP_400_BAD_REQUEST,
    InvalidResetToken: status.HTTP_400_BAD_REQUEST,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    AccountNotFound: status.HTTP_404_NOT_FOUND,
    ResendCooldown: status.HTTP_429_TOO_MANY_REQUESTS,
    DeliveryFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
    UnexpectedStoreError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

SERVER_ERROR_MESSAGE = "Server error"


def error_body(exc: AuthFlowError) -> dict:
    if isinstance(exc, ResendCooldown):
        body = ErrorResponse(
            message=exc.message, cooldown=True, remaining_time=exc.remaining_seconds
        )
    else:
        body = ErrorResponse(message=exc.message)
    return body.model_dump(by_alias=True, exclude_none=True)


async def auth_flow_error_handler(request: Request, exc: AuthFlowError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500 and not isinstance(exc, DeliveryFailed):
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(message=SERVER_ERROR_MESSAGE).model_dump(exclude_none=True),
        )
    return JSONResponse(status_code=status_code, content=error_body(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the first validation message in the standard error body."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Validation failed")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": message,
            "errors": jsonable_encoder(errors, custom_encoder={Exception: str}),
        },
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework errors (unknown route, wrong method) in the standard error body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(message=SERVER_ERROR_MESSAGE).model_dump(exclude_none=True),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthFlowError, auth_flow_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
