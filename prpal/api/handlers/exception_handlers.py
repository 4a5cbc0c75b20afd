from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from prpal.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PRPalError,
    ProviderError,
    ValidationError,
)
from prpal.core.responses import error_response
from prpal.utils.logger import logger

STATUS_CODES = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ProviderError: status.HTTP_502_BAD_GATEWAY,
    ConflictError: status.HTTP_409_CONFLICT,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
}


async def unprocessable_entity_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"]) if error["loc"] else "general"
        errors.append({"field": field, "message": error["msg"]})

    return error_response(
        error="validation_error",
        message="The received data is invalid. Please check the fields below for details.",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors=errors,
    )


async def application_exception_handler(request: Request, exc: PRPalError) -> JSONResponse:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_class, code in STATUS_CODES.items():
        if isinstance(exc, error_class):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")

    errors = None
    if isinstance(exc, ValidationError):
        errors = [
            {"field": field, "message": message}
            for field, messages in exc.errors.items()
            for message in messages
        ]

    return error_response(
        error=type(exc).__name__,
        message=exc.message,
        status_code=status_code,
        errors=errors,
    )
