import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from stocktrack.constants.error_codes import ErrorCode
from stocktrack.core.exceptions import AppException

logger = logging.getLogger(__name__)

HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.VALIDATION_ERROR,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


def error_response(status_code: int, message: str, error_code, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error_code": error_code,
            "details": details,
        },
    )


async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        logger.error(
            "Application error",
            extra={"path": request.url.path, "error_code": exc.error_code},
        )
    return error_response(exc.status_code, exc.detail, exc.error_code, exc.details)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # request body and query validation share the domain 400
    return error_response(
        400,
        "Invalid request data",
        ErrorCode.VALIDATION_ERROR,
        jsonable_encoder(exc.errors()),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_code = HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return error_response(exc.status_code, exc.detail, error_code)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Constraint violations that slipped past service checks (unique SKU, stock >= 0)."""
    logger.warning(
        "Integrity error",
        extra={"path": request.url.path, "method": request.method},
        exc_info=exc,
    )
    return error_response(400, "Database constraint violation", ErrorCode.CONFLICT)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return error_response(500, "Internal server error", ErrorCode.INTERNAL_ERROR)
