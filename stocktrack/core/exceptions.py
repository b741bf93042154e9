from fastapi import HTTPException
from stocktrack.constants.error_codes import ErrorCode


class AppException(HTTPException):
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: ErrorCode,
        details: dict | None = None,
    ):
        super().__init__(status_code=status_code, detail=message)
        self.error_code = error_code
        self.details = details

    @property
    def message(self) -> str:
        return self.detail


# =====================================================
# TAXONOMY
# =====================================================
class ValidationError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.VALIDATION_ERROR, details: dict | None = None):
        super().__init__(400, message, error_code, details)


class AuthenticationError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.UNAUTHORIZED, details: dict | None = None):
        super().__init__(401, message, error_code, details)


class AuthorizationError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.PERMISSION_DENIED, details: dict | None = None):
        super().__init__(403, message, error_code, details)


class NotFoundError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.NOT_FOUND, details: dict | None = None):
        super().__init__(404, message, error_code, details)


class InsufficientStockError(AppException):
    def __init__(self, message: str = "Insufficient stock", details: dict | None = None):
        super().__init__(400, message, ErrorCode.INSUFFICIENT_STOCK, details)


class ConflictError(AppException):
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.CONFLICT, details: dict | None = None):
        super().__init__(400, message, error_code, details)
