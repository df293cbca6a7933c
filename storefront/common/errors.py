from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 400
    code = "error"

    def __init__(self, message: str = "An error occurred", details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class InsufficientStockError(AppError):
    code = "insufficient_stock"

    def __init__(self, message: str, product_id: Optional[int] = None):
        super().__init__(message)
        self.product_id = product_id


class OutOfStockError(InsufficientStockError):
    code = "out_of_stock"


class InvalidStateError(AppError):
    code = "invalid_state"


class UnauthorizedError(AppError):
    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ValidationError(AppError):
    code = "validation_error"


class ForbiddenError(AppError):
    status_code = 403
    code = "forbidden"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
