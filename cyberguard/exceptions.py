import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    """Base for every error the API reports on purpose.

    ``error_code`` is machine-stable; ``detail`` is the human-readable message;
    ``data`` carries remediation hints for the client (never secrets).
    """

    status_code_default = 400
    error_code = "ERROR"
    message_default = "Request failed"

    def __init__(self, detail: Optional[str] = None, status_code: Optional[int] = None,
                 data: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=status_code or self.status_code_default,
                         detail=detail or self.message_default)
        self.data = data


class ValidationError(APIException):
    status_code_default = 400
    error_code = "VALIDATION_ERROR"
    message_default = "Invalid request"


class DuplicateIdentity(APIException):
    status_code_default = 400
    error_code = "DUPLICATE_IDENTITY"
    message_default = "User already exists"


class InvalidCredentials(APIException):
    status_code_default = 401
    error_code = "INVALID_CREDENTIALS"
    message_default = "Invalid username or password"


class PhoneNotVerified(APIException):
    status_code_default = 403
    error_code = "PHONE_NOT_VERIFIED"
    message_default = "Phone verification required"

    def __init__(self, phone_number: str):
        super().__init__(data={"requiresPhoneVerification": True, "phoneNumber": phone_number})
        self.phone_number = phone_number


class Unauthorized(APIException):
    status_code_default = 401
    error_code = "UNAUTHORIZED"
    message_default = "Access token required"


class InvalidToken(APIException):
    status_code_default = 401
    error_code = "INVALID_TOKEN"
    message_default = "Invalid refresh token"


class Forbidden(APIException):
    status_code_default = 403
    error_code = "FORBIDDEN"
    message_default = "Admin access required"


class NotFound(APIException):
    status_code_default = 404
    error_code = "NOT_FOUND"
    message_default = "User not found"


class ProviderFailure(APIException):
    status_code_default = 400
    error_code = "PROVIDER_FAILURE"
    message_default = "Invalid or expired code"


class InternalError(APIException):
    status_code_default = 500
    error_code = "INTERNAL_ERROR"
    message_default = "Internal server error"


class InvalidOrExpiredToken(Exception):
    """Raised by the token issuer; the access guard maps it to Forbidden."""


def create_error_response(error_message: str, error_code: str = "ERROR", data: Optional[dict] = None) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": data,
        "error": error_message,
        "code": error_code,
    }


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.error_code, exc.data),
        headers=getattr(exc, "headers", None),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response(Unauthorized.message_default, Unauthorized.error_code)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), "HTTP_ERROR")
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Only field locations and messages go back; input values may hold passwords
    fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors()]
    message = "Invalid or missing fields: " + ", ".join(f for f in fields if f) if fields else "Invalid request"
    return JSONResponse(
        status_code=400,
        content=create_error_response(message, ValidationError.error_code, {"fields": fields}),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=create_error_response(InternalError.message_default, InternalError.error_code),
    )
