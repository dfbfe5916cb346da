import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class APIException(HTTPException):
    status_code_default = 400
    message = "Bad request"

    def __init__(self, detail: str = None, status_code: int = None):
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=detail or self.message,
        )


class ValidationError(APIException):
    status_code_default = 400
    message = "Invalid request"


class InvalidRole(APIException):
    status_code_default = 400
    message = "Invalid user type specified."


class DuplicateIdentity(APIException):
    status_code_default = 400
    message = "User with this email already exists."


class InvalidCredentials(APIException):
    status_code_default = 400
    message = "Invalid credentials."


class ExternalIdentityOnly(APIException):
    status_code_default = 400
    message = "This account uses Google sign-in. Please continue with Google."


class NoPasswordSet(APIException):
    status_code_default = 400
    message = "No password is set for this account. Please reset your password."


class AlreadyExists(APIException):
    status_code_default = 400
    message = "Record already exists."


class InvalidTransition(APIException):
    status_code_default = 400
    message = "Invalid appointment status change."


class PaymentVerificationFailed(APIException):
    status_code_default = 400
    message = "Payment verification failed"


class EmailNotVerified(APIException):
    status_code_default = 401
    message = "Please verify your email before logging in."


class AccessDenied(APIException):
    status_code_default = 403
    message = "Access denied."


class ConsentRequired(APIException):
    status_code_default = 403
    message = "The patient has not consented to AI processing of their intake."


class AccountSuspended(APIException):
    status_code_default = 403
    message = "Your account has been suspended or is pending approval. Please contact support."


class NotFound(APIException):
    status_code_default = 404
    message = "Not found."


class SlotUnavailable(APIException):
    status_code_default = 409
    message = "This time slot is no longer available. Please select another."


class TooManyRequests(APIException):
    status_code_default = 429
    message = "Too many requests. Please try again later."


class ExternalServiceFailure(APIException):
    status_code_default = 502
    message = "An external service is unavailable. Please try again later."


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


def create_success_response(data: dict) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/query validation failures as a single readable 400 message"""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        text = str(first.get("msg", "")).replace("Value error, ", "")
        message = f"{field}: {text}" if field else text
    logger.info(f"Validation failed for {request.url.path}: {message}")
    return JSONResponse(status_code=400, content=create_error_response(message, 400))
