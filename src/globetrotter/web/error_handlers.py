import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from globetrotter.errors import AccessDeniedError, AuthenticationError, NotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def create_json_error_response(
    status_code: int, message: str, error_type: str | None = None, errors: list[dict[str, str]] | None = None
) -> JSONResponse:
    """Create JSON error response with optional type for machine parsing."""
    content: dict[str, object] = {"message": message}
    if error_type:
        content["type"] = error_type
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Handle all UserError subclasses with appropriate status codes."""
    if isinstance(exc, AuthenticationError):
        status_code = 401
        error_type = "authentication_error"
    elif isinstance(exc, AccessDeniedError):
        status_code = 403
        error_type = "access_denied"
    elif isinstance(exc, NotFoundError):
        status_code = 404
        error_type = "not_found"
    elif isinstance(exc, ValidationError):
        status_code = 400
        error_type = "validation_error"
    else:
        status_code = 400
        error_type = "bad_request"

    response = create_json_error_response(status_code=status_code, message=str(exc), error_type=error_type)
    if status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Report malformed request bodies, paths and queries as 400 with per-field messages."""
    errors = []
    if isinstance(exc, RequestValidationError):
        for error in exc.errors():
            location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
            errors.append({"field": ".".join(location), "message": str(error.get("msg", "Invalid value"))})
    return create_json_error_response(
        status_code=400, message="Validation failed", error_type="validation_error", errors=errors
    )


async def email_delivery_error_handler(_: Request, exc: Exception) -> Response:
    """Outbound mail that the request depended on could not be sent (500)."""
    logger.warning("email_delivery_failed", error=str(exc))
    return create_json_error_response(
        status_code=500, message="Error sending email. Please try again.", error_type="email_delivery_error"
    )


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("unexpected_error", error=str(exc))
    return create_json_error_response(
        status_code=500, message="An unexpected error occurred.", error_type="internal_server_error"
    )
