"""
Application Error Taxonomy

Every failure that reaches a client is an AppError subclass. The HTTP layer
renders them uniformly as:

    {"success": false, "error": "<code>", "message": "<human text>"}

with the status code carried by the exception class. The `code` is the
stable, machine-readable reason clients branch on (for example a client
re-prompts for login on `unauthenticated` but drops a stale token on
`invalid_token`).
"""

from typing import Any, Optional


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None):
        self.message = message or self.default_message
        if code:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON body returned to clients."""
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
        }


class UnauthenticatedError(AppError):
    """No credential was supplied with the request."""
    status_code = 401
    code = "unauthenticated"
    default_message = "Not Authorized. Login Again"


class InvalidTokenError(AppError):
    """A credential was supplied but failed signature, format or expiry checks."""
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid or expired token"


class InvalidCredentialsError(AppError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid email or password"


class ForbiddenError(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "Admin role required"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class ValidationError(AppError):
    status_code = 422
    code = "validation_error"
    default_message = "Invalid request"


class EmptyCartError(ValidationError):
    """Checkout attempted without any items."""
    code = "empty_cart"
    default_message = "Cannot place an order with no items"


class UpstreamError(AppError):
    """Database or payment gateway could not be reached or failed."""
    status_code = 502
    code = "upstream_failure"
    default_message = "A downstream service is unavailable, please try again"
