"""
Custom exceptions for the content services.

Service errors carry the HTTP status code the API layer responds with.
Cache failures are deliberately absent: the cache layer never raises.
"""

from typing import Optional


class ServiceError(Exception):
    """
    Base exception for all service errors.

    Use this for catching any error a service reports to its caller.
    """

    def __init__(self, message: str, status_code: int = 500) -> None:
        """
        Initialize ServiceError.

        Args:
            message: Error description
            status_code: HTTP status code the API responds with
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """
    Raised when a requested resource does not exist or was soft-deleted.

    Example:
        >>> raise NotFoundError("track", "665f1c")
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        message: Optional[str] = None
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id

        if message is None:
            message = f"{resource_type.capitalize()} '{resource_id}' not found"

        super().__init__(message, status_code=404)


class ValidationError(ServiceError):
    """
    Raised when request parameters are invalid.

    This is a client-side error and should not be retried.

    Example:
        >>> raise ValidationError("must be between 1 and 100", field="limit")
    """

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        self.field = field

        if field:
            message = f"{field}: {message}"

        super().__init__(message, status_code=422)


class AuthenticationError(ServiceError):
    """Raised when an endpoint needs a user identity and none was supplied."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message, status_code=401)
