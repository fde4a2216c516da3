"""Custom exception classes for TeamPulse."""

from fastapi import status


class TeamPulseError(Exception):
    """Base exception for TeamPulse."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(TeamPulseError):
    """Raised when there is no usable session."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(TeamPulseError):
    """Raised when user lacks permission or is not approved."""
    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(TeamPulseError):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(TeamPulseError):
    """Raised when a resource already exists."""
    pass


class ValidationError(TeamPulseError):
    """Raised when input validation fails."""
    pass


class IdentityProviderError(TeamPulseError):
    """Raised when the OpenID Connect issuer cannot be reached or refuses a request."""
    status_code = status.HTTP_502_BAD_GATEWAY


class DataIntegrityError(TeamPulseError):
    """Raised when stored data violates the schema (e.g. an unknown enum value)."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

