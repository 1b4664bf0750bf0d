from fastapi import status


class PortalError(Exception):
    """Base error for portal operations; carries the HTTP status it maps to."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidFileType(ValidationFailed):
    pass


class InvalidToken(ValidationFailed):
    pass


class TokenExpired(InvalidToken):
    pass


class AuthenticationFailed(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(PortalError):
    status_code = status.HTTP_409_CONFLICT


class IntegrationError(PortalError):
    """Storage, conversion, email or database failure."""
