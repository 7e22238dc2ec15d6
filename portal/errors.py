from fastapi import status


class PortalError(Exception):
    """Base class for errors that map onto an HTTP status and a short message."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, data=None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)


class ValidationError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid data"


class DuplicateKey(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "A record with this email or phone already exists"


class Unauthorized(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class InvalidCode(Unauthorized):
    default_message = "Invalid OTP"


class OtpExpired(Unauthorized):
    default_message = "OTP has expired"


class AlreadyUsed(Unauthorized):
    default_message = "OTP has already been used"


class SessionInvalidated(Unauthorized):
    default_message = "Session invalidated by a newer login"


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"
