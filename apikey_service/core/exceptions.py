from typing import Iterable, Optional
from fastapi import HTTPException, status


class KeyServiceException(HTTPException):
    """Base class for errors the service reports to callers."""

    default_detail = "Request could not be processed"
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.default_status,
            detail=detail or self.default_detail,
            headers=headers
        )


class MissingFieldException(KeyServiceException):
    """Exception raised when required fields are missing or empty."""

    default_detail = "All fields are required"

    def __init__(self, fields: Iterable[str] = (), detail: Optional[str] = None):
        self.fields = list(fields)
        if detail is None and self.fields:
            detail = f"Missing required fields: {', '.join(self.fields)}"
        super().__init__(detail=detail)


class MissingKeyException(KeyServiceException):
    """Exception raised when no API key was supplied."""

    default_detail = "apiKey is required"


class MalformedKeyException(KeyServiceException):
    """Exception raised when an API key does not have the expected format."""

    default_detail = "Invalid apiKey format"


class DuplicateEmailException(KeyServiceException):
    """Exception raised when an email address is already registered."""

    default_detail = "Email address is already registered"


class DuplicateKeyException(KeyServiceException):
    """Exception raised when an API key value already exists."""

    default_detail = "API key already exists, generate a new one and try again"
    default_status = status.HTTP_409_CONFLICT


class UnknownKeyException(KeyServiceException):
    """Exception raised when an API key is not recognised."""

    default_detail = "API key not recognised"
    default_status = status.HTTP_401_UNAUTHORIZED


class InactiveKeyException(KeyServiceException):
    """Exception raised when an API key has been deactivated."""

    default_detail = "API key is inactive"
    default_status = status.HTTP_403_FORBIDDEN


class NotFoundException(KeyServiceException):
    """Exception raised when the targeted record does not exist."""

    default_detail = "Not found"
    default_status = status.HTTP_404_NOT_FOUND


class InvalidIdException(KeyServiceException):
    """Exception raised when an id is not a positive integer."""

    default_detail = "Invalid id"


class InvalidCredentialsException(KeyServiceException):
    """Exception raised on failed admin login (unknown email or wrong password)."""

    default_detail = "Invalid email or password"
    default_status = status.HTTP_401_UNAUTHORIZED


class UnauthenticatedException(KeyServiceException):
    """Exception raised when a privileged route is called without a live session."""

    default_detail = "Not authenticated"
    default_status = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: Optional[str] = None):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class StoreUnavailableException(KeyServiceException):
    """Exception raised when the database cannot be reached or times out."""

    default_detail = "Internal server error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
