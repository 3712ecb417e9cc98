"""
Authentication-specific exceptions.
"""
from fastapi import status
from ..exceptions import AppException

class AuthException(AppException):
    """Base class for authentication exceptions."""
    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)

class ValidationException(AuthException):
    """Exception raised when request input is missing or malformed."""
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class EmailAlreadyExistsException(AuthException):
    """Exception raised when email already exists."""
    def __init__(self, detail: str = "Email already in use."):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid."""
    def __init__(self, detail: str = "Invalid email or password."):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class NotAuthenticatedException(AuthException):
    """Exception raised when no usable credentials were presented."""
    def __init__(self, detail: str = "No token provided"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class TokenExpiredException(AuthException):
    """Exception raised when token has expired."""
    def __init__(self, detail: str = "Token expired"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class InvalidTokenException(AuthException):
    """Exception raised when token is invalid."""
    def __init__(self, detail: str = "Invalid token"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

class RoleDeniedException(AuthException):
    """Exception raised when user doesn't have required role."""
    def __init__(self, detail: str = "Forbidden: insufficient role"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class RefreshTokenException(AuthException):
    """Exception raised when a refresh token is rejected."""
    def __init__(self, detail: str = "Invalid refresh token"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)

class UserNotFoundException(AuthException):
    """Exception raised when the user behind a valid token no longer exists."""
    def __init__(self, detail: str = "User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class PersistenceException(AuthException):
    """Exception raised when the database rejects an operation."""
    def __init__(self, detail: str = "Server error."):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

class ConfigurationException(AuthException):
    """Exception raised when a required secret or setting is missing."""
    def __init__(self, detail: str = "Server misconfiguration"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
