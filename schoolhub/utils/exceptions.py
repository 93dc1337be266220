"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from loguru import logger


class SchoolHubException(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(SchoolHubException):
    """Requested record does not exist or is not visible to the caller."""
    pass


class PermissionDeniedError(SchoolHubException):
    """Caller's role does not allow the operation."""
    pass


class ValidationError(SchoolHubException):
    """Data validation errors."""
    pass


class AuthenticationError(SchoolHubException):
    """Authentication and authorization errors."""
    pass


def handle_not_found_error(error: NotFoundError) -> HTTPException:
    """Handle missing records."""
    logger.info(f"Not found: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=error.message,
    )


def handle_permission_denied_error(error: PermissionDeniedError) -> HTTPException:
    """Handle role check failures."""
    logger.warning(f"Permission denied: {error.message}")
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=error.message,
    )


def handle_validation_error(error: ValidationError) -> HTTPException:
    """Handle validation errors."""
    logger.warning(f"Validation error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error.message,
    )


def handle_authentication_error(error: AuthenticationError) -> HTTPException:
    """Handle authentication errors."""
    logger.warning(f"Authentication error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def to_http_exception(error: SchoolHubException) -> HTTPException:
    """Map any application exception onto its HTTP response."""
    if isinstance(error, NotFoundError):
        return handle_not_found_error(error)
    if isinstance(error, PermissionDeniedError):
        return handle_permission_denied_error(error)
    if isinstance(error, AuthenticationError):
        return handle_authentication_error(error)
    if isinstance(error, ValidationError):
        return handle_validation_error(error)
    logger.error(f"Unhandled application error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unexpected server error. Please try again later.",
    )
