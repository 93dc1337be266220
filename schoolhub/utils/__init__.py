"""Utility helpers package."""

from schoolhub.utils.exceptions import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    SchoolHubException,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "NotFoundError",
    "PermissionDeniedError",
    "SchoolHubException",
    "ValidationError",
]
