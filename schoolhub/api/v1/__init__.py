"""Version 1 of the public API."""

from schoolhub.api.v1.api import api_router

__all__ = ["api_router"]
