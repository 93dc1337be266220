"""Celery tasks package."""

from schoolhub.tasks import notifications

__all__ = ["notifications"]
