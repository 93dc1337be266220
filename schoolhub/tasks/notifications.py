"""Celery tasks for notification housekeeping."""
from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger

from schoolhub.celery_app import celery_app
from schoolhub.db.session import SessionLocal
from schoolhub.services.notification_service import NotificationService


@celery_app.task(name="schoolhub.tasks.notifications.purge_expired_notifications")
def purge_expired_notifications() -> dict[str, int]:
    """Delete notifications whose retention window has elapsed."""

    db = SessionLocal()
    try:
        removed = NotificationService(db).purge_expired(datetime.now(timezone.utc))
        logger.info("Expired notifications purged", removed=removed)
        return {"removed": removed}
    finally:
        db.close()
