"""Celery workers for DocReview."""

from docreview.workers.email_tasks import celery_app, deliver_email

__all__ = [
    "celery_app",
    "deliver_email",
]
