"""Celery tasks for outbound email.

Delivery happens here, outside the request that triggered it, so a slow or
broken mail server never holds up a review transition.
"""

import asyncio
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Dict, Any

import aiosmtplib
from celery import Celery, shared_task

from docreview.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Initialize Celery
celery_app = Celery(
    'docreview',
    broker=settings.celery_broker,
    backend=settings.celery_backend,
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_routes={
        'docreview.workers.email_tasks.deliver_email': {'queue': 'email'},
    },
    task_default_queue='default',
)


def build_message(to_email: str, subject: str, html_body: str) -> MIMEMultipart:
    msg = MIMEMultipart("alternative")
    msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html_body, "html"))
    return msg


async def _send(msg: MIMEMultipart) -> None:
    await aiosmtplib.send(
        msg,
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        username=settings.smtp_user,
        password=settings.smtp_password,
        start_tls=settings.smtp_use_tls,
    )


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def deliver_email(self, to_email: str, subject: str, html_body: str) -> Dict[str, Any]:
    """
    Send one HTML email over SMTP.

    Returns:
        Dict with delivery status
    """
    if not settings.smtp_host:
        logger.warning("SMTP not configured, skipping email delivery")
        return {"status": "skipped", "to": to_email}

    try:
        asyncio.run(_send(build_message(to_email, subject, html_body)))
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.warning(f"Email delivery to {to_email} failed: {e}")
        raise self.retry(exc=e)

    logger.info(f"Email delivered to {to_email}: {subject}")
    return {"status": "sent", "to": to_email}
