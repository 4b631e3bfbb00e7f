"""Email notifications for review workflow events.

Handles:
- Rendering the external review request and internal assignment emails
- Handing messages to a delivery backend (Celery queue or log output)
"""

import logging
from typing import Optional, Protocol, Dict, Any

from jinja2 import Environment, DictLoader, select_autoescape

from docreview.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


EXTERNAL_REVIEW_SUBJECT = "Document for external approval"
INTERNAL_ASSIGNMENT_SUBJECT = "New document assigned for internal review"

_BASE_STYLE = """
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .button { display: inline-block; padding: 12px 24px; background-color: #007bff; color: #ffffff; text-decoration: none; border-radius: 5px; margin: 20px 0; }
        .otp-box { background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin: 20px 0; text-align: center; }
        .otp-code { font-size: 24px; font-weight: bold; color: #007bff; letter-spacing: 5px; }
"""

EMAIL_TEMPLATES: Dict[str, str] = {
    "base.html": """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>{{ style }}</style>
</head>
<body>
    <div class="container">
        {% block content %}{% endblock %}
    </div>
</body>
</html>""",
    "external_review.html": """{% extends "base.html" %}
{% block content %}
        <h2>Document Review Request</h2>
        <p>You have a document to review{% if title %}: <strong>{{ title }}</strong>{% endif %}. Please click the link below to access the document:</p>
        <p style="text-align: center;">
            <a href="{{ approval_link }}" class="button">Review Document</a>
        </p>
        <p>Or copy and paste this link into your browser:</p>
        <p style="word-break: break-all; color: #666;">{{ approval_link }}</p>
        <div class="otp-box">
            <p style="margin: 0 0 10px 0;"><strong>Your OTP Code:</strong></p>
            <div class="otp-code">{{ passcode }}</div>
            <p style="margin: 10px 0 0 0; font-size: 12px; color: #666;">You will need this OTP to access the document.</p>
        </div>
        <p style="margin-top: 30px; font-size: 12px; color: #999;">This link will expire in {{ expires_in_hours }} hours.</p>
{% endblock %}""",
    "internal_assignment.html": """{% extends "base.html" %}
{% block content %}
        <h2>Internal Review Assignment</h2>
        <p>Hello {{ reviewer_name }},</p>
        <p>A new document <strong>{{ title }}</strong> has been assigned to you for internal review.</p>
        <p style="text-align: center;">
            <a href="{{ review_link }}" class="button">Open Review</a>
        </p>
        <p style="word-break: break-all; color: #666;">{{ review_link }}</p>
{% endblock %}""",
}

_env = Environment(
    loader=DictLoader(EMAIL_TEMPLATES),
    autoescape=select_autoescape(["html"]),
)


def render_template(name: str, **context: Any) -> str:
    template = _env.get_template(name)
    return template.render(style=_BASE_STYLE, **context)


def external_review_link(token: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.frontend_base_url.rstrip('/')}/external-review?token={token}"


def internal_review_link(workflow_id, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return f"{settings.frontend_base_url.rstrip('/')}/login?returnUrl=/internal/review/{workflow_id}"


def render_external_review_email(
    token: str,
    passcode: str,
    *,
    title: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Render the email carrying the approval link and passcode."""
    settings = settings or get_settings()
    return render_template(
        "external_review.html",
        approval_link=external_review_link(token, settings),
        passcode=passcode,
        title=title,
        expires_in_hours=settings.credential_ttl_hours,
    )


def render_internal_assignment_email(
    workflow_id,
    title: str,
    reviewer_name: str,
    *,
    settings: Optional[Settings] = None,
) -> str:
    return render_template(
        "internal_assignment.html",
        review_link=internal_review_link(workflow_id, settings),
        title=title,
        reviewer_name=reviewer_name,
    )


class Notifier(Protocol):
    """Outbound email delivery."""

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        ...


class CeleryNotifier:
    """Queues emails for the ``deliver_email`` worker task."""

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        from docreview.workers.email_tasks import deliver_email

        deliver_email.delay(to_email, subject, html_body)
        logger.info(f"Queued email to {to_email}: {subject}")


class ConsoleNotifier:
    """Writes emails to the log instead of sending them."""

    def send(self, to_email: str, subject: str, html_body: str) -> None:
        logger.info(f"Email to {to_email}: {subject}\n{html_body}")


def get_notifier(settings: Optional[Settings] = None) -> Notifier:
    """Build the notifier selected by ``email_backend``."""
    settings = settings or get_settings()
    backend = settings.email_backend.lower()
    if backend == "console":
        return ConsoleNotifier()
    if backend == "celery":
        return CeleryNotifier()
    raise ValueError(f"Unknown email backend: {settings.email_backend}")
