"""Messaging service - Twilio SMS + SendGrid Email."""

from __future__ import annotations

import logging
import re

from ..config import settings

log = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]+>")


class MessagingNotConfigured(Exception):
    """Raised when Twilio/SendGrid credentials are missing."""


def strip_html(html: str) -> str:
    return _TAG_RE.sub("", html or "").strip()


async def send_sms(to_phone: str, body: str) -> str:
    """Send SMS via Twilio. Returns the message SID."""
    if not settings.twilio_configured:
        raise MessagingNotConfigured("Twilio is not configured. Set CRM_TWILIO_* env vars.")

    from twilio.rest import Client
    client = Client(settings.twilio_account_sid, settings.twilio_auth_token)

    tw_msg = client.messages.create(
        body=body,
        from_=settings.twilio_from_number,
        to=to_phone,
    )
    log.info("SMS sent to %s (sid=%s)", to_phone, tw_msg.sid)
    return tw_msg.sid


async def send_email(
    to_email: str,
    subject: str,
    html_body: str,
    text_body: str | None = None,
) -> str | None:
    """Send email via SendGrid. Returns the provider message id when present."""
    if not settings.sendgrid_configured:
        raise MessagingNotConfigured("SendGrid is not configured. Set CRM_SENDGRID_* env vars.")

    import sendgrid
    from sendgrid.helpers.mail import Content, Email, Mail, To

    sg = sendgrid.SendGridAPIClient(api_key=settings.sendgrid_api_key)
    from_email = Email(settings.sendgrid_from_email, settings.sendgrid_from_name)
    mail = Mail(
        from_email=from_email,
        to_emails=To(to_email),
        subject=subject,
        plain_text_content=Content("text/plain", text_body or strip_html(html_body)),
        html_content=Content("text/html", html_body),
    )
    response = sg.client.mail.send.post(request_body=mail.get())
    provider_id = None
    if hasattr(response, "headers"):
        provider_id = response.headers.get("X-Message-Id")
    log.info("Email sent to %s (id=%s)", to_email, provider_id)
    return provider_id
