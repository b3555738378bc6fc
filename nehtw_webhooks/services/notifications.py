"""User and operator notifications — SMTP and SES backends."""

import asyncio
import html
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from nehtw_webhooks.config import Settings

logger = logging.getLogger(__name__)


async def send_email_smtp(settings: Settings, to_email: str, subject: str, html_body: str, text_body: str = "") -> bool:
    """Send a single email via SMTP."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    msg["To"] = to_email

    if text_body:
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
    msg.attach(MIMEText(html_body, "html", "utf-8"))

    try:
        await aiosmtplib.send(
            msg,
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_user or None,
            password=settings.smtp_password or None,
            use_tls=settings.smtp_use_tls,
        )
        logger.info(f"Email sent to {to_email}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_email_ses(settings: Settings, to_email: str, subject: str, html_body: str, text_body: str = "") -> bool:
    """Send a single email via Amazon SES."""
    import boto3

    client = boto3.client(
        "ses",
        region_name=settings.aws_region,
        aws_access_key_id=settings.aws_access_key_id or None,
        aws_secret_access_key=settings.aws_secret_access_key or None,
    )

    body = {"Html": {"Charset": "UTF-8", "Data": html_body}}
    if text_body:
        body["Text"] = {"Charset": "UTF-8", "Data": text_body}

    try:
        # boto3 is blocking
        await asyncio.to_thread(
            client.send_email,
            Source=f"{settings.smtp_from_name} <{settings.smtp_from_email}>",
            Destination={"ToAddresses": [to_email]},
            Message={
                "Subject": {"Charset": "UTF-8", "Data": subject},
                "Body": body,
            },
        )
        logger.info(f"SES email sent to {to_email}")
        return True
    except Exception as e:
        logger.error(f"SES failed for {to_email}: {e}")
        return False


class EmailNotifier:
    """Sends plain notices through the configured mail backend.

    Failures are logged and reported as False; callers decide whether a missed
    notice matters.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    async def notify(self, to_email: str, subject: str, message: str) -> bool:
        html_body = f"<p>{html.escape(message)}</p>"
        if self.settings.mail_backend == "ses":
            return await send_email_ses(self.settings, to_email, subject, html_body, message)
        return await send_email_smtp(self.settings, to_email, subject, html_body, message)

    async def notify_admins(self, subject: str, message: str) -> bool:
        return await self.notify(self.settings.admin_email, subject, message)
