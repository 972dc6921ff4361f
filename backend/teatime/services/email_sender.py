"""
Outbound email.

``SmtpEmailSender`` delivers through an SMTP relay; the blocking ``smtplib``
conversation runs in a worker thread so the request's event loop is not held.
``LoggingEmailSender`` is used when no relay is configured and only records
that a message would have been sent.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from ..config import Settings
from ..domain import IEmailSender

logger = logging.getLogger(__name__)


class LoggingEmailSender:
    async def send_email(self, recipient: str, subject: str, html_body: str) -> None:
        logger.info("Email to %s suppressed (no SMTP host configured): %s", recipient, subject)


class SmtpEmailSender:
    def __init__(self, settings: Settings) -> None:
        self._host = settings.SMTP_HOST
        self._port = settings.SMTP_PORT
        self._username = settings.SMTP_USERNAME
        self._password = settings.SMTP_PASSWORD
        self._use_tls = settings.SMTP_USE_TLS
        self._sender = settings.MAIL_FROM

    def build_message(self, recipient: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=30) as server:
            server.ehlo()
            if self._use_tls:
                server.starttls()
                server.ehlo()
            if self._username and self._password:
                server.login(self._username, self._password.get_secret_value())
            server.send_message(message)

    async def send_email(self, recipient: str, subject: str, html_body: str) -> None:
        message = self.build_message(recipient, subject, html_body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s via %s:%s", recipient, self._host, self._port)
            raise
        logger.info("Sent email to %s: %s", recipient, subject)


def create_email_sender(settings: Settings) -> IEmailSender:
    if settings.SMTP_HOST:
        return SmtpEmailSender(settings)
    return LoggingEmailSender()
