# app/services/mailer.py
import smtplib
from email.message import EmailMessage
from typing import List, Protocol

import structlog
from starlette.concurrency import run_in_threadpool

from app.core.config import Settings
from app.core.errors import NotificationFailure

logger = structlog.get_logger(__name__)


class Mailer(Protocol):
    async def send(self, recipients: List[str], subject: str, body: str) -> None: ...


class SmtpMailer:
    def __init__(self, settings: Settings):
        self.host = settings.email_host
        self.port = settings.email_port
        self.user = settings.email_user
        self.password = settings.email_password
        self.sender = settings.sender_address
        self.timeout = settings.email_timeout_seconds

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.user:
                smtp.login(self.user, self.password)
            smtp.send_message(message)

    async def send(self, recipients: List[str], subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)
        try:
            await run_in_threadpool(self._send_sync, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationFailure(f"SMTP delivery failed: {e}") from e


class LoggingMailer:
    """Development mailer: writes the message to the log instead of sending it."""

    async def send(self, recipients: List[str], subject: str, body: str) -> None:
        logger.info("email_logged", recipients=recipients, subject=subject, body=body)


def build_mailer(settings: Settings) -> Mailer:
    if settings.email_provider == "smtp":
        return SmtpMailer(settings)
    return LoggingMailer()
