"""
Infrastructure layer: outbound mail over SMTP with STARTTLS.

``smtplib`` is blocking; callers on the event loop go through ``send`` which
runs the delivery in the thread pool.
"""
import logging
import smtplib
from email.message import EmailMessage
from typing import List, Optional

from starlette.concurrency import run_in_threadpool

from app.config import settings
from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError

logger = logging.getLogger(__name__)


class MailClient:
    """Send plain-text mails with an optional attachment."""

    service_name = "mail"

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password

    def build_message(
        self,
        recipients: List[str],
        subject: str,
        body: str,
        attachment: Optional[bytes] = None,
        filename: Optional[str] = None,
        content_type: str = "image/png",
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.username
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)
        if attachment and filename:
            maintype, _, subtype = content_type.partition("/")
            message.add_attachment(
                attachment,
                maintype=maintype or "application",
                subtype=subtype or "octet-stream",
                filename=filename,
            )
        return message

    def _deliver(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=settings.http_timeout) as smtp:
                smtp.starttls()
                smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Mail delivery via {self.host}:{self.port} failed: {e}")
            raise ExternalServiceError("mail delivery failed", service=self.service_name) from e

    async def send(self, message: EmailMessage) -> None:
        """
        Deliver a message.

        Raises:
            ServiceNotConfiguredError: If SMTP credentials are missing
            ExternalServiceError: If the server refuses the message
        """
        if not (self.username and self.password):
            raise ServiceNotConfiguredError(self.service_name)
        await run_in_threadpool(self._deliver, message)
        logger.info(f"Sent mail '{message['Subject']}' to {message['To']}")
