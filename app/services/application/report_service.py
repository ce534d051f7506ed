"""
Application service: feedback reports mailed to the maintainers.
"""
import logging
from typing import List, Optional

from app.config import settings
from app.infrastructure.errors import ServiceNotConfiguredError
from app.infrastructure.mail_client import MailClient

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Feedback Report with Attachment"


def format_report(comment: str, clarity: str, helpful: str, unsafe: str) -> str:
    return (
        f"Comment: {comment}\n"
        f"Clarity: {clarity}\n"
        f"Helpful: {helpful}\n"
        f"Unsafe: {unsafe}\n"
    )


class ReportService:
    def __init__(self, mail: MailClient, recipients: Optional[List[str]] = None):
        self.mail = mail
        self.recipients = recipients if recipients is not None else settings.report_recipients

    async def send(
        self,
        comment: str,
        clarity: str,
        helpful: str,
        unsafe: str,
        attachment: Optional[bytes] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        """
        Mail a report, with the screenshot attached when one was uploaded.

        Raises:
            ServiceNotConfiguredError: If no recipients are configured
        """
        if not self.recipients:
            raise ServiceNotConfiguredError("report recipients")
        message = self.mail.build_message(
            self.recipients,
            REPORT_SUBJECT,
            format_report(comment, clarity, helpful, unsafe),
            attachment=attachment,
            filename=filename,
            content_type=content_type or "image/png",
        )
        await self.mail.send(message)
        logger.info(f"Feedback report sent to {len(self.recipients)} recipient(s)")
