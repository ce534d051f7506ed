"""
Unit tests for feedback reports and QR label rendering.
"""
import io
import smtplib
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from app.infrastructure.errors import ExternalServiceError, ServiceNotConfiguredError
from app.infrastructure.mail_client import MailClient
from app.services.application.report_service import REPORT_SUBJECT, ReportService, format_report
from app.services.domain.qr_render import (
    LABEL_HEIGHT,
    render_labelled_qr_png,
    render_qr_pdf,
    render_qr_png,
    viewer_url,
)


PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


# ============================================================
# Feedback Report Tests
# ============================================================

class TestReportService:
    """Tests for mailing feedback reports."""

    def test_format_report(self):
        body = format_report("Nice", "5", "yes", "no")

        assert body == "Comment: Nice\nClarity: 5\nHelpful: yes\nUnsafe: no\n"

    @pytest.mark.asyncio
    async def test_send_with_attachment(self, mail):
        service = ReportService(mail=mail, recipients=["ops@example.com"])

        await service.send("Nice", "5", "yes", "no", attachment=b"png", filename="shot.png")

        message = mail.send.await_args.args[0]
        assert message["Subject"] == REPORT_SUBJECT
        assert message["To"] == "ops@example.com"
        attachments = list(message.iter_attachments())
        assert attachments[0].get_filename() == "shot.png"
        assert attachments[0].get_content_type() == "image/png"

    @pytest.mark.asyncio
    async def test_send_without_attachment(self, mail):
        service = ReportService(mail=mail, recipients=["ops@example.com"])

        await service.send("Nice", "5", "yes", "no")

        message = mail.send.await_args.args[0]
        assert list(message.iter_attachments()) == []

    @pytest.mark.asyncio
    async def test_no_recipients(self, mail):
        service = ReportService(mail=mail, recipients=[])

        with pytest.raises(ServiceNotConfiguredError):
            await service.send("Nice", "5", "yes", "no")

        mail.send.assert_not_awaited()


class TestMailClient:
    """Tests for SMTP delivery."""

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        client = MailClient(username="", password="")
        message = client.build_message(["ops@example.com"], "Hi", "Body")

        with pytest.raises(ServiceNotConfiguredError):
            await client.send(message)

    @pytest.mark.asyncio
    async def test_delivery(self):
        client = MailClient(host="smtp.example.com", port=587, username="me@example.com", password="pw")
        message = client.build_message(["ops@example.com"], "Hi", "Body")

        with patch("app.infrastructure.mail_client.smtplib.SMTP") as smtp_cls:
            smtp = MagicMock()
            smtp_cls.return_value.__enter__.return_value = smtp

            await client.send(message)

        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("me@example.com", "pw")
        smtp.send_message.assert_called_once_with(message)

    @pytest.mark.asyncio
    async def test_refused_delivery(self):
        client = MailClient(host="smtp.example.com", port=587, username="me@example.com", password="pw")
        message = client.build_message(["ops@example.com"], "Hi", "Body")

        with patch("app.infrastructure.mail_client.smtplib.SMTP") as smtp_cls:
            smtp_cls.return_value.__enter__.return_value.login.side_effect = (
                smtplib.SMTPAuthenticationError(535, b"bad credentials")
            )

            with pytest.raises(ExternalServiceError):
                await client.send(message)


# ============================================================
# QR Rendering Tests
# ============================================================

class TestQRRendering:
    """Tests for QR images and printable labels."""

    def test_viewer_url(self):
        assert viewer_url("t1", "https://trees.example.com/") == "https://trees.example.com/t1"

    def test_png(self):
        data = render_qr_png("https://trees.example.com/t1", size=200)

        assert data.startswith(PNG_MAGIC)
        assert Image.open(io.BytesIO(data)).size == (200, 200)

    def test_labelled_png_is_taller(self):
        data = render_labelled_qr_png("Neem", "https://trees.example.com/t1", size=200)

        assert Image.open(io.BytesIO(data)).size == (200, 200 + LABEL_HEIGHT)

    def test_pdf(self):
        data = render_qr_pdf("Neem", "https://trees.example.com/t1")

        assert data.startswith(b"%PDF")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
