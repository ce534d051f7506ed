"""
Domain service: QR labels for tree records.

A label encodes the public viewer URL of a record. It is served as a bare
PNG, as a PNG with the tree name on top, or as a printable A4 PDF.
"""
import io
import logging
from typing import Optional

import qrcode
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.config import settings

logger = logging.getLogger(__name__)

PDF_FOOTER = "Know the Tree, Scan to See!!"

LABEL_HEIGHT = 40


def viewer_url(uid: str, base_url: Optional[str] = None) -> str:
    """Public page of a record, as encoded in its QR code."""
    base = (base_url or settings.qr_base_url).rstrip("/")
    return f"{base}/{uid}"


def _qr_image(data: str, size: int) -> Image.Image:
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white").convert("RGB")
    return img.resize((size, size), Image.NEAREST)


def _png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def render_qr_png(data: str, size: Optional[int] = None) -> bytes:
    """
    Render a QR code.

    Args:
        data: Text to encode, normally a viewer URL
        size: Edge length in pixels

    Returns:
        PNG bytes
    """
    return _png_bytes(_qr_image(data, size or settings.qr_size))


def render_labelled_qr_png(name: str, data: str, size: Optional[int] = None) -> bytes:
    """QR code with the tree name centred above it."""
    qr_img = _qr_image(data, size or settings.qr_size)
    width, qr_height = qr_img.size

    img = Image.new("RGB", (width, qr_height + LABEL_HEIGHT), "white")
    img.paste(qr_img, (0, LABEL_HEIGHT))

    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), name, font=font)
    x = max((width - (right - left)) // 2, 0)
    y = max((LABEL_HEIGHT - (bottom - top)) // 2, 0)
    draw.text((x, y), name, fill="black", font=font)
    return _png_bytes(img)


def render_qr_pdf(name: str, data: str) -> bytes:
    """
    Printable A4 label: tree name, QR code and footer, centred.

    Returns:
        PDF bytes
    """
    mem = io.BytesIO()
    c = canvas.Canvas(mem, pagesize=A4)
    width, height = A4

    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(width / 2, height - 68 * mm, name)

    qr_width = 130 * mm
    qr_img = ImageReader(io.BytesIO(render_qr_png(data, size=600)))
    x = (width - qr_width) / 2
    y = height - 70 * mm - qr_width
    c.drawImage(qr_img, x, y, width=qr_width, height=qr_width)

    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(width / 2, height - 197 * mm, PDF_FOOTER)

    c.showPage()
    c.save()
    logger.debug(f"Rendered QR PDF for '{name}'")
    return mem.getvalue()
