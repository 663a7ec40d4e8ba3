"""
Barcode, QR code and label generation for products.

Provides functions for generating:
- EAN-13 product barcodes from the configured prefix
- Barcode (Code128) and QR code images
- Printable PNG labels and PDF label sheets
"""

import io
import logging

import barcode
import qrcode
from barcode.errors import BarcodeError
from barcode.writer import ImageWriter
from django.conf import settings
from PIL import Image, ImageDraw, ImageFont
from reportlab.graphics.barcode import code128
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

TITLE_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"
TEXT_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"

# Label sheet grid on A4
LABEL_COLUMNS = 3
LABEL_ROWS = 8
LABEL_WIDTH = 70 * mm
LABEL_HEIGHT = 37 * mm


def ean13(digits: str) -> str:
    """
    Full 13-digit EAN code for 12 payload digits (check digit appended).
    """
    return barcode.get_barcode_class("ean13")(digits).get_fullcode()


def next_product_barcode(organization) -> str:
    """
    Next free EAN-13 barcode for ``organization``.

    Codes are the configured prefix followed by a zero-padded serial and the
    check digit, e.g. ``8990000000013``.
    """
    from .models import Product

    prefix = getattr(settings, "PRODUCT_BARCODE_PREFIX", "899")
    width = 12 - len(prefix)
    serial = Product.objects.filter(
        organization=organization, barcode__startswith=prefix
    ).count() + 1

    while True:
        code = ean13(f"{prefix}{serial:0{width}d}")
        if not Product.objects.filter(organization=organization, barcode=code).exists():
            return code
        serial += 1


def _error_image(size, message) -> bytes:
    img = Image.new("RGB", size, color="white")
    draw = ImageDraw.Draw(img)
    draw.text((10, size[1] // 2), f"Error: {message}", fill="red")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _fonts(title_size, text_size):
    try:
        return (
            ImageFont.truetype(TITLE_FONT_PATH, title_size),
            ImageFont.truetype(TEXT_FONT_PATH, text_size),
        )
    except OSError:
        return ImageFont.load_default(), ImageFont.load_default()


def generate_barcode_image(code: str, barcode_type: str = "code128") -> bytes:
    """
    Generate barcode image.

    Args:
        code: The code to encode
        barcode_type: Type of barcode (code128, ean13, etc.)

    Returns:
        PNG image as bytes
    """
    try:
        barcode_class = barcode.get_barcode_class(barcode_type)
        barcode_instance = barcode_class(code, writer=ImageWriter())

        buffer = io.BytesIO()
        barcode_instance.write(
            buffer,
            options={
                "module_width": 0.3,
                "module_height": 15.0,
                "quiet_zone": 6.5,
                "font_size": 10,
                "text_distance": 5.0,
                "background": "white",
                "foreground": "black",
            },
        )
        return buffer.getvalue()

    except (BarcodeError, ValueError) as e:
        logger.warning("Could not render %s barcode for %r: %s", barcode_type, code, e)
        return _error_image((200, 100), e)


def generate_qr_code_image(data: str, size: int = 10) -> bytes:
    """
    Generate QR code image.

    Args:
        data: Data to encode in QR code
        size: Box size in pixels

    Returns:
        PNG image as bytes
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=size,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_product_label(
    name: str,
    code: str,
    price: str,
    barcode_data: str,
    currency: str = "",
    size: tuple = (400, 200),
) -> bytes:
    """
    Generate printable product label with barcode.

    Args:
        name: Product name
        code: Product code
        price: Formatted selling price
        barcode_data: Data for barcode
        currency: Currency code printed before the price
        size: Label size (width, height)

    Returns:
        PNG image as bytes
    """
    img = Image.new("RGB", size, color="white")
    draw = ImageDraw.Draw(img)
    title_font, text_font = _fonts(16, 12)

    draw.text((10, 10), name[:30], fill="black", font=title_font)
    draw.text((10, 35), f"Code: {code}", fill="black", font=text_font)
    draw.text((10, 55), f"{currency} {price}".strip(), fill="black", font=title_font)

    barcode_img = Image.open(io.BytesIO(generate_barcode_image(barcode_data)))
    barcode_img.thumbnail((size[0] - 20, 100))
    img.paste(barcode_img, (10, 85))

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_qr_label(
    name: str, code: str, price: str, qr_data: str, currency: str = "", size: tuple = (300, 300)
) -> bytes:
    """
    Generate printable product label with QR code.
    """
    img = Image.new("RGB", size, color="white")
    draw = ImageDraw.Draw(img)
    title_font, text_font = _fonts(14, 11)

    draw.text((10, 10), name[:25], fill="black", font=title_font)
    draw.text((10, 30), f"Code: {code}", fill="black", font=text_font)
    draw.text((10, 48), f"{currency} {price}".strip(), fill="black", font=title_font)

    qr_img = Image.open(io.BytesIO(generate_qr_code_image(qr_data, size=8)))
    qr_img.thumbnail((size[0] - 20, size[1] - 80))

    qr_x = (size[0] - qr_img.width) // 2
    img.paste(qr_img, (qr_x, 70))

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_labels_pdf(entries, currency: str = "") -> bytes:
    """
    A4 sheet of product labels.

    Args:
        entries: Iterable of ``(product, copies)`` pairs
        currency: Currency code printed before the price

    Returns:
        PDF document as bytes
    """
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    page_width, page_height = A4
    margin_x = (page_width - LABEL_COLUMNS * LABEL_WIDTH) / 2
    margin_y = (page_height - LABEL_ROWS * LABEL_HEIGHT) / 2

    slot = 0
    per_page = LABEL_COLUMNS * LABEL_ROWS
    for product, copies in entries:
        for _ in range(copies):
            if slot and slot % per_page == 0:
                pdf.showPage()
            position = slot % per_page
            column, row = position % LABEL_COLUMNS, position // LABEL_COLUMNS
            x = margin_x + column * LABEL_WIDTH
            y = page_height - margin_y - (row + 1) * LABEL_HEIGHT

            pdf.setFont("Helvetica-Bold", 9)
            pdf.drawString(x + 4 * mm, y + LABEL_HEIGHT - 7 * mm, product.name[:32])
            pdf.setFont("Helvetica", 8)
            pdf.drawString(
                x + 4 * mm,
                y + LABEL_HEIGHT - 12 * mm,
                f"{currency} {product.retail_price:.2f}".strip(),
            )

            symbol = code128.Code128(product.barcode, barHeight=10 * mm, barWidth=0.28 * mm)
            symbol.drawOn(pdf, x + 2 * mm, y + 8 * mm)
            pdf.setFont("Helvetica", 7)
            pdf.drawCentredString(x + LABEL_WIDTH / 2, y + 4 * mm, product.barcode)
            slot += 1

    pdf.save()
    logger.info("Generated label sheet with %s labels", slot)
    return buffer.getvalue()
