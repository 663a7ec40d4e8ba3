"""
Receipt generation for POS sales.

Receipts come in two layouts: ``thermal`` for 80mm roll printers and
``standard`` for A4. Both are available as a PDF (reportlab) and as an HTML
page that prints itself from the browser.
"""

import io
import logging

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

import qrcode
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch, mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.platypus.flowables import HRFlowable

from .models import Sale

logger = logging.getLogger(__name__)

THERMAL = "thermal"
STANDARD = "standard"
RECEIPT_FORMATS = (THERMAL, STANDARD)


class ReceiptGenerator:
    """
    Receipt generator for a single sale.
    """

    # Receipt dimensions
    THERMAL_WIDTH = 80 * mm
    THERMAL_MARGIN = 4 * mm
    STANDARD_MARGIN = 20 * mm

    def __init__(self, sale: Sale):
        self.sale = sale
        self.organization = sale.organization
        self.business = sale.organization.get_settings()
        self.currency = self.business.currency
        self.styles = getSampleStyleSheet()
        self._create_custom_styles()

    def _create_custom_styles(self):
        self.shop_name_style = ParagraphStyle(
            "ShopName",
            parent=self.styles["Heading1"],
            fontSize=18,
            spaceAfter=6,
            alignment=1,
            fontName="Helvetica-Bold",
        )
        self.thermal_shop_style = ParagraphStyle(
            "ThermalShop",
            parent=self.shop_name_style,
            fontSize=12,
            spaceAfter=4,
        )
        self.body_style = ParagraphStyle(
            "ReceiptBody", parent=self.styles["Normal"], fontSize=10, spaceAfter=4
        )
        self.thermal_body_style = ParagraphStyle(
            "ThermalBody", parent=self.body_style, fontSize=7, spaceAfter=2, leading=9
        )
        self.total_style = ParagraphStyle(
            "ReceiptTotal",
            parent=self.body_style,
            fontSize=12,
            alignment=2,
            fontName="Helvetica-Bold",
        )
        self.thermal_total_style = ParagraphStyle(
            "ThermalTotal", parent=self.total_style, fontSize=9
        )

    def _money(self, value):
        return f"{value:,.2f}"

    def generate_pdf_receipt(self, format_type: str = STANDARD) -> bytes:
        buffer = io.BytesIO()
        thermal = format_type == THERMAL

        if thermal:
            # Roll paper: height grows with the number of lines
            height = (120 + 8 * self.sale.items.count()) * mm
            doc = SimpleDocTemplate(
                buffer,
                pagesize=(self.THERMAL_WIDTH, height),
                rightMargin=self.THERMAL_MARGIN,
                leftMargin=self.THERMAL_MARGIN,
                topMargin=self.THERMAL_MARGIN,
                bottomMargin=self.THERMAL_MARGIN,
            )
        else:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=A4,
                rightMargin=self.STANDARD_MARGIN,
                leftMargin=self.STANDARD_MARGIN,
                topMargin=self.STANDARD_MARGIN,
                bottomMargin=self.STANDARD_MARGIN,
                title=f"Receipt {self.sale.invoice_number}",
            )

        story = []
        story.extend(self._build_shop_header(thermal))
        story.extend(self._build_sale_info(thermal))
        story.extend(self._build_items_table(thermal))
        story.extend(self._build_totals_section(thermal))
        story.extend(self._build_payment_info(thermal))
        story.extend(self._build_receipt_footer(thermal))

        doc.build(story)
        return buffer.getvalue()

    def _body(self, thermal):
        return self.thermal_body_style if thermal else self.body_style

    def _rule(self, thermal):
        gap = 4 if thermal else 10
        return [
            Spacer(1, gap),
            HRFlowable(width="100%", thickness=1, color=colors.black),
            Spacer(1, gap),
        ]

    def _build_shop_header(self, thermal):
        elements = [
            Paragraph(
                self.organization.name, self.thermal_shop_style if thermal else self.shop_name_style
            )
        ]
        body = self._body(thermal)
        for line in (self.business.address, self.business.phone, self.business.receipt_header):
            if line:
                elements.append(Paragraph(f"<para align='center'>{line}</para>", body))
        elements.extend(self._rule(thermal))
        return elements

    def _build_sale_info(self, thermal):
        sale = self.sale
        lines = [
            f"Invoice #: {sale.invoice_number}",
            f"Date: {timezone.localtime(sale.created_at):%Y-%m-%d %H:%M}",
            f"Cashier: {sale.cashier.name}",
        ]
        if sale.sold_by_id and sale.sold_by_id != sale.cashier_id:
            lines.append(f"Sold by: {sale.sold_by.name}")
        if sale.branch_id:
            lines.append(f"Branch: {sale.branch.name}")
        if sale.customer_id:
            lines.append(f"Customer: {sale.customer.name} ({sale.customer.phone})")
        if sale.is_wholesale:
            lines.append("Wholesale sale")
        if sale.status == Sale.REFUNDED:
            lines.append("<b>REFUNDED</b>")

        body = self._body(thermal)
        elements = [Paragraph(line, body) for line in lines]
        elements.extend(self._rule(thermal))
        return elements

    def _build_items_table(self, thermal):
        if thermal:
            data = [["Item", "Qty", "Price", "Total"]]
            col_widths = [34 * mm, 8 * mm, 15 * mm, 15 * mm]
            font_size = 7
        else:
            data = [["Item", "Barcode", "Qty", "Unit Price", "Disc %", "Total"]]
            col_widths = [60 * mm, 30 * mm, 15 * mm, 25 * mm, 15 * mm, 25 * mm]
            font_size = 9

        for item in self.sale.items.all():
            if thermal:
                name = item.product_name
                if len(name) > 22:
                    name = name[:20] + "..."
                data.append(
                    [
                        name,
                        str(item.quantity),
                        self._money(item.unit_price),
                        self._money(item.line_total),
                    ]
                )
            else:
                data.append(
                    [
                        item.product_name,
                        item.barcode,
                        str(item.quantity),
                        self._money(item.unit_price),
                        f"{item.discount_percent:g}" if item.discount_percent else "-",
                        self._money(item.line_total),
                    ]
                )

        style = [
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), font_size),
            ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
            ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]
        if not thermal:
            style += [
                ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
            ]
        table = Table(data, colWidths=col_widths)
        table.setStyle(TableStyle(style))
        return [table, Spacer(1, 4 if thermal else 10)]

    def _build_totals_section(self, thermal):
        sale = self.sale
        body = self._body(thermal)
        rows = [("Subtotal", sale.subtotal)]
        if sale.item_discount:
            rows.append(("Item discount", -sale.item_discount))
        if sale.wholesale_discount:
            label = f"Wholesale discount ({sale.wholesale_discount_rate:g}%)"
            rows.append((label, -sale.wholesale_discount))
        rows.append((f"Tax ({sale.tax_rate:g}%)", sale.tax))
        if sale.adjustment:
            rows.append(("Adjustment", sale.adjustment))

        elements = [
            Paragraph(f"<para align='right'>{label}: {self._money(value)}</para>", body)
            for label, value in rows
        ]
        elements.append(HRFlowable(width="100%", thickness=2, color=colors.black))
        total = f"TOTAL: {self.currency} {self._money(sale.net_total)}"
        elements.append(
            Paragraph(
                f"<para align='right'><b>{total}</b></para>",
                self.thermal_total_style if thermal else self.total_style,
            )
        )
        return elements

    def _build_payment_info(self, thermal):
        sale = self.sale
        body = self._body(thermal)
        elements = [Paragraph(f"Payment: {sale.get_payment_method_display()}", body)]
        for payment in sale.payments.all():
            line = f"{payment.get_method_display()}: {self._money(payment.amount)}"
            if payment.is_card and payment.last4:
                line += f" ({payment.card_type} **** {payment.last4})"
            elements.append(Paragraph(line, body))
        if sale.cash_in:
            elements.append(Paragraph(f"Cash in: {self._money(sale.cash_in)}", body))
            elements.append(Paragraph(f"Balance: {self._money(sale.balance)}", body))
        return elements

    def _build_receipt_footer(self, thermal):
        body = self._body(thermal)
        elements = self._rule(thermal)
        if self.business.receipt_footer:
            elements.append(
                Paragraph(f"<para align='center'>{self.business.receipt_footer}</para>", body)
            )
        if not thermal:
            elements.append(Spacer(1, 10))
            elements.append(self._invoice_qr_code())
        elements.append(
            Paragraph(f"<para align='center'>{settings.POS_SYSTEM_NAME}</para>", body)
        )
        return elements

    def _invoice_qr_code(self) -> Image:
        qr = qrcode.QRCode(
            version=1, error_correction=qrcode.constants.ERROR_CORRECT_L, box_size=3, border=2
        )
        qr.add_data(f"{self.organization.code}:{self.sale.invoice_number}")
        qr.make(fit=True)
        buffer = io.BytesIO()
        qr.make_image(fill_color="black", back_color="white").save(buffer, format="PNG")
        buffer.seek(0)
        img = Image(buffer, width=1 * inch, height=1 * inch)
        img.hAlign = "CENTER"
        return img

    def generate_html_receipt(self, format_type: str = STANDARD) -> str:
        return render_to_string(
            "sales/receipt.html",
            {
                "sale": self.sale,
                "organization": self.organization,
                "business": self.business,
                "currency": self.currency,
                "items": self.sale.items.all(),
                "payments": self.sale.payments.all(),
                "thermal": format_type == THERMAL,
                "system_name": settings.POS_SYSTEM_NAME,
                "generated_at": timezone.now(),
            },
        )


class ReceiptService:
    """
    Entry point used by the views.
    """

    @staticmethod
    def generate_receipt(sale: Sale, format_type: str = STANDARD, output_format: str = "pdf"):
        """
        Receipt for ``sale`` as PDF bytes or an HTML string.

        Raises:
            ValueError: for an unknown layout or output format
        """
        if format_type not in RECEIPT_FORMATS:
            raise ValueError(f"Unsupported receipt format: {format_type}")
        generator = ReceiptGenerator(sale)
        if output_format == "pdf":
            logger.info("Generating %s PDF receipt for %s", format_type, sale.invoice_number)
            return generator.generate_pdf_receipt(format_type)
        if output_format == "html":
            return generator.generate_html_receipt(format_type)
        raise ValueError(f"Unsupported output format: {output_format}")
