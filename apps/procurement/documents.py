"""
Printable purchase order documents.
"""

from io import BytesIO

from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


def _currency(order):
    return order.organization.get_settings().currency


def render_purchase_order_html(order):
    """HTML page for printing ``order`` from the browser."""
    return render_to_string(
        "procurement/purchase_order_print.html",
        {
            "order": order,
            "items": order.items.select_related("product"),
            "currency": _currency(order),
            "system_name": settings.POS_SYSTEM_NAME,
            "generated_at": timezone.now(),
        },
    )


def generate_purchase_order_pdf(order):
    """Generate PDF content of ``order`` as bytes."""
    currency = _currency(order)
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Purchase Order {order.po_number}")
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph(f"Purchase Order #{order.po_number}", styles["Title"]))
    story.append(Spacer(1, 0.2 * inch))

    supplier = order.supplier
    company_info = f"""
    <b>From:</b><br/>
    {order.organization.name}<br/>
    {order.branch.name if order.branch else ""}<br/>
    <br/>
    <b>To:</b><br/>
    {supplier.name}<br/>
    {supplier.contact_person_name}<br/>
    {supplier.email}<br/>
    {supplier.phone}<br/>
    """
    story.append(Paragraph(company_info, styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))

    order_info = f"""
    <b>Order Date:</b> {order.order_date}<br/>
    <b>Expected Delivery:</b> {order.expected_date or 'TBD'}<br/>
    <b>Status:</b> {order.get_status_display()}<br/>
    """
    story.append(Paragraph(order_info, styles["Normal"]))
    story.append(Spacer(1, 0.2 * inch))

    table_data = [["Item", "Code", "Quantity", "Unit Cost", "Total"]]
    for item in order.items.select_related("product"):
        table_data.append(
            [
                item.product.name,
                item.product.code,
                str(item.quantity),
                f"{item.unit_cost:,.2f}",
                f"{item.line_total:,.2f}",
            ]
        )

    table_data.append(["", "", "", "Subtotal:", f"{currency} {order.subtotal:,.2f}"])
    table_data.append(["", "", "", "Tax:", f"{currency} {order.tax_amount:,.2f}"])
    table_data.append(["", "", "", "Total:", f"{currency} {order.total_amount:,.2f}"])

    table = Table(table_data, colWidths=[2.5 * inch, 1 * inch, 0.9 * inch, 1.1 * inch, 1.3 * inch])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                ("GRID", (0, 0), (-1, -4), 0.5, colors.black),
            ]
        )
    )
    story.append(table)

    if order.notes:
        story.append(Spacer(1, 0.2 * inch))
        story.append(Paragraph(f"<b>Notes:</b><br/>{order.notes}", styles["Normal"]))

    doc.build(story)
    return buffer.getvalue()
