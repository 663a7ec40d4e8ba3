"""
Report output formats: CSV, Excel, PDF and a printable HTML page.
"""

import logging
from io import BytesIO

from django.conf import settings
from django.http import HttpResponse
from django.template.loader import render_to_string
from django.utils import timezone

import openpyxl
from openpyxl.styles import Font, PatternFill
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from apps.core.exports import rows_to_dataset

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "csv", "xlsx", "pdf", "print")

HEADER_FILL = PatternFill(start_color="CCCCCC", end_color="CCCCCC", fill_type="solid")


def _display(value):
    return "" if value is None else str(value)


def _generated_at():
    return timezone.localtime().strftime("%Y-%m-%d %H:%M:%S")


def _stamp(report):
    return f"{report.filename}_{report.date_from:%Y%m%d}_{report.date_to:%Y%m%d}"


def export_to_csv(report) -> bytes:
    dataset = rows_to_dataset(report.csv_headers, report.table_rows(), title=report.title)
    return dataset.export("csv").encode("utf-8")


def export_to_excel(report) -> bytes:
    """Workbook with a title block (report, organization, filters) above the table."""
    workbook = openpyxl.Workbook()
    worksheet = workbook.active
    worksheet.title = report.title[:31]

    worksheet["A1"] = report.title
    worksheet["A1"].font = Font(size=16, bold=True)
    worksheet["A2"] = report.organization.name
    worksheet["A3"] = f"Generated on: {_generated_at()}"
    row = 4
    for label, value in report.filter_summary():
        worksheet.cell(row=row, column=1, value=f"{label}: {value}")
        row += 1

    header_row = row + 1
    for col, header in enumerate(report.csv_headers, 1):
        cell = worksheet.cell(row=header_row, column=col, value=header)
        cell.font = Font(bold=True)
        cell.fill = HEADER_FILL

    for row_idx, values in enumerate(report.table_rows(), header_row + 1):
        for col_idx, value in enumerate(values, 1):
            worksheet.cell(row=row_idx, column=col_idx, value=value)

    for column in worksheet.iter_cols(min_row=header_row):
        width = max((len(_display(cell.value)) for cell in column), default=0)
        worksheet.column_dimensions[column[0].column_letter].width = min(width + 2, 50)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_to_pdf(report) -> bytes:
    """
    A4 PDF: organization header, filters, summary metrics, then the table.
    Wide reports switch to landscape.
    """
    pagesize = landscape(A4) if len(report.csv_headers) > 6 else A4
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=pagesize,
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=12 * mm,
        bottomMargin=12 * mm,
        title=report.title,
    )
    styles = getSampleStyleSheet()
    story = [
        Paragraph(report.organization.name, styles["Title"]),
        Paragraph(report.title, styles["Heading2"]),
        Paragraph(f"Generated from {settings.POS_SYSTEM_NAME}", styles["Normal"]),
        Paragraph(f"Date generated: {_generated_at()}", styles["Normal"]),
    ]
    for label, value in report.filter_summary():
        story.append(Paragraph(f"<b>{label}:</b> {value}", styles["Normal"]))
    story.append(Spacer(1, 6 * mm))

    metrics = report.summary_metrics()
    if metrics:
        summary = Table(
            [[label for label, _ in metrics], [_display(value) for _, value in metrics]]
        )
        summary.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("BOX", (0, 0), (-1, -1), 0.5, colors.grey),
                    ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
                ]
            )
        )
        story.extend([summary, Spacer(1, 6 * mm)])

    table_data = [report.csv_headers] + [
        [_display(value) for value in values] for values in report.table_rows()
    ]
    table = Table(table_data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    story.append(table)
    story.append(Spacer(1, 4 * mm))
    story.append(Paragraph(f"Total rows: {len(table_data) - 1}", styles["Normal"]))

    doc.build(story)
    return buffer.getvalue()


def render_print(report) -> str:
    return render_to_string(
        "reporting/report_print.html",
        {
            "report": report,
            "organization": report.organization,
            "headers": report.csv_headers,
            "rows": report.table_rows(),
            "filters": report.filter_summary(),
            "metrics": report.summary_metrics(),
            "system_name": settings.POS_SYSTEM_NAME,
            "generated_at": timezone.now(),
        },
    )


def export_response(report, export_format) -> HttpResponse:
    """
    HTTP response for one of the file formats.

    Raises:
        ValueError: for an unknown format
    """
    if export_format == "csv":
        response = HttpResponse(export_to_csv(report), content_type="text/csv")
        response["Content-Disposition"] = f'attachment; filename="{_stamp(report)}.csv"'
    elif export_format == "xlsx":
        response = HttpResponse(
            export_to_excel(report),
            content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        response["Content-Disposition"] = f'attachment; filename="{_stamp(report)}.xlsx"'
    elif export_format == "pdf":
        response = HttpResponse(export_to_pdf(report), content_type="application/pdf")
        response["Content-Disposition"] = f'inline; filename="{_stamp(report)}.pdf"'
    elif export_format == "print":
        response = HttpResponse(render_print(report))
    else:
        raise ValueError(f"Unsupported export format: {export_format}")

    logger.info(
        "Exported %s report for %s as %s", report.key, report.organization, export_format
    )
    return response
