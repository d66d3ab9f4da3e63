"""PDF generation for job cards and RMA receipts."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from servicedesk.config import SHOP_INFO, ShopInfo
from servicedesk.domain.models import Department, Job, RMATicket
from servicedesk.services.billing import (
    JobTotals,
    part_amount,
    round_for_display,
    service_amount,
)
from servicedesk.services.warranty import Warranty

# The built-in Helvetica font has no rupee glyph.
CURRENCY_LABEL = "Rs."


def _format_currency(value: float) -> str:
    return f"{CURRENCY_LABEL} {round_for_display(value):,}"


def _format_date(value: Optional[str]) -> str:
    if not value:
        return "-"
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").strftime("%d/%m/%Y")
    except ValueError:
        return value


def _styles():
    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading3"],
            spaceBefore=12,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SmallText",
            parent=styles["Normal"],
            fontSize=9,
            leading=12,
        )
    )
    return styles


def _document(output_path: Path, title: str, shop: ShopInfo) -> SimpleDocTemplate:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    return SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=title,
        author=shop.name,
    )


def _header(elements: list[object], styles, title: str, shop: ShopInfo) -> None:
    elements.append(Paragraph(f"<b>{shop.name}</b>", styles["Title"]))
    elements.append(Paragraph(title, styles["Heading2"]))
    elements.append(Spacer(1, 8))
    shop_lines = [
        f"<b>Phone:</b> {shop.phone}",
        f"<b>Address:</b> {shop.address}",
        f"<b>GSTIN:</b> {shop.gstin}",
    ]
    elements.append(Paragraph("<br/>".join(shop_lines), styles["Normal"]))
    elements.append(Spacer(1, 10))


def _details_table(rows: list[list[str]]) -> Table:
    table = Table(rows, colWidths=[40 * mm, 120 * mm])
    table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ]
        )
    )
    return table


def _footer(elements: list[object], styles, shop: ShopInfo) -> None:
    signature_table = Table(
        [
            ["Technician", "Customer"],
            ["_____________________________", "_____________________________"],
        ],
        colWidths=[80 * mm, 80 * mm],
    )
    signature_table.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    elements.append(Spacer(1, 18))
    elements.append(signature_table)
    footer = f"{shop.name} - generated on {datetime.now().strftime('%d/%m/%Y %H:%M')}"
    elements.append(Spacer(1, 12))
    elements.append(Paragraph(footer, styles["SmallText"]))


def generate_job_card_pdf(
    job: Job,
    department: Optional[Department],
    totals: JobTotals,
    output_path: Path,
    *,
    shop: ShopInfo = SHOP_INFO,
) -> Path:
    """Render a job card with its bill; amounts come from ``totals`` as given."""
    title = f"JOB CARD {job.id}"
    doc = _document(output_path, title, shop)
    styles = _styles()
    elements: list[object] = []
    _header(elements, styles, title, shop)

    coverage = "Covered" if job.is_amc_covered else "Not covered"
    if job.amc_id:
        coverage = f"{coverage} ({job.amc_id})"
    elements.append(Paragraph("Customer and device", styles["SectionTitle"]))
    elements.append(
        _details_table(
            [
                ["Customer", job.customer],
                ["Mobile", job.mobile],
                ["Device", f"{job.device} {job.serial or ''}".strip()],
                ["Issue", job.issue],
                ["Department", department.name if department else "-"],
                ["Service type", job.service_type.value],
                ["Status", job.status.value],
                ["Created", _format_date(job.created_date)],
                ["AMC", coverage],
            ]
        )
    )

    lines = [["Item", "Qty", "Rate", "Amount"]]
    for part in job.parts_used:
        lines.append(
            [
                part.name,
                str(part.qty),
                _format_currency(part.price),
                _format_currency(part_amount(part)),
            ]
        )
    for service in job.services_applied:
        amount = _format_currency(service_amount(service))
        if not service.is_chargeable:
            amount = "FREE (AMC)"
        lines.append([service.name, "1", _format_currency(service.price), amount])
    lines_table = Table(lines, colWidths=[80 * mm, 18 * mm, 35 * mm, 35 * mm])
    lines_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("ALIGN", (1, 1), (-1, -1), "CENTER"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    elements.append(Paragraph("Parts and services", styles["SectionTitle"]))
    elements.append(lines_table)

    value_rows = [
        ["Base charge", _format_currency(totals.base_charge)],
        ["Subtotal", _format_currency(totals.subtotal)],
        ["CGST", _format_currency(totals.cgst)],
        ["SGST", _format_currency(totals.sgst)],
        ["Grand total", _format_currency(totals.grand_total)],
    ]
    if totals.amc_discount:
        value_rows.append(["AMC savings", _format_currency(totals.amc_discount)])
    values_table = Table(value_rows, colWidths=[40 * mm, 50 * mm])
    values_table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTNAME", (0, 4), (-1, 4), "Helvetica-Bold"),
            ]
        )
    )
    elements.append(Paragraph("Bill", styles["SectionTitle"]))
    elements.append(values_table)

    _footer(elements, styles, shop)
    doc.build(elements)
    return output_path


def generate_rma_receipt_pdf(
    ticket: RMATicket,
    warranty: Warranty,
    output_path: Path,
    *,
    shop: ShopInfo = SHOP_INFO,
) -> Path:
    """Render the receipt handed to the customer for an RMA part."""
    title = f"RMA RECEIPT {ticket.id}"
    doc = _document(output_path, title, shop)
    styles = _styles()
    elements: list[object] = []
    _header(elements, styles, title, shop)

    if warranty.is_under_warranty:
        warranty_label = (
            f"Under warranty until {warranty.end_date.strftime('%d/%m/%Y')} "
            f"({warranty.days_remaining} days left)"
        )
    else:
        warranty_label = f"Expired on {warranty.end_date.strftime('%d/%m/%Y')}"

    elements.append(Paragraph("Part details", styles["SectionTitle"]))
    elements.append(
        _details_table(
            [
                ["Customer", ticket.customer],
                ["Mobile", ticket.mobile],
                ["Part", ticket.part_name],
                ["Serial", ticket.part_serial or "-"],
                ["Issue", ticket.issue or "-"],
                ["Purchase date", _format_date(ticket.purchase_date)],
                ["Warranty", warranty_label],
                ["Service center", ticket.service_center or "-"],
                ["Status", ticket.status.value],
                ["Received", _format_date(ticket.inbox_date)],
                ["Replacement charge", _format_currency(ticket.replacement_charge)],
            ]
        )
    )

    history = [["Date", "Action", "Status"]]
    for entry in ticket.history:
        history.append(
            [_format_date(entry.timestamp), entry.action, entry.status.value]
        )
    history_table = Table(history, colWidths=[30 * mm, 95 * mm, 35 * mm])
    history_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    elements.append(Paragraph("History", styles["SectionTitle"]))
    elements.append(history_table)

    elements.append(Spacer(1, 10))
    elements.append(
        Paragraph(
            "The replacement part is released only against the one-time code "
            "shared with the registered mobile number.",
            styles["SmallText"],
        )
    )
    _footer(elements, styles, shop)
    doc.build(elements)
    return output_path
