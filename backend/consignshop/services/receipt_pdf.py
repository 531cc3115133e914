"""Generate customer receipt PDFs for sales."""
import io
from datetime import datetime
from reportlab.lib.pagesizes import letter
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import (
    SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, HRFlowable
)
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_RIGHT, TA_CENTER


def generate_receipt_pdf(receipt_data: dict) -> bytes:
    """Generate a PDF receipt from receipt data.

    ``receipt_data`` keys: store_name, store_address, store_phone,
    invoice_number, sale_date, customer_name, payment_method, items
    (product_name, quantity, unit_price, line_total), subtotal, total_amount.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        rightMargin=0.75 * inch,
        leftMargin=0.75 * inch,
        topMargin=0.75 * inch,
        bottomMargin=0.75 * inch,
        title=f"Receipt {receipt_data['invoice_number']}",
    )

    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name='StoreName',
        parent=styles['Heading1'],
        fontSize=18,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#7c2d12'),
        spaceAfter=2,
    ))
    styles.add(ParagraphStyle(
        name='StoreInfo',
        parent=styles['Normal'],
        fontSize=9,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#57534e'),
    ))
    styles.add(ParagraphStyle(
        name='TableCell',
        parent=styles['Normal'],
        fontSize=9,
        leading=11,
    ))
    styles.add(ParagraphStyle(
        name='TableCellRight',
        parent=styles['Normal'],
        fontSize=9,
        leading=11,
        alignment=TA_RIGHT,
    ))
    styles.add(ParagraphStyle(
        name='SmallCenter',
        parent=styles['Normal'],
        fontSize=8,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#78716c'),
    ))

    story = []
    fmt = lambda n: f"${float(n):,.2f}"

    # ── Header ────────────────────────────────────────────────────
    story.append(Paragraph(receipt_data["store_name"], styles['StoreName']))
    for line in (receipt_data.get("store_address"), receipt_data.get("store_phone")):
        if line:
            story.append(Paragraph(line, styles['StoreInfo']))
    story.append(Spacer(1, 6))
    story.append(HRFlowable(width="100%", thickness=1, color=colors.HexColor('#7c2d12')))
    story.append(Spacer(1, 8))

    sale_date = receipt_data["sale_date"]
    if isinstance(sale_date, datetime):
        sale_date = sale_date.strftime('%B %d, %Y %I:%M %p')
    info_data = [
        ["Receipt #:", receipt_data["invoice_number"], "Date:", sale_date],
        ["Customer:", receipt_data.get("customer_name") or "Walk-in", "Payment:",
         (receipt_data.get("payment_method") or "—").replace('_', ' ').title()],
    ]
    info_table = Table(info_data, colWidths=[0.9 * inch, 2.4 * inch, 0.8 * inch, 2.4 * inch])
    info_table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
    ]))
    story.append(info_table)
    story.append(Spacer(1, 12))

    # ── Items ─────────────────────────────────────────────────────
    table_data = [[
        Paragraph("<b>Item</b>", styles['TableCell']),
        Paragraph("<b>Qty</b>", styles['TableCellRight']),
        Paragraph("<b>Unit Price</b>", styles['TableCellRight']),
        Paragraph("<b>Total</b>", styles['TableCellRight']),
    ]]
    for item in receipt_data["items"]:
        table_data.append([
            Paragraph(str(item.get("product_name") or "Item")[:60], styles['TableCell']),
            Paragraph(str(item["quantity"]), styles['TableCellRight']),
            Paragraph(fmt(item["unit_price"]), styles['TableCellRight']),
            Paragraph(fmt(item["line_total"]), styles['TableCellRight']),
        ])

    items_table = Table(table_data, colWidths=[3.5 * inch, 0.7 * inch, 1.1 * inch, 1.2 * inch], repeatRows=1)
    items_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
        ('LINEBELOW', (0, 0), (-1, 0), 1, colors.HexColor('#44403c')),
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f5f5f4')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafaf9')]),
        ('LINEBELOW', (0, -1), (-1, -1), 0.5, colors.HexColor('#d6d3d1')),
    ]))
    story.append(items_table)
    story.append(Spacer(1, 10))

    # ── Totals ────────────────────────────────────────────────────
    totals_table = Table(
        [
            ["Subtotal", fmt(receipt_data["subtotal"])],
            ["Total", fmt(receipt_data["total_amount"])],
        ],
        colWidths=[5.3 * inch, 1.2 * inch],
    )
    totals_table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.HexColor('#7c2d12')),
    ]))
    story.append(totals_table)

    # Footer
    story.append(Spacer(1, 24))
    story.append(Paragraph("Thank you for shopping consignment!", styles['SmallCenter']))
    story.append(Paragraph(
        f"Generated on {datetime.utcnow().strftime('%B %d, %Y at %I:%M %p UTC')}",
        styles['SmallCenter']
    ))

    doc.build(story)
    return buffer.getvalue()
