"""ReportLab PDF Generation Service Implementation

Implements receipt rendering using ReportLab library.
"""

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.services.receipt_pdf_service import ReceiptPdfService
from src.app.use_cases.payments.dtos import ReceiptDTO

STATUS_COLORS = {
    "completed": "#27AE60",
    "pending": "#E67E22",
}


class ReportLabReceiptPdfService(ReceiptPdfService):
    """
    ReportLab implementation of ReceiptPdfService

    Renders a one-page A5 payment receipt.
    """

    def generate_receipt(
        self,
        receipt: ReceiptDTO,
        company_name: str = "Spawiko Payments",
    ) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A5,
            rightMargin=12 * mm,
            leftMargin=12 * mm,
            topMargin=12 * mm,
            bottomMargin=12 * mm,
            title=f"Receipt {receipt.reference}",
        )

        styles = getSampleStyleSheet()
        elements = []

        title_style = ParagraphStyle(
            "TitleStyle",
            parent=styles["Heading1"],
            fontSize=18,
            spaceAfter=4,
            textColor=colors.HexColor("#2C3E50"),
        )
        status_style = ParagraphStyle(
            "StatusStyle",
            parent=styles["Heading2"],
            fontSize=12,
            textColor=colors.HexColor(STATUS_COLORS.get(receipt.status, "#7F8C8D")),
            spaceAfter=12,
        )

        elements.append(Paragraph(company_name, title_style))
        elements.append(Paragraph(f"PAYMENT RECEIPT - {receipt.status.upper()}", status_style))

        rows = [
            ["Reference:", receipt.reference],
            ["Phone:", receipt.phone],
            ["Amount:", f"{receipt.currency} {receipt.amount:,.2f}"],
            ["Description:", receipt.description or "-"],
            ["Transaction code:", receipt.transaction_code or "-"],
            ["Checkout request:", receipt.checkout_request_id or "-"],
            ["Created:", receipt.created_at.strftime("%Y-%m-%d %H:%M:%S UTC")],
        ]
        if receipt.settled_at:
            rows.append(["Settled:", receipt.settled_at.strftime("%Y-%m-%d %H:%M:%S UTC")])
        rows.append(["Wallet balance:", f"{receipt.currency} {receipt.balance:,.2f}"])

        table = Table(rows, colWidths=[38 * mm, 82 * mm])
        table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                    ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#7F8C8D")),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("LINEBELOW", (0, -2), (-1, -2), 0.5, colors.HexColor("#BDC3C7")),
                    ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elements.append(table)
        elements.append(Spacer(1, 8 * mm))

        elements.append(
            Paragraph(
                f"<i>Issued {receipt.issued_at.strftime('%Y-%m-%d %H:%M:%S UTC')}. "
                "Keep the reference for any query about this payment.</i>",
                ParagraphStyle(
                    "FooterNote",
                    parent=styles["Normal"],
                    fontSize=8,
                    textColor=colors.HexColor("#95A5A6"),
                ),
            )
        )

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes
