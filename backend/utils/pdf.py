# backend/utils/pdf.py

from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from config import settings
from models.sale import Sale

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"

PAYMENT_LABELS = {
    "cash": "Espèces",
    "card": "Carte bancaire",
    "transfer": "Virement",
    "cheque": "Chèque",
    "pending": "En attente",
}


def ensure_storage_dir() -> Path:
    path = Path(settings.RECEIPT_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path

def get_receipt_path(sale_number: str) -> Path:
    """Path of the receipt PDF for a given sale."""
    return ensure_storage_dir() / f"{sale_number}.pdf"


def generate_sale_receipt_pdf(sale: Sale, out_path: Path, shop: Optional[dict] = None) -> None:
    """
    Renders a receipt for one sale:
    - header with the shop identity
    - sale number, date, client and payment method
    - item table
    - total
    """
    c = canvas.Canvas(str(out_path), pagesize=A4)
    width, height = A4
    currency = settings.CURRENCY

    def draw_text(x, y, text, font=FONT_REGULAR_NAME, size=10, align="left"):
        c.setFont(font, size)
        text_str = str(text) if text is not None else ""
        if align == "right":
            c.drawRightString(x, y, text_str)
        elif align == "center":
            c.drawCentredString(x, y, text_str)
        else:
            c.drawString(x, y, text_str)

    # --- 1. Shop header ---
    y = height - 20 * mm
    shop = shop or {}
    draw_text(20 * mm, y, shop.get("business_name") or "", font=FONT_BOLD_NAME, size=16)
    y -= 6 * mm
    if shop.get("address"):
        draw_text(20 * mm, y, shop["address"], size=9)
        y -= 5 * mm
    if shop.get("phone"):
        draw_text(20 * mm, y, f"Tél : {shop['phone']}", size=9)
        y -= 5 * mm

    # --- 2. Sale details ---
    y_details = height - 20 * mm
    draw_text(190 * mm, y_details, f"Ticket {sale.full_number}", font=FONT_BOLD_NAME, size=14, align="right")
    y_details -= 6 * mm
    created = sale.created_at.strftime("%d/%m/%Y %H:%M") if sale.created_at else ""
    draw_text(190 * mm, y_details, f"Date : {created}", size=9, align="right")
    y_details -= 5 * mm
    method = getattr(sale.payment_method, "value", sale.payment_method)
    draw_text(190 * mm, y_details, f"Paiement : {PAYMENT_LABELS.get(method, method)}", size=9, align="right")
    if sale.client is not None:
        y_details -= 5 * mm
        draw_text(190 * mm, y_details, f"Client : {sale.client.full_name}", size=9, align="right")

    y = min(y, y_details) - 8 * mm
    c.setLineWidth(0.5)
    c.line(20 * mm, y, 190 * mm, y)
    y -= 10 * mm

    # --- 3. Items table ---
    c.setFillColorRGB(0.95, 0.95, 0.95)
    c.rect(20 * mm, y - 2 * mm, 170 * mm, 8 * mm, fill=1, stroke=0)
    c.setFillColorRGB(0, 0, 0)

    c.setFont(FONT_BOLD_NAME, 9)
    c.drawString(22 * mm, y, "N°")
    c.drawString(32 * mm, y, "Article")
    c.drawRightString(125 * mm, y, "Qté")
    c.drawRightString(155 * mm, y, "Prix unitaire")
    c.drawRightString(185 * mm, y, "Total")
    y -= 8 * mm

    c.setFont(FONT_REGULAR_NAME, 9)
    for idx, it in enumerate(sale.items, start=1):
        c.drawString(22 * mm, y, str(idx))
        c.drawString(32 * mm, y, str(it.product_name)[:50])
        c.drawRightString(125 * mm, y, f"{it.quantity}")
        c.drawRightString(155 * mm, y, f"{it.unit_price:.2f}")
        c.drawRightString(185 * mm, y, f"{it.total_price:.2f}")

        c.setLineWidth(0.1)
        c.line(20 * mm, y - 2 * mm, 190 * mm, y - 2 * mm)
        y -= 6 * mm

        # New page when the table runs out of room
        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
            c.setFont(FONT_REGULAR_NAME, 9)

    # --- 4. Total ---
    y -= 6 * mm
    if y < 30 * mm:
        c.showPage()
        y = height - 30 * mm
    c.setFont(FONT_BOLD_NAME, 12)
    c.drawRightString(155 * mm, y, "TOTAL :")
    c.drawRightString(185 * mm, y, f"{sale.total_amount:.2f} {currency}")

    y -= 15 * mm
    draw_text(width / 2, max(y, 20 * mm), "Merci de votre visite", size=9, align="center")

    c.showPage()
    c.save()
