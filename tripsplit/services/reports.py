import os
from datetime import datetime
from io import BytesIO

import qrcode
from fpdf import FPDF
from fpdf.enums import XPos, YPos

from tripsplit import config
from tripsplit.models import Trip
from tripsplit.services.settlement import calculate_settlement

CURRENCY_SYMBOLS = {"USD": "$", "BDT": "৳"}


# ============================================================
# 🧩 Unicode-safe PDF class
# ============================================================
class ReportPDF(FPDF):
    """Uses DejaVu when the fonts are available, else core Helvetica (Latin-1)."""

    def __init__(self, font_dir=None):
        super().__init__()
        font_dir = font_dir or config.REPORT_FONT_DIR
        self.dejavu_styles = set()
        self._load_font(font_dir, "DejaVuSans.ttf", "")
        if self.has_unicode_font:
            self._load_font(font_dir, "DejaVuSans-Bold.ttf", "B")
            self._load_font(font_dir, "DejaVuSans-Oblique.ttf", "I")
        else:
            print(f"⚠️ DejaVu fonts not found in {font_dir}, using Helvetica")

    @property
    def has_unicode_font(self) -> bool:
        return "" in self.dejavu_styles

    def _load_font(self, font_dir, filename, style=""):
        font_path = os.path.join(font_dir, filename)
        if os.path.exists(font_path):
            self.add_font("DejaVu", style, font_path)
            self.dejavu_styles.add(style)

    def set_text_style(self, style="", size=11):
        if not self.has_unicode_font:
            self.set_font("Helvetica", style, size)
        else:
            self.set_font("DejaVu", style if style in self.dejavu_styles else "", size)

    def write_line(self, text, h=8, **kwargs):
        if not self.has_unicode_font:
            text = text.encode("latin-1", "replace").decode("latin-1")
        self.cell(0, h, text, new_x=XPos.LMARGIN, new_y=YPos.NEXT, **kwargs)


def format_money(amount: float, currency: str, unicode: bool = True) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, "")
    if not unicode and symbol == "৳":
        symbol = "BDT "
    return f"{symbol}{amount:,.2f}"


# ============================================================
# 🧾 Generate Settlement PDF
# ============================================================
def generate_settlement_pdf(trip: Trip, share_url: str = None, font_dir: str = None) -> bytes:
    settlement = calculate_settlement(trip.people, trip.expenses)

    pdf = ReportPDF(font_dir)

    def money(amount):
        return format_money(amount, trip.currency, pdf.has_unicode_font)

    pdf.add_page()

    pdf.set_text_style("B", 16)
    pdf.set_fill_color(230, 240, 255)
    pdf.write_line(f"Trip Settlement Report - {trip.name or 'Untitled Trip'}", h=10, align="C", fill=True)

    pdf.set_text_style("", 12)
    pdf.write_line(f"Generated on: {datetime.now().strftime('%Y-%m-%d %H:%M')}")
    members = sum(p.weight for p in trip.people)
    pdf.write_line(f"Total Cost: {money(settlement.total_cost)} | People: {len(trip.people)} | Members: {members}")
    pdf.ln(8)

    # People summary
    pdf.set_text_style("B", 12)
    pdf.write_line("Individual Costs", h=10)
    pdf.set_text_style("", 11)
    if settlement.individual_costs:
        weights = {p.name: p.weight for p in trip.people}
        for ic in settlement.individual_costs:
            pdf.write_line(f"{ic.person} (x{weights.get(ic.person, 1)}): {money(ic.cost)}")
    else:
        pdf.write_line("No people added yet.")

    pdf.ln(6)
    pdf.set_text_style("B", 12)
    pdf.write_line(f"Expenses ({len(trip.expenses)})", h=10)
    pdf.set_text_style("", 11)
    for e in trip.expenses:
        pdf.write_line(f"{e.description}: {money(e.amount)} paid by {e.payer}")

    pdf.ln(6)
    pdf.set_text_style("B", 13)
    pdf.write_line("Settlements (Who Pays Whom)", h=10)
    pdf.set_text_style("", 11)
    if settlement.transactions:
        for t in settlement.transactions:
            pdf.write_line(f"{t.from_} -> {t.to} : {money(t.amount)}")
    else:
        pdf.write_line("All accounts settled!")

    # QR Code
    if share_url:
        pdf.ln(10)
        qr_buffer = BytesIO()
        qrcode.make(share_url).save(qr_buffer)
        qr_buffer.seek(0)

        y_position = pdf.get_y() + 5
        pdf.image(qr_buffer, x=pdf.w - 50, y=y_position, w=40)
        pdf.ln(45)
        pdf.set_text_style("I", 9)
        pdf.write_line("Scan QR to open this trip", h=10, align="R")

    return bytes(pdf.output())
