"""PDF calculation report (reportlab canvas, A4 portrait)."""

import datetime as dt
import functools
import io
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.pdfgen import canvas

from cottonlot.config import settings
from cottonlot.services.aggregation import aggregate_batch, aggregate_calculation

logger = logging.getLogger(__name__)

TITLE = "Cotton Batch Calculation"
FONT = "CottonLotSans"
FONT_BOLD = "CottonLotSans-Bold"

# (header, x position, right-aligned)
SAMPLE_COLUMNS = (
    ("#", 2.0, False),
    ("Qty", 3.8, True),
    ("Color", 4.3, False),
    ("Leaf", 6.6, True),
    ("Staple", 8.2, True),
    ("Weight kg", 10.6, True),
    ("Prem/Disc", 12.8, True),
    ("Unit price", 15.4, True),
    ("Amount", 19.0, True),
)


@functools.lru_cache(maxsize=None)
def report_fonts() -> tuple[str, str]:
    """Register the TrueType faces once and return (regular, bold) names."""
    try:
        pdfmetrics.registerFont(TTFont(FONT, settings.pdf_font_path))
        pdfmetrics.registerFont(TTFont(FONT_BOLD, settings.pdf_bold_font_path))
    except (OSError, TTFError) as exc:
        logger.warning("PDF fonts unavailable, Cyrillic text will not render: %s", exc)
        return "Helvetica", "Helvetica-Bold"
    return FONT, FONT_BOLD


class _ReportCanvas:
    """Canvas wrapper that tracks the cursor and paginates."""

    def __init__(self, buf, generated_at: dt.datetime):
        self.c = canvas.Canvas(buf, pagesize=A4)
        self.c.setTitle(TITLE)
        self.width, self.height = A4
        self.generated_at = generated_at
        self.font, self.bold = report_fonts()
        self.page = 1
        self.y = self.height - 2.5 * cm

    def _footer(self):
        self.c.setFont(self.font, 8)
        self.c.drawString(2 * cm, 1.2 * cm, f"Generated {self.generated_at:%Y-%m-%d %H:%M}")
        self.c.drawRightString(self.width - 2 * cm, 1.2 * cm, f"Page {self.page}")

    def ensure_space(self, need: float = 14):
        if self.y < 2.5 * cm + need:
            self._footer()
            self.c.showPage()
            self.page += 1
            self.y = self.height - 2.0 * cm

    def text(self, value: str, bold: bool = False, size: int = 10, step: float = 14):
        self.ensure_space(step)
        self.c.setFont(self.bold if bold else self.font, size)
        self.c.drawString(2 * cm, self.y, value)
        self.y -= step

    def hline(self):
        self.c.line(2 * cm, self.y + 4, self.width - 2 * cm, self.y + 4)
        self.y -= 6

    def key_values(self, rows):
        for label, value in rows:
            self.ensure_space()
            self.c.setFont(self.font, 10)
            self.c.drawString(2.4 * cm, self.y, label)
            self.c.drawRightString(12 * cm, self.y, value)
            self.y -= 13

    def table_header(self):
        self.ensure_space(30)
        self.c.setFont(self.bold, 8)
        for name, x, right in SAMPLE_COLUMNS:
            draw = self.c.drawRightString if right else self.c.drawString
            draw(x * cm, self.y, name)
        self.y -= 4
        self.hline()
        self.y -= 4

    def table_row(self, values):
        if self.y < 2.5 * cm + 12:
            self.ensure_space(12)
            self.table_header()
        self.c.setFont(self.font, 8)
        for value, (_, x, right) in zip(values, SAMPLE_COLUMNS):
            draw = self.c.drawRightString if right else self.c.drawString
            draw(x * cm, self.y, value)
        self.y -= 11

    def finish(self):
        self._footer()
        self.c.save()


def render_pdf_report(calc, generated_at: dt.datetime | None = None) -> bytes:
    """Render a calculation to PDF bytes."""
    buf = io.BytesIO()
    pdf = _ReportCanvas(buf, generated_at or dt.datetime.now())

    pdf.text(TITLE, bold=True, size=18, step=24)
    pdf.text(f"Title: {calc.title}", size=11)
    pdf.text(f"Created: {calc.created_at:%Y-%m-%d %H:%M}", size=11)
    if calc.quotation_date:
        pdf.text(f"Quotation date: {calc.quotation_date:%Y-%m-%d}", size=11)
    pdf.text(f"A Index quotation: {calc.market_quotation:.2f} US cents/lb", size=11)
    if calc.exchange_rate:
        pdf.text(f"Exchange rate: {calc.exchange_rate:.2f} per USD", size=11)
    pdf.y -= 6

    totals = aggregate_calculation(calc.batches)
    pdf.text("Overall statistics", bold=True, size=13, step=18)
    pdf.key_values([
        ("Batches", str(totals.total_batches)),
        ("Total weight", f"{totals.total_weight:,.2f} kg"),
        ("Total bales", f"{totals.total_bales:,}"),
        ("Total samples", f"{totals.total_samples:,}"),
        ("Total amount", f"{totals.total_amount:,.2f}"),
        ("Average price", f"{totals.avg_price:,.2f}"),
    ])
    pdf.y -= 10

    for batch in calc.batches:
        pdf.ensure_space(80)
        pdf.text(f"Batch {batch.batch_code} ({batch.year})", bold=True, size=12, step=16)
        pdf.key_values([
            ("Weight", f"{batch.weight:,.2f} kg"),
            ("Bales", str(batch.bales_count)),
            ("Declared samples", str(batch.samples_count)),
        ])
        pdf.y -= 4

        samples = list(batch.priced_samples)
        if not samples:
            pdf.text("No samples", size=9)
            pdf.y -= 8
            continue

        pdf.table_header()
        for n, s in enumerate(samples, start=1):
            pdf.table_row((
                str(n),
                str(s.quantity),
                s.color_grade,
                str(s.leaf_grade),
                str(s.staple_length),
                f"{s.weight:,.2f}",
                f"{s.premium_discount:.2f}",
                f"{s.unit_price:,.2f}",
                f"{s.amount:,.2f}",
            ))

        stats = aggregate_batch(batch)
        pdf.y -= 4
        pdf.hline()
        pdf.key_values([
            ("Sample weight", f"{stats.total_weight:,.2f} kg"),
            ("Average premium/discount", f"{stats.avg_premium_discount:.2f}"),
            ("Average price", f"{stats.avg_price:,.2f}"),
            ("Amount", f"{stats.total_amount:,.2f}"),
        ])
        pdf.y -= 12

    pdf.finish()
    return buf.getvalue()
