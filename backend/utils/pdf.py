# backend/utils/pdf.py
import io
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from config import settings

logger = logging.getLogger(__name__)

# Konfiguracja czcionek (DejaVu, gdy dostępne; inaczej wbudowana Helvetica)
FONT_DIR = Path(settings.FONT_DIR)
FONT_REGULAR_PATH = FONT_DIR / "DejaVuSans.ttf"
FONT_BOLD_PATH = FONT_DIR / "DejaVuSans-Bold.ttf"

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"


@dataclass
class ReportDocument:
    """Gotowy do druku dokument: nagłówek, podsumowanie i tabela wierszy."""
    title: str
    printed_by: str = ""
    printed_at: str = ""
    summary: List[Tuple[str, str]] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)


_fonts_inited = False
def _init_fonts():
    """Registers DejaVu fonts in ReportLab when the TTF files are present."""
    global _fonts_inited, FONT_REGULAR_NAME, FONT_BOLD_NAME
    if _fonts_inited:
        return
    _fonts_inited = True

    if not FONT_REGULAR_PATH.exists():
        logger.warning("Font file not found at %s, using Helvetica", FONT_REGULAR_PATH)
        return

    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont

    pdfmetrics.registerFont(TTFont("DejaVuSans", str(FONT_REGULAR_PATH)))
    FONT_REGULAR_NAME = "DejaVuSans"

    if FONT_BOLD_PATH.exists():
        pdfmetrics.registerFont(TTFont("DejaVuSans-Bold", str(FONT_BOLD_PATH)))
        FONT_BOLD_NAME = "DejaVuSans-Bold"
    else:
        FONT_BOLD_NAME = FONT_REGULAR_NAME


@contextmanager
def rendering_session():
    # Bufor i canvas zawsze zwalniane, także przy błędzie renderowania
    buffer = io.BytesIO()
    try:
        yield buffer, canvas.Canvas(buffer, pagesize=A4)
    finally:
        buffer.close()


def render_report_pdf(document: ReportDocument) -> bytes:
    _init_fonts()

    with rendering_session() as (buffer, c):
        width, height = A4

        def draw_text(x, y, text, font=None, size=10, align="left"):
            c.setFont(font or FONT_REGULAR_NAME, size)
            text_str = str(text) if text is not None else ""
            if align == "right":
                c.drawRightString(x, y, text_str)
            elif align == "center":
                c.drawCentredString(x, y, text_str)
            else:
                c.drawString(x, y, text_str)

        # --- 1. NAGŁÓWEK ---
        y = height - 20 * mm
        draw_text(width / 2, y, document.title, font=FONT_BOLD_NAME, size=16, align="center")
        y -= 8 * mm
        if document.printed_by:
            draw_text(20 * mm, y, f"Printed by: {document.printed_by}", size=9)
        if document.printed_at:
            draw_text(190 * mm, y, document.printed_at, size=9, align="right")
        y -= 5 * mm
        c.setLineWidth(0.5)
        c.line(20 * mm, y, 190 * mm, y)
        y -= 8 * mm

        # --- 2. PODSUMOWANIE ---
        for label, value in document.summary:
            draw_text(20 * mm, y, f"{label}:", font=FONT_BOLD_NAME, size=10)
            draw_text(110 * mm, y, value, size=10)
            y -= 6 * mm
        y -= 4 * mm

        # --- 3. TABELA ---
        col_count = max(len(document.headers), 1)
        col_width = 170 * mm / col_count

        def draw_header(current_y):
            c.setFillColorRGB(0.95, 0.95, 0.95)
            c.rect(20 * mm, current_y - 2 * mm, 170 * mm, 8 * mm, fill=1, stroke=0)
            c.setFillColorRGB(0, 0, 0)
            for idx, header in enumerate(document.headers):
                draw_text(22 * mm + idx * col_width, current_y, header, font=FONT_BOLD_NAME, size=8)
            return current_y - 8 * mm

        if document.headers:
            y = draw_header(y)

        max_chars = max(int(col_width / (1.8 * mm)), 4)
        for row in document.rows:
            for idx, cell in enumerate(row):
                draw_text(22 * mm + idx * col_width, y, str(cell)[:max_chars], size=8)
            c.setLineWidth(0.1)
            c.line(20 * mm, y - 2 * mm, 190 * mm, y - 2 * mm)
            y -= 6 * mm

            # Nowa strona
            if y < 20 * mm:
                c.showPage()
                y = height - 20 * mm
                if document.headers:
                    y = draw_header(y)

        c.showPage()
        c.save()
        return buffer.getvalue()
