import logging
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
from reportlab.platypus import SimpleDocTemplate, Spacer, Table, TableStyle

from domain.reports import MonthlyReport
from domain.validation import from_epoch_ms

logger = logging.getLogger(__name__)

FALLBACK_FONT = "Helvetica"


def _font_candidates() -> list[str]:
    candidates = ["/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"]
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    if windir:
        fonts_dir = os.path.join(windir, "Fonts")
        candidates.append(os.path.join(fonts_dir, "DejaVuSans.ttf"))
        candidates.append(os.path.join(fonts_dir, "Arial.ttf"))
    candidates.append("DejaVuSans.ttf")
    return candidates


def _register_unicode_font() -> str:
    """Register a TTF font with wide glyph coverage and return its name.

    Wallet names and notes are free text. Falls back to built-in Helvetica
    when no candidate font is installed.
    """
    for path in _font_candidates():
        if not os.path.exists(path):
            continue
        name = os.path.splitext(os.path.basename(path))[0]
        try:
            pdfmetrics.registerFont(TTFont(name, path))
        except TTFError:
            logger.debug("Failed to register font %s at %s", name, path, exc_info=True)
            continue
        logger.debug("Registered font %s from %s", name, path)
        return name

    logger.warning("No suitable TTF font found; falling back to %s", FALLBACK_FONT)
    return FALLBACK_FONT


def _table_style(font_name: str, numeric_from: int) -> TableStyle:
    return TableStyle(
        [
            ("FONT", (0, 0), (-1, -1), font_name),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
            ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
            ("ALIGN", (numeric_from, 0), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LEFTPADDING", (0, 0), (-1, -1), 6),
            ("RIGHTPADDING", (0, 0), (-1, -1), 6),
        ]
    )


def report_to_pdf(report: MonthlyReport, filepath: str, tz=None) -> None:
    """Monthly report as a PDF: wallet flows, then the month's transactions."""
    if os.path.dirname(filepath):
        os.makedirs(os.path.dirname(filepath), exist_ok=True)

    doc = SimpleDocTemplate(
        filepath,
        pagesize=A4,
        leftMargin=30,
        rightMargin=30,
        topMargin=30,
        bottomMargin=30,
        title=f"Monthly report {report.period_label}",
    )
    available_width = A4[0] - 60
    font_name = _register_unicode_font()

    flow_data = [[f"Wallet ({report.period_label})", "In", "Out"]]
    for name, inflow, outflow in report.chart_rows():
        flow_data.append([name, str(inflow), str(outflow)])
    flow_data.append(["TOTAL", str(report.total_in()), str(report.total_out())])
    flow_data.append(["NET", "", str(report.net())])

    flow_table = Table(
        flow_data,
        colWidths=[available_width * 0.50, available_width * 0.25, available_width * 0.25],
        repeatRows=1,
    )
    flow_table.setStyle(_table_style(font_name, 1))

    detail_data = [["Date", "Type", "Wallet", "Amount"]]
    for transaction in report.transactions():
        wallet_label = transaction.category_name
        if transaction.target_category_name:
            wallet_label = f"{wallet_label} -> {transaction.target_category_name}"
        detail_data.append(
            [
                from_epoch_ms(transaction.date, tz).strftime("%Y-%m-%d"),
                transaction.type.value,
                wallet_label,
                str(transaction.amount),
            ]
        )
    detail_table = Table(
        detail_data,
        colWidths=[
            available_width * 0.18,
            available_width * 0.22,
            available_width * 0.40,
            available_width * 0.20,
        ],
        repeatRows=1,
    )
    detail_table.setStyle(_table_style(font_name, 3))

    doc.build([flow_table, Spacer(1, 14), detail_table])
    logger.info("Monthly report %s written to PDF %s", report.period_label, filepath)
