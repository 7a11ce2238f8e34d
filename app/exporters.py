import logging
import os
from collections.abc import Iterable

from domain.reports import MonthlyReport
from domain.transactions import Transaction

logger = logging.getLogger(__name__)


def _ensure_parent(filepath: str) -> None:
    if os.path.dirname(filepath):
        os.makedirs(os.path.dirname(filepath), exist_ok=True)


def export_transactions(
    transactions: Iterable[Transaction], filepath: str, fmt: str | None = None, tz=None
) -> int:
    """Write transaction history as CSV or XLSX. Returns the row count."""
    fmt = (fmt or os.path.splitext(filepath)[1].lstrip(".") or "csv").lower()
    _ensure_parent(filepath)
    try:
        if fmt == "csv":
            from utils.csv_utils import export_transactions_to_csv

            return export_transactions_to_csv(list(transactions), filepath, tz)
        if fmt in ("xlsx", "xls"):
            from utils.excel_utils import export_transactions_to_xlsx

            return export_transactions_to_xlsx(list(transactions), filepath, tz)
        raise ValueError(f"Unsupported export format: {fmt}")
    except Exception:
        logger.exception("Failed to export transactions to %s (%s)", filepath, fmt)
        raise


def export_report(report: MonthlyReport, filepath: str, fmt: str | None = None, tz=None) -> None:
    fmt = (fmt or os.path.splitext(filepath)[1].lstrip(".") or "pdf").lower()
    _ensure_parent(filepath)
    try:
        if fmt == "pdf":
            from utils.pdf_utils import report_to_pdf

            report_to_pdf(report, filepath, tz=tz)
        elif fmt == "csv":
            from utils.csv_utils import report_to_csv

            report_to_csv(report, filepath)
        elif fmt in ("xlsx", "xls"):
            from utils.excel_utils import report_to_xlsx

            report_to_xlsx(report, filepath)
        else:
            raise ValueError(f"Unsupported export format: {fmt}")
    except Exception:
        logger.exception("Failed to export report to %s (%s)", filepath, fmt)
        raise
