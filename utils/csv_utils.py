import csv
import logging
import os
from collections.abc import Iterable
from datetime import tzinfo

from domain.reports import MonthlyReport
from domain.transactions import Transaction
from domain.validation import from_epoch_ms

logger = logging.getLogger(__name__)

TRANSACTION_HEADERS = [
    "id",
    "date",
    "type",
    "category_id",
    "category_name",
    "target_category_id",
    "target_category_name",
    "amount",
    "note",
]
REPORT_HEADERS = ["Wallet", "In", "Out"]


def _safe_str(value):
    return "" if value is None else str(value)


def transaction_row(transaction: Transaction, tz: tzinfo | None = None) -> list[str]:
    return [
        transaction.id,
        from_epoch_ms(transaction.date, tz).strftime("%Y-%m-%d %H:%M:%S"),
        transaction.type.value,
        transaction.category_id,
        transaction.category_name,
        _safe_str(transaction.target_category_id),
        _safe_str(transaction.target_category_name),
        str(transaction.amount),
        _safe_str(transaction.note),
    ]


def export_transactions_to_csv(
    transactions: Iterable[Transaction], filepath: str, tz: tzinfo | None = None
) -> int:
    count = 0
    with open(filepath, "w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp)
        writer.writerow(TRANSACTION_HEADERS)
        for transaction in transactions:
            writer.writerow(transaction_row(transaction, tz))
            count += 1
    logger.info("Exported %s transaction(s) to CSV %s", count, filepath)
    return count


def report_to_csv(report: MonthlyReport, filepath: str) -> None:
    if os.path.dirname(filepath):
        os.makedirs(os.path.dirname(filepath), exist_ok=True)
    with open(filepath, "w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp)
        writer.writerow([f"Monthly report {report.period_label}", "", ""])
        writer.writerow(REPORT_HEADERS)
        for name, inflow, outflow in report.chart_rows():
            writer.writerow([name, inflow, outflow])
        writer.writerow(["TOTAL", report.total_in(), report.total_out()])
        writer.writerow(["NET", "", report.net()])
