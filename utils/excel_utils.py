import logging
from collections.abc import Iterable
from datetime import tzinfo

from openpyxl import Workbook

from domain.reports import MonthlyReport
from domain.transactions import Transaction
from utils.csv_utils import REPORT_HEADERS, TRANSACTION_HEADERS, transaction_row

logger = logging.getLogger(__name__)


def export_transactions_to_xlsx(
    transactions: Iterable[Transaction], filepath: str, tz: tzinfo | None = None
) -> int:
    wb = Workbook()
    ws = wb.active
    ws.title = "Transactions"
    ws.append(TRANSACTION_HEADERS)
    count = 0
    amount_col = TRANSACTION_HEADERS.index("amount")
    for transaction in transactions:
        row = transaction_row(transaction, tz)
        row[amount_col] = transaction.amount
        ws.append(row)
        count += 1
    wb.save(filepath)
    wb.close()
    logger.info("Exported %s transaction(s) to XLSX %s", count, filepath)
    return count


def report_to_xlsx(report: MonthlyReport, filepath: str) -> None:
    """Monthly flows on the first sheet, low balance wallets on the second."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"
    ws.append([f"Monthly report {report.period_label}", "", ""])
    ws.append(REPORT_HEADERS)
    for name, inflow, outflow in report.chart_rows():
        ws.append([name, inflow, outflow])
    ws.append(["TOTAL", report.total_in(), report.total_out()])
    ws.append(["NET", "", report.net()])

    low_ws = wb.create_sheet("Low Balance")
    low_ws.append(["Wallet", "Balance"])
    for wallet in report.low_balance_wallets():
        low_ws.append([wallet.name, wallet.balance])

    wb.save(filepath)
    wb.close()
