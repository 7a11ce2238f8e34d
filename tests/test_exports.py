import csv
from datetime import datetime, timezone

import pytest
from openpyxl import load_workbook

from app.exporters import export_report, export_transactions
from domain.reports import MonthlyReport
from domain.transactions import Transaction, TransactionType
from domain.wallets import Wallet
from utils.csv_utils import TRANSACTION_HEADERS


def _ms(day):
    return int(datetime(2024, 6, day, 9, tzinfo=timezone.utc).timestamp() * 1000)


WALLETS = (Wallet("a", "Алматы", 70, balance=90), Wallet("b", "Reserve", 30, balance=300))
TRANSACTIONS = [
    Transaction(20, TransactionType.TRANSFER, "a", "Алматы", date=_ms(3), id="t3",
                target_category_id="b", target_category_name="Reserve"),
    Transaction(10, TransactionType.WITHDRAWAL, "a", "Алматы", date=_ms(2), id="t2", note="taxi"),
    Transaction(400, TransactionType.SPLIT_DEPOSIT, "all", "Auto split", date=_ms(1), id="t1"),
]


def test_export_transactions_csv(tmp_path):
    path = tmp_path / "out" / "history.csv"
    count = export_transactions(TRANSACTIONS, str(path), tz=timezone.utc)
    assert count == 3

    with open(path, newline="", encoding="utf-8") as fp:
        rows = list(csv.reader(fp))
    assert rows[0] == TRANSACTION_HEADERS
    assert rows[1][0] == "t3"
    assert rows[1][1] == "2024-06-03 09:00:00"
    assert rows[1][5] == "b"
    assert rows[2][8] == "taxi"
    assert rows[3][7] == "400"


def test_export_transactions_xlsx(tmp_path):
    path = tmp_path / "history.xlsx"
    assert export_transactions(TRANSACTIONS, str(path), "xlsx", tz=timezone.utc) == 3

    wb = load_workbook(path)
    ws = wb["Transactions"]
    rows = list(ws.iter_rows(values_only=True))
    wb.close()
    assert list(rows[0]) == TRANSACTION_HEADERS
    assert rows[3][7] == 400
    assert rows[1][4] == "Алматы"


def test_export_transactions_unknown_format(tmp_path):
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_transactions(TRANSACTIONS, str(tmp_path / "history.txt"))


def test_export_report_pdf(tmp_path):
    report = MonthlyReport(TRANSACTIONS, WALLETS, 2024, 6, tz=timezone.utc)
    path = tmp_path / "report.pdf"
    export_report(report, str(path), tz=timezone.utc)
    data = path.read_bytes()
    assert data.startswith(b"%PDF")
    assert len(data) > 500


def test_export_report_xlsx(tmp_path):
    report = MonthlyReport(TRANSACTIONS, WALLETS, 2024, 6, tz=timezone.utc)
    path = tmp_path / "report.xlsx"
    export_report(report, str(path))

    wb = load_workbook(path)
    rows = list(wb["Report"].iter_rows(values_only=True))
    low = list(wb["Low Balance"].iter_rows(values_only=True))
    wb.close()
    assert rows[0][0] == "Monthly report 2024-06"
    assert rows[2] == ("Алматы", 280, 30)
    assert rows[3] == ("Reserve", 140, 0)
    assert low[1] == ("Алматы", 90)
