from __future__ import annotations

from calendar import monthrange
from collections.abc import Iterable
from datetime import tzinfo

from domain.transactions import Transaction, TransactionType
from domain.validation import from_epoch_ms, round_half_up
from domain.wallets import Wallet


def aggregate_daily_flow(
    transactions: Iterable[Transaction], year: int, month: int, tz: tzinfo | None = None
) -> tuple[list[int], list[int]]:
    """Per-day deposit and withdrawal totals for one month.

    Transfers move money between wallets and are left out.
    """
    days_in_month = monthrange(year, month)[1]
    inflow = [0 for _ in range(days_in_month)]
    outflow = [0 for _ in range(days_in_month)]

    for transaction in transactions:
        dt = from_epoch_ms(transaction.date, tz)
        if dt.year != year or dt.month != month:
            continue
        idx = dt.day - 1
        if transaction.is_deposit:
            inflow[idx] += transaction.amount
        elif transaction.type is TransactionType.WITHDRAWAL:
            outflow[idx] += transaction.amount

    return inflow, outflow


def wallet_distribution(wallets: Iterable[Wallet]) -> list[tuple[str, int]]:
    # pie slices cannot be zero or negative
    rows = []
    for wallet in wallets:
        value = max(0, round_half_up(wallet.balance))
        rows.append((wallet.name, value or 1))
    return rows


def extract_years(transactions: Iterable[Transaction], tz: tzinfo | None = None) -> list[int]:
    return sorted({from_epoch_ms(t.date, tz).year for t in transactions})


def extract_months(transactions: Iterable[Transaction], tz: tzinfo | None = None) -> list[str]:
    months = set()
    for transaction in transactions:
        dt = from_epoch_ms(transaction.date, tz)
        months.add(f"{dt.year:04d}-{dt.month:02d}")
    return sorted(months)
