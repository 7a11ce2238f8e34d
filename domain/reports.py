from collections.abc import Iterable
from dataclasses import dataclass
from datetime import tzinfo

from prettytable import PrettyTable

from .transactions import Transaction, TransactionQuery, TransactionType
from .validation import from_epoch_ms, round_half_up
from .wallets import SPLIT_CATEGORY_ID, Wallet

LOW_BALANCE_THRESHOLD = 100


@dataclass(frozen=True)
class WalletFlow:
    wallet_id: str
    name: str
    inflow: float = 0.0
    outflow: float = 0.0


class MonthlyReport:
    """Per-wallet inflow/outflow for one calendar month.

    Split deposits are attributed to every wallet by its current percentage.
    That attribution is for display only and is left unrounded.
    """

    def __init__(
        self,
        transactions: Iterable[Transaction],
        wallets: Iterable[Wallet],
        year: int,
        month: int,
        tz: tzinfo | None = None,
    ):
        self._wallets = tuple(wallets)
        self._year = year
        self._month = month
        self._transactions = TransactionQuery(tuple(transactions)).in_month(year, month, tz).to_list()

    @property
    def period_label(self) -> str:
        return f"{self._year:04d}-{self._month:02d}"

    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    def flows(self) -> list[WalletFlow]:
        inflow = {wallet.id: 0.0 for wallet in self._wallets}
        outflow = {wallet.id: 0.0 for wallet in self._wallets}
        for transaction in self._transactions:
            if transaction.category_id == SPLIT_CATEGORY_ID:
                for wallet in self._wallets:
                    inflow[wallet.id] += transaction.amount * (wallet.percentage / 100)
                continue
            if transaction.category_id not in inflow:
                continue
            if transaction.type is TransactionType.WITHDRAWAL:
                outflow[transaction.category_id] += transaction.amount
            elif transaction.type is TransactionType.TRANSFER:
                outflow[transaction.category_id] += transaction.amount
                if transaction.target_category_id in inflow:
                    inflow[transaction.target_category_id] += transaction.amount
            else:
                inflow[transaction.category_id] += transaction.amount
        return [
            WalletFlow(wallet.id, wallet.name, inflow[wallet.id], outflow[wallet.id])
            for wallet in self._wallets
        ]

    def total_in(self) -> int:
        return round_half_up(sum(flow.inflow for flow in self.flows()))

    def total_out(self) -> int:
        return round_half_up(sum(flow.outflow for flow in self.flows()))

    def net(self) -> int:
        return self.total_in() - self.total_out()

    def chart_rows(self) -> list[tuple[str, int, int]]:
        return [
            (flow.name, round_half_up(flow.inflow), round_half_up(flow.outflow))
            for flow in self.flows()
        ]

    def low_balance_wallets(self, threshold: int = LOW_BALANCE_THRESHOLD) -> list[Wallet]:
        return [wallet for wallet in self._wallets if wallet.balance < threshold]

    def as_table(self) -> str:
        table = PrettyTable()
        table.field_names = ["Wallet", "In", "Out"]
        for name, inflow, outflow in self.chart_rows():
            table.add_row([name, inflow, outflow])
        table.add_row(["TOTAL", self.total_in(), self.total_out()], divider=True)
        table.add_row(["NET", "", self.net()])
        return str(table)


class HistorySummary:
    def __init__(self, transactions: Iterable[Transaction]):
        self._transactions = tuple(transactions)

    @property
    def total_in(self) -> int:
        return sum(t.amount for t in self._transactions if t.is_deposit)

    @property
    def total_out(self) -> int:
        return sum(t.amount for t in self._transactions if t.type is TransactionType.WITHDRAWAL)

    def savings_rate(self) -> int:
        """Share of deposits not withdrawn, as a percentage clamped to 0..100."""
        total_in = self.total_in
        if total_in == 0:
            return 0
        ratio = round_half_up((total_in - self.total_out) * 100 / total_in)
        return max(0, min(100, ratio))


def wallets_table(wallets: Iterable[Wallet]) -> str:
    table = PrettyTable()
    table.field_names = ["Id", "Wallet", "Share %", "Balance", "Locked"]
    total = 0
    for wallet in wallets:
        total += wallet.balance
        table.add_row(
            [wallet.id, wallet.name, wallet.percentage, wallet.balance, "yes" if wallet.is_locked else ""]
        )
    table.add_row(["", "TOTAL", "", total, ""], divider=True)
    return str(table)


def transactions_table(transactions: Iterable[Transaction], tz: tzinfo | None = None) -> str:
    table = PrettyTable()
    table.field_names = ["Date", "Type", "Wallet", "Amount", "Note"]
    for transaction in transactions:
        wallet_label = transaction.category_name
        if transaction.target_category_name:
            wallet_label = f"{wallet_label} -> {transaction.target_category_name}"
        sign = "-" if transaction.type is TransactionType.WITHDRAWAL else "+"
        table.add_row(
            [
                from_epoch_ms(transaction.date, tz).strftime("%Y-%m-%d %H:%M"),
                transaction.type.value,
                wallet_label,
                f"{sign}{transaction.amount}",
                transaction.note or "",
            ]
        )
    return str(table)
