import uuid
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date as dt_date
from datetime import tzinfo
from enum import Enum

from .validation import from_epoch_ms, month_bounds_ms, now_ms

Predicate = Callable[["Transaction"], bool]


class TransactionType(str, Enum):
    SPLIT_DEPOSIT = "split_deposit"
    DIRECT_DEPOSIT = "direct_deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"


class HistoryFilter(str, Enum):
    ALL = "all"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"


DEPOSIT_TYPES = frozenset({TransactionType.SPLIT_DEPOSIT, TransactionType.DIRECT_DEPOSIT})


def _new_transaction_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Transaction:
    amount: int
    type: TransactionType
    category_id: str
    category_name: str
    date: int = field(default_factory=now_ms)
    id: str = field(default_factory=_new_transaction_id)
    target_category_id: str | None = None
    target_category_name: str | None = None
    note: str | None = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Transaction id must not be empty")
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise ValueError("Transaction amount must be an integer")
        if self.amount <= 0:
            raise ValueError("Transaction amount must be positive")
        object.__setattr__(self, "type", TransactionType(self.type))
        if self.type is TransactionType.TRANSFER and not self.target_category_id:
            raise ValueError("Transfer transaction requires a target wallet")

    @property
    def is_deposit(self) -> bool:
        return self.type in DEPOSIT_TYPES

    def matches(self, term: str) -> bool:
        if not term:
            return True
        return (
            term in self.category_name
            or term in (self.target_category_name or "")
            or term in (self.note or "")
        )

    def matches_kind(self, kind: HistoryFilter | str) -> bool:
        kind = HistoryFilter(kind)
        if kind is HistoryFilter.ALL:
            return True
        if kind is HistoryFilter.DEPOSIT:
            return self.is_deposit
        if kind is HistoryFilter.WITHDRAWAL:
            return self.type is TransactionType.WITHDRAWAL
        return self.type is TransactionType.TRANSFER


class TransactionQuery:
    """Lazy, chainable view over a transaction sequence.

    Filters are evaluated on iteration, so the same query can be iterated
    more than once.
    """

    def __init__(self, source: Iterable[Transaction], predicates: tuple[Predicate, ...] = ()):
        self._source = source
        self._predicates = predicates

    def where(self, predicate: Predicate) -> "TransactionQuery":
        return TransactionQuery(self._source, self._predicates + (predicate,))

    def matching(self, term: str) -> "TransactionQuery":
        if not term:
            return self
        return self.where(lambda t: t.matches(term))

    def of_kind(self, kind: HistoryFilter | str) -> "TransactionQuery":
        kind = HistoryFilter(kind)
        if kind is HistoryFilter.ALL:
            return self
        return self.where(lambda t: t.matches_kind(kind))

    def between(self, start_ms: int, end_ms: int) -> "TransactionQuery":
        return self.where(lambda t: start_ms <= t.date < end_ms)

    def in_month(self, year: int, month: int, tz: tzinfo | None = None) -> "TransactionQuery":
        start_ms, end_ms = month_bounds_ms(year, month, tz)
        return self.between(start_ms, end_ms)

    def group_by_day(self, tz: tzinfo | None = None) -> dict[dt_date, list[Transaction]]:
        groups: dict[dt_date, list[Transaction]] = {}
        for transaction in self:
            day = from_epoch_ms(transaction.date, tz).date()
            groups.setdefault(day, []).append(transaction)
        return groups

    def to_list(self) -> list[Transaction]:
        return list(self)

    def __iter__(self) -> Iterator[Transaction]:
        for transaction in self._source:
            if all(predicate(transaction) for predicate in self._predicates):
                yield transaction


class TransactionLog:
    """Append-only transaction history, newest first."""

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._items: tuple[Transaction, ...] = tuple(transactions)

    def append(self, transaction: Transaction) -> "TransactionLog":
        return TransactionLog((transaction, *self._items))

    def query(self, predicate: Predicate | None = None) -> TransactionQuery:
        query = TransactionQuery(self._items)
        if predicate is not None:
            query = query.where(predicate)
        return query

    def recent(self, limit: int = 5) -> list[Transaction]:
        return list(self._items[: max(0, limit)])

    def as_tuple(self) -> tuple[Transaction, ...]:
        return self._items

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransactionLog):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"TransactionLog({len(self._items)} transactions)"
