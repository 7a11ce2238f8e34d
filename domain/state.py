from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

from .ledger import LedgerResult
from .transactions import Transaction, TransactionLog, TransactionType
from .validation import parse_amount, round_half_up
from .wallets import DEFAULT_WALLETS, Wallet

DEFAULT_USER_PIN = "0986"
DEFAULT_RECOVERY_PIN = "JR4647986"
PIN_WAIT_MS = 24 * 60 * 60 * 1000


class PinKind(str, Enum):
    MAIN = "main"
    RECOVERY = "recovery"


@dataclass(frozen=True)
class PendingPinChange:
    new_pin: str
    request_time: int
    is_ready: bool = False
    type: PinKind = PinKind.MAIN

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", PinKind(self.type))


@dataclass(frozen=True)
class AppState:
    wallets: tuple[Wallet, ...] = DEFAULT_WALLETS
    transactions: TransactionLog = field(default_factory=TransactionLog)
    user_pin: str = DEFAULT_USER_PIN
    recovery_pin: str = DEFAULT_RECOVERY_PIN
    is_dark_mode: bool = False
    last_backup_date: int | None = None
    pending_pin_change: PendingPinChange | None = None

    def apply(self, result: LedgerResult) -> "AppState":
        """Commit a ledger result: new balances and its transaction together."""
        return replace(
            self,
            wallets=tuple(result.wallets),
            transactions=self.transactions.append(result.transaction),
        )

    def with_wallets(self, wallets) -> "AppState":
        return replace(self, wallets=tuple(wallets))

    def to_dict(self) -> dict:
        payload: dict = {
            "wallets": [wallet_to_dict(wallet) for wallet in self.wallets],
            "transactions": [transaction_to_dict(t) for t in self.transactions],
            "userPin": self.user_pin,
            "recoveryPin": self.recovery_pin,
            "isDarkMode": bool(self.is_dark_mode),
        }
        if self.last_backup_date is not None:
            payload["lastBackupDate"] = int(self.last_backup_date)
        if self.pending_pin_change is not None:
            pending = self.pending_pin_change
            payload["pendingPinChange"] = {
                "newPin": pending.new_pin,
                "requestTime": int(pending.request_time),
                "isReady": bool(pending.is_ready),
                "type": pending.type.value,
            }
        return payload


def as_int(value, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return round_half_up(value)
    if isinstance(value, str):
        return parse_amount(value)
    return default


def wallet_to_dict(wallet: Wallet) -> dict:
    return {
        "id": wallet.id,
        "name": wallet.name,
        "percentage": int(wallet.percentage),
        "balance": int(wallet.balance),
        "color": wallet.color,
        "icon": wallet.icon,
        "isLocked": bool(wallet.is_locked),
    }


def wallet_from_dict(item: Mapping) -> Wallet:
    wallet_id = str(item.get("id", "") or "").strip()
    if not wallet_id:
        raise ValueError("wallet id is missing")
    return Wallet(
        id=wallet_id,
        name=str(item["name"]) if item.get("name") is not None else wallet_id,
        percentage=as_int(item.get("percentage")),
        balance=as_int(item.get("balance")),
        is_locked=bool(item.get("isLocked", False)),
        color=str(item.get("color", "") or ""),
        icon=str(item.get("icon", "") or ""),
    )


def transaction_to_dict(transaction: Transaction) -> dict:
    payload = {
        "id": transaction.id,
        "amount": int(transaction.amount),
        "type": transaction.type.value,
        "categoryId": transaction.category_id,
        "categoryName": transaction.category_name,
        "date": int(transaction.date),
    }
    if transaction.target_category_id is not None:
        payload["targetCategoryId"] = transaction.target_category_id
    if transaction.target_category_name is not None:
        payload["targetCategoryName"] = transaction.target_category_name
    if transaction.note is not None:
        payload["note"] = transaction.note
    return payload


def transaction_from_dict(item: Mapping) -> Transaction:
    try:
        kind = TransactionType(str(item.get("type", "")))
    except ValueError as exc:
        raise ValueError(f"unknown transaction type: {item.get('type')!r}") from exc
    target_id = item.get("targetCategoryId")
    target_name = item.get("targetCategoryName")
    note = item.get("note")
    return Transaction(
        id=str(item.get("id", "") or ""),
        amount=as_int(item.get("amount")),
        type=kind,
        category_id=str(item.get("categoryId", "") or ""),
        category_name=str(item.get("categoryName", "") or ""),
        target_category_id=str(target_id) if target_id is not None else None,
        target_category_name=str(target_name) if target_name is not None else None,
        date=as_int(item.get("date")),
        note=str(note) if note is not None else None,
    )


def pending_pin_change_from_dict(item: Mapping) -> PendingPinChange:
    return PendingPinChange(
        new_pin=str(item.get("newPin", "") or ""),
        request_time=as_int(item.get("requestTime")),
        is_ready=bool(item.get("isReady", False)),
        type=PinKind(str(item.get("type", PinKind.MAIN.value))),
    )


def _text_or(value, default: str) -> str:
    return default if value is None else str(value)


def state_from_dict(
    data: Mapping, *, fallback: AppState | None = None
) -> tuple[AppState, list[str]]:
    """Build an AppState from its JSON shape.

    Fields that are absent or null are taken from ``fallback``.
    Items that cannot be parsed are skipped and reported in the returned
    issue list.
    """
    base = fallback if fallback is not None else AppState()
    issues: list[str] = []

    wallets = base.wallets
    raw_wallets = data.get("wallets")
    if isinstance(raw_wallets, list):
        parsed_wallets: list[Wallet] = []
        seen: set[str] = set()
        for idx, item in enumerate(raw_wallets, start=1):
            if not isinstance(item, Mapping):
                issues.append(f"wallets[{idx}]: invalid item type")
                continue
            try:
                wallet = wallet_from_dict(item)
            except ValueError as exc:
                issues.append(f"wallets[{idx}]: invalid wallet ({exc})")
                continue
            if wallet.id in seen:
                issues.append(f"wallets[{idx}]: duplicate wallet id {wallet.id}")
                continue
            seen.add(wallet.id)
            parsed_wallets.append(wallet)
        wallets = tuple(parsed_wallets)
    elif raw_wallets is not None:
        issues.append("wallets: expected an array")

    transactions = base.transactions
    raw_transactions = data.get("transactions")
    if isinstance(raw_transactions, list):
        parsed_transactions: list[Transaction] = []
        for idx, item in enumerate(raw_transactions, start=1):
            if not isinstance(item, Mapping):
                issues.append(f"transactions[{idx}]: invalid item type")
                continue
            try:
                parsed_transactions.append(transaction_from_dict(item))
            except ValueError as exc:
                issues.append(f"transactions[{idx}]: invalid transaction ({exc})")
        transactions = TransactionLog(parsed_transactions)
    elif raw_transactions is not None:
        issues.append("transactions: expected an array")

    pending = base.pending_pin_change
    raw_pending = data.get("pendingPinChange")
    if isinstance(raw_pending, Mapping):
        try:
            pending = pending_pin_change_from_dict(raw_pending)
        except ValueError as exc:
            issues.append(f"pendingPinChange: invalid value ({exc})")

    last_backup = data.get("lastBackupDate")
    is_dark_mode = data.get("isDarkMode")
    state = AppState(
        wallets=wallets,
        transactions=transactions,
        user_pin=_text_or(data.get("userPin"), base.user_pin),
        recovery_pin=_text_or(data.get("recoveryPin"), base.recovery_pin),
        is_dark_mode=bool(is_dark_mode) if is_dark_mode is not None else base.is_dark_mode,
        last_backup_date=as_int(last_backup) if last_backup is not None else base.last_backup_date,
        pending_pin_change=pending,
    )
    return state, issues
