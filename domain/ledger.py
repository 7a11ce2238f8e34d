"""Pure balance operations over a wallet collection.

Every function takes a sequence of wallets and returns a new tuple; the input
is never modified. Each successful balance change comes back together with
exactly one transaction describing it, so callers can commit both at once.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from fractions import Fraction

from .errors import (
    InsufficientFundsError,
    InvalidPercentagesError,
    InvalidTransferTargetError,
    NoEligibleWalletsError,
    WalletLockedError,
)
from .transactions import Transaction, TransactionType
from .validation import now_ms, require_positive_amount, round_half_up
from .wallets import SPLIT_CATEGORY_ID, SPLIT_CATEGORY_NAME, Wallet, find_wallet


@dataclass(frozen=True)
class LedgerResult:
    wallets: tuple[Wallet, ...]
    transaction: Transaction
    shares: dict[str, int] = field(default_factory=dict)


def _credit(wallets: Sequence[Wallet], deltas: Mapping[str, int]) -> tuple[Wallet, ...]:
    return tuple(
        wallet.with_balance(wallet.balance + deltas[wallet.id]) if wallet.id in deltas else wallet
        for wallet in wallets
    )


def _timestamp(timestamp: int | None) -> int:
    return now_ms() if timestamp is None else int(timestamp)


def split_share(amount: int, percentage: int) -> int:
    return round_half_up(Fraction(amount * percentage, 100))


def split_deposit(
    wallets: Sequence[Wallet],
    amount: int,
    *,
    note: str | None = None,
    timestamp: int | None = None,
) -> LedgerResult:
    """Distribute ``amount`` over unlocked wallets by their percentages.

    All unlocked wallets but the last get their rounded percentage share; the
    last one gets whatever remains, so the shares always add up to ``amount``.
    """
    amount = require_positive_amount(amount)
    eligible = [wallet for wallet in wallets if not wallet.is_locked]
    if not eligible:
        raise NoEligibleWalletsError("All wallets are locked")

    shares: dict[str, int] = {}
    remaining = amount
    for wallet in eligible[:-1]:
        share = split_share(amount, wallet.percentage)
        shares[wallet.id] = share
        remaining -= share
    shares[eligible[-1].id] = remaining

    transaction = Transaction(
        amount=amount,
        type=TransactionType.SPLIT_DEPOSIT,
        category_id=SPLIT_CATEGORY_ID,
        category_name=SPLIT_CATEGORY_NAME,
        date=_timestamp(timestamp),
        note=note,
    )
    return LedgerResult(_credit(wallets, shares), transaction, shares)


def direct_deposit(
    wallets: Sequence[Wallet],
    wallet_id: str,
    amount: int,
    *,
    respect_lock: bool = True,
    note: str | None = None,
    timestamp: int | None = None,
) -> LedgerResult:
    amount = require_positive_amount(amount)
    wallet = find_wallet(wallets, wallet_id)
    if respect_lock and wallet.is_locked:
        raise WalletLockedError(f"Wallet is locked: {wallet.name}")
    transaction = Transaction(
        amount=amount,
        type=TransactionType.DIRECT_DEPOSIT,
        category_id=wallet.id,
        category_name=wallet.name,
        date=_timestamp(timestamp),
        note=note,
    )
    return LedgerResult(_credit(wallets, {wallet.id: amount}), transaction, {wallet.id: amount})


def withdraw(
    wallets: Sequence[Wallet],
    wallet_id: str,
    amount: int,
    *,
    respect_lock: bool = True,
    note: str | None = None,
    timestamp: int | None = None,
) -> LedgerResult:
    amount = require_positive_amount(amount)
    wallet = find_wallet(wallets, wallet_id)
    if respect_lock and wallet.is_locked:
        raise WalletLockedError(f"Wallet is locked: {wallet.name}")
    if amount > wallet.balance:
        raise InsufficientFundsError(
            f"Insufficient funds in {wallet.name}: balance={wallet.balance} amount={amount}"
        )
    transaction = Transaction(
        amount=amount,
        type=TransactionType.WITHDRAWAL,
        category_id=wallet.id,
        category_name=wallet.name,
        date=_timestamp(timestamp),
        note=note,
    )
    return LedgerResult(_credit(wallets, {wallet.id: -amount}), transaction, {wallet.id: -amount})


def transfer(
    wallets: Sequence[Wallet],
    from_id: str,
    to_id: str,
    amount: int,
    *,
    respect_lock: bool = True,
    note: str | None = None,
    timestamp: int | None = None,
) -> LedgerResult:
    source = find_wallet(wallets, from_id)
    target = find_wallet(wallets, to_id)
    if source.id == target.id:
        raise InvalidTransferTargetError("Source and destination wallets must be different")
    amount = require_positive_amount(amount)
    if respect_lock and (source.is_locked or target.is_locked):
        raise InvalidTransferTargetError("Locked wallets cannot take part in a transfer")
    if amount > source.balance:
        raise InsufficientFundsError(
            f"Insufficient funds in {source.name}: balance={source.balance} amount={amount}"
        )
    transaction = Transaction(
        amount=amount,
        type=TransactionType.TRANSFER,
        category_id=source.id,
        category_name=source.name,
        target_category_id=target.id,
        target_category_name=target.name,
        date=_timestamp(timestamp),
        note=note,
    )
    deltas = {source.id: -amount, target.id: amount}
    return LedgerResult(_credit(wallets, deltas), transaction, deltas)


def toggle_lock(wallets: Sequence[Wallet], wallet_id: str) -> tuple[Wallet, ...]:
    find_wallet(wallets, wallet_id)
    return tuple(
        replace(wallet, is_locked=not wallet.is_locked) if wallet.id == wallet_id else wallet
        for wallet in wallets
    )


def set_percentages(
    wallets: Sequence[Wallet], percentages: Mapping[str, int]
) -> tuple[Wallet, ...]:
    """Apply edited split percentages. Values are clamped to 0..100 and must total 100."""
    for wallet_id in percentages:
        find_wallet(wallets, wallet_id)
    updated = tuple(
        replace(wallet, percentage=min(100, max(0, int(percentages[wallet.id]))))
        if wallet.id in percentages
        else wallet
        for wallet in wallets
    )
    total = sum(wallet.percentage for wallet in updated)
    if total != 100:
        raise InvalidPercentagesError(f"Percentages must total 100, got {total}")
    return updated
