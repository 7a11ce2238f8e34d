import logging
from collections.abc import Callable, Mapping
from dataclasses import replace

from domain import ledger
from domain.errors import InvalidPinError
from domain.ledger import LedgerResult
from domain.reports import HistorySummary, MonthlyReport
from domain.state import AppState, PendingPinChange, PinKind
from domain.transactions import HistoryFilter, Transaction
from domain.validation import now_ms
from domain.wallets import Wallet
from domain.wallets import total_balance as wallets_total
from infrastructure.repositories import StateRepository
from utils.backup_utils import import_backup

logger = logging.getLogger(__name__)


def _record(
    repository: StateRepository, operation: Callable[[tuple[Wallet, ...]], LedgerResult]
) -> LedgerResult:
    def change(state: AppState) -> tuple[AppState, LedgerResult]:
        result = operation(state.wallets)
        return state.apply(result), result

    return repository.update(change)


def _change_wallets(
    repository: StateRepository, operation: Callable[[tuple[Wallet, ...]], tuple[Wallet, ...]]
) -> tuple[Wallet, ...]:
    def change(state: AppState) -> tuple[AppState, tuple[Wallet, ...]]:
        wallets = operation(state.wallets)
        return state.with_wallets(wallets), wallets

    return repository.update(change)


class SplitDeposit:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, amount: int, *, note: str | None = None) -> LedgerResult:
        """Distribute a deposit across unlocked wallets and record it."""
        result = _record(
            self._repository, lambda wallets: ledger.split_deposit(wallets, amount, note=note)
        )
        logger.info(
            "Split deposit recorded amount=%s shares=%s transaction_id=%s",
            amount,
            result.shares,
            result.transaction.id,
        )
        return result


class CategoryDeposit:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, wallet_id: str, amount: int, *, note: str | None = None) -> LedgerResult:
        result = _record(
            self._repository,
            lambda wallets: ledger.direct_deposit(wallets, wallet_id, amount, note=note),
        )
        logger.info("Direct deposit recorded wallet_id=%s amount=%s", wallet_id, amount)
        return result


class CategoryWithdraw:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, wallet_id: str, amount: int, *, note: str | None = None) -> LedgerResult:
        result = _record(
            self._repository, lambda wallets: ledger.withdraw(wallets, wallet_id, amount, note=note)
        )
        logger.info("Withdrawal recorded wallet_id=%s amount=%s", wallet_id, amount)
        return result


class TransferFunds:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(
        self, from_wallet_id: str, to_wallet_id: str, amount: int, *, note: str | None = None
    ) -> LedgerResult:
        result = _record(
            self._repository,
            lambda wallets: ledger.transfer(wallets, from_wallet_id, to_wallet_id, amount, note=note),
        )
        logger.info(
            "Transfer recorded from_wallet_id=%s to_wallet_id=%s amount=%s",
            from_wallet_id,
            to_wallet_id,
            amount,
        )
        return result


class ToggleLock:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, wallet_id: str) -> tuple[Wallet, ...]:
        wallets = _change_wallets(self._repository, lambda current: ledger.toggle_lock(current, wallet_id))
        locked = next(wallet.is_locked for wallet in wallets if wallet.id == wallet_id)
        logger.info("Wallet lock toggled wallet_id=%s locked=%s", wallet_id, locked)
        return wallets


class UpdatePercentages:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, percentages: Mapping[str, int]) -> tuple[Wallet, ...]:
        wallets = _change_wallets(
            self._repository, lambda current: ledger.set_percentages(current, percentages)
        )
        logger.info(
            "Split percentages updated %s",
            {wallet.id: wallet.percentage for wallet in wallets},
        )
        return wallets


class GetWallets:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self) -> tuple[Wallet, ...]:
        return self._repository.load().wallets


class CalculateTotalBalance:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self) -> int:
        return wallets_total(self._repository.load().wallets)


class GetTransactions:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(
        self, *, search: str = "", kind: HistoryFilter | str = HistoryFilter.ALL
    ) -> list[Transaction]:
        log = self._repository.load().transactions
        return log.query().matching(search).of_kind(kind).to_list()


class GetHistorySummary:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self) -> HistorySummary:
        return HistorySummary(self._repository.load().transactions)


class GenerateMonthlyReport:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, year: int, month: int, tz=None) -> MonthlyReport:
        state = self._repository.load()
        return MonthlyReport(state.transactions, state.wallets, year, month, tz=tz)


class ToggleTheme:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self) -> bool:
        def change(state: AppState) -> tuple[AppState, bool]:
            return replace(state, is_dark_mode=not state.is_dark_mode), not state.is_dark_mode

        return self._repository.update(change)


class UpdatePin:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, new_pin: str) -> None:
        new_pin = (new_pin or "").strip()
        if not new_pin:
            raise InvalidPinError("PIN must not be empty")
        self._repository.update(lambda state: (replace(state, user_pin=new_pin), None))
        logger.info("User PIN updated")


class RequestPinChange:
    """Record a pending PIN change request.

    Promotion of the request after PIN_WAIT_MS is not implemented yet.
    """

    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, new_pin: str, kind: PinKind | str = PinKind.MAIN) -> PendingPinChange:
        new_pin = (new_pin or "").strip()
        if not new_pin:
            raise InvalidPinError("PIN must not be empty")
        pending = PendingPinChange(new_pin=new_pin, request_time=now_ms(), is_ready=False, type=PinKind(kind))
        self._repository.update(lambda state: (replace(state, pending_pin_change=pending), None))
        logger.info("PIN change requested type=%s", pending.type.value)
        return pending


def verify_backup_password(state: AppState, password: str) -> None:
    if password != state.user_pin:
        raise InvalidPinError("Backup password does not match the PIN")


class MarkBackupCompleted:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(self, timestamp: int) -> None:
        self._repository.update(lambda state: (replace(state, last_backup_date=int(timestamp)), None))
        logger.info("Backup completed at %s", timestamp)


class ImportBackup:
    def __init__(self, repository: StateRepository):
        self._repository = repository

    def execute(
        self, encoded: str, password: str, *, expected_revision: int | None = None
    ) -> AppState:
        """Decrypt a backup and replace the current state with it.

        Nothing is written when decryption or validation fails, or when the
        state changed since ``expected_revision``.
        """
        current = self._repository.load()
        restored = import_backup(encoded, password, fallback=current)
        self._repository.save(restored, expected_revision=expected_revision)
        logger.info(
            "Backup restored wallets=%s transactions=%s",
            len(restored.wallets),
            len(restored.transactions),
        )
        return restored
