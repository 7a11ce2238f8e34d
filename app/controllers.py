from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import Future

from app.services import EXPORT, IMPORT, BackupService
from app.use_cases import (
    CalculateTotalBalance,
    CategoryDeposit,
    CategoryWithdraw,
    GenerateMonthlyReport,
    GetHistorySummary,
    GetTransactions,
    GetWallets,
    ImportBackup,
    MarkBackupCompleted,
    RequestPinChange,
    SplitDeposit,
    ToggleLock,
    ToggleTheme,
    TransferFunds,
    UpdatePercentages,
    UpdatePin,
    verify_backup_password,
)
from domain.ledger import LedgerResult
from domain.reports import HistorySummary, MonthlyReport
from domain.state import AppState, PendingPinChange, PinKind
from domain.transactions import HistoryFilter, Transaction
from domain.validation import parse_amount
from domain.wallets import Wallet
from infrastructure.repositories import StateRepository
from utils.backup_utils import (
    export_backup,
    read_backup_text,
    snapshot_for_backup,
    write_backup_file,
)


class WalletController:
    """Boundary between the presentation layer and the wallet core.

    Raw user input for amounts is normalized here before it reaches a use
    case; use cases and the ledger only see integers.
    """

    def __init__(
        self, repository: StateRepository, backup_service: BackupService | None = None
    ) -> None:
        self._repository = repository
        self._backup = backup_service or BackupService()

    @property
    def backup_service(self) -> BackupService:
        return self._backup

    def state(self) -> AppState:
        return self._repository.load()

    def wallets(self) -> tuple[Wallet, ...]:
        return GetWallets(self._repository).execute()

    def total_balance(self) -> int:
        return CalculateTotalBalance(self._repository).execute()

    def split_deposit(self, amount, note: str | None = None) -> LedgerResult:
        return SplitDeposit(self._repository).execute(parse_amount(amount), note=note)

    def category_deposit(self, wallet_id: str, amount, note: str | None = None) -> LedgerResult:
        return CategoryDeposit(self._repository).execute(wallet_id, parse_amount(amount), note=note)

    def category_withdraw(self, wallet_id: str, amount, note: str | None = None) -> LedgerResult:
        return CategoryWithdraw(self._repository).execute(
            wallet_id, parse_amount(amount), note=note
        )

    def transfer(
        self, from_wallet_id: str, to_wallet_id: str, amount, note: str | None = None
    ) -> LedgerResult:
        return TransferFunds(self._repository).execute(
            from_wallet_id, to_wallet_id, parse_amount(amount), note=note
        )

    def toggle_lock(self, wallet_id: str) -> tuple[Wallet, ...]:
        return ToggleLock(self._repository).execute(wallet_id)

    def update_percentages(self, percentages: Mapping[str, object]) -> tuple[Wallet, ...]:
        normalized = {wallet_id: parse_amount(value) for wallet_id, value in percentages.items()}
        return UpdatePercentages(self._repository).execute(normalized)

    def toggle_theme(self) -> bool:
        return ToggleTheme(self._repository).execute()

    def update_pin(self, new_pin: str) -> None:
        UpdatePin(self._repository).execute(new_pin)

    def request_pin_change(
        self, new_pin: str, kind: PinKind | str = PinKind.MAIN
    ) -> PendingPinChange:
        return RequestPinChange(self._repository).execute(new_pin, kind)

    def recent_transactions(self, limit: int = 5) -> list[Transaction]:
        return self._repository.load().transactions.recent(limit)

    def history(
        self, search: str = "", kind: HistoryFilter | str = HistoryFilter.ALL
    ) -> list[Transaction]:
        return GetTransactions(self._repository).execute(search=search, kind=kind)

    def history_summary(self) -> HistorySummary:
        return GetHistorySummary(self._repository).execute()

    def monthly_report(self, year: int, month: int, tz=None) -> MonthlyReport:
        return GenerateMonthlyReport(self._repository).execute(year, month, tz=tz)

    def export_backup(self, password: str) -> Future:
        """Encrypt the current state. The Future resolves to the Base64 artifact."""
        snapshot = self._backup_snapshot(password)

        def task() -> str:
            encoded = export_backup(snapshot, password)
            MarkBackupCompleted(self._repository).execute(snapshot.last_backup_date)
            return encoded

        return self._backup.submit(EXPORT, task)

    def export_backup_file(self, directory: str, password: str) -> Future:
        """Write a date-stamped encrypted backup. The Future resolves to its path."""
        snapshot = self._backup_snapshot(password)

        def task() -> str:
            filepath = write_backup_file(directory, snapshot, password)
            MarkBackupCompleted(self._repository).execute(snapshot.last_backup_date)
            return filepath

        return self._backup.submit(EXPORT, task)

    def import_backup(self, encoded: str, password: str) -> Future:
        """Restore from an artifact. The Future resolves to the restored state.

        The restore is refused with StaleStateError if anything else was
        committed while decryption was running.
        """
        revision = self._repository.revision
        return self._backup.submit(
            IMPORT,
            ImportBackup(self._repository).execute,
            encoded,
            password,
            expected_revision=revision,
        )

    def import_backup_file(self, filepath: str, password: str) -> Future:
        revision = self._repository.revision

        def task() -> AppState:
            encoded = read_backup_text(filepath)
            return ImportBackup(self._repository).execute(
                encoded, password, expected_revision=revision
            )

        return self._backup.submit(IMPORT, task)

    def _backup_snapshot(self, password: str) -> AppState:
        state = self._repository.load()
        verify_backup_password(state, password)
        return snapshot_for_backup(state)
