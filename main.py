import argparse
import getpass
import logging
import sys
from datetime import date as dt_date
from pathlib import Path

# Ensure project package root is on sys.path so imports work regardless of CWD
_ROOT = Path(__file__).resolve().parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import config  # noqa: E402
from app.controllers import WalletController  # noqa: E402
from app.exporters import export_report, export_transactions  # noqa: E402
from bootstrap import bootstrap_repository, shutdown_repository  # noqa: E402
from domain.errors import DomainError  # noqa: E402
from domain.reports import transactions_table, wallets_table  # noqa: E402
from domain.transactions import HistoryFilter  # noqa: E402
from domain.validation import parse_month  # noqa: E402
from utils.charting import wallet_distribution  # noqa: E402

logger = logging.getLogger(__name__)


def _add_note(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--note", default=None, help="Optional note stored with the transaction")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-wallet",
        description="Split deposits across wallets, track transfers and keep encrypted backups.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--json",
        dest="use_json",
        action="store_true",
        help="Use the JSON file storage instead of SQLite",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show wallets, balances and recent transactions")

    split = sub.add_parser("split", help="Split a deposit across unlocked wallets")
    split.add_argument("amount")
    _add_note(split)

    deposit = sub.add_parser("deposit", help="Deposit into one wallet")
    deposit.add_argument("wallet")
    deposit.add_argument("amount")
    _add_note(deposit)

    withdraw = sub.add_parser("withdraw", help="Withdraw from one wallet")
    withdraw.add_argument("wallet")
    withdraw.add_argument("amount")
    _add_note(withdraw)

    transfer = sub.add_parser("transfer", help="Move money between two wallets")
    transfer.add_argument("source")
    transfer.add_argument("target")
    transfer.add_argument("amount")
    _add_note(transfer)

    lock = sub.add_parser("lock", help="Toggle the lock flag of a wallet")
    lock.add_argument("wallet")

    percentages = sub.add_parser("percentages", help="Set split percentages, e.g. personal=40")
    percentages.add_argument("assignments", nargs="+", metavar="WALLET=PERCENT")

    history = sub.add_parser("history", help="List transactions")
    history.add_argument("--search", default="", help="Match note or wallet name")
    history.add_argument(
        "--kind",
        default=HistoryFilter.ALL.value,
        choices=[item.value for item in HistoryFilter],
    )
    history.add_argument("--export", default=None, help="Write the listing to a .csv or .xlsx file")

    report = sub.add_parser("report", help="Monthly per-wallet report")
    report.add_argument("--month", default=None, help="YYYY-MM (default: current month)")
    report.add_argument("--pdf", default=None, help="Also write the report to this PDF file")

    export_backup = sub.add_parser("export-backup", help="Write an encrypted backup file")
    export_backup.add_argument("--dir", default=config.BACKUP_DIR)

    import_backup = sub.add_parser("import-backup", help="Restore from an encrypted backup file")
    import_backup.add_argument("path")

    sub.add_parser("theme", help="Toggle the dark mode flag")
    return parser


def _parse_assignments(assignments: list[str]) -> dict[str, str]:
    result = {}
    for item in assignments:
        wallet_id, sep, value = item.partition("=")
        if not sep or not wallet_id.strip():
            raise ValueError(f"Expected WALLET=PERCENT, got {item!r}")
        result[wallet_id.strip()] = value
    return result


def _print_result(result) -> None:
    print(f"[ok] {result.transaction.type.value} {result.transaction.amount} recorded")
    for wallet_id, share in result.shares.items():
        print(f"  {wallet_id}: {share:+d}")


def cmd_status(controller: WalletController, args: argparse.Namespace) -> None:
    wallets = controller.wallets()
    print(wallets_table(wallets))
    distribution = wallet_distribution(wallets)
    total = sum(value for _, value in distribution)
    for name, value in distribution:
        print(f"  {name}: {value * 100 // total}%")
    recent = controller.recent_transactions()
    if recent:
        print("Recent transactions:")
        print(transactions_table(recent))
    summary = controller.history_summary()
    print(f"Savings rate: {summary.savings_rate()}%")


def cmd_history(controller: WalletController, args: argparse.Namespace) -> None:
    transactions = controller.history(search=args.search, kind=args.kind)
    print(transactions_table(transactions))
    if args.export:
        count = export_transactions(transactions, args.export)
        print(f"[ok] {count} transaction(s) exported to {args.export}")


def cmd_report(controller: WalletController, args: argparse.Namespace) -> None:
    if args.month:
        year, month = parse_month(args.month)
    else:
        today = dt_date.today()
        year, month = today.year, today.month
    report = controller.monthly_report(year, month)
    print(f"Report {report.period_label}")
    print(report.as_table())
    low = report.low_balance_wallets()
    if low:
        print("Low balance: " + ", ".join(wallet.name for wallet in low))
    if args.pdf:
        export_report(report, args.pdf, "pdf")
        print(f"[ok] Report written to {args.pdf}")


def cmd_export_backup(controller: WalletController, args: argparse.Namespace) -> None:
    password = getpass.getpass("PIN: ")
    path = controller.export_backup_file(args.dir, password).result()
    print(f"[ok] Encrypted backup written: {path}")


def cmd_import_backup(controller: WalletController, args: argparse.Namespace) -> None:
    password = getpass.getpass("Backup password: ")
    state = controller.import_backup_file(args.path, password).result()
    print(
        f"[ok] Backup restored: {len(state.wallets)} wallet(s), "
        f"{len(state.transactions)} transaction(s)"
    )


def run_command(controller: WalletController, args: argparse.Namespace) -> None:
    command = args.command
    if command == "status":
        cmd_status(controller, args)
    elif command == "split":
        _print_result(controller.split_deposit(args.amount, note=args.note))
    elif command == "deposit":
        _print_result(controller.category_deposit(args.wallet, args.amount, note=args.note))
    elif command == "withdraw":
        _print_result(controller.category_withdraw(args.wallet, args.amount, note=args.note))
    elif command == "transfer":
        _print_result(controller.transfer(args.source, args.target, args.amount, note=args.note))
    elif command == "lock":
        wallets = controller.toggle_lock(args.wallet)
        print(wallets_table(wallets))
    elif command == "percentages":
        wallets = controller.update_percentages(_parse_assignments(args.assignments))
        print(wallets_table(wallets))
    elif command == "history":
        cmd_history(controller, args)
    elif command == "report":
        cmd_report(controller, args)
    elif command == "export-backup":
        cmd_export_backup(controller, args)
    elif command == "import-backup":
        cmd_import_backup(controller, args)
    elif command == "theme":
        dark = controller.toggle_theme()
        print(f"[ok] Dark mode {'on' if dark else 'off'}")
    else:
        raise ValueError(f"Unknown command: {command}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    repository = bootstrap_repository(use_sqlite=False if args.use_json else None)
    controller = WalletController(repository)
    try:
        run_command(controller, args)
        return 0
    except (DomainError, ValueError, FileNotFoundError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    finally:
        controller.backup_service.shutdown()
        shutdown_repository(repository)


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        sys.exit(130)
