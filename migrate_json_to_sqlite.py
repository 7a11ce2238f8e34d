from __future__ import annotations

import argparse
import sqlite3
import sys

from config import JSON_PATH, SQLITE_PATH
from domain.state import AppState, state_from_dict
from domain.wallets import total_balance
from storage.json_storage import JsonStorage
from storage.sqlite_storage import SQLiteStorage


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Migrate wallet state from JSON storage to SQLite storage."
    )
    parser.add_argument(
        "--json-path",
        default=JSON_PATH,
        help=f"Path to source JSON file (default: {JSON_PATH})",
    )
    parser.add_argument(
        "--sqlite-path",
        default=SQLITE_PATH,
        help=f"Path to target SQLite database (default: {SQLITE_PATH})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate source and target connection without writing data",
    )
    return parser.parse_args(argv)


def load_source_state(json_path: str) -> AppState:
    data = JsonStorage(json_path).load_state()
    if data is None:
        raise ValueError(f"JSON source is missing or unreadable: {json_path}")
    if not isinstance(data.get("wallets"), list):
        raise ValueError("Source JSON has no wallets")
    state, issues = state_from_dict(data)
    if issues:
        raise ValueError(f"Source JSON has {len(issues)} invalid item(s), first: {issues[0]}")
    return state


def validate_migration(source: AppState, target_data: dict | None) -> tuple[bool, list[str]]:
    if target_data is None:
        return False, ["target has no state"]
    target, issues = state_from_dict(target_data)
    errors = list(issues)
    if len(source.wallets) != len(target.wallets):
        errors.append(
            f"wallets mismatch source={len(source.wallets)} target={len(target.wallets)}"
        )
    if len(source.transactions) != len(target.transactions):
        errors.append(
            f"transactions mismatch source={len(source.transactions)} "
            f"target={len(target.transactions)}"
        )
    source_total = total_balance(source.wallets)
    target_total = total_balance(target.wallets)
    if source_total != target_total:
        errors.append(f"total balance mismatch source={source_total} target={target_total}")
    return len(errors) == 0, errors


def run_dry_run(args: argparse.Namespace) -> int:
    print("== DRY RUN: JSON -> SQLite migration check ==")
    try:
        sqlite_storage = SQLiteStorage(args.sqlite_path)
    except sqlite3.Error as exc:
        print(f"[error] Dry-run failed: {exc}")
        return 1
    try:
        print(f"[ok] SQLite connection is available: {args.sqlite_path}")
        state = load_source_state(args.json_path)
        print(f"[ok] JSON source loaded: {args.json_path}")
        print(f"  wallets: {len(state.wallets)}")
        print(f"  transactions: {len(state.transactions)}")
        print(f"  total balance: {total_balance(state.wallets)}")
        print("[ok] Integrity checks passed")
        print("[dry-run] Nothing written")
        return 0
    except ValueError as exc:
        print(f"[error] Dry-run failed: {exc}")
        return 1
    finally:
        sqlite_storage.close()


def run_migration(args: argparse.Namespace) -> int:
    print("== MIGRATION: JSON -> SQLite ==")
    try:
        state = load_source_state(args.json_path)
    except ValueError as exc:
        print(f"[error] Migration failed: {exc}")
        return 1
    print("[ok] Source data integrity passed")

    sqlite_storage = SQLiteStorage(args.sqlite_path)
    try:
        if sqlite_storage.has_data():
            equivalent, errors = validate_migration(state, sqlite_storage.load_state())
            if equivalent:
                print("[ok] Target SQLite already contains equivalent data, migration skipped")
                return 0
            details = "; ".join(errors[:3]) if errors else "dataset mismatch"
            print(f"[error] Target SQLite is not empty and differs from source JSON: {details}")
            return 1

        sqlite_storage.save_state(state.to_dict())
        valid, errors = validate_migration(state, sqlite_storage.load_state())
        if not valid:
            print("[error] Validation failed")
            for line in errors:
                print(f"  - {line}")
            return 1
        print("[ok] Migration finished successfully")
        return 0
    except sqlite3.Error as exc:
        print(f"[error] Migration failed: {exc}")
        return 1
    finally:
        sqlite_storage.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.dry_run:
        return run_dry_run(args)
    return run_migration(args)


if __name__ == "__main__":
    sys.exit(main())
