from __future__ import annotations

from argparse import Namespace
from pathlib import Path

import config
from backup import create_backup, export_to_json
from domain.state import AppState
from domain.wallets import total_balance
from infrastructure.repositories import StorageStateRepository
from migrate_json_to_sqlite import run_migration
from storage.json_storage import JsonStorage
from storage.sqlite_storage import SQLiteStorage


class StartupIntegrityError(RuntimeError):
    pass


def validate_startup_integrity(json_state: AppState, sqlite_state: AppState) -> None:
    if len(json_state.wallets) != len(sqlite_state.wallets):
        raise StartupIntegrityError(
            f"Emergency mode: wallets mismatch JSON={len(json_state.wallets)} "
            f"SQLite={len(sqlite_state.wallets)}"
        )
    if len(json_state.transactions) != len(sqlite_state.transactions):
        raise StartupIntegrityError(
            f"Emergency mode: transactions mismatch JSON={len(json_state.transactions)} "
            f"SQLite={len(sqlite_state.transactions)}"
        )
    json_total = total_balance(json_state.wallets)
    sqlite_total = total_balance(sqlite_state.wallets)
    if json_total != sqlite_total:
        raise StartupIntegrityError(
            f"Emergency mode: total balance mismatch JSON={json_total} SQLite={sqlite_total}"
        )
    print("[bootstrap] Integrity check passed")


def _sqlite_has_data(sqlite_path: str) -> bool:
    storage = SQLiteStorage(sqlite_path)
    try:
        return storage.has_data()
    finally:
        storage.close()


def bootstrap_repository(
    *,
    use_sqlite: bool | None = None,
    json_path: str | None = None,
    sqlite_path: str | None = None,
) -> StorageStateRepository:
    use_sqlite = config.USE_SQLITE if use_sqlite is None else use_sqlite
    json_path = json_path or config.JSON_PATH
    sqlite_path = sqlite_path or config.SQLITE_PATH

    if not use_sqlite:
        print("[bootstrap] Storage selected: JSON")
        return StorageStateRepository(JsonStorage(json_path))

    print("[bootstrap] Storage selected: SQLite")
    create_backup(json_path)

    migrated = False
    db_has_data = _sqlite_has_data(sqlite_path)
    if not db_has_data and Path(json_path).exists():
        print("[bootstrap] SQLite empty, starting one-time migration from JSON")
        code = run_migration(Namespace(json_path=json_path, sqlite_path=sqlite_path, dry_run=False))
        if code != 0:
            raise StartupIntegrityError("Emergency mode: migration to SQLite failed")
        migrated = True
    elif db_has_data:
        print("[bootstrap] SQLite already has data, migration skipped")
    else:
        print("[bootstrap] JSON source file not found, migration skipped")

    repository = StorageStateRepository(SQLiteStorage(sqlite_path))
    if migrated:
        json_state = StorageStateRepository(JsonStorage(json_path)).load()
        validate_startup_integrity(json_state, repository.load())
    export_to_json(sqlite_path, json_path)
    return repository


def shutdown_repository(repository: StorageStateRepository, json_path: str | None = None) -> None:
    """Close storage and refresh the JSON mirror when SQLite is in use."""
    storage = repository.storage
    repository.close()
    if isinstance(storage, SQLiteStorage):
        export_to_json(storage.db_path, json_path or config.JSON_PATH)
