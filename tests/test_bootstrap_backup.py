from __future__ import annotations

import json
from argparse import Namespace
from pathlib import Path

import pytest

from backup import create_backup, export_to_json
from bootstrap import (
    StartupIntegrityError,
    bootstrap_repository,
    shutdown_repository,
    validate_startup_integrity,
)
from domain import ledger
from domain.state import AppState
from migrate_json_to_sqlite import main as migrate_main
from migrate_json_to_sqlite import run_dry_run, run_migration
from storage.json_storage import JsonStorage
from storage.sqlite_storage import SQLiteStorage


def _funded_state() -> AppState:
    state = AppState()
    state = state.apply(ledger.split_deposit(state.wallets, 1000))
    return state.apply(ledger.withdraw(state.wallets, "personal", 10))


def _write_json(path: Path, state: AppState) -> None:
    JsonStorage(str(path)).save_state(state.to_dict())


def test_create_backup_creates_timestamped_copy(tmp_path) -> None:
    src = tmp_path / "wallet.json"
    src.write_text('{"wallets": []}', encoding="utf-8")

    backup_path = create_backup(str(src))
    assert backup_path is not None
    backup = Path(backup_path)
    assert backup.exists()
    assert backup.parent.name == "backups"
    assert backup.name.startswith("wallet_backup_")
    assert backup.suffix == ".json"
    assert backup.read_text(encoding="utf-8") == '{"wallets": []}'


def test_create_backup_without_source(tmp_path) -> None:
    assert create_backup(str(tmp_path / "missing.json")) is None


def test_export_to_json_from_sqlite(tmp_path) -> None:
    sqlite_path = tmp_path / "wallet.db"
    json_path = tmp_path / "wallet.json"
    storage = SQLiteStorage(str(sqlite_path))
    storage.save_state(_funded_state().to_dict())
    storage.close()

    assert export_to_json(str(sqlite_path), str(json_path)) is True
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert len(data["transactions"]) == 2


def test_export_to_json_skips_empty_sqlite(tmp_path) -> None:
    json_path = tmp_path / "wallet.json"
    assert export_to_json(str(tmp_path / "wallet.db"), str(json_path)) is False
    assert not json_path.exists()


def test_migration_dry_run_writes_nothing(tmp_path, capsys) -> None:
    json_path = tmp_path / "wallet.json"
    sqlite_path = tmp_path / "wallet.db"
    _write_json(json_path, _funded_state())

    code = run_dry_run(Namespace(json_path=str(json_path), sqlite_path=str(sqlite_path)))
    assert code == 0
    assert "[dry-run]" in capsys.readouterr().out
    storage = SQLiteStorage(str(sqlite_path))
    try:
        assert storage.has_data() is False
    finally:
        storage.close()


def test_migration_copies_state_and_is_idempotent(tmp_path) -> None:
    json_path = tmp_path / "wallet.json"
    sqlite_path = tmp_path / "wallet.db"
    state = _funded_state()
    _write_json(json_path, state)
    args = Namespace(json_path=str(json_path), sqlite_path=str(sqlite_path), dry_run=False)

    assert run_migration(args) == 0
    assert run_migration(args) == 0

    storage = SQLiteStorage(str(sqlite_path))
    try:
        assert storage.load_state() == state.to_dict()
    finally:
        storage.close()


def test_migration_refuses_different_target(tmp_path) -> None:
    json_path = tmp_path / "wallet.json"
    sqlite_path = tmp_path / "wallet.db"
    _write_json(json_path, _funded_state())
    storage = SQLiteStorage(str(sqlite_path))
    storage.save_state(AppState().to_dict())
    storage.close()

    assert migrate_main(["--json-path", str(json_path), "--sqlite-path", str(sqlite_path)]) == 1


def test_migration_rejects_invalid_source(tmp_path) -> None:
    json_path = tmp_path / "wallet.json"
    json_path.write_text(json.dumps({"wallets": [{"name": "no id"}]}), encoding="utf-8")
    args = Namespace(json_path=str(json_path), sqlite_path=str(tmp_path / "wallet.db"))
    assert run_migration(args) == 1


def test_validate_startup_integrity() -> None:
    state = _funded_state()
    validate_startup_integrity(state, state)
    with pytest.raises(StartupIntegrityError, match="transactions mismatch"):
        validate_startup_integrity(state, AppState(wallets=state.wallets))
    with pytest.raises(StartupIntegrityError, match="total balance mismatch"):
        validate_startup_integrity(state, AppState(transactions=state.transactions))


def test_bootstrap_json_storage(tmp_path) -> None:
    repo = bootstrap_repository(use_sqlite=False, json_path=str(tmp_path / "wallet.json"))
    assert isinstance(repo.storage, JsonStorage)
    assert repo.load() == AppState()


def test_bootstrap_sqlite_migrates_existing_json(tmp_path) -> None:
    json_path = tmp_path / "wallet.json"
    sqlite_path = tmp_path / "wallet.db"
    state = _funded_state()
    _write_json(json_path, state)

    repo = bootstrap_repository(use_sqlite=True, json_path=str(json_path), sqlite_path=str(sqlite_path))
    try:
        assert isinstance(repo.storage, SQLiteStorage)
        assert repo.load() == state
        assert (tmp_path / "backups").is_dir()
    finally:
        repo.close()


def test_shutdown_refreshes_json_mirror(tmp_path) -> None:
    json_path = tmp_path / "wallet.json"
    sqlite_path = tmp_path / "wallet.db"
    repo = bootstrap_repository(use_sqlite=True, json_path=str(json_path), sqlite_path=str(sqlite_path))
    state = repo.load()
    repo.save(state.apply(ledger.split_deposit(state.wallets, 50)))

    shutdown_repository(repo, json_path=str(json_path))
    mirrored = JsonStorage(str(json_path)).load_state()
    assert sum(w["balance"] for w in mirrored["wallets"]) == 50
