import json

import pytest

from domain import ledger
from domain.errors import StaleStateError
from domain.state import AppState
from infrastructure.repositories import StorageStateRepository
from storage import JsonStorage, SQLiteStorage


@pytest.fixture(params=["json", "sqlite"])
def storage(request, tmp_path):
    if request.param == "json":
        backend = JsonStorage(str(tmp_path / "wallet.json"))
    else:
        backend = SQLiteStorage(str(tmp_path / "wallet.db"))
    yield backend
    backend.close()


def test_first_run_returns_defaults(storage):
    repo = StorageStateRepository(storage)
    assert repo.load() == AppState()
    assert repo.revision == 0
    assert storage.load_state() is None


def test_save_and_load(storage):
    repo = StorageStateRepository(storage)
    state = AppState()
    state = state.apply(ledger.split_deposit(state.wallets, 777))

    assert repo.save(state) == 1
    assert repo.revision == 1
    assert StorageStateRepository(storage).load() == state


def test_stale_revision_is_refused(storage):
    repo = StorageStateRepository(storage)
    revision = repo.revision
    repo.save(AppState(is_dark_mode=True))

    with pytest.raises(StaleStateError):
        repo.save(AppState(user_pin="1"), expected_revision=revision)
    assert repo.load().is_dark_mode is True
    assert repo.load().user_pin != "1"


def test_matching_revision_is_accepted(storage):
    repo = StorageStateRepository(storage)
    repo.save(AppState())
    assert repo.save(AppState(is_dark_mode=True), expected_revision=1) == 2


def test_update_applies_change_and_returns_value(storage):
    repo = StorageStateRepository(storage)
    repo.save(AppState(user_pin="1234"))

    value = repo.update(lambda state: (AppState(user_pin=state.user_pin + "5"), "done"))
    assert value == "done"
    assert repo.revision == 2
    assert repo.load().user_pin == "12345"


def test_update_writes_nothing_when_change_raises(storage):
    repo = StorageStateRepository(storage)

    def change(state):
        raise ValueError("rejected")

    with pytest.raises(ValueError):
        repo.update(change)
    assert repo.revision == 0
    assert storage.load_state() is None


def test_json_storage_ignores_corrupt_file(tmp_path):
    path = tmp_path / "wallet.json"
    path.write_text("{not json", encoding="utf-8")
    repo = StorageStateRepository(JsonStorage(str(path)))
    assert repo.load() == AppState()
    # nothing is written back on load
    assert path.read_text(encoding="utf-8") == "{not json"


def test_json_storage_writes_camel_case(tmp_path):
    path = tmp_path / "nested" / "wallet.json"
    StorageStateRepository(JsonStorage(str(path))).save(AppState())
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["userPin"] == "0986"
    assert data["wallets"][0]["isLocked"] is False
    assert not [p for p in path.parent.iterdir() if p.name.startswith(".state_")]


def test_lenient_load_skips_bad_items(tmp_path):
    path = tmp_path / "wallet.json"
    path.write_text(
        json.dumps(
            {
                "wallets": [{"id": "a", "name": "A", "percentage": 100, "balance": "50"}, 7],
                "transactions": [{"id": "x", "amount": -1, "type": "withdrawal"}],
            }
        ),
        encoding="utf-8",
    )
    state = StorageStateRepository(JsonStorage(str(path))).load()
    assert [(w.id, w.balance) for w in state.wallets] == [("a", 50)]
    assert len(state.transactions) == 0


def test_sqlite_storage_has_data(tmp_path):
    storage = SQLiteStorage(str(tmp_path / "wallet.db"))
    try:
        assert storage.has_data() is False
        storage.save_state({"wallets": []})
        storage.save_state({"wallets": [], "transactions": []})
        assert storage.has_data() is True
        assert storage.load_state() == {"wallets": [], "transactions": []}
    finally:
        storage.close()
