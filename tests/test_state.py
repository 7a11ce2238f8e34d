from domain import ledger
from domain.state import (
    DEFAULT_RECOVERY_PIN,
    DEFAULT_USER_PIN,
    AppState,
    PendingPinChange,
    PinKind,
    state_from_dict,
)
from domain.transactions import TransactionType
from domain.wallets import DEFAULT_WALLETS


def test_default_state():
    state = AppState()
    assert state.wallets == DEFAULT_WALLETS
    assert [w.percentage for w in state.wallets] == [32, 32, 31, 5]
    assert len(state.transactions) == 0
    assert state.user_pin == DEFAULT_USER_PIN
    assert state.recovery_pin == DEFAULT_RECOVERY_PIN
    assert state.is_dark_mode is False
    assert state.last_backup_date is None


def test_apply_commits_balances_and_transaction_together():
    state = AppState()
    result = ledger.split_deposit(state.wallets, 1000)
    updated = state.apply(result)
    assert updated.wallets == result.wallets
    assert updated.transactions.recent(1) == [result.transaction]
    assert len(state.transactions) == 0


def test_to_dict_uses_camel_case_and_omits_optional_keys():
    data = AppState().to_dict()
    assert set(data) == {"wallets", "transactions", "userPin", "recoveryPin", "isDarkMode"}
    assert data["wallets"][0] == {
        "id": "obligations",
        "name": "Obligations",
        "percentage": 32,
        "balance": 0,
        "color": "bg-indigo-500",
        "icon": "ShieldCheck",
        "isLocked": False,
    }


def test_round_trip_through_dict():
    state = AppState()
    state = state.apply(ledger.split_deposit(state.wallets, 500, note="pay"))
    state = state.apply(ledger.transfer(state.wallets, "obligations", "personal", 10))
    state = AppState(
        wallets=state.wallets,
        transactions=state.transactions,
        user_pin="1234",
        is_dark_mode=True,
        last_backup_date=1700000000000,
        pending_pin_change=PendingPinChange("4321", 1700000000000, type=PinKind.RECOVERY),
    )

    restored, issues = state_from_dict(state.to_dict())
    assert issues == []
    assert restored == state


def test_missing_fields_fall_back_to_defaults():
    state, issues = state_from_dict({})
    assert issues == []
    assert state == AppState()


def test_missing_fields_use_given_fallback():
    current = AppState(user_pin="5555", is_dark_mode=True)
    state, issues = state_from_dict({"wallets": [], "transactions": []}, fallback=current)
    assert issues == []
    assert state.wallets == ()
    assert state.user_pin == "5555"
    assert state.is_dark_mode is True


def test_invalid_items_are_skipped_and_reported():
    data = {
        "wallets": [
            {"id": "a", "name": "A", "percentage": "60", "balance": 10.6},
            {"id": "a", "name": "Duplicate", "percentage": 40},
            {"name": "no id"},
            "junk",
        ],
        "transactions": [
            {"id": "t1", "amount": 5, "type": "withdrawal", "categoryId": "a", "categoryName": "A", "date": 1},
            {"id": "t2", "amount": 0, "type": "withdrawal", "categoryId": "a", "categoryName": "A", "date": 1},
            {"id": "t3", "amount": 5, "type": "gift", "categoryId": "a", "categoryName": "A", "date": 1},
        ],
    }
    state, issues = state_from_dict(data)
    assert len(state.wallets) == 1
    assert state.wallets[0].percentage == 60
    assert state.wallets[0].balance == 11
    assert [t.id for t in state.transactions] == ["t1"]
    assert len(issues) == 5
    assert any("duplicate wallet id a" in issue for issue in issues)


def test_transaction_fields_survive_round_trip():
    state = AppState().apply(ledger.direct_deposit(DEFAULT_WALLETS, "charity", 7, note="zakat"))
    restored, _ = state_from_dict(state.to_dict())
    transaction = restored.transactions.recent(1)[0]
    assert transaction.type is TransactionType.DIRECT_DEPOSIT
    assert transaction.note == "zakat"
    assert transaction.target_category_id is None
