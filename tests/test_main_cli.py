import json

import pytest

import config
import main


@pytest.fixture
def paths(tmp_path, monkeypatch):
    json_path = tmp_path / "wallet.json"
    monkeypatch.setattr(config, "JSON_PATH", str(json_path))
    monkeypatch.setattr(config, "SQLITE_PATH", str(tmp_path / "wallet.db"))
    monkeypatch.setattr(config, "BACKUP_DIR", str(tmp_path / "backups"))
    return tmp_path


def _balances(paths):
    data = json.loads((paths / "wallet.json").read_text(encoding="utf-8"))
    return {w["id"]: w["balance"] for w in data["wallets"]}


def test_split_and_status(paths, capsys):
    assert main.main(["split", "1000", "--note", "salary"]) == 0
    assert _balances(paths) == {"obligations": 320, "investment": 320, "personal": 310, "charity": 50}

    assert main.main(["status"]) == 0
    out = capsys.readouterr().out
    assert "TOTAL" in out
    assert "salary" in out


def test_domain_error_exits_with_status_1(paths, capsys):
    assert main.main(["withdraw", "personal", "5"]) == 1
    assert "Insufficient funds" in capsys.readouterr().err


def test_transfer_lock_and_percentages(paths):
    assert main.main(["deposit", "personal", "100"]) == 0
    assert main.main(["lock", "charity"]) == 0
    assert main.main(["transfer", "personal", "charity", "10"]) == 1
    assert main.main(["transfer", "personal", "investment", "10"]) == 0
    assert main.main(["percentages", "obligations=50", "investment=14"]) == 0
    assert main.main(["percentages", "obligations"]) == 1
    balances = _balances(paths)
    assert balances["personal"] == 90
    assert balances["investment"] == 10


def test_history_export_and_report(paths, capsys):
    main.main(["split", "200"])
    main.main(["withdraw", "personal", "20", "--note", "lunch"])
    export_path = paths / "history.csv"

    assert main.main(["history", "--kind", "withdrawal", "--export", str(export_path)]) == 0
    assert "lunch" in export_path.read_text(encoding="utf-8")

    pdf_path = paths / "report.pdf"
    assert main.main(["report", "--pdf", str(pdf_path)]) == 0
    assert pdf_path.read_bytes().startswith(b"%PDF")
    assert main.main(["report", "--month", "2024-13"]) == 1


def test_backup_round_trip(paths, monkeypatch):
    monkeypatch.setattr(main.getpass, "getpass", lambda prompt="": "0986")
    main.main(["split", "300"])
    assert main.main(["export-backup"]) == 0
    backups = list((paths / "backups").glob("SmartWallet_Backup_*.enc"))
    assert len(backups) == 1

    main.main(["split", "300"])
    assert main.main(["import-backup", str(backups[0])]) == 0
    assert sum(_balances(paths).values()) == 300


def test_theme(paths, capsys):
    assert main.main(["--json", "theme"]) == 0
    assert "Dark mode on" in capsys.readouterr().out


def test_history_search_help(paths, capsys):
    with pytest.raises(SystemExit) as excinfo:
        main.main(["history", "--help"])
    assert excinfo.value.code == 0
    assert "Match note or wallet name" in capsys.readouterr().out


def test_history_search_matches_wallet_name(paths, capsys):
    main.main(["deposit", "charity", "40"])
    main.main(["deposit", "personal", "15", "--note", "gift"])
    capsys.readouterr()

    assert main.main(["--json", "history", "--search", "Charity"]) == 0
    out = capsys.readouterr().out
    assert "Charity" in out
    assert "gift" not in out
