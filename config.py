from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent

USE_SQLITE = True
SQLITE_PATH = str(PROJECT_ROOT / "wallet.db")
JSON_PATH = str(PROJECT_ROOT / "wallet.json")
BACKUP_DIR = str(PROJECT_ROOT / "backups")

STATE_KEY = "smart_wallet_state"
