from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

from storage.json_storage import JsonStorage
from storage.sqlite_storage import SQLiteStorage


def create_backup(json_path: str, backup_dir: str | None = None) -> str | None:
    """Copy the JSON state file aside with a timestamp before SQLite takes over."""
    source = Path(json_path)
    if not source.exists():
        return None
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    target_dir = Path(backup_dir) if backup_dir else source.parent / "backups"
    target_dir.mkdir(parents=True, exist_ok=True)
    backup_path = target_dir / f"{source.stem}_backup_{stamp}{source.suffix}"
    shutil.copy2(source, backup_path)
    print(f"[backup] JSON backup created: {backup_path}")
    return str(backup_path)


def export_to_json(sqlite_path: str, json_path: str) -> bool:
    sqlite_storage = SQLiteStorage(sqlite_path)
    try:
        data = sqlite_storage.load_state()
    finally:
        sqlite_storage.close()
    if data is None:
        print("[backup] SQLite has no state, JSON mirror skipped")
        return False
    JsonStorage(json_path).save_state(data)
    print(f"[backup] SQLite exported to JSON: {json_path}")
    return True
