import json
import logging
import os
from dataclasses import replace
from datetime import date as dt_date

from domain.errors import MalformedBackupError
from domain.state import AppState, state_from_dict
from domain.validation import now_ms
from utils.crypto_utils import decrypt_data, encrypt_data

logger = logging.getLogger(__name__)

BACKUP_PREFIX = "SmartWallet_Backup_"
BACKUP_SUFFIX = ".enc"
REQUIRED_FIELDS = ("wallets", "transactions")


def backup_filename(day: dt_date | None = None) -> str:
    day = day or dt_date.today()
    return f"{BACKUP_PREFIX}{day.isoformat()}{BACKUP_SUFFIX}"


def serialize_state(state: AppState) -> str:
    return json.dumps(state.to_dict(), ensure_ascii=False, separators=(",", ":"))


def snapshot_for_backup(state: AppState, timestamp: int | None = None) -> AppState:
    return replace(state, last_backup_date=now_ms() if timestamp is None else int(timestamp))


def export_backup(state: AppState, password: str) -> str:
    """Encrypt the full state as a Base64 text artifact."""
    return encrypt_data(serialize_state(state), password)


def parse_backup_payload(plaintext: str, fallback: AppState | None = None) -> AppState:
    try:
        data = json.loads(plaintext)
    except json.JSONDecodeError as exc:
        raise MalformedBackupError("Backup payload is not valid JSON") from exc
    if not isinstance(data, dict):
        raise MalformedBackupError("Invalid backup structure: root must be object")
    missing = [key for key in REQUIRED_FIELDS if not isinstance(data.get(key), list)]
    if missing:
        raise MalformedBackupError(f"Invalid backup structure: missing {', '.join(missing)}")

    state, issues = state_from_dict(data, fallback=fallback)
    if issues:
        logger.warning("Backup payload rejected: %s issue(s), first: %s", len(issues), issues[0])
        raise MalformedBackupError(f"Invalid backup content: {issues[0]}")
    return state


def import_backup(encoded: str, password: str, fallback: AppState | None = None) -> AppState:
    """Decrypt and validate a backup artifact.

    Raises DecryptionFailedError for a wrong password or damaged artifact and
    MalformedBackupError when the decrypted payload is not a state snapshot.
    """
    return parse_backup_payload(decrypt_data(encoded, password), fallback=fallback)


def write_backup_file(
    directory: str,
    state: AppState,
    password: str,
    day: dt_date | None = None,
) -> str:
    os.makedirs(directory, exist_ok=True)
    filepath = os.path.join(directory, backup_filename(day))
    encoded = export_backup(state, password)
    with open(filepath, "w", encoding="ascii") as fp:
        fp.write(encoded)
    logger.info("Encrypted backup written: %s", filepath)
    return filepath


def read_backup_text(filepath: str) -> str:
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"Backup file not found: {filepath}")
    with open(filepath, encoding="ascii", errors="replace") as fp:
        return fp.read()


def read_backup_file(filepath: str, password: str, fallback: AppState | None = None) -> AppState:
    state = import_backup(read_backup_text(filepath), password, fallback=fallback)
    logger.info(
        "Encrypted backup read: %s wallets=%s transactions=%s",
        filepath,
        len(state.wallets),
        len(state.transactions),
    )
    return state
