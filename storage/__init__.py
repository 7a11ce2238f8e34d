"""Whole-state persistence backends. Each one stores the wallet state as one JSON document."""

from .base import Storage
from .json_storage import JsonStorage
from .sqlite_storage import SCHEMA, SQLiteStorage

__all__ = ["Storage", "JsonStorage", "SQLiteStorage", "SCHEMA"]
