from __future__ import annotations

from typing import Protocol


class Storage(Protocol):
    """Low-level whole-state storage contract for persistence adapters."""

    def load_state(self) -> dict | None:
        ...

    def save_state(self, data: dict) -> None:
        ...

    def close(self) -> None:
        ...
