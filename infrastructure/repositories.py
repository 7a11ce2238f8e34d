import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TypeVar

from domain.errors import StaleStateError
from domain.state import AppState, state_from_dict
from storage.base import Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateRepository(ABC):
    @abstractmethod
    def load(self) -> AppState:
        """Load the whole application state."""
        pass

    @abstractmethod
    def save(self, state: AppState, *, expected_revision: int | None = None) -> int:
        """Replace the whole stored state. Returns the new revision.

        When ``expected_revision`` is given and another save happened since,
        StaleStateError is raised and nothing is written.
        """
        pass

    @abstractmethod
    def update(self, change: Callable[[AppState], tuple[AppState, T]]) -> T:
        """Load, apply ``change`` and save as one step.

        ``change`` returns the new state and a value handed back to the
        caller. Saves made by other threads cannot land in between.
        """
        pass

    @property
    @abstractmethod
    def revision(self) -> int:
        """Number of saves performed through this repository."""
        pass


class StorageStateRepository(StateRepository):
    def __init__(self, storage: Storage):
        self._storage = storage
        self._lock = threading.RLock()
        self._revision = 0

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def revision(self) -> int:
        with self._lock:
            return self._revision

    def load(self) -> AppState:
        with self._lock:
            data = self._storage.load_state()
        if data is None:
            logger.info("No stored state found, starting with default wallets")
            return AppState()

        if not isinstance(data.get("wallets"), list):
            logger.info("Stored state has no wallets, using default wallets")
        if not isinstance(data.get("transactions"), list):
            logger.info("Stored state has no transactions, starting with an empty log")
        state, issues = state_from_dict(data)
        for issue in issues:
            logger.warning("Skipped invalid stored item: %s", issue)
        return state

    def save(self, state: AppState, *, expected_revision: int | None = None) -> int:
        with self._lock:
            if expected_revision is not None and expected_revision != self._revision:
                raise StaleStateError(
                    "State changed while the operation was running; "
                    f"expected revision {expected_revision}, current {self._revision}"
                )
            self._storage.save_state(state.to_dict())
            self._revision += 1
            return self._revision

    def update(self, change: Callable[[AppState], tuple[AppState, T]]) -> T:
        with self._lock:
            state, value = change(self.load())
            self.save(state)
            return value

    def close(self) -> None:
        self._storage.close()
