import functools
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any

from domain.errors import OperationInProgressError

logger = logging.getLogger(__name__)

EXPORT = "export"
IMPORT = "import"


class BackupService:
    """Runs backup encryption and decryption off the caller's thread.

    Key derivation is deliberately slow, so each call returns a Future. Only
    one operation of each kind may be in flight; a second submission is
    refused until the first finishes. There is no cancellation or timeout.
    """

    def __init__(self, executor: Executor | None = None) -> None:
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="backup"
        )
        self._guard = threading.Lock()
        self._in_flight: dict[str, Future] = {}

    def is_busy(self, kind: str) -> bool:
        with self._guard:
            future = self._in_flight.get(kind)
            return future is not None and not future.done()

    def submit(self, kind: str, task: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        with self._guard:
            current = self._in_flight.get(kind)
            if current is not None and not current.done():
                raise OperationInProgressError(f"Backup {kind} is already running")
            future = self._executor.submit(functools.partial(task, *args, **kwargs))
            self._in_flight[kind] = future
        future.add_done_callback(functools.partial(self._release, kind))
        return future

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _release(self, kind: str, future: Future) -> None:
        with self._guard:
            if self._in_flight.get(kind) is future:
                del self._in_flight[kind]
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning("Backup %s failed: %s", kind, error)
