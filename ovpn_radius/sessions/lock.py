"""Cross-process store lock.

Pairs an in-process ``threading.RLock`` with an exclusive ``flock`` on a
lock file so that writers in any process, or any thread of one process,
are serialized. The pair is reentrant per lock object: nested acquisitions
from the owning thread only bump a depth counter.
"""

from __future__ import annotations

import fcntl
import os
import threading
import time
from pathlib import Path

from ovpn_radius.exceptions import LockTimeoutError, StoreError
from ovpn_radius.utils.logger import get_logger

logger = get_logger(__name__, component="store")

_POLL_INTERVAL = 0.05


class StoreLock:
    """Exclusive, reentrant, timeout-bounded lock over ``path``."""

    def __init__(self, path: str | Path, timeout: float = 10.0) -> None:
        self.path = Path(path)
        self.timeout = float(timeout)
        self._mutex = threading.RLock()
        self._fd: int | None = None
        self._depth = 0
        self._owner: int | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    @property
    def owned(self) -> bool:
        """True when the calling thread holds the lock."""
        return self._depth > 0 and self._owner == threading.get_ident()

    def acquire(self) -> None:
        deadline = time.monotonic() + self.timeout
        if not self._mutex.acquire(timeout=self.timeout):
            raise LockTimeoutError(
                "timeout acquiring database lock",
                {"lock_file": str(self.path), "timeout": self.timeout},
            )
        if self._depth:
            self._depth += 1
            return
        try:
            self._fd = self._lock_file(deadline)
        except BaseException:
            self._mutex.release()
            raise
        self._depth = 1
        self._owner = threading.get_ident()

    def release(self) -> None:
        if not self._depth:
            return
        if self._owner != threading.get_ident():
            raise RuntimeError("cannot release a store lock held by another thread")
        self._depth -= 1
        if self._depth == 0 and self._fd is not None:
            fd, self._fd = self._fd, None
            self._owner = None
            try:
                fcntl.flock(fd, fcntl.LOCK_UN)
            finally:
                os.close(fd)
        self._mutex.release()

    def _lock_file(self, deadline: float) -> int:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_CREAT | os.O_WRONLY, 0o644)
        except OSError as exc:
            raise StoreError(
                f"unable to open lock file {self.path}: {exc}",
                {"lock_file": str(self.path)},
            ) from exc

        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                return fd
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    os.close(fd)
                    logger.warning(
                        "Timed out waiting for store lock",
                        event="ovpn.store.lock_timeout",
                        lock_file=str(self.path),
                        timeout=self.timeout,
                    )
                    raise LockTimeoutError(
                        "timeout acquiring database lock",
                        {"lock_file": str(self.path), "timeout": self.timeout},
                    ) from None
                time.sleep(_POLL_INTERVAL)
            except OSError as exc:
                os.close(fd)
                raise StoreError(
                    f"unable to lock {self.path}: {exc}",
                    {"lock_file": str(self.path)},
                ) from exc

    def __enter__(self) -> StoreLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.release()
