from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from .errors import LockTimeout

logger = logging.getLogger(__name__)


class StateLock:
    """Advisory pid-file lock guarding the state document against concurrent runs.

    There is no stale-lock detection: a leftover file blocks until the wait
    ceiling and then fails, naming the path so the user can remove it.
    """

    def __init__(
        self,
        path: Path,
        *,
        wait_seconds: float = 30.0,
        poll_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        on_wait: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.path = Path(path)
        self.wait_seconds = wait_seconds
        self.poll_seconds = poll_seconds
        self._sleep = sleep
        self._on_wait = on_wait
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def _try_create(self) -> bool:
        try:
            fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o600)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{os.getpid()}\n")
        return True

    def acquire(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        waited = 0.0
        while not self._try_create():
            if waited >= self.wait_seconds:
                raise LockTimeout(str(self.path), waited)
            message = "Waiting for other setup process to finish..."
            logger.warning("%s (%s)", message, self.path)
            if self._on_wait is not None:
                self._on_wait(message)
            self._sleep(self.poll_seconds)
            waited += self.poll_seconds
        self._held = True
        logger.info("Acquired lock %s (pid=%s)", self.path, os.getpid())

    def release(self) -> None:
        """Safe to call more than once; only removes a lock this process created."""

        if not self._held:
            return
        self._held = False
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        logger.info("Released lock %s", self.path)

    def __enter__(self) -> "StateLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
