"""
Repository lock

gitversioned assumes one writer per repository. When several processes
share a repository, wrap mutating operations in a RepositoryLock (or set
"exclusive": true in the config and GitVersioning does it for you).

The lock is a directory created with an atomic mkdir, holding an
owner.json with pid, hostname and acquisition time. It is advisory:
it doesn't stop anyone from touching the files, but every well-behaved
writer checks it. Locks left behind by dead processes, or older than
LOCK_MAX_AGE_SECONDS, are reclaimed.
"""

import json
import logging
import os
import shutil
import socket
import time
from pathlib import Path

from .errors import ConcurrentAccessError
from .writer import atomic_write

logger = logging.getLogger(__name__)

LOCK_DIR_NAME = "gitversioned.lock"


def _hostname() -> str:
    """Get hostname, cached after first call."""
    if not hasattr(_hostname, "_cached"):
        _hostname._cached = socket.gethostname()
    return _hostname._cached


class RepositoryLock:
    """Advisory, re-entrant (per instance) writer lock for one repository."""

    # Max age before a lock is considered stale regardless of PID
    LOCK_MAX_AGE_SECONDS = 3600 * 4  # 4 hours
    POLL_INTERVAL_SECONDS = 0.05

    def __init__(self, git_dir: Path, timeout: float = 10.0):
        self.lock_dir = Path(git_dir) / LOCK_DIR_NAME
        self.timeout = timeout
        self._depth = 0

    @property
    def held(self) -> bool:
        return self._depth > 0

    def try_acquire(self) -> bool:
        """Take the lock if it's free (or stale). Never blocks."""
        if self._depth:
            self._depth += 1
            return True
        try:
            self.lock_dir.mkdir(parents=True, exist_ok=False)
        except FileExistsError:
            owner = self.owner()
            if owner is None and self._just_created():
                # Holder may still be writing owner.json
                return False
            if owner and not self._is_lock_stale(owner):
                return False
            logger.warning("Reclaiming stale repository lock %s (owner=%s)", self.lock_dir, owner)
            self._force_remove()
            try:
                self.lock_dir.mkdir(parents=True, exist_ok=False)
            except FileExistsError:
                # Someone else grabbed it first
                return False

        atomic_write(self.lock_dir / "owner.json", json.dumps({
            "pid": os.getpid(),
            "hostname": _hostname(),
            "acquired_at": time.time(),
        }, indent=2).encode("utf-8"))
        self._depth = 1
        return True

    def acquire(self, timeout: float | None = None):
        """Block until the lock is ours, or raise ConcurrentAccessError."""
        timeout = self.timeout if timeout is None else timeout
        deadline = time.monotonic() + timeout
        while not self.try_acquire():
            if time.monotonic() >= deadline:
                raise ConcurrentAccessError(self.owner())
            time.sleep(self.POLL_INTERVAL_SECONDS)

    def release(self):
        if not self._depth:
            return
        self._depth -= 1
        if not self._depth:
            self._force_remove()

    def owner(self) -> dict | None:
        """Who holds the lock, or None if nobody (or unreadable)."""
        owner_path = self.lock_dir / "owner.json"
        if not owner_path.exists():
            return None
        try:
            return json.loads(owner_path.read_text())
        except (json.JSONDecodeError, OSError):
            return None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, *exc):
        self.release()
        return False

    def _force_remove(self):
        if self.lock_dir.exists():
            shutil.rmtree(self.lock_dir)

    def _just_created(self, grace: float = 5.0) -> bool:
        try:
            return (time.time() - self.lock_dir.stat().st_mtime) < grace
        except FileNotFoundError:
            return False

    def _is_lock_stale(self, owner: dict) -> bool:
        """
        A lock is stale if it is older than LOCK_MAX_AGE_SECONDS, or its
        owning PID no longer exists on this host.
        """
        acquired_at = owner.get("acquired_at", 0)
        if (time.time() - acquired_at) > self.LOCK_MAX_AGE_SECONDS:
            return True

        if owner.get("hostname") == _hostname():
            pid = owner.get("pid")
            if pid is not None and not self._is_process_alive(pid):
                return True

        return False

    @staticmethod
    def _is_process_alive(pid: int) -> bool:
        """Signal 0 checks existence without killing."""
        try:
            os.kill(pid, 0)
            return True
        except ProcessLookupError:
            return False
        except PermissionError:
            return True  # Process exists but we can't signal it
        except OSError:
            return False
