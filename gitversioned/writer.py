"""
Working-tree writer

Saving a record means writing its blob into the repository's working
tree. The blob is written atomically (temp file + rename) so a reader
never sees half a file, and it is staged the first time it appears so
the next commit picks it up.

Nothing here commits. Written paths accumulate in a PendingChanges set
until the CommitManager clears it.
"""

import logging
import os
import tempfile
import time
from pathlib import Path

from .errors import BlobNotFoundError
from .git import GitRepository
from .paths import BlobPath, resolve_blob_path
from .serializer import deserialize, serialize

logger = logging.getLogger(__name__)


def _replace_with_retry(src: Path, dst: Path):
    """Replace dst with src, retrying on Windows PermissionError.

    On Windows, antivirus or indexing services can briefly lock files,
    causing ``PermissionError`` on rename.  We retry up to 5 times with
    exponential backoff.  On POSIX, any error is raised immediately.
    """
    if os.name == "nt":
        for attempt in range(5):
            try:
                src.replace(dst)
                return
            except PermissionError:
                if attempt == 4:
                    raise
                time.sleep(0.01 * (2 ** attempt))
    else:
        src.replace(dst)


def atomic_write(path: Path, content: bytes):
    """Write bytes to path via write-to-temp + rename."""
    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        _replace_with_retry(Path(tmp_path), path)
    except Exception:
        # Clean up temp file on any failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


class PendingChanges:
    """Blob paths written to the working tree since the last commit (this process only)."""

    def __init__(self):
        self._paths: set[str] = set()

    def add(self, path: str):
        self._paths.add(path)

    def clear(self):
        self._paths.clear()

    def __contains__(self, path) -> bool:
        return str(path) in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self):
        return iter(sorted(self._paths))

    def __repr__(self) -> str:
        return f"PendingChanges({sorted(self._paths)!r})"


class WorkingTreeWriter:
    """Writes record blobs into a repository's working tree."""

    def __init__(self, repository: GitRepository, pending: PendingChanges | None = None):
        self.repository = repository
        self.pending = pending if pending is not None else PendingChanges()

    def blob_path(self, record) -> BlobPath:
        return resolve_blob_path(
            record.version_type(),
            record.version_identity(),
            root=self.repository.root,
        )

    def write(self, record) -> BlobPath:
        """
        Persist the record's attributes to its blob.

        Last write wins. OSError (disk full, permissions) propagates.
        """
        path = self.blob_path(record)
        content = serialize(record.version_attributes())

        # exist_ok: a concurrent creator is not an error
        path.absolute.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(path.absolute, content)

        if self.repository.lookup(path.relative) is None and not self.repository.is_tracked(path.relative):
            logger.debug("Staging new blob %s", path.relative)
            self.repository.add(path.relative)

        self.pending.add(path.relative)
        return path

    def exists(self, record) -> bool:
        return self.blob_path(record).absolute.exists()

    def read(self, record) -> dict:
        """Attributes currently on disk for this record."""
        path = self.blob_path(record)
        try:
            data = path.absolute.read_bytes()
        except FileNotFoundError:
            raise BlobNotFoundError(path.relative) from None
        return deserialize(data)

    def reload(self, record) -> BlobPath:
        """Load the on-disk attributes back into the live record."""
        record.load_version_attributes(self.read(record))
        return self.blob_path(record)
