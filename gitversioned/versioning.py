"""
GitVersioning

The object a record-owning layer talks to. One instance per record
type; it owns the repository handle for that type, so there is no
module-level repository state.

    versioning = GitVersioning(User, config=VersioningConfig.load())

    user.save()                    # your own persistence
    versioning.after_save(user)    # blob write, plus commit if auto_commit

    versioning.commit(summary="Nightly import")
    versioning.revert([user])                 # undo the latest commit for this user
    versioning.revert_and_commit()            # undo it for everything, as a new commit

Nothing is hooked into the record class. The caller decides when to
write and when to commit.
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from .commits import CommitManager
from .config import VersioningConfig
from .git import CommitInfo, GitRepository
from .lock import RepositoryLock
from .paths import BlobPath
from .revert import RevertManager
from .serializer import deserialize
from .writer import PendingChanges, WorkingTreeWriter

logger = logging.getLogger(__name__)


class GitVersioning:
    """Versioned persistence for the records of one type."""

    def __init__(
        self,
        record_class: type,
        config: VersioningConfig | None = None,
        base_dir: Path | None = None,
        repository: GitRepository | None = None,
    ):
        self.record_class = record_class
        self.config = config or VersioningConfig()

        if repository is None:
            repository = GitRepository.init(self.config.repository_path(base_dir))
            repository.set_identity(self.config.author_name, self.config.author_email)
        self.repository = repository
        self.lock = RepositoryLock(self.repository.git_dir)

        self.pending = PendingChanges()
        self.writer = WorkingTreeWriter(self.repository, self.pending)
        self.commits = CommitManager(
            self.repository,
            self.pending,
            author=self.config.author,
            skip_empty=self.config.skip_empty_commits,
        )
        self.reverts = RevertManager(
            self.repository, self.writer, self.commits, record_class
        )

    def __repr__(self) -> str:
        return f"GitVersioning({self.record_class.__name__}, {self.repository.root})"

    @contextmanager
    def _exclusive(self):
        if not self.config.exclusive:
            yield
            return
        with self.lock:
            yield

    # ── Writes ────────────────────────────────────────────────────

    def blob_path(self, record) -> BlobPath:
        return self.writer.blob_path(record)

    def write(self, record) -> BlobPath:
        """Write the record's blob into the working tree."""
        with self._exclusive():
            return self.writer.write(record)

    def commit(self, message: str | None = None, summary: str | None = None) -> str | None:
        """Commit everything dirty in the repository."""
        with self._exclusive():
            return self.commits.commit(message=message, summary=summary)

    def after_save(self, record) -> str | None:
        """
        Call once the record has been saved by its own layer.

        Writes the blob when auto_save is on, and commits when
        auto_commit is on too. Returns the commit SHA if one was made.
        """
        if not self.config.auto_save:
            return None
        with self._exclusive():
            self.writer.write(record)
            if self.config.auto_commit:
                return self.commits.commit()
        return None

    # ── Reverts ───────────────────────────────────────────────────

    def revert(self, records=(), target: str | None = None) -> str:
        with self._exclusive():
            return self.reverts.revert(records, target)

    def revert_and_commit(self, records=(), target: str | None = None) -> str | None:
        with self._exclusive():
            return self.reverts.revert_and_commit(records, target)

    # ── History ───────────────────────────────────────────────────

    def history(self, record=None) -> list[CommitInfo]:
        """Commits touching this record's blob (or all commits), most recent first."""
        if record is None:
            return self.repository.commits()
        return self.repository.commits(path=self.blob_path(record).relative)

    def version_at(self, record, ref: str) -> dict:
        """The record's attributes as committed in ref."""
        sha = self.repository.resolve(ref)
        return deserialize(self.repository.show(sha, self.blob_path(record).relative))
