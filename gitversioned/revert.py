"""
Revert manager

Restores blobs from an earlier commit into the working tree, then
reloads the affected live records from the restored files so memory
matches disk.

    revert()                     # whole tree back to HEAD's parent
    revert([user], target=sha)   # only this user's blob, from sha

History itself is never rewritten. revert_and_commit() records the
restoration as a new commit on top.

Known gap: if git fails halfway through a checkout, some paths are
restored and others aren't. Nothing is rolled back; running the same
revert again finishes the job, since restoring a path is repeatable.
"""

import logging

from .commits import CommitManager
from .errors import BlobNotFoundError, NoHistoryError
from .git import GitRepository
from .writer import WorkingTreeWriter

logger = logging.getLogger(__name__)

WHOLE_TREE = "."
REVERT_SUMMARY = "Reverted commit {sha}"


class RevertManager:
    """Restores blobs and live records of one record type to a previous commit."""

    def __init__(
        self,
        repository: GitRepository,
        writer: WorkingTreeWriter,
        commit_manager: CommitManager,
        record_class: type,
    ):
        self.repository = repository
        self.writer = writer
        self.commit_manager = commit_manager
        self.record_class = record_class

    def resolve_target(self, target: str | None = None) -> str:
        """Target commit SHA; defaults to the parent of the latest commit."""
        if target is not None:
            return self.repository.resolve(target)
        history = self.repository.commits()
        if len(history) < 2 or history[0].parent is None:
            raise NoHistoryError(
                "Nothing to revert to: the repository has no commit before HEAD"
            )
        return history[0].parent

    def revert(self, records=(), target: str | None = None) -> str:
        """
        Restore records (or the whole tree, if none are given) from target.

        Records of other types are dropped from the scope without error.
        Returns the SHA that was restored from.
        """
        target_sha = self.resolve_target(target)
        records = list(records)

        if not records:
            logger.info("Reverting working tree to %s", target_sha[:12])
            # An empty tree has nothing to restore, and git rejects "." against it
            if self.repository.paths(target_sha):
                self.repository.checkout(target_sha, [WHOLE_TREE])
            for path in self.repository.status():
                self.writer.pending.add(path)
            return target_sha

        scoped = [r for r in records if isinstance(r, self.record_class)]
        if len(scoped) < len(records):
            logger.debug(
                "Ignoring %d record(s) that are not %s",
                len(records) - len(scoped),
                self.record_class.__name__,
            )
        if not scoped:
            return target_sha

        paths = [self.writer.blob_path(record).relative for record in scoped]
        self.restore_paths(paths, target_sha)

        for record in scoped:
            self.writer.reload(record)
        return target_sha

    def restore_paths(self, paths: list[str], target: str | None = None) -> str:
        """
        Restore blob paths from target without touching any live record.

        Every path must exist in target; this is checked before any file
        is overwritten.
        """
        target_sha = self.resolve_target(target)
        for path in paths:
            if self.repository.lookup(path, target_sha) is None:
                raise BlobNotFoundError(path, target_sha)

        logger.info("Reverting %d blob(s) to %s", len(paths), target_sha[:12])
        self.repository.checkout(target_sha, paths)
        for path in paths:
            self.writer.pending.add(path)
        return target_sha

    def revert_and_commit(self, records=(), target: str | None = None) -> str | None:
        """Revert, then commit the restoration as a new snapshot."""
        # Captured up front so the message names what was HEAD before we started
        former_head = self.repository.head()
        self.revert(records, target)
        return self.commit_manager.commit(summary=REVERT_SUMMARY.format(sha=former_head))
