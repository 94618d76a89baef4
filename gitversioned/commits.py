"""
Commit manager

Turns whatever is dirty in the working tree into one commit.

Commits are "commit everything": every tracked change under the
repository root goes in, including blobs written by other record types
or other processes sharing the repository. The message is built from
the commit's position in history:

    Committing changeset #7

or a caller-supplied summary, optionally followed by a blank line and
a longer body.
"""

import logging

from .git import Author, GitRepository
from .writer import PendingChanges

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY = "Committing changeset #{sequence}"


def build_commit_message(sequence: int, summary: str | None = None, body: str | None = None) -> str:
    first_line = summary if summary else DEFAULT_SUMMARY.format(sequence=sequence)
    if body:
        return f"{first_line}\n\n{body}"
    return first_line


class CommitManager:
    """
    Snapshots the working tree into the repository's history.

    By default a commit is made even when nothing changed, so repeated
    calls always advance history. Pass skip_empty=True to return None
    instead when the working tree is clean.
    """

    def __init__(
        self,
        repository: GitRepository,
        pending: PendingChanges,
        author: Author,
        skip_empty: bool = False,
    ):
        self.repository = repository
        self.pending = pending
        self.author = author
        self.skip_empty = skip_empty

    def next_sequence(self) -> int:
        # Counted fresh each time; another writer may have committed since
        return self.repository.commit_count() + 1

    def commit(self, message: str | None = None, summary: str | None = None) -> str | None:
        """
        Commit all outstanding changes. Returns the new commit's SHA.

        message is the optional body, summary the optional first line.
        """
        if self.skip_empty and not self.repository.is_dirty():
            logger.info("Nothing to commit in %s, skipping", self.repository.root)
            return None

        sequence = self.next_sequence()
        full_message = build_commit_message(sequence, summary=summary, body=message)
        sha = self.repository.commit_all(full_message, author=self.author)
        self.pending.clear()
        logger.info("Committed #%d %s: %s", sequence, sha[:12], full_message.split("\n", 1)[0])
        return sha
