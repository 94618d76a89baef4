"""
Errors

Every failure in gitversioned surfaces as one of these. None of them
are caught inside the package; the CLI is the only boundary that turns
them into messages.

Filesystem failures are plain OSError and pass through untouched.
"""


class InvalidIdentity(ValueError):  # noqa: N818
    """Raised when a record has no usable identity to derive a blob path from."""

    def __init__(self, identity):
        super().__init__(
            f"Invalid record identity: {identity!r}\n"
            f"  Records need a stable, non-empty identity (e.g. a primary key or UUID)."
        )
        self.identity = identity


class SerializationError(ValueError):
    """Raised when attributes cannot be written to, or read back from, a blob."""


class NotARepository(ValueError):
    """Raised when a path is not inside a git repository."""

    def __init__(self, path):
        super().__init__(
            f"Not a git repository: {path}\n"
            f"  Run 'gitversioned init' to create one, or use '-C <path>' to specify a directory."
        )
        self.path = path


class GitCommandError(RuntimeError):
    """Raised when a git subprocess fails or times out."""

    def __init__(self, args: list, stderr: str, returncode: int | None = None):
        super().__init__(f"git {' '.join(args)} failed: {stderr}")
        self.git_args = args
        self.stderr = stderr
        self.returncode = returncode


class NoHistoryError(LookupError):
    """Raised when a revert needs a previous commit and there is none."""


class UnknownCommitError(LookupError):
    """Raised when a commit reference does not resolve."""

    def __init__(self, ref: str):
        super().__init__(f"Unknown commit: {ref}")
        self.ref = ref


class BlobNotFoundError(LookupError):
    """Raised when a record has no blob in the working tree or in a commit."""

    def __init__(self, path: str, ref: str | None = None):
        where = f"commit {ref[:12]}" if ref else "the working tree"
        super().__init__(
            f"No blob at {path} in {where}\n"
            f"  The record has probably never been saved."
        )
        self.path = path
        self.ref = ref


class ConcurrentAccessError(RuntimeError):
    """Raised when another process holds the repository lock."""

    def __init__(self, owner: dict | None):
        owner = owner or {}
        hostname = owner.get("hostname", "unknown")
        pid = owner.get("pid", "?")
        super().__init__(
            f"Another process is writing to this repository "
            f"(host={hostname}, pid={pid}).\n"
            f"  gitversioned assumes a single writer per repository."
        )
        self.owner = owner
