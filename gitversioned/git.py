"""
Git collaborator

The thin layer between gitversioned and the actual version-control
engine. Everything here shells out to the git CLI; no gitpython
dependency is required.

Only what the versioning core needs is exposed: init/open, identity,
stage, commit-all, history, checkout of paths, and tree lookups.
Branching, merging and remotes are deliberately absent.
"""

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import BlobNotFoundError, GitCommandError, NotARepository, UnknownCommitError

logger = logging.getLogger(__name__)

GIT_TIMEOUT_SECONDS = 60

# Field and record separators for `git log` output
_FS = "\x00"
_RS = "\x1e"
_LOG_FORMAT = "%H%x00%P%x00%an%x00%ae%x00%at%x00%B%x1e"


def _git(
    args: list,
    cwd: Path,
    env: dict | None = None,
    timeout: int | None = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run git command, raise GitCommandError on failure or timeout."""
    full_env = dict(os.environ)
    if env:
        full_env.update(env)
    if timeout is None:
        timeout = GIT_TIMEOUT_SECONDS
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            ["git"] + args,
            cwd=str(cwd),
            capture_output=True,
            env=full_env,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise GitCommandError(
            args,
            f"timed out after {timeout}s. "
            "This may indicate a hung git hook or filesystem problem.",
        )
    if check and result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise GitCommandError(args, stderr, result.returncode)
    return result


def _sanitize(value: str) -> str:
    """Strip characters git rejects in author/committer fields."""
    return value.replace("<", "").replace(">", "").replace("\n", "").replace("\r", "")


@dataclass(frozen=True)
class Author:
    """Name and email recorded on a commit."""
    name: str
    email: str

    def __str__(self) -> str:
        return f"{_sanitize(self.name)} <{_sanitize(self.email)}>"


@dataclass(frozen=True)
class CommitInfo:
    """One commit, as read back from `git log`."""
    sha: str
    sequence: int               # 1-based position in history
    message: str
    author_name: str
    author_email: str
    timestamp: float
    parent: str | None = None   # None for the first commit

    @property
    def summary(self) -> str:
        return self.message.split("\n", 1)[0]

    def to_dict(self) -> dict:
        return {
            "sha": self.sha,
            "sequence": self.sequence,
            "message": self.message,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "timestamp": self.timestamp,
            "parent": self.parent,
        }


class GitRepository:
    """
    A non-bare git repository whose working tree holds record blobs.

    Paths passed in and returned are repository-relative, with forward
    slashes, exactly as git stores them.
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.git_dir = self.root / ".git"
        if not self.git_dir.exists():
            raise NotARepository(self.root)

    @classmethod
    def init(cls, path: Path) -> "GitRepository":
        """Create (or reopen) a repository at path."""
        root = Path(path).resolve()
        root.mkdir(parents=True, exist_ok=True)
        if not (root / ".git").exists():
            _git(["init"], cwd=root)
            logger.info("Initialized git repository at %s", root)
        return cls(root)

    @classmethod
    def find(cls, start_path: Path | None = None) -> "GitRepository":
        """Find a repository by walking up from the given path."""
        path = Path(start_path or Path.cwd()).resolve()
        while True:
            if (path / ".git").exists():
                return cls(path)
            parent = path.parent
            if parent == path:
                break
            path = parent
        raise NotARepository(start_path or Path.cwd())

    def _run(self, args: list, **kwargs) -> subprocess.CompletedProcess:
        return _git(args, cwd=self.root, **kwargs)

    # ── Identity & staging ────────────────────────────────────────

    def set_identity(self, name: str, email: str):
        """Set the repository-local author defaults."""
        self._run(["config", "user.name", _sanitize(name)])
        self._run(["config", "user.email", _sanitize(email)])

    def add(self, path: str):
        """Stage a path for the next commit."""
        self._run(["add", "--", path])

    def is_tracked(self, path: str) -> bool:
        """True if path is in the index (staged or committed)."""
        result = self._run(["ls-files", "--cached", "--", path])
        return bool(result.stdout.strip())

    # ── Commits ───────────────────────────────────────────────────

    def commit_all(self, message: str, author: Author | None = None) -> str:
        """
        Commit every tracked change plus everything already staged.

        Empty commits are allowed; deciding whether to make one is the
        caller's business.
        """
        args = ["-c", "commit.gpgsign=false", "commit", "-a", "--allow-empty", "-m", message]
        env = None
        if author is not None:
            args.append(f"--author={author}")
            # Committer too, for environments without any git identity configured
            env = {
                "GIT_COMMITTER_NAME": _sanitize(author.name),
                "GIT_COMMITTER_EMAIL": _sanitize(author.email),
            }
        self._run(args, env=env)
        sha = self.head()
        logger.debug("Committed %s", sha)
        return sha

    def head(self) -> str | None:
        """SHA of the latest commit, or None for an empty repository."""
        result = self._run(["rev-parse", "--verify", "-q", "HEAD^{commit}"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.decode().strip()

    def resolve(self, ref: str) -> str:
        """Resolve any commit-ish to a full SHA."""
        if not ref or ref.startswith("-"):
            raise UnknownCommitError(ref)
        result = self._run(["rev-parse", "--verify", "-q", f"{ref}^{{commit}}"], check=False)
        if result.returncode != 0:
            raise UnknownCommitError(ref)
        return result.stdout.decode().strip()

    def commits(self, path: str | None = None) -> list[CommitInfo]:
        """
        History, most recent first.

        With a path, only commits that touched it are returned; their
        sequence numbers still count the whole history.
        """
        if self.head() is None:
            return []
        result = self._run(["log", f"--format={_LOG_FORMAT}", "HEAD"])
        records = [
            r.lstrip("\n")
            for r in result.stdout.decode("utf-8", errors="replace").split(_RS)
        ]
        records = [r for r in records if r]

        total = len(records)
        history = []
        for i, record in enumerate(records):
            sha, parents, name, email, ts, message = record.split(_FS, 5)
            parent_list = parents.split()
            history.append(CommitInfo(
                sha=sha,
                sequence=total - i,
                message=message.rstrip("\n"),
                author_name=name,
                author_email=email,
                timestamp=float(ts or 0),
                parent=parent_list[0] if parent_list else None,
            ))

        if path is None:
            return history

        touched = self._run(["log", "--format=%H", "HEAD", "--", path])
        shas = set(touched.stdout.decode().split())
        return [c for c in history if c.sha in shas]

    def commit_count(self) -> int:
        if self.head() is None:
            return 0
        result = self._run(["rev-list", "--count", "HEAD"])
        return int(result.stdout.decode().strip())

    # ── Trees & working tree ──────────────────────────────────────

    def lookup(self, path: str, ref: str = "HEAD") -> str | None:
        """Blob SHA for path in ref's tree, or None if it isn't there."""
        if ref == "HEAD" and self.head() is None:
            return None
        result = self._run(["ls-tree", ref, "--", path])
        line = result.stdout.decode("utf-8", errors="replace").strip()
        if not line:
            return None
        meta, _name = line.split("\t", 1)
        _mode, obj_type, obj_hash = meta.split()
        return obj_hash if obj_type == "blob" else None

    def paths(self, ref: str = "HEAD") -> list[str]:
        """Every file path in ref's tree."""
        if ref == "HEAD" and self.head() is None:
            return []
        result = self._run(["ls-tree", "-r", "-z", "--name-only", ref])
        return [p for p in result.stdout.decode("utf-8", errors="replace").split(_FS) if p]

    def show(self, ref: str, path: str) -> bytes:
        """Content of path as of ref."""
        blob = self.lookup(path, ref)
        if blob is None:
            raise BlobNotFoundError(path, ref)
        return self._run(["cat-file", "blob", blob]).stdout

    def checkout(self, ref: str, paths: list[str]):
        """Overwrite working-tree paths with their content at ref."""
        if not paths:
            return
        self._run(["checkout", ref, "--"] + list(paths))

    def status(self) -> list[str]:
        """Paths with uncommitted changes (tracked or staged only)."""
        result = self._run(["status", "--porcelain", "-z", "--untracked-files=no"])
        tokens = result.stdout.decode("utf-8", errors="replace").split(_FS)
        paths = []
        skip = False
        for token in tokens:
            if skip:
                # Original path of a rename/copy entry
                skip = False
                continue
            if len(token) < 4:
                continue
            code, path = token[:2], token[3:]
            paths.append(path)
            if code[0] in "RC":
                skip = True
        return paths

    def is_dirty(self) -> bool:
        return bool(self.status())
