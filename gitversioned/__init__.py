"""
gitversioned: versioned record storage in a git repository

Each record is snapshotted into one YAML blob in a git working tree.
Commits group pending blob changes into immutable, ordered history;
reverts restore blobs, and the live records, to an earlier commit.
"""

__version__ = "0.1.0"

__all__ = [
    # Core
    "GitVersioning",
    "Versioned",
    "VersioningConfig",
    # Components
    "GitRepository",
    "CommitInfo",
    "Author",
    "WorkingTreeWriter",
    "PendingChanges",
    "CommitManager",
    "RevertManager",
    "RepositoryLock",
    "BlobPath",
    "resolve_blob_path",
    "build_commit_message",
    "serialize",
    "deserialize",
    # Errors
    "InvalidIdentity",
    "SerializationError",
    "NotARepository",
    "GitCommandError",
    "NoHistoryError",
    "UnknownCommitError",
    "BlobNotFoundError",
    "ConcurrentAccessError",
]

_LAZY = {
    "GitVersioning": ".versioning",
    "Versioned": ".record",
    "VersioningConfig": ".config",
    "GitRepository": ".git",
    "CommitInfo": ".git",
    "Author": ".git",
    "WorkingTreeWriter": ".writer",
    "PendingChanges": ".writer",
    "CommitManager": ".commits",
    "build_commit_message": ".commits",
    "RevertManager": ".revert",
    "RepositoryLock": ".lock",
    "BlobPath": ".paths",
    "resolve_blob_path": ".paths",
    "serialize": ".serializer",
    "deserialize": ".serializer",
    "InvalidIdentity": ".errors",
    "SerializationError": ".errors",
    "NotARepository": ".errors",
    "GitCommandError": ".errors",
    "NoHistoryError": ".errors",
    "UnknownCommitError": ".errors",
    "BlobNotFoundError": ".errors",
    "ConcurrentAccessError": ".errors",
}


# Lazy imports: only resolve when accessed
def __getattr__(name):
    if name in _LAZY:
        import importlib

        module = importlib.import_module(_LAZY[name], __name__)
        return getattr(module, name)
    raise AttributeError(f"module 'gitversioned' has no attribute {name!r}")
