"""
Blob paths

Every record lives at exactly one path inside the repository:

    <TypeName>/<identity hash>

One flat directory per record type, one file per instance. The hash is
SHA-256 over the identity's Python type name and its string form, so it
is stable across process runs (unlike the builtin hash()) and always a
safe filename.
"""

import hashlib
from dataclasses import dataclass
from pathlib import Path

from .errors import InvalidIdentity


@dataclass(frozen=True)
class BlobPath:
    """Where a record's blob lives, inside the repository and on disk."""
    relative: str
    absolute: Path | None = None

    def __str__(self) -> str:
        return self.relative


def identity_hash(identity) -> str:
    """Deterministic filename for a record identity."""
    if identity is None or isinstance(identity, bool):
        raise InvalidIdentity(identity)
    text = str(identity)
    if not text.strip():
        raise InvalidIdentity(identity)
    key = f"{type(identity).__name__}:{text}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def validate_type_name(type_name: str) -> str:
    if not type_name or not isinstance(type_name, str):
        raise ValueError(f"Invalid record type name: {type_name!r}")
    if "/" in type_name or "\\" in type_name or type_name.startswith("."):
        raise ValueError(
            f"Invalid record type name: {type_name!r}\n"
            f"  Type names become a directory in the repository and must be a single path component."
        )
    return type_name


def resolve_blob_path(type_name: str, identity, root: Path | None = None) -> BlobPath:
    """
    Resolve the blob path for a (type name, identity) pair.

    Pure function: the same pair always yields the same path. If root is
    given, the absolute on-disk path is filled in as well.
    """
    relative = f"{validate_type_name(type_name)}/{identity_hash(identity)}"
    absolute = Path(root).joinpath(*relative.split("/")) if root is not None else None
    return BlobPath(relative=relative, absolute=absolute)
