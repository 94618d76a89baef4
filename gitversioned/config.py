"""
Configuration

Stored as JSON (default file name: gitversioned.json):

    {
      "version": "0.1.0",
      "repository": "gitversioned.git",
      "author_name": "Records Bot",
      "author_email": "records@example.com",
      "auto_save": true,
      "auto_commit": false,
      "skip_empty_commits": false,
      "exclusive": false
    }

A relative repository path is resolved against the directory holding
the config file. GITVERSIONED_REPOSITORY, GITVERSIONED_AUTHOR_NAME and
GITVERSIONED_AUTHOR_EMAIL override the file.
"""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .git import Author
from .writer import atomic_write

logger = logging.getLogger(__name__)

CONFIG_FILE = "gitversioned.json"

# Bump when the config schema changes
CONFIG_VERSION = "0.1.0"

DEFAULT_REPOSITORY = "gitversioned.git"

ENV_OVERRIDES = {
    "GITVERSIONED_REPOSITORY": "repository",
    "GITVERSIONED_AUTHOR_NAME": "author_name",
    "GITVERSIONED_AUTHOR_EMAIL": "author_email",
}


@dataclass
class VersioningConfig:
    repository: str = DEFAULT_REPOSITORY
    author_name: str = "gitversioned"
    author_email: str = "gitversioned@localhost"
    auto_save: bool = True
    # Commit after every save; needs auto_save
    auto_commit: bool = False
    # When True, commit() with a clean working tree makes no commit
    skip_empty_commits: bool = False
    # Hold the repository lock around writes, commits and reverts
    exclusive: bool = False
    version: str = CONFIG_VERSION

    def __post_init__(self):
        if self.auto_commit and not self.auto_save:
            raise ValueError(
                "Invalid config: auto_commit requires auto_save\n"
                "  A commit after save only makes sense if the save wrote the blob."
            )

    @property
    def author(self) -> Author:
        return Author(self.author_name, self.author_email)

    def repository_path(self, base_dir: Path | None = None) -> Path:
        path = Path(self.repository)
        if not path.is_absolute():
            path = Path(base_dir or Path.cwd()) / path
        return path.resolve()

    def to_dict(self) -> dict:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "VersioningConfig":
        validate_config(d)
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})

    @classmethod
    def load(cls, path: Path | None = None, env: dict | None = None) -> "VersioningConfig":
        """Read config from path (missing file means defaults), then apply env overrides."""
        path = Path(path or CONFIG_FILE)
        data = json.loads(path.read_text()) if path.exists() else {}
        env = os.environ if env is None else env
        for var, key in ENV_OVERRIDES.items():
            if env.get(var):
                data[key] = env[var]
        return cls.from_dict(data)

    def save(self, path: Path | None = None):
        path = Path(path or CONFIG_FILE)
        path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(path, json.dumps(self.to_dict(), indent=2).encode("utf-8"))


def validate_config(config: dict) -> None:
    """Validate config version and warn on unknown keys."""
    config_version = config.get("version")
    if config_version:
        # Refuse configs written by a newer release
        if _version_tuple(config_version) > _version_tuple(CONFIG_VERSION):
            raise ValueError(
                f"Config version {config_version} is newer than "
                f"this version of gitversioned ({CONFIG_VERSION}). "
                f"Please upgrade gitversioned."
            )
        if _version_tuple(config_version) < _version_tuple(CONFIG_VERSION):
            logger.info(
                "Config version %s is older than current %s",
                config_version,
                CONFIG_VERSION,
            )

    # Unknown keys are ignored, not rejected
    known = {f.name for f in dataclasses.fields(VersioningConfig)}
    unknown_keys = set(config.keys()) - known
    if unknown_keys:
        logger.warning("Unknown config keys (ignored): %s", ", ".join(sorted(unknown_keys)))


def _version_tuple(version: str) -> tuple:
    try:
        return tuple(int(part) for part in str(version).split("."))
    except ValueError:
        raise ValueError(f"Invalid config version: {version!r}") from None
