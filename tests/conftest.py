"""
Shared pytest configuration and fixtures.

On Windows CI runners, a spurious KeyboardInterrupt is delivered to the
main thread during long-running tests.  The workaround: ignore SIGINT
entirely on Windows CI.
"""

import os
import signal
import subprocess

import pytest

_WINDOWS_CI = os.name == "nt" and os.environ.get("CI") == "true"


def pytest_configure(config):
    """Ignore SIGINT on Windows CI to prevent spurious KeyboardInterrupt."""
    config.addinivalue_line("markers", "git: needs the git binary")
    if _WINDOWS_CI:
        try:
            signal.signal(signal.SIGINT, signal.SIG_IGN)
        except (OSError, ValueError):
            pass


def _has_git():
    """Check if git is available on the system."""
    try:
        subprocess.run(["git", "--version"], capture_output=True, check=True)
        return True
    except (FileNotFoundError, subprocess.CalledProcessError):
        return False


HAS_GIT = _has_git()


def pytest_collection_modifyitems(config, items):
    """Skip tests that need the git binary when it isn't installed."""
    if HAS_GIT:
        return
    skip = pytest.mark.skip(reason="git not available")
    for item in items:
        if "git" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def repo(tmp_path):
    """Empty git repository with a known identity."""
    from gitversioned.git import GitRepository

    r = GitRepository.init(tmp_path / "records.git")
    r.set_identity("Test Author", "test@example.com")
    return r


@pytest.fixture
def config(tmp_path):
    from gitversioned.config import VersioningConfig

    return VersioningConfig(
        repository=str(tmp_path / "records.git"),
        author_name="Test Author",
        author_email="test@example.com",
    )


@pytest.fixture
def versioning(config):
    """GitVersioning for User records."""
    from gitversioned.versioning import GitVersioning
    from sample_records import User

    return GitVersioning(User, config=config)
