"""Working-tree writer tests."""

import os

import pytest
from sample_records import Customer, User

from gitversioned.errors import BlobNotFoundError, InvalidIdentity
from gitversioned.git import Author
from gitversioned.serializer import deserialize
from gitversioned.writer import PendingChanges, WorkingTreeWriter, atomic_write

AUTHOR = Author("Test Author", "test@example.com")


@pytest.fixture
def writer(repo):
    return WorkingTreeWriter(repo)


class TestAtomicWrite:
    def test_replaces_content(self, tmp_path):
        target = tmp_path / "blob"
        atomic_write(target, b"one")
        atomic_write(target, b"two")
        assert target.read_bytes() == b"two"

    def test_no_temp_files_left(self, tmp_path):
        target = tmp_path / "blob"
        atomic_write(target, b"data")
        assert os.listdir(tmp_path) == ["blob"]

    def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            atomic_write(tmp_path / "nope" / "blob", b"data")


class TestPendingChanges:
    def test_set_semantics(self):
        pending = PendingChanges()
        pending.add("User/b")
        pending.add("User/a")
        pending.add("User/a")
        assert len(pending) == 2
        assert list(pending) == ["User/a", "User/b"]
        assert "User/a" in pending
        pending.clear()
        assert len(pending) == 0


@pytest.mark.git
class TestWrite:
    def test_write_then_read(self, writer):
        user = User(1, "Ada", email="ada@example.com", tags=["admin"])
        path = writer.write(user)
        assert path.absolute.exists()
        assert deserialize(path.absolute.read_bytes()) == user.version_attributes()
        assert writer.read(user) == user.version_attributes()

    def test_creates_type_directory(self, writer, repo):
        path = writer.write(Customer("c-1", "Acme"))
        assert path.absolute.parent == repo.root / "customers"

    def test_last_write_wins(self, writer):
        user = User(1, "Ada")
        writer.write(user)
        user.name = "Ada Lovelace"
        writer.write(user)
        assert writer.read(user)["name"] == "Ada Lovelace"

    def test_transient_not_written(self, writer):
        user = User(1, "Ada", session_token="secret")
        path = writer.write(user)
        assert b"secret" not in path.absolute.read_bytes()

    def test_invalid_identity(self, writer):
        with pytest.raises(InvalidIdentity):
            writer.write(User(None, "nobody"))

    def test_existing_directory_is_fine(self, writer, repo):
        (repo.root / "User").mkdir()
        writer.write(User(1, "Ada"))

    def test_records_pending(self, writer):
        path = writer.write(User(1, "Ada"))
        assert path.relative in writer.pending
        assert len(writer.pending) == 1

    def test_read_unsaved(self, writer):
        with pytest.raises(BlobNotFoundError):
            writer.read(User(99, "ghost"))
        assert not writer.exists(User(99, "ghost"))

    def test_reload(self, writer):
        user = User(1, "Ada")
        writer.write(user)
        user.name = "changed in memory"
        writer.reload(user)
        assert user.name == "Ada"


@pytest.mark.git
class TestStaging:
    def test_first_write_stages(self, writer, repo):
        user = User(1, "Ada")
        path = writer.write(user)
        assert repo.is_tracked(path.relative)
        repo.commit_all("one", author=AUTHOR)
        assert repo.lookup(path.relative) is not None

    def test_repeat_writes_do_not_restage(self, writer, repo, monkeypatch):
        calls = []
        real_add = repo.add
        monkeypatch.setattr(repo, "add", lambda p: (calls.append(p), real_add(p)))

        user = User(1, "Ada")
        writer.write(user)
        user.name = "Bea"
        writer.write(user)
        assert len(calls) == 1

        repo.commit_all("one", author=AUTHOR)
        user.name = "Cy"
        writer.write(user)
        assert len(calls) == 1
        # Still picked up by the next commit through commit -a
        repo.commit_all("two", author=AUTHOR)
        assert b"Cy" in repo.show("HEAD", writer.blob_path(user).relative)
