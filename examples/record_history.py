#!/usr/bin/env python3
"""
gitversioned Record History Example

Walks a record through its life in a git-backed store:
  1. Save two users and commit
  2. Edit them and commit again, with a summary and body
  3. Look at one user's history and an old version
  4. Revert one user to the first commit
  5. Undo the latest commit for everyone, as a new commit

Usage:
    python examples/record_history.py          # Run with temp directory (cleaned up)
    python examples/record_history.py --keep    # Keep repo for inspection
"""

import argparse
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

# Ensure the gitversioned package is importable when running from the repo root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from gitversioned.config import VersioningConfig
from gitversioned.record import Versioned
from gitversioned.versioning import GitVersioning


@dataclass
class User(Versioned):
    id: int
    name: str
    email: str = ""
    roles: list[str] = field(default_factory=list)
    # Never stored
    last_seen_ip: str | None = field(default=None, metadata={"transient": True})


def step(n: int, msg: str):
    print(f"\n{'='*60}")
    print(f"  Step {n}: {msg}")
    print(f"{'='*60}\n")


def run_demo(base_dir: Path):
    config = VersioningConfig(
        repository="users.git",
        author_name="Example Script",
        author_email="example@localhost",
    )
    users = GitVersioning(User, config=config, base_dir=base_dir)

    # ── Step 1 ──────────────────────────────────────────────────
    step(1, "Save two users and commit")
    ada = User(1, "Ada", "ada@example.com", roles=["admin"])
    bob = User(2, "Bob", "bob@example.com")
    for user in (ada, bob):
        users.write(user)
        print(f"  wrote {users.blob_path(user)}")
    first = users.commit()
    print(f"  commit {first[:12]}")

    # ── Step 2 ──────────────────────────────────────────────────
    step(2, "Edit and commit with a message")
    ada.name = "Ada Lovelace"
    bob.roles.append("editor")
    users.write(ada)
    users.write(bob)
    second = users.commit("Ada gets her full name; Bob can edit.", summary="Profile updates")
    print(f"  commit {second[:12]}")

    # ── Step 3 ──────────────────────────────────────────────────
    step(3, "History of one record")
    for c in users.history(ada):
        print(f"  #{c.sequence} {c.sha[:12]} {c.summary}")
    print(f"  Ada as of {first[:12]}: {users.version_at(ada, first)}")

    # ── Step 4 ──────────────────────────────────────────────────
    step(4, "Revert Ada only")
    users.revert([ada], first)
    print(f"  Ada in memory: {ada.name}")
    print(f"  Bob in memory: {bob.roles}")
    users.commit(summary="Restore Ada")

    # ── Step 5 ──────────────────────────────────────────────────
    step(5, "Undo the latest commit, as a new commit")
    sha = users.revert_and_commit([ada, bob])
    print(f"  commit {sha[:12]}: {users.history()[0].summary}")
    print(f"  Ada in memory: {ada.name}")

    print(f"\n  {len(users.history())} commits in {users.repository.root}")


def main():
    parser = argparse.ArgumentParser(description="gitversioned record history demo")
    parser.add_argument("--keep", action="store_true", help="Keep the repository afterwards")
    args = parser.parse_args()

    base_dir = Path(tempfile.mkdtemp(prefix="gitversioned-demo-"))
    try:
        run_demo(base_dir)
    finally:
        if args.keep:
            print(f"\n  Kept: {base_dir}")
        else:
            shutil.rmtree(base_dir, ignore_errors=True)


if __name__ == "__main__":
    main()
