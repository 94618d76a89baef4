"""
gitversioned CLI

Inspection and recovery for a record repository. Records themselves
live in your application; this works on the blobs and the history.
Every command outputs structured JSON when --json is passed.

Usage:
    gitversioned init [--author-name NAME] [--author-email EMAIL]
    gitversioned status
    gitversioned log [--type TYPE] [--limit N]
    gitversioned show REF PATH
    gitversioned revert [--to REF] [--commit] [PATH ...]
"""

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import gitversioned as _gitversioned_pkg

from .commits import CommitManager
from .config import CONFIG_FILE, VersioningConfig
from .errors import NotARepository
from .git import GitRepository
from .revert import REVERT_SUMMARY, RevertManager
from .serializer import deserialize
from .writer import PendingChanges, WorkingTreeWriter


@contextmanager
def open_repo(args):
    """Open the repository and its config."""
    repo = GitRepository.find(Path(args.path or "."))
    config = VersioningConfig.load(Path(args.config) if args.config else repo.root / CONFIG_FILE)
    yield repo, config


def format_time(ts: float) -> str:
    return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")


def print_json(data):
    print(json.dumps(data, indent=2, default=str))


def get_verbosity(args) -> int:
    """Return verbosity level: 0=quiet, 1=normal, 2=verbose."""
    if getattr(args, "json", False):
        return 1
    if getattr(args, "verbose", False):
        return 2
    if getattr(args, "quiet", False):
        return 0
    return 1


def _display_hash(h: str | None, verbosity: int) -> str:
    """Return full or short hash based on verbosity."""
    if not h:
        return "none"
    if verbosity >= 2:
        return h
    return h[:12]


def cmd_init(args):
    root = Path(args.path or ".")
    repo = GitRepository.init(root)
    config = VersioningConfig(repository=".")
    if args.author_name:
        config.author_name = args.author_name
    if args.author_email:
        config.author_email = args.author_email
    repo.set_identity(config.author_name, config.author_email)
    config_path = Path(args.config) if args.config else repo.root / CONFIG_FILE
    if not config_path.exists():
        config.save(config_path)

    if args.json:
        print_json({"root": str(repo.root), "config": str(config_path)})
    else:
        print(f"Initialized gitversioned repository at {repo.root}")


def cmd_status(args):
    v = get_verbosity(args)
    with open_repo(args) as (repo, _config):
        dirty = repo.status()
        head = repo.head()

        if args.json:
            print_json({"head": head, "commits": repo.commit_count(), "dirty": dirty})
        elif v == 0:
            for path in dirty:
                print(path)
        else:
            print(f"HEAD: {_display_hash(head, v)} ({repo.commit_count()} commits)")
            if not dirty:
                print("Working tree clean.")
            else:
                print(f"{len(dirty)} uncommitted blob(s):")
                for path in dirty:
                    print(f"  {path}")


def cmd_log(args):
    v = get_verbosity(args)
    with open_repo(args) as (repo, _config):
        commits = repo.commits(path=args.type)[: args.limit]

        if args.json:
            print_json([c.to_dict() for c in commits])
        elif v == 0:
            for c in commits:
                print(c.sha)
        else:
            if not commits:
                print("No commits found.")
            for c in commits:
                print(f"#{c.sequence} {_display_hash(c.sha, v)}  {format_time(c.timestamp)}")
                print(f"  Author: {c.author_name} <{c.author_email}>")
                print(f"  {c.summary[:100]}")
                if v >= 2 and c.message != c.summary:
                    for line in c.message.split("\n")[1:]:
                        print(f"  {line}")
                print()


def cmd_show(args):
    with open_repo(args) as (repo, _config):
        sha = repo.resolve(args.ref)
        data = repo.show(sha, args.blob_path)
        if args.json:
            print_json({"commit": sha, "path": args.blob_path, "attributes": deserialize(data)})
        else:
            sys.stdout.write(data.decode("utf-8", errors="replace"))


def cmd_revert(args):
    v = get_verbosity(args)
    with open_repo(args) as (repo, config):
        pending = PendingChanges()
        commits = CommitManager(
            repo, pending, author=config.author, skip_empty=config.skip_empty_commits
        )
        reverts = RevertManager(repo, WorkingTreeWriter(repo, pending), commits, object)

        former_head = repo.head()
        if args.paths:
            target = reverts.restore_paths(args.paths, args.to)
        else:
            target = reverts.revert((), args.to)

        sha = None
        if args.commit:
            sha = commits.commit(summary=REVERT_SUMMARY.format(sha=former_head))

        if args.json:
            print_json({"target": target, "paths": args.paths or ["."], "commit": sha})
        elif v > 0:
            scope = ", ".join(args.paths) if args.paths else "working tree"
            print(f"Reverted {scope} to {_display_hash(target, v)}")
            if sha:
                print(f"Committed {_display_hash(sha, v)}")


def _error_hint(msg: str) -> str | None:
    """Return a hint for common error messages, or None."""
    lower = msg.lower()
    if "unknown commit" in lower:
        return "Hint: Use 'gitversioned log' to see commit SHAs."
    if "nothing to revert" in lower:
        return "Hint: Pass --to REF to pick the commit to restore from."
    if "no blob at" in lower:
        return "Hint: Use 'git ls-tree -r --name-only REF' to list the blobs in a commit."
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitversioned",
        description="gitversioned: versioned record storage in a git repository",
    )
    ver = _gitversioned_pkg.__version__
    parser.add_argument("--version", "-V", action="version", version=f"gitversioned {ver}")
    parser.add_argument("--path", "-C", default=".", help="Repository path")
    parser.add_argument("--config", default=None, help=f"Config file (default: <repo>/{CONFIG_FILE})")
    parser.add_argument("--json", "-j", action="store_true", help="JSON output")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Quiet output")

    sub = parser.add_subparsers(dest="command")

    # init
    p = sub.add_parser("init", help="Initialize a record repository")
    p.add_argument("--author-name", default=None)
    p.add_argument("--author-email", default=None)
    p.set_defaults(func=cmd_init)

    # status
    p = sub.add_parser("status", help="Show uncommitted blobs")
    p.set_defaults(func=cmd_status)

    # log
    p = sub.add_parser("log", help="Show commit history")
    p.add_argument("--type", "-t", default=None, help="Only commits touching this record type")
    p.add_argument("--limit", "-n", type=int, default=20)
    p.set_defaults(func=cmd_log)

    # show
    p = sub.add_parser("show", help="Show a blob as of a commit")
    p.add_argument("ref")
    p.add_argument("blob_path", metavar="PATH")
    p.set_defaults(func=cmd_show)

    # revert
    p = sub.add_parser("revert", help="Restore blobs from an earlier commit")
    p.add_argument("paths", nargs="*", metavar="PATH", help="Blob paths (default: whole tree)")
    p.add_argument("--to", default=None, help="Target commit (default: parent of HEAD)")
    p.add_argument("--commit", action="store_true", help="Commit the restoration")
    p.set_defaults(func=cmd_revert)

    return parser


def _configure_logging(args):
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _configure_logging(args)

    try:
        args.func(args)
    except NotARepository as e:
        if args.json:
            print_json({"error": str(e)})
        else:
            print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        msg = str(e)
        if args.json:
            print_json({"error": msg})
        else:
            print(f"Error: {msg}", file=sys.stderr)
            hint = _error_hint(msg)
            if hint:
                print(f"  {hint}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
