"""
Git client implementation for gitflow_version.

This module wraps the read-only Git queries required by the version
resolution engine: HEAD, branches, tags, working tree status and the
commit graph itself. All subprocess calls go through :meth:`GitClient._run`
so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from .models import BranchRef, Commit, TagRef


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

# Field and record separators used in ``git log`` / ``for-each-ref`` output.
_FIELD_SEP = "\x00"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%H%x00%P%x00%ct%x00%s%x1e"
_HEADS_PREFIX = "refs/heads/"


@dataclass
class FileChange:
    """Representation of a single uncommitted file change."""

    path: str
    status: str  # e.g. 'M' modified, 'A' added, 'D' deleted, 'R' renamed


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class GitClient:
    """Read-only client for a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root
        self._commits: Dict[str, Commit] = {}
        self._history_loaded = False

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` directory (or worktree file) is found
        or the filesystem root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                # reached filesystem root
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True,
            or if the ``git`` executable cannot be started.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            logger.error("Unable to execute git: %s", e)
            raise GitError(f"Unable to execute git: {e}") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # HEAD and working tree
    # ------------------------------------------------------------------
    def head_branch(self) -> Optional[str]:
        """Return the name of the checked-out branch without ``refs/heads/``.

        Returns ``None`` when HEAD is detached.
        """
        result = self._run(["symbolic-ref", "--quiet", "HEAD"], check=False)
        if result.returncode != 0:
            return None
        refname = result.stdout.strip()
        if refname.startswith(_HEADS_PREFIX):
            refname = refname[len(_HEADS_PREFIX):]
        return refname or None

    def head_commit(self) -> Optional[str]:
        """Return the sha of HEAD, or ``None`` if the repository has no commits."""
        result = self._run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def get_changes(self) -> List[FileChange]:
        """Get the list of uncommitted changes in the working tree.

        Untracked files (status '??') are excluded.

        Raises
        ------
        GitError
            If the git status command fails.
        """
        result = self._run(["status", "--porcelain"], check=True)
        changes = []

        for line in result.stdout.splitlines():
            # Porcelain format: XY filename
            if len(line) < 3 or not line.strip():
                continue

            status_code = line[:2]
            filename = line[3:]

            if status_code == "??":
                continue

            status = status_code.strip()
            if not status:
                continue

            changes.append(FileChange(path=filename, status=status[0]))

        return changes

    def has_pending_changes(self) -> bool:
        """Return True if the working tree has uncommitted changes."""
        return bool(self.get_changes())

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------
    def _for_each_ref(self, fmt: str, pattern: str) -> List[List[str]]:
        result = self._run(["for-each-ref", f"--format={fmt}", pattern], check=True)
        rows = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            rows.append(line.split(_FIELD_SEP))
        return rows

    def branches(self) -> List[BranchRef]:
        """List local branches.

        Names are the full ref minus ``refs/heads/``; git's short form
        would become ``heads/<name>`` when a tag has the same name.

        Remote-tracking branches are included with their remote prefix
        stripped when no local branch of the same name exists, so that
        checkouts which only carry ``origin/develop`` still resolve.
        """
        local = [
            BranchRef(name=name, tip=sha)
            for name, sha in self._for_each_ref("%(refname:lstrip=2)%00%(objectname)", "refs/heads")
        ]
        known = {ref.name.lower() for ref in local}

        remote: List[BranchRef] = []
        for refname, sha in self._for_each_ref("%(refname)%00%(objectname)", "refs/remotes"):
            # refs/remotes/<remote>/<branch>
            parts = refname.split("/", 3)
            if len(parts) < 4 or parts[3] == "HEAD":
                continue
            name = parts[3]
            if name.lower() in known:
                continue
            known.add(name.lower())
            remote.append(BranchRef(name=name, tip=sha))

        return local + remote

    def tags(self) -> List[TagRef]:
        """List tags, peeling annotated tags to the commit they point to."""
        tags = []
        rows = self._for_each_ref(
            "%(refname:lstrip=2)%00%(objectname)%00%(*objectname)", "refs/tags"
        )
        for row in rows:
            name, sha = row[0], row[1]
            peeled = row[2] if len(row) > 2 else ""
            tags.append(TagRef(name=name, target=peeled or sha))
        return tags

    # ------------------------------------------------------------------
    # Commit graph
    # ------------------------------------------------------------------
    @staticmethod
    def _parse_log(output: str) -> List[Commit]:
        commits = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            fields = record.split(_FIELD_SEP)
            if len(fields) < 4:
                logger.debug("Skipping malformed log record: %r", record)
                continue
            sha, parents, timestamp, subject = fields[0], fields[1], fields[2], fields[3]
            commits.append(
                Commit(
                    sha=sha,
                    parents=tuple(parents.split()),
                    message=subject,
                    timestamp=int(timestamp) if timestamp.isdigit() else 0,
                )
            )
        return commits

    def _load_history(self) -> None:
        """Load every commit reachable from any ref with a single git call."""
        self._history_loaded = True
        result = self._run(["log", "--all", f"--format={_LOG_FORMAT}"], check=False)
        if result.returncode != 0:
            # No refs yet; individual lookups still work via git show
            return
        for commit in self._parse_log(result.stdout):
            self._commits[commit.sha] = commit
        logger.debug("Loaded %d commits from repository history", len(self._commits))

    def get_commit(self, sha: str) -> Commit:
        """Return the commit with the given sha.

        Raises
        ------
        GitError
            If the commit does not exist.
        """
        commit = self._commits.get(sha)
        if commit is not None:
            return commit
        if not self._history_loaded:
            self._load_history()
            commit = self._commits.get(sha)
            if commit is not None:
                return commit

        result = self._run(["show", "-s", f"--format={_LOG_FORMAT}", sha], check=True)
        parsed = self._parse_log(result.stdout)
        if not parsed:
            raise GitError(f"Unknown commit: {sha}")
        commit = parsed[0]
        self._commits[commit.sha] = commit
        return commit
