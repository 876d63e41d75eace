"""
In-memory repository reader.

:class:`InMemoryRepository` exposes the same read-only surface as
:class:`~gitflow_version.vcs.git_client.GitClient` over a commit graph
built by hand. It is used to exercise the resolution engine without a
Git checkout.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .models import BranchRef, Commit, TagRef


class InMemoryRepository:
    """A mutable, hand-built commit graph with branches and tags.

    Commits are created with :meth:`commit` and given monotonically
    increasing timestamps unless one is supplied. The engine only uses the
    read-only methods; the builder methods exist to set up a history.
    """

    def __init__(self) -> None:
        self._commits: Dict[str, Commit] = {}
        self._branches: Dict[str, str] = {}
        self._tags: Dict[str, str] = {}
        self._head: Optional[str] = None
        self._detached_at: Optional[str] = None
        self._clock = 0
        self.pending_changes = False

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------
    def commit(
        self,
        branch: str,
        message: str = "",
        parents: Optional[Sequence[str]] = None,
        timestamp: Optional[int] = None,
    ) -> str:
        """Append a commit to ``branch`` and return its sha.

        When ``parents`` is omitted the current tip of ``branch`` (if any)
        becomes the only parent. The branch is created if needed.
        """
        if parents is None:
            tip = self._branches.get(branch)
            parents = [tip] if tip else []
        for parent in parents:
            if parent not in self._commits:
                raise KeyError(f"Unknown parent commit: {parent}")

        self._clock += 1
        sha = f"{self._clock:040x}"
        self._commits[sha] = Commit(
            sha=sha,
            parents=tuple(parents),
            message=message or f"commit {self._clock}",
            timestamp=self._clock if timestamp is None else timestamp,
        )
        self._branches[branch] = sha
        return sha

    def commits(self, branch: str, count: int) -> List[str]:
        """Append ``count`` commits to ``branch`` and return their shas."""
        return [self.commit(branch) for _ in range(count)]

    def branch(self, name: str, start: str) -> str:
        """Create branch ``name`` at the tip of branch ``start`` (or at a sha)."""
        sha = self._branches.get(start, start)
        if sha not in self._commits:
            raise KeyError(f"Unknown start point: {start}")
        self._branches[name] = sha
        return sha

    def merge(self, target: str, source: str, message: str = "") -> str:
        """Create a merge commit on ``target`` with ``source`` as second parent."""
        source_sha = self._branches.get(source, source)
        return self.commit(
            target,
            message=message or f"Merge branch '{source}' into {target}",
            parents=[self._branches[target], source_sha],
        )

    def tag(self, name: str, target: str) -> None:
        """Tag the tip of branch ``target`` (or a sha)."""
        self._tags[name] = self._branches.get(target, target)

    def checkout(self, branch: str) -> None:
        if branch not in self._branches:
            raise KeyError(f"Unknown branch: {branch}")
        self._head = branch
        self._detached_at = None

    def detach(self, sha: str) -> None:
        self._head = None
        self._detached_at = sha

    # ------------------------------------------------------------------
    # Reader interface
    # ------------------------------------------------------------------
    def head_branch(self) -> Optional[str]:
        return self._head

    def head_commit(self) -> Optional[str]:
        if self._detached_at is not None:
            return self._detached_at
        if self._head is None:
            return None
        return self._branches.get(self._head)

    def has_pending_changes(self) -> bool:
        return self.pending_changes

    def branches(self) -> List[BranchRef]:
        return [BranchRef(name=name, tip=sha) for name, sha in self._branches.items()]

    def tags(self) -> List[TagRef]:
        return [TagRef(name=name, target=sha) for name, sha in self._tags.items()]

    def get_commit(self, sha: str) -> Commit:
        try:
            return self._commits[sha]
        except KeyError:
            raise KeyError(f"Unknown commit: {sha}") from None
