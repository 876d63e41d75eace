"""
Commit graph queries used by the version resolution engine.

:class:`CommitGraph` wraps a repository reader and answers ancestry,
merge-base and first-parent distance questions. Ancestor sets and
merge-base results are memoized for the lifetime of the instance, which
is one resolution run.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from ..vcs.models import Commit
from .errors import UnreachableAnchorError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class CommitGraph:
    """Read-only view of the commit DAG of a repository."""

    def __init__(self, repo) -> None:
        self.repo = repo
        self._ancestors: Dict[str, FrozenSet[str]] = {}
        self._merge_bases: Dict[Tuple[str, str], Optional[str]] = {}

    def commit(self, sha: str) -> Commit:
        return self.repo.get_commit(sha)

    def ancestors(self, sha: str) -> FrozenSet[str]:
        """Return ``sha`` and every commit reachable by walking parents."""
        cached = self._ancestors.get(sha)
        if cached is not None:
            return cached

        seen = {sha}
        stack = [sha]
        while stack:
            for parent in self.commit(stack.pop()).parents:
                if parent not in seen:
                    seen.add(parent)
                    stack.append(parent)

        result = frozenset(seen)
        self._ancestors[sha] = result
        return result

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Return True if ``ancestor`` is reachable from ``descendant`` (or equal)."""
        return ancestor in self.ancestors(descendant)

    def first_parent_chain(self, tip: str) -> List[str]:
        """Return the first-parent history of ``tip``, newest first."""
        chain = []
        current: Optional[str] = tip
        while current is not None:
            chain.append(current)
            current = self.commit(current).first_parent
        return chain

    def root(self, tip: str) -> str:
        """Return the root commit of the first-parent history of ``tip``."""
        return self.first_parent_chain(tip)[-1]

    def merge_base(self, a: str, b: str) -> Optional[str]:
        """Return the lowest common ancestor of ``a`` and ``b``.

        When several lowest common ancestors exist (criss-cross merges) the
        one with the latest commit timestamp wins, then the greatest sha.
        Returns ``None`` for unrelated histories.
        """
        key = (a, b) if a <= b else (b, a)
        if key in self._merge_bases:
            return self._merge_bases[key]

        common = self.ancestors(a) & self.ancestors(b)
        # Every proper ancestor of a common commit is a parent of some
        # common commit, so removing all parents leaves the lowest ones.
        covered = {p for sha in common for p in self.commit(sha).parents}
        lowest = [sha for sha in common if sha not in covered]

        base: Optional[str] = None
        if lowest:
            base = max(lowest, key=lambda sha: (self.commit(sha).timestamp, sha))
            if len(lowest) > 1:
                logger.debug(
                    "Multiple merge bases for %s and %s: %s; using %s",
                    a, b, ", ".join(sorted(lowest)), base,
                )

        self._merge_bases[key] = base
        return base

    def first_parent_distance(self, anchor: str, tip: str, branch: Optional[str] = None) -> int:
        """Count first-parent commits of ``tip`` not contained in ``anchor``.

        Commits that only arrive through the second parent of a merge are
        not counted; the merge commit itself counts once.

        Raises
        ------
        UnreachableAnchorError
            If ``anchor`` is not an ancestor of ``tip``.
        """
        if not self.is_ancestor(anchor, tip):
            raise UnreachableAnchorError(anchor, tip, branch)

        contained = self.ancestors(anchor)
        distance = 0
        current: Optional[str] = tip
        while current is not None and current not in contained:
            distance += 1
            current = self.commit(current).first_parent
        return distance
