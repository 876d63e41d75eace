"""
Data models for repository objects.

These are the immutable values handed from a repository reader to the
version resolution engine. The engine never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Commit:
    """A single node of the commit graph.

    Attributes
    ----------
    sha : str
        Full commit identifier.
    parents : Tuple[str, ...]
        Parent identifiers in order. The first parent is the branch that
        received a merge.
    message : str
        Commit subject.
    timestamp : int
        Commit time in seconds since the epoch.
    """

    sha: str
    parents: Tuple[str, ...] = field(default_factory=tuple)
    message: str = ""
    timestamp: int = 0

    @property
    def first_parent(self):
        return self.parents[0] if self.parents else None


@dataclass(frozen=True)
class BranchRef:
    """A branch name and the sha of its tip commit."""

    name: str
    tip: str


@dataclass(frozen=True)
class TagRef:
    """A tag name and the sha of the commit it points to (peeled)."""

    name: str
    target: str
