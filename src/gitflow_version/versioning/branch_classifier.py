"""
Branch name classification.

Maps a branch name onto a GitFlow :class:`BranchRole` using configurable
naming conventions. The classification is purely name based and stateless
so that it can be unit tested without a repository.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet

from .semantic_version import Stage


class BranchRole(Enum):
    MAINLINE = "Mainline"
    DEVELOPMENT = "Development"
    RELEASE = "Release"
    HOTFIX = "Hotfix"
    FEATURE = "Feature"
    PULL_REQUEST = "PullRequest"
    UNKNOWN = "Unknown"


STAGE_FOR_ROLE: Dict[BranchRole, Stage] = {
    BranchRole.MAINLINE: Stage.FINAL,
    BranchRole.RELEASE: Stage.BETA,
    BranchRole.HOTFIX: Stage.BETA,
    BranchRole.DEVELOPMENT: Stage.UNSTABLE,
    BranchRole.FEATURE: Stage.ALPHA,
    BranchRole.PULL_REQUEST: Stage.ALPHA,
    BranchRole.UNKNOWN: Stage.UNSTABLE,
}


@dataclass(frozen=True)
class BranchConventions:
    """Naming conventions recognised by :func:`classify_branch`.

    Attributes
    ----------
    mainline_names : FrozenSet[str]
        Exact (case-insensitive) names of the mainline branch.
    development_names : FrozenSet[str]
        Exact (case-insensitive) names of the development branch.
    release_prefix, hotfix_prefix, feature_prefix : str
        Case-insensitive name prefixes.
    pull_request_pattern : str
        Regular expression matched case-insensitively at the start of the
        branch name.
    """

    mainline_names: FrozenSet[str] = field(default_factory=lambda: frozenset({"master", "main"}))
    development_names: FrozenSet[str] = field(default_factory=lambda: frozenset({"develop"}))
    release_prefix: str = "release/"
    hotfix_prefix: str = "hotfix/"
    feature_prefix: str = "feature/"
    pull_request_pattern: str = r"^(pull|pull-requests|pr)[/-]"

    def is_mainline(self, name: str) -> bool:
        return _normalise(name) in {n.lower() for n in self.mainline_names}

    def is_development(self, name: str) -> bool:
        return _normalise(name) in {n.lower() for n in self.development_names}

    def version_fragment(self, name: str, role: BranchRole) -> str:
        """Return the part of ``name`` after the release/hotfix prefix."""
        prefix = {
            BranchRole.RELEASE: self.release_prefix,
            BranchRole.HOTFIX: self.hotfix_prefix,
        }.get(role, "")
        name = name.strip()
        if name.startswith("refs/heads/"):
            name = name[len("refs/heads/"):]
        return name[len(prefix):]


def _normalise(name: str) -> str:
    name = name.strip()
    if name.startswith("refs/heads/"):
        name = name[len("refs/heads/"):]
    return name.lower()


def classify_branch(name: str, conventions: BranchConventions) -> BranchRole:
    """Classify a branch name into a :class:`BranchRole`.

    Rules are evaluated in a fixed order and the first match wins:
    mainline, development, release, hotfix, pull request, feature.
    Anything else is :attr:`BranchRole.UNKNOWN`.
    """
    lowered = _normalise(name)

    if conventions.is_mainline(lowered):
        return BranchRole.MAINLINE
    if conventions.is_development(lowered):
        return BranchRole.DEVELOPMENT
    if lowered.startswith(conventions.release_prefix.lower()):
        return BranchRole.RELEASE
    if lowered.startswith(conventions.hotfix_prefix.lower()):
        return BranchRole.HOTFIX
    if re.match(conventions.pull_request_pattern, lowered, re.IGNORECASE):
        return BranchRole.PULL_REQUEST
    if lowered.startswith(conventions.feature_prefix.lower()):
        return BranchRole.FEATURE
    return BranchRole.UNKNOWN
