"""
Error taxonomy for version resolution.

Every error carries a ``context`` dictionary (branch name, role, missing
reference, commits involved) so that a failure can be diagnosed from the
build log alone.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class VersionError(Exception):
    """Base class for failures of the version resolution engine."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.context: Dict[str, Any] = dict(context or {})


class MissingBranchError(VersionError):
    """Raised when a reference branch (development or mainline) does not exist."""

    def __init__(self, branch: str, role: str, reference: str) -> None:
        super().__init__(
            f"Branch '{branch}' ({role}) requires a {reference} branch, "
            f"but none exists in the repository",
            {"branch": branch, "role": role, "reference": reference},
        )


class UnreachableAnchorError(VersionError):
    """Raised when an anchor commit is not an ancestor of the branch tip.

    This indicates an inconsistency in the engine rather than a user
    configuration problem.
    """

    def __init__(self, anchor: Optional[str], tip: str, branch: Optional[str] = None) -> None:
        if anchor is None:
            message = f"No common ancestor found for tip {tip}"
        else:
            message = f"Anchor commit {anchor} is not an ancestor of tip {tip}"
        if branch:
            message += f" on branch '{branch}'"
        super().__init__(message, {"anchor": anchor, "tip": tip, "branch": branch})


class UnparsableBranchNameError(VersionError):
    """Raised in strict mode when a release/hotfix name carries no version."""

    def __init__(self, branch: str, role: str) -> None:
        super().__init__(
            f"Branch name '{branch}' does not encode a Major.Minor[.Patch] version "
            f"as required for {role} branches",
            {"branch": branch, "role": role},
        )


class RepositoryUnavailable(VersionError):
    """Raised when no repository exists at the given path or it has no commits."""

    def __init__(self, reason: str, path: Optional[str] = None) -> None:
        super().__init__(reason, {"path": path})
