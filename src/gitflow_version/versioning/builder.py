"""
Assembly of the final :class:`SemanticVersion`.
"""

from __future__ import annotations

from .branch_classifier import STAGE_FOR_ROLE, BranchRole
from .semantic_version import SemanticVersion, Stage, VersionAnchor


def build_version(role: BranchRole, anchor: VersionAnchor, distance: int) -> SemanticVersion:
    """Combine a branch role, its anchor and the commit distance.

    The base triple is copied from the anchor, the stage comes from the
    role and the pre-release number is the distance for every stage but
    ``Final``.

    Raises
    ------
    ValueError
        If ``distance`` is negative. This indicates a defect upstream.
    """
    if distance < 0:
        raise ValueError(f"Commit distance must not be negative, got {distance}")

    stage = STAGE_FOR_ROLE[role]
    base = anchor.base
    return SemanticVersion(
        major=base.major,
        minor=base.minor,
        patch=base.patch,
        stage=stage,
        pre_release=distance if stage is not Stage.FINAL else None,
    )
