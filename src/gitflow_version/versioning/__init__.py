"""
GitFlow semantic version resolution.

The engine classifies the checked-out branch (:mod:`.branch_classifier`),
locates the commit its version lineage starts from (:mod:`.locator`),
counts first-parent commits since then (:mod:`.graph`) and assembles a
:class:`SemanticVersion` (:mod:`.builder`). :mod:`.resolver` ties the steps
together.
"""

from .branch_classifier import BranchRole, classify_branch  # noqa: F401
from .errors import (  # noqa: F401
    MissingBranchError,
    RepositoryUnavailable,
    UnparsableBranchNameError,
    UnreachableAnchorError,
    VersionError,
)
from .semantic_version import SemanticVersion, Stage, VersionAnchor  # noqa: F401
