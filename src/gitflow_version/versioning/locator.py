"""
Version anchor location.

For every branch role :class:`VersionPointLocator` finds the commit at which
the branch's version lineage begins and the base version attached to it:

* mainline: the highest reachable release tag, or ``0.1.0`` at the root;
* development: the next minor after mainline, anchored at the merge-base
  with mainline;
* release: the version in the branch name, anchored at the merge-base with
  development;
* hotfix: the version in the branch name, anchored at the merge-base with
  mainline;
* feature, pull request and unknown branches: development's base version,
  anchored at the merge-base with development.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional

from ..vcs.models import BranchRef, TagRef
from .branch_classifier import BranchConventions, BranchRole
from .errors import MissingBranchError, UnparsableBranchNameError, UnreachableAnchorError
from .graph import CommitGraph
from .semantic_version import SemanticVersion, VersionAnchor


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

INITIAL_VERSION = SemanticVersion(0, 1, 0)

_BRANCH_VERSION_RE = re.compile(r"^[vV]?(?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?\b")


class VersionPointLocator:
    """Locate the :class:`VersionAnchor` of a branch.

    Parameters
    ----------
    repo
        Repository reader providing ``branches()``, ``tags()`` and
        ``get_commit()``.
    graph : CommitGraph
        Graph queries over the same repository.
    conventions : BranchConventions
        Naming conventions used to find the reference branches.
    strict : bool
        Treat release/hotfix names without a version as fatal instead of
        falling back to the reference branch's version.
    """

    def __init__(
        self,
        repo,
        graph: CommitGraph,
        conventions: BranchConventions,
        strict: bool = False,
    ) -> None:
        self.repo = repo
        self.graph = graph
        self.conventions = conventions
        self.strict = strict
        self._branches: List[BranchRef] = sorted(repo.branches(), key=lambda ref: ref.name)
        self._tags: Optional[List[TagRef]] = None
        self._mainline_anchor: Optional[VersionAnchor] = None
        self._development_anchor: Optional[VersionAnchor] = None

    # ------------------------------------------------------------------
    # Reference branches
    # ------------------------------------------------------------------
    def _find_branch(self, names: Iterable[str]) -> Optional[BranchRef]:
        wanted = {name.lower() for name in names}
        for ref in self._branches:
            if ref.name.lower() in wanted:
                return ref
        return None

    def mainline_branch(self) -> Optional[BranchRef]:
        return self._find_branch(self.conventions.mainline_names)

    def development_branch(self) -> Optional[BranchRef]:
        return self._find_branch(self.conventions.development_names)

    def _require(self, ref: Optional[BranchRef], branch: BranchRef, role: BranchRole, reference: str) -> BranchRef:
        if ref is None:
            logger.error("Branch '%s' (%s) needs a %s branch", branch.name, role.value, reference)
            raise MissingBranchError(branch.name, role.value, reference)
        return ref

    def _merge_base(self, branch: BranchRef, reference: BranchRef) -> str:
        base = self.graph.merge_base(branch.tip, reference.tip)
        if base is None:
            raise UnreachableAnchorError(None, branch.tip, branch.name)
        logger.debug("Merge-base of '%s' and '%s' is %s", branch.name, reference.name, base)
        return base

    # ------------------------------------------------------------------
    # Per-role anchors
    # ------------------------------------------------------------------
    def locate(self, branch: BranchRef, role: BranchRole) -> VersionAnchor:
        """Return the version anchor of ``branch`` given its ``role``.

        Raises
        ------
        MissingBranchError
            If a required reference branch does not exist.
        UnparsableBranchNameError
            In strict mode, if a release/hotfix name carries no version.
        UnreachableAnchorError
            If the branch shares no history with its reference branch.
        """
        if role is BranchRole.MAINLINE:
            return self._locate_mainline(branch)
        if role is BranchRole.DEVELOPMENT:
            return self._locate_development(branch)
        if role is BranchRole.RELEASE:
            return self._locate_release(branch)
        if role is BranchRole.HOTFIX:
            return self._locate_hotfix(branch)
        return self._locate_topic(branch, role)

    def _release_tags(self) -> List[TagRef]:
        if self._tags is None:
            self._tags = list(self.repo.tags())
        return self._tags

    def _locate_mainline(self, branch: BranchRef) -> VersionAnchor:
        best: Optional[VersionAnchor] = None
        best_key = None
        for tag in self._release_tags():
            version = SemanticVersion.from_tag(tag.name)
            if version is None:
                logger.debug("Ignoring tag '%s': not a release version", tag.name)
                continue
            if not self.graph.is_ancestor(tag.target, branch.tip):
                continue
            key = (version.core, self.graph.commit(tag.target).timestamp)
            if best_key is None or key > best_key:
                best_key = key
                best = VersionAnchor(commit=tag.target, base=version)

        if best is None:
            root = self.graph.root(branch.tip)
            logger.debug("No release tag reachable from '%s'; starting at %s", branch.name, INITIAL_VERSION)
            return VersionAnchor(commit=root, base=INITIAL_VERSION)
        return best

    def mainline_anchor(self, branch: BranchRef, role: BranchRole) -> VersionAnchor:
        """Return the anchor of the repository's mainline branch."""
        if self._mainline_anchor is None:
            mainline = self._require(self.mainline_branch(), branch, role, "mainline")
            self._mainline_anchor = self._locate_mainline(mainline)
        return self._mainline_anchor

    def _locate_development(self, branch: BranchRef) -> VersionAnchor:
        mainline = self._require(self.mainline_branch(), branch, BranchRole.DEVELOPMENT, "mainline")
        base = self.mainline_anchor(branch, BranchRole.DEVELOPMENT).base.next_minor()
        return VersionAnchor(commit=self._merge_base(branch, mainline), base=base)

    def development_anchor(self, branch: BranchRef, role: BranchRole) -> VersionAnchor:
        """Return the anchor of the repository's development branch."""
        if self._development_anchor is None:
            development = self._require(self.development_branch(), branch, role, "development")
            self._development_anchor = self._locate_development(development)
        return self._development_anchor

    def _parse_branch_version(self, branch: BranchRef, role: BranchRole) -> Optional[re.Match]:
        fragment = self.conventions.version_fragment(branch.name, role)
        match = _BRANCH_VERSION_RE.match(fragment)
        if match is None:
            if self.strict:
                raise UnparsableBranchNameError(branch.name, role.value)
            logger.warning(
                "Branch name '%s' does not contain a Major.Minor version; "
                "falling back to the reference branch version",
                branch.name,
            )
        return match

    def _locate_release(self, branch: BranchRef) -> VersionAnchor:
        development = self._require(self.development_branch(), branch, BranchRole.RELEASE, "development")
        commit = self._merge_base(branch, development)

        match = self._parse_branch_version(branch, BranchRole.RELEASE)
        if match is None:
            base = self.development_anchor(branch, BranchRole.RELEASE).base
        else:
            base = SemanticVersion(
                int(match.group("major")),
                int(match.group("minor")),
                int(match.group("patch") or 0),
            )
        return VersionAnchor(commit=commit, base=base)

    def _locate_hotfix(self, branch: BranchRef) -> VersionAnchor:
        mainline = self._require(self.mainline_branch(), branch, BranchRole.HOTFIX, "mainline")
        commit = self._merge_base(branch, mainline)
        released = self.mainline_anchor(branch, BranchRole.HOTFIX).base

        match = self._parse_branch_version(branch, BranchRole.HOTFIX)
        if match is None:
            base = released.next_patch()
        else:
            major, minor = int(match.group("major")), int(match.group("minor"))
            if match.group("patch") is not None:
                patch = int(match.group("patch"))
            elif (major, minor) == (released.major, released.minor):
                patch = released.patch + 1
            else:
                patch = 0
            base = SemanticVersion(major, minor, patch)
        return VersionAnchor(commit=commit, base=base)

    def _locate_topic(self, branch: BranchRef, role: BranchRole) -> VersionAnchor:
        development = self.development_branch()
        if development is None and role is not BranchRole.FEATURE:
            mainline = self.mainline_branch()
            if mainline is not None:
                logger.warning(
                    "No development branch found; versioning '%s' against '%s'",
                    branch.name, mainline.name,
                )
                base = self.mainline_anchor(branch, role).base.next_patch()
                return VersionAnchor(commit=self._merge_base(branch, mainline), base=base)

        development = self._require(development, branch, role, "development")
        base = self.development_anchor(branch, role).base
        return VersionAnchor(commit=self._merge_base(branch, development), base=base)
