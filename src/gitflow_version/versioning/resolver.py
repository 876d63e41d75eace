"""
End-to-end version resolution.

:class:`VersionResolver` runs the engine against an open repository reader
and raises on failure. :func:`resolve_repository` is the outer boundary
used by the CLI: it locates the repository, loads configuration and turns
every outcome into one of :class:`Resolved`, :class:`Skipped` or
:class:`Fatal` so that callers cannot mistake a skipped run for a
successful one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from gitflow_version.config.loader import ConfigError, VersioningConfig, load_config
from gitflow_version.formatting.tokens import RepositoryFacts
from gitflow_version.vcs.git_client import GitClient, GitError
from gitflow_version.vcs.models import BranchRef

from .branch_classifier import BranchRole, classify_branch
from .builder import build_version
from .errors import RepositoryUnavailable, VersionError
from .graph import CommitGraph
from .locator import VersionPointLocator
from .semantic_version import SemanticVersion, VersionAnchor


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

DETACHED_BRANCH_NAME = "(no branch)"


@dataclass(frozen=True)
class Resolution:
    """A resolved version together with how it was derived."""

    version: SemanticVersion
    role: BranchRole
    anchor: VersionAnchor
    facts: RepositoryFacts


class VersionResolver:
    """Resolve the semantic version of the checked-out branch.

    Parameters
    ----------
    repo
        Repository reader (``GitClient`` or ``InMemoryRepository``).
    config : VersioningConfig, optional
        Naming conventions and strict mode; defaults apply when omitted.
    """

    def __init__(self, repo, config: Optional[VersioningConfig] = None) -> None:
        self.repo = repo
        self.config = config or VersioningConfig()
        self.graph = CommitGraph(repo)

    def resolve(self) -> Resolution:
        """Run classification, anchor location, distance and assembly.

        Raises
        ------
        RepositoryUnavailable
            If the repository has no commits.
        VersionError
            For any other failure of the engine.
        """
        head = self.repo.head_commit()
        if head is None:
            raise RepositoryUnavailable("Repository has no commits yet")

        name = self.repo.head_branch() or DETACHED_BRANCH_NAME
        branch = BranchRef(name=name, tip=head)
        role = classify_branch(name, self.config.conventions)
        logger.debug("Branch '%s' classified as %s", name, role.value)

        locator = VersionPointLocator(
            self.repo, self.graph, self.config.conventions, strict=self.config.strict
        )
        anchor = locator.locate(branch, role)
        distance = self.graph.first_parent_distance(anchor.commit, head, name)
        version = build_version(role, anchor, distance)
        logger.info("Resolved version %s for branch '%s'", version, name)

        facts = RepositoryFacts(
            branch_name=name,
            sha=head,
            has_pending_changes=self.repo.has_pending_changes(),
            commits_since_version_source=distance,
        )
        return Resolution(version=version, role=role, anchor=anchor, facts=facts)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Resolved:
    resolution: Resolution
    config: VersioningConfig = field(default_factory=VersioningConfig)


@dataclass(frozen=True)
class Skipped:
    """Versioning was not attempted; the build continues without a version."""

    reason: str


@dataclass(frozen=True)
class Fatal:
    """Versioning failed; the surrounding build step must abort."""

    kind: str
    message: str
    context: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: Exception) -> "Fatal":
        context = getattr(error, "context", {})
        return cls(kind=type(error).__name__, message=str(error), context=dict(context))


ResolutionResult = Union[Resolved, Skipped, Fatal]


def _unavailable(error: RepositoryUnavailable, build_agent: bool) -> ResolutionResult:
    if build_agent:
        logger.error("%s; versioning is required on build agents", error)
        return Fatal.from_error(error)
    logger.warning("%s; skipping version resolution", error)
    return Skipped(reason=str(error))


def resolve_repository(
    start: Path,
    config_path: Optional[Path] = None,
    strict: Optional[bool] = None,
    build_agent: bool = False,
) -> ResolutionResult:
    """Resolve the version of the repository containing ``start``.

    Args:
        start: Directory inside the working tree.
        config_path: Explicit configuration file, overriding
            ``.gitflow_version.json`` in the repository root.
        strict: Override the configured strict mode when not None.
        build_agent: Running on an automated build agent; a missing
            repository is fatal instead of skipped.

    Returns:
        :class:`Resolved`, :class:`Skipped` or :class:`Fatal`.
    """
    repo_root = GitClient.find_repo_root(start)
    if repo_root is None:
        return _unavailable(
            RepositoryUnavailable(f"No .git directory found (path: {start})", str(start)),
            build_agent,
        )
    logger.debug("Found Git repository at: %s", repo_root)

    try:
        config = load_config(repo_root, config_path)
    except ConfigError as exc:
        return Fatal.from_error(exc)
    if strict is not None:
        config = replace(config, strict=strict)

    try:
        resolution = VersionResolver(GitClient(repo_root), config).resolve()
    except RepositoryUnavailable as exc:
        exc.context["path"] = exc.context.get("path") or str(repo_root)
        return _unavailable(exc, build_agent)
    except (VersionError, GitError) as exc:
        logger.error("Version resolution failed: %s", exc)
        return Fatal.from_error(exc)
    return Resolved(resolution=resolution, config=config)
