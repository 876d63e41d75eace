"""
Format string token substitution.

Version strings embedded in build metadata may contain tokens such as
``{Major}`` or ``{BranchName}``. :func:`replace_tokens` expands them in a
single left-to-right scan. Unknown tokens are left untouched and logged so
that existing custom strings never break a build.

Recognised tokens (case sensitive):

``Major``, ``Minor``, ``Patch``, ``Stage``, ``PreRelease``, ``BranchName``,
``Sha``, ``ShortSha``, ``CommitsSinceVersionSource``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from gitflow_version.versioning.semantic_version import SemanticVersion, Stage


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_TOKEN_RE = re.compile(r"\{([^{}\s]+)\}")
SHORT_SHA_LENGTH = 7


@dataclass(frozen=True)
class RepositoryFacts:
    """Repository state rendered alongside a version."""

    branch_name: str
    sha: str
    has_pending_changes: bool = False
    commits_since_version_source: int = 0

    @property
    def short_sha(self) -> str:
        return self.sha[:SHORT_SHA_LENGTH]


def _token_values(
    facts: RepositoryFacts,
    version: SemanticVersion,
    labels: Optional[Mapping[Stage, str]],
) -> Dict[str, Callable[[], str]]:
    return {
        "Major": lambda: str(version.major),
        "Minor": lambda: str(version.minor),
        "Patch": lambda: str(version.patch),
        "Stage": lambda: version.label(labels),
        "PreRelease": lambda: "" if version.pre_release is None else str(version.pre_release),
        "BranchName": lambda: facts.branch_name,
        "Sha": lambda: facts.sha,
        "ShortSha": lambda: facts.short_sha,
        "CommitsSinceVersionSource": lambda: str(facts.commits_since_version_source),
    }


def replace_tokens(
    template: str,
    facts: RepositoryFacts,
    version: SemanticVersion,
    labels: Optional[Mapping[Stage, str]] = None,
) -> str:
    """Expand every recognised ``{Token}`` in ``template``.

    Parameters
    ----------
    template : str
        Free-form text, possibly containing tokens.
    facts : RepositoryFacts
        Branch and commit information.
    version : SemanticVersion
        The resolved version.
    labels : Mapping[Stage, str], optional
        Stage label overrides used for ``{Stage}``.

    Returns
    -------
    str
        The rendered text. Substituted values are never rescanned, so a
        branch name containing braces is rendered literally.
    """
    values = _token_values(facts, version, labels)

    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = values.get(name)
        if value is None:
            logger.warning("Unknown token '%s' left in version string", match.group(0))
            return match.group(0)
        return value()

    return _TOKEN_RE.sub(substitute, template)


def informational_version(
    template: str,
    facts: RepositoryFacts,
    version: SemanticVersion,
    labels: Optional[Mapping[Stage, str]] = None,
) -> str:
    """Build the free-text informational version string.

    An empty ``template`` produces the default
    ``1.2.0-Beta.3 Branch:'release/1.2.0' Sha:<sha>`` form, with
    `` HasPendingChanges`` appended for a dirty working tree. Otherwise the
    numeric version is prefixed to the template with its tokens replaced.
    """
    if not template:
        text = f"{version.to_string(labels)} Branch:'{facts.branch_name}' Sha:{facts.sha}"
        if facts.has_pending_changes:
            text += " HasPendingChanges"
        return text

    rendered = replace_tokens(template, facts, version, labels)
    return f"{version.major}.{version.minor}.{version.patch} {rendered}"


def numeric_version(version: SemanticVersion, strong_named: bool = False) -> str:
    """Return the four-part numeric version for binary metadata.

    Strong-named binaries only carry ``Major.Minor.0.0`` to avoid binding
    redirects; other binaries carry ``Major.Minor.Patch.PreRelease``.
    """
    if strong_named:
        return f"{version.major}.{version.minor}.0.0"
    return f"{version.major}.{version.minor}.{version.patch}.{version.pre_release or 0}"
