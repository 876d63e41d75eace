"""
Semantic version value types.

A :class:`SemanticVersion` is ``Major.Minor.Patch`` plus a :class:`Stage`
and, for every stage except ``Final``, a pre-release number. The canonical
rendering is ``1.2.0`` for final versions and ``1.2.0-Beta.3`` otherwise;
:meth:`SemanticVersion.parse` reads both back.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional, Tuple


class Stage(Enum):
    """Pre-release maturity derived from the branch role."""

    FINAL = "Final"
    BETA = "Beta"
    ALPHA = "Alpha"
    UNSTABLE = "Unstable"

    @property
    def is_prerelease(self) -> bool:
        return self is not Stage.FINAL

    @classmethod
    def from_name(cls, name: str) -> "Stage":
        for stage in cls:
            if stage.value.lower() == name.lower():
                return stage
        raise ValueError(f"Unknown stage: {name!r}")


_VERSION_RE = re.compile(
    r"^[vV]?(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<label>[A-Za-z][A-Za-z0-9]*?)\.?(?P<pre>\d+))?$"
)
_TAG_RE = re.compile(r"^[vV]?(?P<major>\d+)\.(?P<minor>\d+)(?:\.(?P<patch>\d+))?$")


@dataclass(frozen=True)
class SemanticVersion:
    """An immutable GitFlow semantic version."""

    major: int
    minor: int
    patch: int
    stage: Stage = Stage.FINAL
    pre_release: Optional[int] = None

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError("Version numbers must not be negative")
        if self.stage is Stage.FINAL and self.pre_release is not None:
            raise ValueError("Final versions carry no pre-release number")
        if self.stage.is_prerelease and (self.pre_release is None or self.pre_release < 0):
            raise ValueError(f"{self.stage.value} versions need a non-negative pre-release number")

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def next_minor(self) -> "SemanticVersion":
        return SemanticVersion(self.major, self.minor + 1, 0)

    def next_patch(self) -> "SemanticVersion":
        return SemanticVersion(self.major, self.minor, self.patch + 1)

    def label(self, labels: Optional[Mapping[Stage, str]] = None) -> str:
        """Return the rendered stage label, honouring label overrides."""
        if labels and self.stage in labels:
            return labels[self.stage]
        return self.stage.value

    def to_string(self, labels: Optional[Mapping[Stage, str]] = None) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.stage.is_prerelease:
            text += f"-{self.label(labels)}.{self.pre_release}"
        return text

    def __str__(self) -> str:
        return self.to_string()

    @classmethod
    def parse(
        cls, text: str, labels: Optional[Mapping[Stage, str]] = None
    ) -> "SemanticVersion":
        """Parse a rendered version such as ``1.2.0`` or ``v1.2.0-Beta.3``.

        Raises
        ------
        ValueError
            If ``text`` is not a rendered semantic version or carries an
            unknown stage label.
        """
        match = _VERSION_RE.match(text.strip())
        if not match:
            raise ValueError(f"Not a semantic version: {text!r}")
        major, minor, patch = (int(match.group(k)) for k in ("major", "minor", "patch"))
        label = match.group("label")
        if label is None:
            return cls(major, minor, patch)

        stage = None
        for candidate, custom in (labels or {}).items():
            if custom.lower() == label.lower():
                stage = candidate
                break
        if stage is None:
            stage = Stage.from_name(label)
        if stage is Stage.FINAL:
            raise ValueError(f"Final versions carry no pre-release: {text!r}")
        return cls(major, minor, patch, stage, int(match.group("pre")))

    @classmethod
    def from_tag(cls, name: str) -> Optional["SemanticVersion"]:
        """Parse a release tag (``1.2.3``, ``v1.2``); return None otherwise."""
        match = _TAG_RE.match(name.strip())
        if not match:
            return None
        return cls(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch") or 0),
        )


@dataclass(frozen=True)
class VersionAnchor:
    """The commit a branch's version lineage starts from and its base version."""

    commit: str
    base: SemanticVersion
