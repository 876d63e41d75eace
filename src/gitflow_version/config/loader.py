"""
Configuration loader for gitflow_version.

The tool reads an optional JSON configuration file named
``.gitflow_version.json`` from the repository root, or from an explicit
path given on the command line. The file may override the branch naming
conventions, the rendered pre-release labels and strict mode. Every key is
optional; missing keys keep their defaults.

If the configuration file is malformed or has fields of the wrong type, a
:class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from gitflow_version.versioning.branch_classifier import BranchConventions
from gitflow_version.versioning.semantic_version import Stage


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings in environments where
# logging has not been configured. When the CLI configures logging the
# messages propagate to the root logger.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILE_NAME = ".gitflow_version.json"

_NAME_LIST_KEYS = ("mainline_names", "development_names")
_PREFIX_KEYS = ("release_prefix", "hotfix_prefix", "feature_prefix")


class ConfigError(Exception):
    """Raised when the configuration file is invalid."""

    pass


@dataclass(frozen=True)
class VersioningConfig:
    """Settings consumed by the version resolver.

    Attributes
    ----------
    conventions : BranchConventions
        Branch naming conventions.
    prerelease_labels : Dict[Stage, str]
        Rendered label overrides per stage, e.g. ``{Stage.BETA: "rc"}``.
    strict : bool
        Fail instead of falling back when a release/hotfix branch name
        does not carry a version.
    """

    conventions: BranchConventions = field(default_factory=BranchConventions)
    prerelease_labels: Dict[Stage, str] = field(default_factory=dict)
    strict: bool = False


def _get_config_path(repo_root: Optional[Path], config_path: Optional[Path]) -> Optional[Path]:
    """Return the configuration file to read, or None when none applies."""
    if config_path is not None:
        return config_path
    if repo_root is not None:
        return repo_root / CONFIG_FILE_NAME
    return None


def _validate_name_list(data: Dict[str, Any], key: str) -> Optional[frozenset]:
    if key not in data:
        return None
    value = data[key]
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not value or not all(isinstance(v, str) and v.strip() for v in value):
        raise ConfigError(f"'{key}' must be a non-empty list of branch names")
    return frozenset(v.strip() for v in value)


def _validate_labels(value: Any) -> Dict[Stage, str]:
    if not isinstance(value, dict):
        raise ConfigError("'prerelease_labels' must be an object mapping stage to label")
    labels: Dict[Stage, str] = {}
    for name, label in value.items():
        try:
            stage = Stage.from_name(name)
        except ValueError:
            raise ConfigError(f"Unknown stage in 'prerelease_labels': {name}") from None
        if stage is Stage.FINAL:
            raise ConfigError("'prerelease_labels' cannot relabel the Final stage")
        if not isinstance(label, str) or not re.fullmatch(r"[A-Za-z][A-Za-z0-9]*", label):
            raise ConfigError(f"Pre-release label for {name} must be alphanumeric, starting with a letter")
        labels[stage] = label
    return labels


def parse_config(data: Dict[str, Any]) -> VersioningConfig:
    """Validate a configuration mapping and build a :class:`VersioningConfig`.

    Raises
    ------
    ConfigError
        If a key has the wrong type or an invalid value.
    """
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a JSON object")

    unknown = sorted(set(data) - set(_NAME_LIST_KEYS) - set(_PREFIX_KEYS)
                     - {"pull_request_pattern", "prerelease_labels", "strict"})
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    overrides: Dict[str, Any] = {}
    for key in _NAME_LIST_KEYS:
        names = _validate_name_list(data, key)
        if names is not None:
            overrides[key] = names

    for key in _PREFIX_KEYS:
        if key in data:
            if not isinstance(data[key], str) or not data[key]:
                raise ConfigError(f"'{key}' must be a non-empty string")
            overrides[key] = data[key]

    if "pull_request_pattern" in data:
        pattern = data["pull_request_pattern"]
        if not isinstance(pattern, str):
            raise ConfigError("'pull_request_pattern' must be a string")
        try:
            re.compile(pattern)
        except re.error as exc:
            raise ConfigError(f"Invalid 'pull_request_pattern': {exc}") from exc
        overrides["pull_request_pattern"] = pattern

    labels = _validate_labels(data["prerelease_labels"]) if "prerelease_labels" in data else {}

    strict = data.get("strict", False)
    if not isinstance(strict, bool):
        raise ConfigError("'strict' must be a boolean")

    return VersioningConfig(
        conventions=BranchConventions(**overrides),
        prerelease_labels=labels,
        strict=strict,
    )


def load_config(repo_root: Optional[Path] = None, config_path: Optional[Path] = None) -> VersioningConfig:
    """Load the versioning configuration.

    Args:
        repo_root: Repository root searched for ``.gitflow_version.json``.
        config_path: Explicit configuration file. It must exist.

    Returns:
        The validated :class:`VersioningConfig`; defaults when no file is
        present in the repository root.

    Raises:
        ConfigError: If the file is missing (explicit path only), malformed,
            or invalid.
    """
    path = _get_config_path(repo_root, config_path)
    if path is None or not path.exists():
        if config_path is not None:
            logger.error("Configuration file '%s' does not exist", config_path)
            raise ConfigError(f"Missing configuration file: {config_path}")
        logger.debug("No configuration file found; using default conventions")
        return VersioningConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {path.name}: {exc}") from exc

    config = parse_config(data)
    logger.debug("Loaded configuration from: %s", path)
    logger.debug("Configuration data: %s", data)
    return config
