"""
Configuration loading for gitflow_version.

Provides a loader for the optional ``.gitflow_version.json`` file in the
repository root. See :mod:`gitflow_version.config.loader` for
implementation details.
"""

from .loader import ConfigError, VersioningConfig, load_config  # noqa: F401
