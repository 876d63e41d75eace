"""
Top-level package for gitflow_version.

This package exposes the main CLI entry point via the
``gitflow_version.cli`` module and the resolution engine via
``gitflow_version.versioning``.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
