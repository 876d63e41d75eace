#!/usr/bin/env python
"""
Thin wrapper script to invoke the gitflow_version CLI.

Running ``python gitflowversion.py`` is equivalent to running the
``gitflow-version`` console script installed via ``pyproject.toml``.
"""

from gitflow_version.cli import main


if __name__ == "__main__":
    main(prog_name="gitflow-version")
