"""
Version control system (VCS) access.

This package contains the read-only repository readers consumed by the
version resolution engine: :class:`GitClient` talks to a real Git
repository through the ``git`` executable and
:class:`InMemoryRepository` holds a hand-built commit graph.
"""

from .git_client import GitClient, GitError  # noqa: F401
from .memory import InMemoryRepository  # noqa: F401
from .models import BranchRef, Commit, TagRef  # noqa: F401
