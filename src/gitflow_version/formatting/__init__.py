"""
Rendering of resolved versions into build metadata strings.

See :mod:`gitflow_version.formatting.tokens` for the token substitution
engine and the informational/numeric version helpers.
"""

from .tokens import (  # noqa: F401
    RepositoryFacts,
    informational_version,
    numeric_version,
    replace_tokens,
)
