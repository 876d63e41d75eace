"""
Command line interface for the gitflow_version tool.

This module defines the ``main`` function which is used as the entry
point when executing the ``gitflow-version`` command. It resolves the
version of the repository containing ``--path``, renders it and prints
either the informational version or a JSON document to stdout. Status
messages go to stderr so the output can be captured by build scripts.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import click

from gitflow_version import __version__
from gitflow_version.config.loader import VersioningConfig
from gitflow_version.formatting.tokens import informational_version, numeric_version
from gitflow_version.versioning.resolver import (
    Fatal,
    Resolution,
    Resolved,
    Skipped,
    resolve_repository,
)

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_MISSING_BRANCH = 9
EXIT_UNREACHABLE_ANCHOR = 10
EXIT_UNPARSABLE_BRANCH = 11

EXIT_CODES: Dict[str, int] = {
    "RepositoryUnavailable": EXIT_NO_REPO,
    "ConfigError": EXIT_CONFIG_ERROR,
    "GitError": EXIT_VCS_FAILURE,
    "MissingBranchError": EXIT_MISSING_BRANCH,
    "UnreachableAnchorError": EXIT_UNREACHABLE_ANCHOR,
    "UnparsableBranchNameError": EXIT_UNPARSABLE_BRANCH,
}

# Environment variables set by common build servers.
BUILD_AGENT_VARIABLES = ("TEAMCITY_VERSION", "TF_BUILD", "JENKINS_URL", "CI")


# ---------------------------------------------------------------------------
# Status display utilities
# ---------------------------------------------------------------------------

def print_info(message: str, indent: int = 0):
    """Print an info message."""
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=True)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=True)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def is_running_in_build_agent(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when any known build server variable is set."""
    env = os.environ if environ is None else environ
    return any(env.get(name) for name in BUILD_AGENT_VARIABLES)


def render_output(
    resolution: Resolution,
    template: str,
    config: VersioningConfig,
    strong_named: bool,
) -> Dict[str, object]:
    """Collect every rendered field of a resolution.

    Parameters
    ----------
    resolution : Resolution
        The resolved version and repository facts.
    template : str
        Informational version template; empty for the default format.
    config : VersioningConfig
        Supplies the pre-release label overrides.
    strong_named : bool
        Whether the numeric version is for a strong-named binary.
    """
    version = resolution.version
    labels = config.prerelease_labels
    facts = resolution.facts
    return {
        "major": version.major,
        "minor": version.minor,
        "patch": version.patch,
        "stage": version.label(labels),
        "preRelease": version.pre_release,
        "semVer": version.to_string(labels),
        "numericVersion": numeric_version(version, strong_named),
        "informationalVersion": informational_version(template, facts, version, labels),
        "branchName": facts.branch_name,
        "sha": facts.sha,
        "commitsSinceVersionSource": facts.commits_since_version_source,
        "role": resolution.role.value,
    }


def describe_fatal(result: Fatal) -> List[str]:
    """Format a fatal result as diagnostic lines."""
    lines = [f"{result.kind}: {result.message}"]
    for key, value in sorted(result.context.items()):
        if value is not None:
            lines.append(f"{key}: {value}")
    return lines


@click.command()
@click.option(
    "--path",
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory inside the repository (defaults to the current directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (defaults to .gitflow_version.json in the repository root).",
)
@click.option("--template", default="", help="Informational version template containing {Tokens}.")
@click.option("--strict", is_flag=True, default=None, help="Fail on release/hotfix branch names without a version.")
@click.option("--strong-named", is_flag=True, help="Emit Major.Minor.0.0 as the numeric version.")
@click.option(
    "--build-agent/--no-build-agent",
    default=None,
    help="Treat a missing repository as fatal (detected from the environment by default).",
)
@click.option(
    "--output",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Print the informational version or all fields as JSON.",
)
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
@click.version_option(version=__version__, prog_name="gitflow-version")
def main(
    path: Optional[Path],
    config_path: Optional[Path],
    template: str,
    strict: Optional[bool],
    strong_named: bool,
    build_agent: Optional[bool],
    output: str,
    verbose: bool,
) -> None:
    """Compute a GitFlow semantic version from the repository history."""
    # Use force=True to ensure handlers are reconfigured on subsequent
    # invocations (important for tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        force=True,
    )

    ctx = click.get_current_context(silent=True)

    try:
        start = path or Path.cwd()
        if build_agent is None:
            build_agent = is_running_in_build_agent()
        if build_agent:
            print_info("Executing inside a build agent")

        result = resolve_repository(
            start,
            config_path=config_path,
            strict=strict or None,
            build_agent=build_agent,
        )

        if isinstance(result, Skipped):
            print_warning(f"Version resolution skipped: {result.reason}")
            raise click.exceptions.Exit(EXIT_SUCCESS)

        if isinstance(result, Fatal):
            for line in describe_fatal(result):
                print_error(line)
            raise click.exceptions.Exit(EXIT_CODES.get(result.kind, EXIT_GENERIC_ERROR))

        assert isinstance(result, Resolved)
        resolution = result.resolution
        fields = render_output(resolution, template, result.config, strong_named)

        if output == "json":
            click.echo(json.dumps(fields, indent=2))
        else:
            click.echo(fields["informationalVersion"])

        raise click.exceptions.Exit(EXIT_SUCCESS)

    except click.exceptions.Exit:
        # Click uses its own Exit exception; re-raise to let Click handle it
        raise
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        ctx.exit(EXIT_GENERIC_ERROR)

