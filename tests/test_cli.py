import json
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

import gitflow_version.cli as cli
from gitflow_version.config.loader import VersioningConfig
from gitflow_version.vcs.memory import InMemoryRepository
from gitflow_version.versioning.resolver import Fatal, Resolved, Skipped, VersionResolver
from gitflow_version.versioning.semantic_version import Stage


def release_resolution():
    repo = InMemoryRepository()
    repo.commit("master")
    repo.tag("1.1.0", "master")
    repo.branch("develop", "master")
    repo.commit("develop")
    repo.branch("release/1.2.0", "develop")
    repo.commits("release/1.2.0", 3)
    repo.checkout("release/1.2.0")
    return VersionResolver(repo).resolve()


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self.resolution = release_resolution()
        self.sha = self.resolution.facts.sha

    def invoke(self, result, args=()):
        with patch.object(cli, "resolve_repository", return_value=result) as mock_resolve:
            outcome = self.runner.invoke(cli.main, ["--path", ".", "--no-build-agent", *args])
        return outcome, mock_resolve

    def test_text_output(self) -> None:
        outcome, mock_resolve = self.invoke(Resolved(self.resolution))
        self.assertEqual(outcome.exit_code, cli.EXIT_SUCCESS)
        self.assertIn(f"1.2.0-Beta.3 Branch:'release/1.2.0' Sha:{self.sha}", outcome.output)
        _, kwargs = mock_resolve.call_args
        self.assertFalse(kwargs["build_agent"])
        self.assertIsNone(kwargs["strict"])

    def test_template_output(self) -> None:
        outcome, _ = self.invoke(Resolved(self.resolution), ["--template", "{Stage}.{PreRelease} {BranchName}"])
        self.assertEqual(outcome.exit_code, cli.EXIT_SUCCESS)
        self.assertIn("1.2.0 Beta.3 release/1.2.0", outcome.output)

    def test_template_is_prefixed_with_version_core(self) -> None:
        outcome, _ = self.invoke(Resolved(self.resolution), ["--template", "{Stage}.{PreRelease}+{ShortSha}"])
        self.assertEqual(outcome.exit_code, cli.EXIT_SUCCESS)
        self.assertEqual(outcome.output.strip(), f"1.2.0 Beta.3+{self.sha[:7]}")

    def test_json_output(self) -> None:
        config = VersioningConfig(prerelease_labels={Stage.BETA: "rc"})
        outcome, _ = self.invoke(Resolved(self.resolution, config), ["--output", "json", "--strong-named"])
        self.assertEqual(outcome.exit_code, cli.EXIT_SUCCESS)
        data = json.loads(outcome.output)
        self.assertEqual(data["semVer"], "1.2.0-rc.3")
        self.assertEqual(data["stage"], "rc")
        self.assertEqual(data["preRelease"], 3)
        self.assertEqual(data["numericVersion"], "1.2.0.0")
        self.assertEqual(data["branchName"], "release/1.2.0")
        self.assertEqual(data["commitsSinceVersionSource"], 3)
        self.assertEqual(data["role"], "Release")

    def test_skipped_exits_successfully(self) -> None:
        outcome, _ = self.invoke(Skipped("No .git directory found"))
        self.assertEqual(outcome.exit_code, cli.EXIT_SUCCESS)
        self.assertIn("skipped", outcome.output)

    def test_fatal_exit_codes(self) -> None:
        cases = [
            (Fatal("MissingBranchError", "no develop", {"branch": "feature/x"}), cli.EXIT_MISSING_BRANCH),
            (Fatal("UnreachableAnchorError", "no anchor"), cli.EXIT_UNREACHABLE_ANCHOR),
            (Fatal("UnparsableBranchNameError", "bad name"), cli.EXIT_UNPARSABLE_BRANCH),
            (Fatal("RepositoryUnavailable", "no repo"), cli.EXIT_NO_REPO),
            (Fatal("ConfigError", "bad config"), cli.EXIT_CONFIG_ERROR),
            (Fatal("GitError", "git failed"), cli.EXIT_VCS_FAILURE),
            (Fatal("SomethingElse", "?"), cli.EXIT_GENERIC_ERROR),
        ]
        for fatal, code in cases:
            with self.subTest(kind=fatal.kind):
                outcome, _ = self.invoke(fatal)
                self.assertEqual(outcome.exit_code, code)
                self.assertIn(fatal.message, outcome.output)

    def test_fatal_context_is_printed(self) -> None:
        outcome, _ = self.invoke(Fatal("MissingBranchError", "no develop", {"branch": "feature/x", "role": None}))
        self.assertIn("branch: feature/x", outcome.output)
        self.assertNotIn("role:", outcome.output)

    def test_strict_and_build_agent_flags_are_forwarded(self) -> None:
        with patch.object(cli, "resolve_repository", return_value=Skipped("x")) as mock_resolve:
            self.runner.invoke(cli.main, ["--path", ".", "--strict", "--build-agent"])
        args, kwargs = mock_resolve.call_args
        self.assertEqual(args[0], Path("."))
        self.assertTrue(kwargs["strict"])
        self.assertTrue(kwargs["build_agent"])

    def test_build_agent_detected_from_environment(self) -> None:
        with patch.object(cli, "resolve_repository", return_value=Skipped("x")) as mock_resolve:
            self.runner.invoke(cli.main, ["--path", "."], env={"TEAMCITY_VERSION": "2024.1"})
        _, kwargs = mock_resolve.call_args
        self.assertTrue(kwargs["build_agent"])

    def test_unexpected_error(self) -> None:
        with patch.object(cli, "resolve_repository", side_effect=RuntimeError("boom")):
            outcome = self.runner.invoke(cli.main, ["--path", ".", "--no-build-agent"])
        self.assertEqual(outcome.exit_code, cli.EXIT_GENERIC_ERROR)

    def test_version_option(self) -> None:
        outcome = self.runner.invoke(cli.main, ["--version"])
        self.assertEqual(outcome.exit_code, 0)
        self.assertIn("gitflow-version", outcome.output)


class TestBuildAgentDetection(unittest.TestCase):
    def test_is_running_in_build_agent(self) -> None:
        self.assertTrue(cli.is_running_in_build_agent({"TEAMCITY_VERSION": "2024.1"}))
        self.assertTrue(cli.is_running_in_build_agent({"CI": "true"}))
        self.assertFalse(cli.is_running_in_build_agent({"CI": ""}))
        self.assertFalse(cli.is_running_in_build_agent({}))


if __name__ == "__main__":
    unittest.main()
