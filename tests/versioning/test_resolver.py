import unittest

from gitflow_version.config.loader import VersioningConfig
from gitflow_version.vcs.memory import InMemoryRepository
from gitflow_version.versioning.branch_classifier import BranchRole
from gitflow_version.versioning.errors import (
    MissingBranchError,
    RepositoryUnavailable,
    UnparsableBranchNameError,
    UnreachableAnchorError,
)
from gitflow_version.versioning.resolver import DETACHED_BRANCH_NAME, VersionResolver
from gitflow_version.versioning.semantic_version import SemanticVersion, Stage


def gitflow_repository(tag: str = "1.2.0") -> InMemoryRepository:
    """master with a release tag and develop branched from it."""
    repo = InMemoryRepository()
    repo.commits("master", 2)
    if tag:
        repo.tag(tag, "master")
    repo.branch("develop", "master")
    return repo


def resolve(repo: InMemoryRepository, branch: str, config: VersioningConfig = None):
    repo.checkout(branch)
    return VersionResolver(repo, config).resolve()


class TestMainline(unittest.TestCase):
    def test_untagged_mainline_is_initial_version(self) -> None:
        repo = InMemoryRepository()
        root = repo.commits("master", 3)[0]
        resolution = resolve(repo, "master")
        self.assertEqual(resolution.version, SemanticVersion(0, 1, 0))
        self.assertEqual(str(resolution.version), "0.1.0")
        self.assertIsNone(resolution.version.pre_release)
        self.assertEqual(resolution.anchor.commit, root)
        self.assertEqual(resolution.facts.commits_since_version_source, 2)
        self.assertEqual(resolution.role, BranchRole.MAINLINE)

    def test_highest_reachable_tag_wins(self) -> None:
        repo = InMemoryRepository()
        repo.commit("master")
        repo.tag("v1.0.0", "master")
        repo.commit("master")
        repo.tag("v1.1.0", "master")
        repo.tag("nightly", "master")
        repo.branch("develop", "master")
        repo.commit("develop")
        repo.tag("9.9.9", "develop")
        repo.commit("master")

        resolution = resolve(repo, "master")
        self.assertEqual(str(resolution.version), "1.1.0")
        self.assertEqual(resolution.facts.commits_since_version_source, 1)

    def test_main_is_mainline_too(self) -> None:
        repo = InMemoryRepository()
        repo.commit("main")
        repo.tag("2.0.0", "main")
        self.assertEqual(str(resolve(repo, "main").version), "2.0.0")


class TestDevelopment(unittest.TestCase):
    def test_develop_tracks_next_minor(self) -> None:
        repo = gitflow_repository()
        repo.commits("develop", 4)
        self.assertEqual(str(resolve(repo, "develop").version), "1.3.0-Unstable.4")

    def test_merged_commits_do_not_inflate_prerelease(self) -> None:
        repo = gitflow_repository()
        repo.commits("develop", 2)
        repo.branch("feature/big", "develop")
        repo.commits("feature/big", 50)
        repo.merge("develop", "feature/big")

        resolution = resolve(repo, "develop")
        self.assertEqual(str(resolution.version), "1.3.0-Unstable.3")

    def test_develop_without_mainline(self) -> None:
        repo = InMemoryRepository()
        repo.commits("develop", 2)
        with self.assertRaises(MissingBranchError) as ctx:
            resolve(repo, "develop")
        self.assertEqual(ctx.exception.context["reference"], "mainline")


class TestRelease(unittest.TestCase):
    def test_release_counts_from_merge_base_with_develop(self) -> None:
        repo = gitflow_repository()
        repo.commits("develop", 2)
        repo.branch("release/1.2.0", "develop")
        repo.commits("release/1.2.0", 3)
        repo.commits("develop", 2)

        resolution = resolve(repo, "release/1.2.0")
        self.assertEqual(str(resolution.version), "1.2.0-Beta.3")
        self.assertEqual(resolution.version.stage, Stage.BETA)

    def test_release_patch_defaults_to_zero(self) -> None:
        repo = gitflow_repository()
        repo.branch("release/2.1", "develop")
        repo.commit("release/2.1")
        self.assertEqual(str(resolve(repo, "release/2.1").version), "2.1.0-Beta.1")

    def test_unparsable_release_falls_back_to_develop(self) -> None:
        repo = gitflow_repository()
        repo.branch("release/next", "develop")
        repo.commits("release/next", 2)
        repo.checkout("release/next")
        with self.assertLogs("gitflow_version.versioning.locator", level="WARNING") as logs:
            resolution = VersionResolver(repo).resolve()
        self.assertEqual(str(resolution.version), "1.3.0-Beta.2")
        self.assertIn("release/next", logs.output[0])

    def test_unparsable_release_is_fatal_in_strict_mode(self) -> None:
        repo = gitflow_repository()
        repo.branch("release/next", "develop")
        with self.assertRaises(UnparsableBranchNameError) as ctx:
            resolve(repo, "release/next", VersioningConfig(strict=True))
        self.assertEqual(ctx.exception.context["branch"], "release/next")

    def test_release_without_develop(self) -> None:
        repo = InMemoryRepository()
        repo.commit("master")
        repo.branch("release/1.0.0", "master")
        with self.assertRaises(MissingBranchError):
            resolve(repo, "release/1.0.0")


class TestHotfix(unittest.TestCase):
    def test_hotfix_at_merge_base(self) -> None:
        repo = gitflow_repository()
        repo.branch("hotfix/1.2.1", "master")
        self.assertEqual(str(resolve(repo, "hotfix/1.2.1").version), "1.2.1-Beta.0")

    def test_hotfix_counts_commits(self) -> None:
        repo = gitflow_repository()
        repo.branch("hotfix/1.2.1", "master")
        repo.commits("hotfix/1.2.1", 2)
        repo.commit("master")
        self.assertEqual(str(resolve(repo, "hotfix/1.2.1").version), "1.2.1-Beta.2")

    def test_hotfix_without_patch_increments_released_patch(self) -> None:
        repo = gitflow_repository(tag="1.2.3")
        repo.branch("hotfix/1.2", "master")
        self.assertEqual(str(resolve(repo, "hotfix/1.2").version), "1.2.4-Beta.0")

    def test_unparsable_hotfix_uses_next_patch(self) -> None:
        repo = gitflow_repository()
        repo.branch("hotfix/typo", "master")
        repo.checkout("hotfix/typo")
        with self.assertLogs("gitflow_version.versioning.locator", level="WARNING"):
            resolution = VersionResolver(repo).resolve()
        self.assertEqual(str(resolution.version), "1.2.1-Beta.0")

    def test_hotfix_without_mainline(self) -> None:
        repo = InMemoryRepository()
        repo.commit("develop")
        repo.branch("hotfix/1.0.1", "develop")
        with self.assertRaises(MissingBranchError) as ctx:
            resolve(repo, "hotfix/1.0.1")
        self.assertEqual(ctx.exception.context["branch"], "hotfix/1.0.1")


class TestTopicBranches(unittest.TestCase):
    def test_feature_branch_from_develop(self) -> None:
        repo = gitflow_repository()
        self.assertEqual(str(resolve(repo, "develop").version), "1.3.0-Unstable.0")

        repo.branch("feature/x", "develop")
        repo.commits("feature/x", 5)
        resolution = resolve(repo, "feature/x")

        version = resolution.version
        self.assertEqual((version.major, version.minor, version.patch), (1, 3, 0))
        self.assertEqual(version.stage, Stage.ALPHA)
        self.assertEqual(version.pre_release, 5)
        self.assertEqual(resolution.facts.branch_name, "feature/x")

    def test_feature_without_develop_is_fatal(self) -> None:
        repo = InMemoryRepository()
        repo.commit("master")
        repo.branch("feature/x", "master")
        repo.commit("feature/x")
        with self.assertRaises(MissingBranchError) as ctx:
            resolve(repo, "feature/x")
        self.assertEqual(
            ctx.exception.context,
            {"branch": "feature/x", "role": "Feature", "reference": "development"},
        )

    def test_pull_request_falls_back_to_mainline(self) -> None:
        repo = InMemoryRepository()
        repo.commit("master")
        repo.tag("1.0.0", "master")
        repo.branch("pull/42", "master")
        repo.commits("pull/42", 2)
        repo.checkout("pull/42")
        with self.assertLogs("gitflow_version.versioning.locator", level="WARNING"):
            resolution = VersionResolver(repo).resolve()
        self.assertEqual(resolution.role, BranchRole.PULL_REQUEST)
        self.assertEqual(str(resolution.version), "1.0.1-Alpha.2")

    def test_unknown_branch_is_unstable(self) -> None:
        repo = gitflow_repository()
        repo.branch("spike", "develop")
        repo.commits("spike", 3)
        resolution = resolve(repo, "spike")
        self.assertEqual(resolution.role, BranchRole.UNKNOWN)
        self.assertEqual(str(resolution.version), "1.3.0-Unstable.3")

    def test_detached_head_is_unknown(self) -> None:
        repo = gitflow_repository()
        sha = repo.commit("develop")
        repo.detach(sha)
        resolution = VersionResolver(repo).resolve()
        self.assertEqual(resolution.facts.branch_name, DETACHED_BRANCH_NAME)
        self.assertEqual(resolution.facts.sha, sha)
        self.assertEqual(str(resolution.version), "1.3.0-Unstable.0")

    def test_orphan_feature_has_no_anchor(self) -> None:
        repo = gitflow_repository()
        repo.commit("feature/orphan", parents=[])
        with self.assertRaises(UnreachableAnchorError):
            resolve(repo, "feature/orphan")


class TestRepositoryState(unittest.TestCase):
    def test_empty_repository_is_unavailable(self) -> None:
        with self.assertRaises(RepositoryUnavailable):
            VersionResolver(InMemoryRepository()).resolve()

    def test_pending_changes_are_reported(self) -> None:
        repo = gitflow_repository()
        repo.pending_changes = True
        self.assertTrue(resolve(repo, "master").facts.has_pending_changes)

    def test_resolution_is_repeatable(self) -> None:
        repo = gitflow_repository()
        repo.branch("release/1.3.0", "develop")
        repo.commits("release/1.3.0", 2)
        repo.checkout("release/1.3.0")
        first = VersionResolver(repo).resolve()
        second = VersionResolver(repo).resolve()
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
