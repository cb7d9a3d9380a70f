"""Tests for the commit locator."""

from dataclasses import dataclass

import pytest

from pipeline_promotion.locator import (
    CommitMatcher,
    find_run_by_commit,
    find_runs_by_commit,
    match_commit,
    sha_matches,
)
from pipeline_promotion.providers.jenkins.mapping import COMMIT_MATCHERS
from pipeline_promotion.providers.jenkins.models import Build
from pipeline_promotion.testing.jenkins.payloads import (
    build,
    cause_action,
    git_build_data,
    parameters_action,
)

SHA = "4f2a9c1d8e7b6a5f4e3d2c1b0a9f8e7d6c5b4a39"


@dataclass(frozen=True)
class FakeRun:
    number: int
    revision: str | None = None
    note: str = ""


MATCHERS = [
    CommitMatcher[FakeRun](name="revision", candidates=lambda r: [r.revision]),
    CommitMatcher[FakeRun](name="note", candidates=lambda r: [r.note], mode="text"),
]


class TestShaMatches:
    """Tests for sha_matches."""

    @pytest.mark.parametrize(
        ("candidate", "target"),
        [
            (SHA, SHA),
            (SHA[:7], SHA),
            (SHA, SHA[:7]),
            (SHA.upper(), SHA[:10]),
        ],
    )
    def test_matches_either_prefix(self, candidate: str, target: str) -> None:
        """Either side may be a prefix of the other, case-insensitively."""
        assert sha_matches(candidate, target)
        assert sha_matches(target, candidate)

    @pytest.mark.parametrize(
        ("candidate", "target"),
        [("", SHA), (SHA, ""), ("   ", SHA), ("deadbeef", SHA)],
    )
    def test_rejects(self, candidate: str, target: str) -> None:
        """Empty strings never match and different SHAs do not match."""
        assert not sha_matches(candidate, target)


class TestFindRunsByCommit:
    """Tests for find_runs_by_commit and find_run_by_commit."""

    def test_empty_history_is_not_found(self) -> None:
        """Returns None on an empty history."""
        assert (
            find_run_by_commit([], SHA, matchers=MATCHERS, number=lambda r: r.number)
            is None
        )

    def test_highest_number_wins_across_methods(self) -> None:
        """Matches found by different methods are sorted by run number."""
        history = [
            FakeRun(number=3, revision=SHA),
            FakeRun(number=7, note=f"Deploy {SHA}"),
            FakeRun(number=5, revision=SHA[:7]),
            FakeRun(number=9, revision="0" * 40),
        ]

        matches = find_runs_by_commit(
            history, SHA, matchers=MATCHERS, number=lambda r: r.number
        )
        best = find_run_by_commit(
            history, SHA, matchers=MATCHERS, number=lambda r: r.number
        )

        assert [r.number for r in matches] == [7, 5, 3]
        assert best is not None
        assert best.number == 7

    def test_only_inspects_max_depth_runs(self) -> None:
        """Runs beyond the scan window are never considered."""
        history = [FakeRun(number=n) for n in range(10, 0, -1)]
        history.append(FakeRun(number=0, revision=SHA))

        assert (
            find_run_by_commit(
                history, SHA, 10, matchers=MATCHERS, number=lambda r: r.number
            )
            is None
        )

    def test_match_commit_names_first_method(self) -> None:
        """Reports which matcher found the commit."""
        run = FakeRun(number=1, revision=SHA, note=SHA)

        assert match_commit(run, SHA, MATCHERS) == "revision"
        assert match_commit(run, "", MATCHERS) is None


class TestJenkinsMatchers:
    """Tests for the Jenkins matcher chain."""

    def _find(self, *builds: dict[str, object]) -> Build | None:
        history = [Build.model_validate(b) for b in builds]
        return find_run_by_commit(
            history, SHA[:12], matchers=COMMIT_MATCHERS, number=lambda b: b.number
        )

    def test_last_built_revision(self) -> None:
        """Finds the commit in the Git plugin's build data."""
        found = self._find(
            build(number=2, actions=[git_build_data("1" * 40)]),
            build(number=1, actions=[git_build_data(SHA)]),
        )

        assert found is not None
        assert found.number == 1

    def test_commit_parameter(self) -> None:
        """Finds the commit in a GIT_COMMIT parameter."""
        found = self._find(
            build(number=4, actions=[parameters_action({"GIT_COMMIT": SHA})])
        )

        assert found is not None
        assert found.number == 4

    def test_pull_request_source_commit(self) -> None:
        """Finds the commit in a pull request source."""
        action = {
            "_class": "io.jenkins.plugins.pull-request-monitoring",
            "pullRequest": {"source": {"commit": SHA}},
        }

        found = self._find(build(number=6, actions=[action]))

        assert found is not None
        assert found.number == 6

    def test_cause_description_as_last_resort(self) -> None:
        """Finds the commit mentioned in a cause description."""
        cause = {"shortDescription": f"Triggered for commit {SHA}"}

        found = self._find(build(number=8, actions=[cause_action(cause)]))

        assert found is not None
        assert found.number == 8

    def test_absent_commit_is_not_found(self) -> None:
        """Returns None without raising when no build matches."""
        assert self._find(build(number=1), build(number=2)) is None
