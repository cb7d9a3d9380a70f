"""Jenkins status table, trigger rules and commit matchers.

Jenkins has no typed trigger field: the origin of a build is spread across
plugin-specific ``actions`` (Git, GitHub/GitLab pull request builders,
parameters) and free-text ``causes``.
"""

from collections.abc import Iterator
from typing import Any

from pipeline_promotion.locator import CommitMatcher
from pipeline_promotion.models.pipeline import PipelineStatus, TriggerReason
from pipeline_promotion.providers.jenkins.models import Build
from pipeline_promotion.status import ANY_RESULT, StatusTable
from pipeline_promotion.triggers import TriggerClassifier, TriggerRule

STATUS_TABLE = StatusTable(
    provider="jenkins",
    rows={
        ("queued", ANY_RESULT): PipelineStatus.PENDING,
        ("building", ANY_RESULT): PipelineStatus.RUNNING,
        ("completed", "SUCCESS"): PipelineStatus.SUCCESS,
        ("completed", "FAILURE"): PipelineStatus.FAILURE,
        ("completed", "UNSTABLE"): PipelineStatus.FAILURE,
        ("completed", "ABORTED"): PipelineStatus.CANCELLED,
        ("completed", "NOT_BUILT"): PipelineStatus.PENDING,
    },
)

COMMIT_PARAMETERS = frozenset(["GIT_COMMIT", "ghprbActualCommit"])
PULL_NUMBER_PARAMETERS = frozenset(["ghprbPullId", "CHANGE_ID"])


def _class_of(item: dict[str, Any]) -> str:
    return str(item.get("_class") or "")


def _description_of(cause: dict[str, Any]) -> str:
    return str(cause.get("shortDescription") or "")


def _has_pull_request_action(build: Build) -> bool:
    for action in build.actions:
        action_class = _class_of(action)
        if (
            "pull-request" in action_class
            or "PullRequestAction" in action_class
            or action.get("pullRequest")
        ):
            return True
    return any(
        name in PULL_NUMBER_PARAMETERS or name.startswith("ghprb")
        for name in (str(p.get("name") or "") for p in build.parameters)
    )


def _has_pull_request_cause(build: Build) -> bool:
    for cause in build.all_causes:
        description = _description_of(cause).lower()
        if (
            "pull request" in description
            or "pr " in description
            or "pullrequest" in _class_of(cause).lower()
        ):
            return True
    return False


def _has_push_cause(build: Build) -> bool:
    return any(
        "push" in _description_of(cause)
        or "GitHubPushCause" in _class_of(cause)
        or "GitLabWebHookCause" in _class_of(cause)
        for cause in build.all_causes
    )


def _has_user_cause(build: Build) -> bool:
    return any(
        "Started by user" in _description_of(cause)
        or "UserIdCause" in _class_of(cause)
        for cause in build.all_causes
    )


def _has_timer_cause(build: Build) -> bool:
    return any(
        "timer" in _description_of(cause) or "TimerTrigger" in _class_of(cause)
        for cause in build.all_causes
    )


def _has_remote_cause(build: Build) -> bool:
    return any(
        "remote" in _description_of(cause) or "RemoteCause" in _class_of(cause)
        for cause in build.all_causes
    )


def _has_scm_revision(build: Build) -> bool:
    return any(
        "git" in _class_of(action)
        or action.get("lastBuiltRevision")
        or action.get("buildsByBranchName")
        for action in build.actions
    )


TRIGGER_CLASSIFIER: TriggerClassifier[Build] = TriggerClassifier(
    provider="jenkins",
    rules=[
        TriggerRule(
            name="pull-request-action",
            reason=TriggerReason.PULL_REQUEST,
            predicate=_has_pull_request_action,
        ),
        TriggerRule(
            name="pull-request-cause",
            reason=TriggerReason.PULL_REQUEST,
            predicate=_has_pull_request_cause,
        ),
        TriggerRule(
            name="push-cause", reason=TriggerReason.PUSH, predicate=_has_push_cause
        ),
        TriggerRule(
            name="user-cause", reason=TriggerReason.MANUAL, predicate=_has_user_cause
        ),
        TriggerRule(
            name="timer-cause",
            reason=TriggerReason.SCHEDULE,
            predicate=_has_timer_cause,
        ),
        TriggerRule(
            name="remote-cause", reason=TriggerReason.API, predicate=_has_remote_cause
        ),
        # Weak signal: a build that checked out code without any cause above.
        TriggerRule(
            name="scm-revision", reason=TriggerReason.PUSH, predicate=_has_scm_revision
        ),
    ],
)


def last_built_revisions(build: Build) -> Iterator[str | None]:
    for action in build.actions:
        if "hudson.plugins.git" in _class_of(action):
            yield (action.get("lastBuiltRevision") or {}).get("SHA1")


def branch_revisions(build: Build) -> Iterator[str | None]:
    for action in build.actions:
        for branch in (action.get("buildsByBranchName") or {}).values():
            yield (branch.get("revision") or {}).get("SHA1")


def built_branches(build: Build) -> Iterator[str]:
    """Names of every branch the build reports having built."""
    for action in build.actions:
        yield from (action.get("buildsByBranchName") or {}).keys()
        revision = action.get("lastBuiltRevision") or {}
        for branch in revision.get("branch") or ():
            if isinstance(branch, dict) and branch.get("name"):
                yield branch["name"]


def commit_parameters(build: Build) -> Iterator[str | None]:
    for parameter in build.parameters:
        if parameter.get("name") in COMMIT_PARAMETERS:
            yield parameter.get("value")


def pull_request_commits(build: Build) -> Iterator[str | None]:
    for action in build.actions:
        if "pull-request" in _class_of(action):
            pull_request = action.get("pullRequest") or {}
            yield (pull_request.get("source") or {}).get("commit")


def pull_request_numbers(build: Build) -> Iterator[str]:
    for parameter in build.parameters:
        if parameter.get("name") in PULL_NUMBER_PARAMETERS:
            yield str(parameter.get("value"))


COMMIT_MATCHERS: list[CommitMatcher[Build]] = [
    CommitMatcher(name="lastBuiltRevision", candidates=last_built_revisions),
    CommitMatcher(name="buildsByBranchName", candidates=branch_revisions),
    CommitMatcher(name="build-parameter", candidates=commit_parameters),
    CommitMatcher(name="pull-request-source", candidates=pull_request_commits),
    CommitMatcher(
        name="cause-description",
        candidates=lambda build: [_description_of(c) for c in build.all_causes],
        mode="text",
    ),
    CommitMatcher(
        name="display-name",
        candidates=lambda build: [build.display_name, build.description],
        mode="text",
    ),
]


def commit_sha(build: Build) -> str | None:
    """First commit SHA the build reports."""
    for extract in (last_built_revisions, branch_revisions, commit_parameters):
        for sha in extract(build):
            if isinstance(sha, str) and sha:
                return sha
    return None
