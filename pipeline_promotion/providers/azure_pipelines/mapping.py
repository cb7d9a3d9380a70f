"""Azure Pipelines status table, trigger rules and commit matchers."""

from pipeline_promotion.locator import CommitMatcher
from pipeline_promotion.models.pipeline import PipelineStatus, TriggerReason
from pipeline_promotion.providers.azure_pipelines.models import PipelineRun
from pipeline_promotion.status import ANY_RESULT, StatusTable
from pipeline_promotion.triggers import TriggerClassifier, TriggerRule

STATUS_TABLE = StatusTable(
    provider="azure-pipelines",
    rows={
        ("notStarted", ANY_RESULT): PipelineStatus.PENDING,
        ("postponed", ANY_RESULT): PipelineStatus.PENDING,
        ("inProgress", ANY_RESULT): PipelineStatus.RUNNING,
        # Still transitioning; the final result is reported once completed.
        ("cancelling", ANY_RESULT): PipelineStatus.RUNNING,
        ("canceling", ANY_RESULT): PipelineStatus.RUNNING,
        ("completed", "succeeded"): PipelineStatus.SUCCESS,
        # Policy: a run with warnings or non-blocking failed jobs counts as success.
        ("completed", "partiallySucceeded"): PipelineStatus.SUCCESS,
        ("completed", "failed"): PipelineStatus.FAILURE,
        ("completed", "canceled"): PipelineStatus.CANCELLED,
    },
)

EXPLICIT_REASONS = {
    "pullRequest": TriggerReason.PULL_REQUEST,
    "individualCI": TriggerReason.PUSH,
    "batchedCI": TriggerReason.PUSH,
    "manual": TriggerReason.MANUAL,
    "userCreated": TriggerReason.MANUAL,
    "schedule": TriggerReason.SCHEDULE,
    "resourceTrigger": TriggerReason.API,
    "buildCompletion": TriggerReason.API,
}


def _build_reason(run: PipelineRun) -> str:
    return str(run.trigger_info.get("Build.Reason") or "")


def _has_pull_request_linkage(run: PipelineRun) -> bool:
    return bool(
        run.trigger_info.get("pr.pullRequestId")
        or run.trigger_info.get("pr.sourceSha")
        or _build_reason(run) == "PullRequest"
    )


def _has_push_linkage(run: PipelineRun) -> bool:
    return bool(
        run.trigger_info.get("ci.sourceSha")
        or _build_reason(run) in ("IndividualCI", "BatchedCI")
    )


TRIGGER_CLASSIFIER: TriggerClassifier[PipelineRun] = TriggerClassifier(
    provider="azure-pipelines",
    explicit=lambda run: run.reason,
    explicit_reasons=EXPLICIT_REASONS,
    rules=[
        TriggerRule(
            name="pull-request-linkage",
            reason=TriggerReason.PULL_REQUEST,
            predicate=_has_pull_request_linkage,
        ),
        TriggerRule(
            name="ci-linkage",
            reason=TriggerReason.PUSH,
            predicate=_has_push_linkage,
        ),
        TriggerRule(
            name="manual-reason",
            reason=TriggerReason.MANUAL,
            predicate=lambda run: _build_reason(run) in ("Manual", "UserCreated"),
        ),
        TriggerRule(
            name="schedule-reason",
            reason=TriggerReason.SCHEDULE,
            predicate=lambda run: _build_reason(run) == "Schedule",
        ),
        TriggerRule(
            name="resource-reason",
            reason=TriggerReason.API,
            predicate=lambda run: _build_reason(run)
            in ("ResourceTrigger", "BuildCompletion"),
        ),
    ],
)


def _repository_version(run: PipelineRun) -> list[str | None]:
    repository = run.self_repository
    return [repository.version if repository else None]


COMMIT_MATCHERS: list[CommitMatcher[PipelineRun]] = [
    CommitMatcher(name="sourceVersion", candidates=lambda run: [run.source_version]),
    CommitMatcher(name="repository-version", candidates=_repository_version),
    CommitMatcher(
        name="ci.sourceSha",
        candidates=lambda run: [run.trigger_info.get("ci.sourceSha")],
    ),
    CommitMatcher(
        name="pr.sourceSha",
        candidates=lambda run: [run.trigger_info.get("pr.sourceSha")],
    ),
]
