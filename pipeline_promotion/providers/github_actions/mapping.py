"""GitHub Actions status table, trigger rules and commit matchers."""

from pipeline_promotion.locator import CommitMatcher
from pipeline_promotion.models.pipeline import PipelineStatus, TriggerReason
from pipeline_promotion.providers.github_actions.models import WorkflowRun
from pipeline_promotion.status import ANY_RESULT, StatusTable
from pipeline_promotion.triggers import TriggerClassifier, TriggerRule

STATUS_TABLE = StatusTable(
    provider="github-actions",
    rows={
        ("queued", ANY_RESULT): PipelineStatus.PENDING,
        ("waiting", ANY_RESULT): PipelineStatus.PENDING,
        ("requested", ANY_RESULT): PipelineStatus.PENDING,
        ("pending", ANY_RESULT): PipelineStatus.PENDING,
        ("in_progress", ANY_RESULT): PipelineStatus.RUNNING,
        ("completed", "success"): PipelineStatus.SUCCESS,
        ("completed", "neutral"): PipelineStatus.SUCCESS,
        ("completed", "failure"): PipelineStatus.FAILURE,
        ("completed", "timed_out"): PipelineStatus.FAILURE,
        ("completed", "startup_failure"): PipelineStatus.FAILURE,
        ("completed", "action_required"): PipelineStatus.FAILURE,
        ("completed", "cancelled"): PipelineStatus.CANCELLED,
        ("completed", "skipped"): PipelineStatus.CANCELLED,
        ("completed", "stale"): PipelineStatus.CANCELLED,
    },
)

EVENT_REASONS = {
    "pull_request": TriggerReason.PULL_REQUEST,
    "pull_request_target": TriggerReason.PULL_REQUEST,
    "push": TriggerReason.PUSH,
    "workflow_dispatch": TriggerReason.MANUAL,
    "schedule": TriggerReason.SCHEDULE,
    "repository_dispatch": TriggerReason.API,
    "workflow_call": TriggerReason.API,
    "workflow_run": TriggerReason.API,
}

TRIGGER_CLASSIFIER: TriggerClassifier[WorkflowRun] = TriggerClassifier(
    provider="github-actions",
    explicit=lambda run: run.event,
    explicit_reasons=EVENT_REASONS,
    rules=[
        TriggerRule(
            name="pull-request-linkage",
            reason=TriggerReason.PULL_REQUEST,
            predicate=lambda run: len(run.pull_requests) > 0,
        ),
        TriggerRule(
            name="head-commit",
            reason=TriggerReason.PUSH,
            predicate=lambda run: run.head_commit is not None,
        ),
    ],
)

COMMIT_MATCHERS: list[CommitMatcher[WorkflowRun]] = [
    CommitMatcher(name="head_sha", candidates=lambda run: [run.head_sha]),
    CommitMatcher(
        name="pull-request-head",
        candidates=lambda run: [pr.head.sha for pr in run.pull_requests if pr.head],
    ),
]
