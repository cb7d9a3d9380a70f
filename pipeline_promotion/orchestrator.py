"""Promotion orchestrator driving the PR, direct-commit and source-change workflows."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from pipeline_promotion.collaborators import DeploymentController, GitCollaborator
from pipeline_promotion.errors import WorkflowAbortedError
from pipeline_promotion.models.pipeline import (
    EventType,
    Pipeline,
    PipelineRef,
    PipelineStatus,
)
from pipeline_promotion.models.promotion import PromotionRequest, PullRequest, Stage
from pipeline_promotion.providers.base import CIProvider

log = logging.getLogger(__name__)

SOURCE_CHANGE_MODE = "source-change"
SOURCE_CHANGE_SCOPE = "source-repository"


@dataclass(frozen=True, kw_only=True)
class WorkflowResult:
    """Summary of a workflow that reached ``DONE``."""

    mode: str
    environment: str
    stages: Sequence[Stage]
    revision: str | None = None
    pipelines: Sequence[Pipeline] = ()


@dataclass(kw_only=True)
class _WorkflowRun:
    """Progress of one workflow invocation."""

    mode: str
    environment: str
    completed: list[Stage] = field(default_factory=list)
    pipelines: list[Pipeline] = field(default_factory=list)

    @property
    def last_completed(self) -> Stage | None:
        return self.completed[-1] if self.completed else None

    def abort(
        self, stage: Stage, reason: str, status: PipelineStatus | None = None
    ) -> WorkflowAbortedError:
        return WorkflowAbortedError(
            stage=stage,
            environment=self.environment,
            mode=self.mode,
            last_completed=self.last_completed,
            reason=reason,
            status=status,
        )

    def finish(self, revision: str | None) -> WorkflowResult:
        self.completed.append(Stage.DONE)
        log.info(
            "Workflow %s for %s done (stages: %s)",
            self.mode,
            self.environment,
            ", ".join(self.completed),
        )
        return WorkflowResult(
            mode=self.mode,
            environment=self.environment,
            stages=tuple(self.completed),
            revision=revision,
            pipelines=tuple(self.pipelines),
        )


@dataclass(frozen=True, kw_only=True)
class PromotionOrchestrator:
    """Sequences promotion stages over a CI façade, Git and the CD controller.

    Every stage starts only once its predecessor ended successfully. Any
    other outcome aborts the workflow with a ``WorkflowAbortedError`` naming
    the stage, chained to the underlying error when there is one. Stages are
    never retried here; waits are bounded by the façade's poll settings, or by
    ``pipeline_timeout`` when set, and end early when ``cancel`` fires.
    """

    ci: CIProvider
    git: GitCollaborator
    cd: DeploymentController
    pipeline_timeout: float | None = None
    cancel: asyncio.Event | None = None

    async def promote(self, request: PromotionRequest) -> WorkflowResult:
        """Promote ``request.image`` to ``request.environment`` in its mode."""
        if request.mode == "without-pr":
            return await self.promote_without_pr(request.environment, request.image)
        return await self.promote_with_pr(request.environment, request.image)

    async def promote_with_pr(self, environment: str, image: str) -> WorkflowResult:
        """Promote through a pull request gated by the PR and push pipelines."""
        run = _WorkflowRun(mode="with-pr", environment=environment)
        log.info("Promoting %s to %s through a pull request", image, environment)

        await self._check_target_exists(run)

        async def open_pull_request() -> PullRequest:
            return await self.git.create_promotion_pull_request(environment, image)

        async def sync(revision: str) -> None:
            await self._sync_deployment(run, revision)

        revision = await self._pull_request_chain(run, open_pull_request, sync)
        return run.finish(revision)

    async def promote_without_pr(self, environment: str, image: str) -> WorkflowResult:
        """Commit the promotion directly and sync.

        No pipeline gates this variant: the change reaches the environment
        without any pre-merge validation.
        """
        run = _WorkflowRun(mode="without-pr", environment=environment)
        log.info("Promoting %s to %s with a direct commit", image, environment)

        await self._check_target_exists(run)
        async with self._stage(run, Stage.COMMIT_DIRECT):
            revision = await self.git.create_promotion_commit(environment, image)
        await self._sync_deployment(run, revision)
        return run.finish(revision)

    async def handle_source_change(self) -> WorkflowResult:
        """Validate and merge a source repository change through its pipelines."""
        run = _WorkflowRun(mode=SOURCE_CHANGE_MODE, environment=SOURCE_CHANGE_SCOPE)
        log.info("Running source-change workflow")

        revision = await self._pull_request_chain(
            run, self.git.create_source_pull_request, after_push=None
        )
        return run.finish(revision)

    async def _pull_request_chain(
        self,
        run: _WorkflowRun,
        open_pull_request: Callable[[], Awaitable[PullRequest]],
        after_push: Callable[[str], Awaitable[None]] | None,
    ) -> str:
        """Open, validate and merge a pull request, then run ``after_push``.

        Returns:
            The merge commit SHA

        """
        async with self._stage(run, Stage.CREATE_PR):
            pull_request = await open_pull_request()
            log.info(
                "Opened pull request #%d (%s)", pull_request.number, pull_request.url
            )

        await self._await_pipeline(
            run,
            Stage.AWAIT_PR_PIPELINE,
            PipelineRef.for_pull_request(
                number=pull_request.number,
                sha=pull_request.sha,
                branch=pull_request.branch,
            ),
            EventType.PULL_REQUEST,
        )

        async with self._stage(run, Stage.MERGE_PR):
            merged = await self.git.merge_pull_request(pull_request)
            log.info("Merged pull request #%d as %s", merged.number, merged.sha)

        await self._await_pipeline(
            run,
            Stage.AWAIT_PUSH_PIPELINE,
            PipelineRef.for_commit(merged.sha),
            EventType.PUSH,
        )

        if after_push is not None:
            await after_push(merged.sha)
        return merged.sha

    async def _check_target_exists(self, run: _WorkflowRun) -> None:
        async with self._stage(run, Stage.CHECK_TARGET_EXISTS):
            application = await self.cd.get_application(run.environment)
            if application is None:
                raise run.abort(
                    Stage.CHECK_TARGET_EXISTS,
                    f"no application deployed to '{run.environment}'",
                )

    async def _sync_deployment(self, run: _WorkflowRun, revision: str) -> None:
        async with self._stage(run, Stage.SYNC_DEPLOYMENT):
            await self.cd.sync_application(run.environment)

        async with self._stage(run, Stage.AWAIT_SYNC):
            result = await self.cd.wait_until_synced(run.environment, revision)
            if not result.synced:
                raise run.abort(
                    Stage.AWAIT_SYNC,
                    f"application did not sync to {revision}: {result.message}",
                )

    async def _await_pipeline(
        self,
        run: _WorkflowRun,
        stage: Stage,
        ref: PipelineRef,
        event_type: EventType,
    ) -> None:
        async with self._stage(run, stage):
            pipeline = await self.ci.wait_for_pipeline(
                ref, event_type, timeout=self.pipeline_timeout, cancel=self.cancel
            )
            status = await self.ci.wait_for_pipeline_to_finish(
                pipeline, timeout=self.pipeline_timeout, cancel=self.cancel
            )
            if status is not PipelineStatus.SUCCESS:
                raise run.abort(
                    stage,
                    f"pipeline {pipeline.display_name} finished unsuccessfully",
                    status=status,
                )
            run.pipelines.append(pipeline.with_status(status))

    @asynccontextmanager
    async def _stage(self, run: _WorkflowRun, stage: Stage) -> AsyncIterator[None]:
        """Run one stage, recording it as completed only if it succeeds."""
        log.info("[%s/%s] Stage %s started", run.mode, run.environment, stage)
        try:
            yield
        except WorkflowAbortedError as exc:
            log.error("%s", exc)
            raise
        except Exception as exc:
            error = run.abort(stage, f"{type(exc).__name__}: {exc}")
            log.error("%s", error)
            raise error from exc
        run.completed.append(stage)
        log.info("[%s/%s] Stage %s completed", run.mode, run.environment, stage)
