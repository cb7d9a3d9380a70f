"""GitHub Actions provider implementation."""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from pipeline_promotion.locator import find_runs_by_commit
from pipeline_promotion.models.pipeline import (
    CIType,
    EventType,
    Pipeline,
    PipelineRef,
    PipelineStatus,
)
from pipeline_promotion.providers.base import CIProvider
from pipeline_promotion.providers.github_actions.client import GitHubActionsClient
from pipeline_promotion.providers.github_actions.config import GitHubActionsConfig
from pipeline_promotion.providers.github_actions.mapping import (
    COMMIT_MATCHERS,
    STATUS_TABLE,
    TRIGGER_CLASSIFIER,
)
from pipeline_promotion.providers.github_actions.models import WorkflowRun

log = logging.getLogger(__name__)

FULL_SHA_LENGTH = 40


@dataclass(frozen=True, kw_only=True)
class GitHubActionsProvider(CIProvider):
    """GitHub Actions provider.

    The pipeline observed is ``config.workflow`` in ``owner/repo``. Canonical
    ids are ``"{workflow id}-{run id}"``.
    """

    config: GitHubActionsConfig
    client: GitHubActionsClient = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: GitHubActionsConfig
    ) -> AsyncGenerator["GitHubActionsProvider", None]:
        """Create provider with managed session lifecycle."""
        headers = {
            "Authorization": f"Bearer {config.token.get_secret_value()}",
            "Accept": "application/vnd.github+json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            client = GitHubActionsClient(config=config, session=session)
            yield cls(config=config, client=client)

    @property
    def repository(self) -> str:
        return f"{self.config.owner}/{self.config.repo}"

    async def resolve_pipeline_id(self, name: str) -> str | None:
        """Resolve a workflow id from its name or file name."""
        workflow = await self.client.find_workflow(name)
        return None if workflow is None else str(workflow.id)

    async def get_pipeline_for_event(
        self, ref: PipelineRef, event_type: EventType = EventType.ANY
    ) -> Pipeline | None:
        """Find the run of the configured workflow matching ``ref``."""
        workflow_id = await self.resolve_pipeline_id(self.config.workflow)
        if workflow_id is None:
            return None

        runs = await self._list_candidate_runs(int(workflow_id), ref, event_type)
        if not runs:
            log.info("No run of %s matches %r", self.config.workflow, ref)
            return None

        pipelines = [self.to_pipeline(run) for run in runs]
        return self.select_candidate(pipelines, event_type)

    async def fetch_pipeline(self, pipeline: Pipeline) -> Pipeline:
        """Re-read the run behind ``pipeline``."""
        return self.to_pipeline(await self.client.get_run(pipeline.run_id))

    async def list_in_flight(self, pipeline_id: str) -> Sequence[Pipeline]:
        """List queued and in-progress runs of a workflow."""
        runs = await self.client.list_runs(int(pipeline_id))
        pipelines = [self.to_pipeline(run) for run in runs]
        return [
            p
            for p in pipelines
            if p.status in (PipelineStatus.PENDING, PipelineStatus.RUNNING)
        ]

    def to_pipeline(self, run: WorkflowRun) -> Pipeline:
        """Convert a raw run into the canonical record."""
        return Pipeline(
            ci_type=CIType.GITHUB_ACTIONS,
            definition_id=str(run.workflow_id),
            run_id=run.id,
            name=run.name or self.config.workflow,
            repository=self.repository,
            status=STATUS_TABLE.normalize(run.status, run.conclusion),
            trigger=TRIGGER_CLASSIFIER.classify(run),
            started_at=run.run_started_at or run.created_at,
            finished_at=run.finished_at,
            sha=run.head_sha or None,
            url=run.html_url,
        )

    async def _list_candidate_runs(
        self, workflow_id: int, ref: PipelineRef, event_type: EventType
    ) -> Sequence[WorkflowRun]:
        # Pull request runs span several event names; only push is filtered here.
        event = "push" if event_type is EventType.PUSH else None
        # The API only filters on full SHAs; short ones go through the locator.
        if ref.sha:
            head_sha = ref.sha if len(ref.sha) == FULL_SHA_LENGTH else None
            runs = await self.client.list_runs(
                workflow_id, head_sha=head_sha, event=event
            )
            return find_runs_by_commit(
                runs,
                ref.sha,
                self.config.max_runs_to_check,
                matchers=COMMIT_MATCHERS,
                number=lambda run: run.id,
            )

        runs = await self.client.list_runs(
            workflow_id, branch=ref.branch, event=event
        )
        if ref.pull_number is not None:
            return [
                run
                for run in runs
                if any(pr.number == ref.pull_number for pr in run.pull_requests)
            ]
        return runs
