"""Thin GitHub Actions REST client."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import aiohttp

from pipeline_promotion.providers.github_actions.config import GitHubActionsConfig
from pipeline_promotion.providers.github_actions.models import (
    Workflow,
    WorkflowRun,
    WorkflowRunsResponse,
    WorkflowsResponse,
)
from pipeline_promotion.providers.http import request_json

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class GitHubActionsClient:
    """Issues requests against one repository's Actions API."""

    config: GitHubActionsConfig
    session: aiohttp.ClientSession = field(repr=False)

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.config.owner}/{self.config.repo}"

    async def list_workflows(self) -> Sequence[Workflow]:
        data = await request_json(
            self.session,
            "GET",
            f"{self.repo_path}/actions/workflows",
            action="list workflows",
            params={"per_page": "100"},
        )
        return WorkflowsResponse.model_validate(data).workflows

    async def find_workflow(self, name: str) -> Workflow | None:
        """Find a workflow by display name, file name or path."""
        for workflow in await self.list_workflows():
            if name in (workflow.name, workflow.path, workflow.file_name):
                return workflow

        log.warning("Workflow '%s' not found in %s", name, self.repo_path)
        return None

    async def list_runs(
        self,
        workflow_id: int,
        *,
        head_sha: str | None = None,
        branch: str | None = None,
        event: str | None = None,
        status: str | None = None,
    ) -> Sequence[WorkflowRun]:
        """List runs of a workflow, most recent first."""
        params = {"per_page": str(self.config.max_runs_to_check)}
        filters = {
            "head_sha": head_sha,
            "branch": branch,
            "event": event,
            "status": status,
        }
        params.update({key: value for key, value in filters.items() if value})

        data = await request_json(
            self.session,
            "GET",
            f"{self.repo_path}/actions/workflows/{workflow_id}/runs",
            action=f"list runs of workflow {workflow_id}",
            params=params,
        )
        runs = WorkflowRunsResponse.model_validate(data).workflow_runs
        return sorted(runs, key=lambda run: run.id, reverse=True)

    async def get_run(self, run_id: int) -> WorkflowRun:
        data = await request_json(
            self.session,
            "GET",
            f"{self.repo_path}/actions/runs/{run_id}",
            action=f"get workflow run {run_id}",
        )
        return WorkflowRun.model_validate(data)
