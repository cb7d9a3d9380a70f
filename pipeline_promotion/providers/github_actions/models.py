"""Pydantic models for GitHub Actions API responses."""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel


class Workflow(BaseModel):
    """A workflow definition."""

    id: int
    name: str
    path: str
    state: str = "active"

    @property
    def file_name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


class WorkflowsResponse(BaseModel):
    """Response from list repository workflows API."""

    total_count: int = 0
    workflows: Sequence[Workflow] = ()


class PullRequestHead(BaseModel):
    ref: str
    sha: str


class PullRequestLink(BaseModel):
    """Pull request reference attached to a run."""

    number: int
    head: PullRequestHead | None = None


class HeadCommit(BaseModel):
    id: str
    message: str = ""


class WorkflowRun(BaseModel):
    """A workflow run from GitHub Actions API."""

    id: int
    workflow_id: int
    name: str | None = None
    display_title: str = ""
    run_number: int = 0
    event: str | None = None
    status: str | None = None
    conclusion: str | None = None
    head_sha: str = ""
    head_branch: str | None = None
    html_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    run_started_at: datetime | None = None
    pull_requests: Sequence[PullRequestLink] = ()
    head_commit: HeadCommit | None = None

    @property
    def finished_at(self) -> datetime | None:
        return self.updated_at if self.status == "completed" else None


class WorkflowRunsResponse(BaseModel):
    """Response from list workflow runs API."""

    total_count: int = 0
    workflow_runs: Sequence[WorkflowRun] = ()
