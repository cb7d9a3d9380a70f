"""Canonical, provider-agnostic pipeline records."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum

from pydantic import Field

from pipeline_promotion.models.base import Model


class CIType(StrEnum):
    """CI providers the engine can observe."""

    AZURE_PIPELINES = "azure-pipelines"
    JENKINS = "jenkins"
    GITHUB_ACTIONS = "github-actions"


class PipelineStatus(StrEnum):
    """Canonical run state shared by every provider."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition can happen from this status."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[PipelineStatus] = frozenset(
    [PipelineStatus.SUCCESS, PipelineStatus.FAILURE, PipelineStatus.CANCELLED]
)


class TriggerReason(StrEnum):
    """Why a run was started."""

    MANUAL = "manual"
    PUSH = "push"
    PULL_REQUEST = "pull_request"
    SCHEDULE = "schedule"
    API = "api"
    UNKNOWN = "unknown"


class EventType(StrEnum):
    """Event a caller is interested in when looking up a pipeline."""

    PULL_REQUEST = "pull_request"
    PUSH = "push"
    ANY = "any"

    def accepts(self, trigger: TriggerReason) -> bool:
        """Check whether a run started for ``trigger`` belongs to this event."""
        if self is EventType.PULL_REQUEST:
            return trigger is TriggerReason.PULL_REQUEST
        if self is EventType.PUSH:
            return trigger is TriggerReason.PUSH
        return True


@dataclass(frozen=True, kw_only=True)
class Pipeline:
    """A single observed provider run, converted to the canonical model.

    Built by a provider façade from one raw payload. Re-fetching a run yields
    a new instance; only status, finish time and trigger may differ between
    two observations of the same run.
    """

    ci_type: CIType
    definition_id: str
    run_id: int
    name: str
    repository: str
    status: PipelineStatus
    trigger: TriggerReason = TriggerReason.UNKNOWN
    started_at: datetime | None = None
    finished_at: datetime | None = None
    sha: str | None = None
    url: str = ""

    @property
    def id(self) -> str:
        """Provider-qualified identifier."""
        return f"{self.definition_id}-{self.run_id}"

    @property
    def display_name(self) -> str:
        """Human readable name used in log lines."""
        return f"{self.ci_type.value}:{self.name}#{self.run_id}"

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_status(
        self,
        status: PipelineStatus,
        *,
        finished_at: datetime | None = None,
        trigger: TriggerReason | None = None,
    ) -> "Pipeline":
        """Return a copy reflecting a newer observation of the same run."""
        return replace(
            self,
            status=status,
            finished_at=self.finished_at if finished_at is None else finished_at,
            trigger=self.trigger if trigger is None else trigger,
        )


class PipelineRef(Model):
    """Identifies which run a caller is looking for.

    The most precise populated field wins: commit SHA, then branch. A pull
    request number alone is used by providers that can filter on it. With
    nothing set, the most recent run is meant.
    """

    sha: str | None = Field(default=None, description="Commit SHA (full or short)")
    branch: str | None = Field(default=None, description="Branch name")
    pull_number: int | None = Field(default=None, description="Pull request number")

    @classmethod
    def for_commit(cls, sha: str) -> "PipelineRef":
        return cls(sha=sha)

    @classmethod
    def for_branch(cls, branch: str) -> "PipelineRef":
        return cls(branch=branch)

    @classmethod
    def for_pull_request(
        cls, *, number: int, sha: str | None = None, branch: str | None = None
    ) -> "PipelineRef":
        return cls(sha=sha, branch=branch, pull_number=number)
