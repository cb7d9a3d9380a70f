"""Pydantic models for Azure Pipelines API responses."""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class WebLink(BaseModel):
    """Web link in _links."""

    href: str


class RunLinks(BaseModel):
    """Links in pipeline run and definition responses."""

    web: WebLink | None = None


class RepositoryResource(BaseModel):
    """Repository a run was built from."""

    ref_name: str | None = Field(default=None, alias="refName")
    version: str | None = None


class RunResources(BaseModel):
    """Resources consumed by a run."""

    repositories: Mapping[str, RepositoryResource] = Field(default_factory=dict)


class PipelineReference(BaseModel):
    """Pipeline a run belongs to."""

    id: int
    name: str


class PipelineRun(BaseModel):
    """A pipeline run from Azure Pipelines API.

    ``state`` and ``result`` are kept as plain strings so values added by the
    service later still validate; unknown values normalize to ``unknown``.
    """

    id: int
    name: str
    state: str
    result: str | None = None
    created_date: datetime | None = Field(default=None, alias="createdDate")
    finished_date: datetime | None = Field(default=None, alias="finishedDate")
    links: RunLinks | None = Field(default=None, alias="_links")
    pipeline: PipelineReference | None = None
    reason: str | None = None
    trigger_info: Mapping[str, Any] = Field(default_factory=dict, alias="triggerInfo")
    source_version: str | None = Field(default=None, alias="sourceVersion")
    source_branch: str | None = Field(default=None, alias="sourceBranch")
    resources: RunResources | None = None

    @property
    def web_url(self) -> str:
        return self.links.web.href if self.links and self.links.web else ""

    @property
    def self_repository(self) -> RepositoryResource | None:
        if self.resources is None:
            return None
        return self.resources.repositories.get("self")

    @property
    def commit_sha(self) -> str | None:
        """Best known commit the run was built from."""
        repository = self.self_repository
        candidates = (
            self.source_version,
            repository.version if repository else None,
            self.trigger_info.get("ci.sourceSha"),
            self.trigger_info.get("pr.sourceSha"),
        )
        return next((c for c in candidates if isinstance(c, str) and c), None)

    @property
    def branch(self) -> str | None:
        repository = self.self_repository
        return self.source_branch or (repository.ref_name if repository else None)


class DefinitionRepository(BaseModel):
    """Repository backing a pipeline definition."""

    id: str | None = None
    type: str | None = None
    name: str | None = None


class PipelineDefinition(BaseModel):
    """A pipeline definition from Azure Pipelines API."""

    id: int
    name: str
    folder: str = "\\"
    revision: int | None = None
    links: RunLinks | None = Field(default=None, alias="_links")
    repository: DefinitionRepository | None = None


class PipelineDefinitionsResponse(BaseModel):
    """Response from list pipelines API."""

    count: int = 0
    value: Sequence[PipelineDefinition] = ()


class PipelineRunsResponse(BaseModel):
    """Response from list pipeline runs API."""

    count: int = 0
    value: Sequence[PipelineRun] = ()


class AgentQueue(BaseModel):
    """Agent queue of the project."""

    id: int
    name: str


class AgentQueuesResponse(BaseModel):
    """Response from list agent queues API."""

    count: int = 0
    value: Sequence[AgentQueue] = ()


class VariableGroup(BaseModel):
    """Variable group of the project."""

    id: int
    name: str


class VariableGroupsResponse(BaseModel):
    """Response from list variable groups API."""

    count: int = 0
    value: Sequence[VariableGroup] = ()
