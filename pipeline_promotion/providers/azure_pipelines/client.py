"""Thin Azure Pipelines REST client."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from pipeline_promotion.providers.azure_pipelines.config import AzurePipelinesConfig
from pipeline_promotion.providers.azure_pipelines.models import (
    AgentQueue,
    AgentQueuesResponse,
    PipelineDefinition,
    PipelineDefinitionsResponse,
    PipelineRun,
    PipelineRunsResponse,
    VariableGroup,
    VariableGroupsResponse,
)
from pipeline_promotion.providers.http import request_json

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class AzurePipelinesClient:
    """Issues requests against one Azure DevOps project."""

    config: AzurePipelinesConfig
    session: aiohttp.ClientSession = field(repr=False)

    @property
    def api_root(self) -> str:
        return f"/{self.config.organization}/{self.config.project}/_apis"

    @property
    def api_version(self) -> str:
        return f"api-version={self.config.api_version}"

    async def list_pipelines(self) -> Sequence[PipelineDefinition]:
        """List every pipeline definition of the project."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.api_root}/pipelines?{self.api_version}",
            action="list pipelines",
        )
        return PipelineDefinitionsResponse.model_validate(data).value

    async def get_pipeline_definition(self, name: str) -> PipelineDefinition | None:
        """Find a pipeline definition by its name."""
        for definition in await self.list_pipelines():
            if definition.name == name:
                return definition

        log.warning("Pipeline with name '%s' not found in project", name)
        return None

    async def list_runs(self, pipeline_id: int) -> Sequence[PipelineRun]:
        """List runs of a pipeline, most recent first."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.api_root}/pipelines/{pipeline_id}/runs?{self.api_version}",
            action=f"list runs of pipeline {pipeline_id}",
        )
        runs = PipelineRunsResponse.model_validate(data).value
        return sorted(runs, key=lambda run: run.id, reverse=True)

    async def get_run(self, pipeline_id: int, run_id: int) -> PipelineRun:
        """Get pipeline run by ID."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.api_root}/pipelines/{pipeline_id}/runs/{run_id}?{self.api_version}",
            action="get pipeline run",
        )
        return PipelineRun.model_validate(data)

    async def create_pipeline_definition(
        self,
        name: str,
        repository: str,
        repository_type: str,
        yaml_path: str,
        folder: str | None = None,
    ) -> PipelineDefinition:
        """Create a YAML pipeline definition bound to ``repository``."""
        configuration: dict[str, Any] = {
            "type": "yaml",
            "path": yaml_path,
            "repository": {
                "id": repository,
                "fullName": repository,
                "type": repository_type,
            },
        }
        if self.config.service_connection_id:
            configuration["repository"]["connection"] = {
                "id": self.config.service_connection_id
            }
        payload = {"folder": folder, "name": name, "configuration": configuration}

        data = await request_json(
            self.session,
            "POST",
            f"{self.api_root}/pipelines?{self.api_version}",
            action=f"create pipeline definition '{name}'",
            expected=(200, 201),
            json=payload,
        )
        return PipelineDefinition.model_validate(data)

    async def create_variable_group(
        self,
        name: str,
        description: str,
        variables: Mapping[str, Mapping[str, Any]],
    ) -> VariableGroup:
        """Create a variable group shared with the project."""
        payload = {
            "name": name,
            "description": description,
            "type": "Vsts",
            "variables": variables,
            "variableGroupProjectReferences": [
                {
                    "name": name,
                    "projectReference": {
                        "id": self.config.project,
                        "name": self.config.project,
                    },
                }
            ],
        }
        data = await request_json(
            self.session,
            "POST",
            f"{self.api_root}/distributedtask/variablegroups?{self.api_version}",
            action=f"create variable group '{name}'",
            expected=(200, 201),
            json=payload,
        )
        return VariableGroup.model_validate(data)

    async def get_agent_queue(self, name: str) -> AgentQueue | None:
        """Find an agent queue by name."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.api_root}/distributedtask/queues",
            action=f"get agent queue '{name}'",
            params={
                "queueNames": name,
                "api-version": f"{self.config.api_version}-preview.1",
            },
        )
        queues = AgentQueuesResponse.model_validate(data).value
        return queues[0] if queues else None

    async def get_variable_group(self, name: str) -> VariableGroup | None:
        """Find a variable group by name."""
        data = await request_json(
            self.session,
            "GET",
            f"{self.api_root}/distributedtask/variablegroups",
            action=f"get variable group '{name}'",
            params={
                "groupName": name,
                "api-version": f"{self.config.api_version}-preview.2",
            },
        )
        groups = VariableGroupsResponse.model_validate(data).value
        return groups[0] if groups else None

    async def authorize_resource(
        self, pipeline_id: int, resource_type: str, resource_id: int
    ) -> None:
        """Allow ``pipeline_id`` to use a protected resource."""
        payload = {
            "pipelines": [{"id": pipeline_id, "authorized": True}],
            "resource": {"id": str(resource_id), "type": resource_type},
        }
        await request_json(
            self.session,
            "PATCH",
            f"{self.api_root}/pipelines/pipelinePermissions/{resource_type}"
            f"/{resource_id}?{self.api_version}-preview.1",
            action=(
                f"authorize pipeline {pipeline_id} for {resource_type} {resource_id}"
            ),
            json=payload,
        )
