"""Azure Pipelines provider implementation."""

import asyncio
import base64
import logging
from collections.abc import AsyncGenerator, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import aiohttp

from pipeline_promotion.errors import ResourceNotFoundError
from pipeline_promotion.locator import find_runs_by_commit
from pipeline_promotion.models.pipeline import (
    CIType,
    EventType,
    Pipeline,
    PipelineRef,
    PipelineStatus,
)
from pipeline_promotion.providers.azure_pipelines.client import AzurePipelinesClient
from pipeline_promotion.providers.azure_pipelines.config import AzurePipelinesConfig
from pipeline_promotion.providers.azure_pipelines.mapping import (
    COMMIT_MATCHERS,
    STATUS_TABLE,
    TRIGGER_CLASSIFIER,
)
from pipeline_promotion.providers.azure_pipelines.models import (
    PipelineDefinition,
    PipelineRun,
)
from pipeline_promotion.providers.base import CIProvider

log = logging.getLogger(__name__)

IN_FLIGHT_STATUSES: frozenset[PipelineStatus] = frozenset(
    [PipelineStatus.PENDING, PipelineStatus.RUNNING]
)


def branch_ref(branch: str) -> str:
    """Qualify a short branch name the way Azure reports it."""
    return branch if branch.startswith("refs/") else f"refs/heads/{branch}"


@dataclass(frozen=True, kw_only=True)
class AzurePipelinesProvider(CIProvider):
    """Azure Pipelines provider.

    The pipeline observed is the definition named ``config.pipeline_name``.
    Canonical ids are ``"{definition id}-{run id}"``.
    """

    config: AzurePipelinesConfig
    client: AzurePipelinesClient = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: AzurePipelinesConfig
    ) -> AsyncGenerator["AzurePipelinesProvider", None]:
        """Create provider with managed session lifecycle."""
        # Azure DevOps uses Basic Auth with empty username and PAT as password
        auth_string = f":{config.token.get_secret_value()}"
        auth_bytes = base64.b64encode(auth_string.encode("ascii")).decode("ascii")
        headers = {
            "Authorization": f"Basic {auth_bytes}",
            "Content-Type": "application/json",
        }
        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            client = AzurePipelinesClient(config=config, session=session)
            yield cls(config=config, client=client)

    async def resolve_pipeline_id(self, name: str) -> str | None:
        """Resolve a pipeline definition id from its name."""
        definition = await self.client.get_pipeline_definition(name)
        return None if definition is None else str(definition.id)

    async def get_pipeline_for_event(
        self, ref: PipelineRef, event_type: EventType = EventType.ANY
    ) -> Pipeline | None:
        """Find the run of the configured pipeline matching ``ref``."""
        name = self.config.pipeline_name
        definition = await self.client.get_pipeline_definition(name)
        if definition is None:
            return None

        runs = await self.client.list_runs(definition.id)
        candidates = self._narrow_runs(runs, ref)
        if not candidates:
            log.info("No run of %s matches %r", definition.name, ref)
            return None

        pipelines = [self.to_pipeline(run, definition) for run in candidates]
        return self.select_candidate(pipelines, event_type)

    async def fetch_pipeline(self, pipeline: Pipeline) -> Pipeline:
        """Re-read the run behind ``pipeline``."""
        run = await self.client.get_run(int(pipeline.definition_id), pipeline.run_id)
        return self._convert(
            run,
            definition_id=pipeline.definition_id,
            repository=pipeline.repository,
        )

    async def list_in_flight(self, pipeline_id: str) -> Sequence[Pipeline]:
        """List pending and running runs of a pipeline definition."""
        runs = await self.client.list_runs(int(pipeline_id))
        pipelines = [
            self._convert(
                run, definition_id=pipeline_id, repository=self.config.pipeline_name
            )
            for run in runs
        ]
        return [p for p in pipelines if p.status in IN_FLIGHT_STATUSES]

    def to_pipeline(self, run: PipelineRun, definition: PipelineDefinition) -> Pipeline:
        """Convert a raw run into the canonical record."""
        repository = (
            definition.repository.name
            if definition.repository and definition.repository.name
            else self.config.pipeline_name
        )
        return self._convert(
            run, definition_id=str(definition.id), repository=repository
        )

    def _convert(
        self, run: PipelineRun, *, definition_id: str, repository: str
    ) -> Pipeline:
        return Pipeline(
            ci_type=CIType.AZURE_PIPELINES,
            definition_id=definition_id,
            run_id=run.id,
            name=run.name,
            repository=repository,
            status=STATUS_TABLE.normalize(run.state, run.result),
            trigger=TRIGGER_CLASSIFIER.classify(run),
            started_at=run.created_date,
            finished_at=run.finished_date,
            sha=run.commit_sha,
            url=run.web_url,
        )

    def _narrow_runs(
        self, runs: Sequence[PipelineRun], ref: PipelineRef
    ) -> Sequence[PipelineRun]:
        """Filter as precisely as ``ref`` allows: commit, PR, branch, recent."""
        depth = self.config.max_runs_to_check
        if ref.sha:
            return find_runs_by_commit(
                runs, ref.sha, depth, matchers=COMMIT_MATCHERS, number=lambda r: r.id
            )

        window = runs[:depth]
        if ref.pull_number is not None:
            number = str(ref.pull_number)
            return [
                run
                for run in window
                if str(run.trigger_info.get("pr.pullRequestId", "")) == number
            ]
        if ref.branch:
            wanted = branch_ref(ref.branch)
            return [run for run in window if run.branch == wanted]
        return window

    async def create_pipeline(
        self,
        pipeline_name: str,
        repository: str,
        repository_type: str,
        yaml_path: str = "azure-pipelines.yml",
    ) -> PipelineDefinition:
        """Create a YAML pipeline for a source repository."""
        azure_type = repository_type
        if repository_type.lower() == "github":
            azure_type = "gitHub"
        definition = await self.client.create_pipeline_definition(
            pipeline_name, repository, azure_type, yaml_path
        )
        log.info("Created pipeline %s (id=%s)", definition.name, definition.id)
        return definition

    async def create_variable_group(
        self,
        group_name: str,
        variables: Mapping[str, str],
        description: str | None = None,
    ) -> None:
        """Create a variable group holding ``variables`` as secrets."""
        secret_variables = {
            key: {"value": value, "isSecret": True} for key, value in variables.items()
        }
        await self.client.create_variable_group(
            group_name,
            description or f"Variable group for {group_name}",
            secret_variables,
        )

    async def authorize_pipeline(
        self,
        pipeline_name: str,
        agent_queue: str | None = None,
        variable_group: str | None = None,
    ) -> None:
        """Authorize a pipeline for its agent queue and variable group.

        The variable group defaults to one named after the pipeline. The two
        authorizations are independent and are issued concurrently.

        Raises:
            ResourceNotFoundError: If the pipeline, queue or group is missing

        """
        queue_name = agent_queue or self.config.agent_queue
        group_name = variable_group or pipeline_name

        pipeline_id, queue, group = await asyncio.gather(
            self.resolve_pipeline_id(pipeline_name),
            self.client.get_agent_queue(queue_name),
            self.client.get_variable_group(group_name),
        )
        if pipeline_id is None:
            raise ResourceNotFoundError(f"Pipeline '{pipeline_name}' not found")
        if queue is None:
            raise ResourceNotFoundError(f"Agent queue '{queue_name}' not found")
        if group is None:
            raise ResourceNotFoundError(f"Variable group '{group_name}' not found")

        await asyncio.gather(
            self.client.authorize_resource(int(pipeline_id), "queue", queue.id),
            self.client.authorize_resource(int(pipeline_id), "variablegroup", group.id),
        )
        log.info(
            "Authorized pipeline %s for queue %s and variable group %s",
            pipeline_name,
            queue_name,
            group_name,
        )
