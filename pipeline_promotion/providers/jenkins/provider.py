"""Jenkins provider implementation."""

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
from pipeline_promotion.providers.base import CIProvider
from pipeline_promotion.providers.jenkins.client import JenkinsClient
from pipeline_promotion.providers.jenkins.config import JenkinsConfig
from pipeline_promotion.providers.jenkins.mapping import (
    COMMIT_MATCHERS,
    STATUS_TABLE,
    TRIGGER_CLASSIFIER,
    built_branches,
    commit_sha,
    pull_request_numbers,
)
from pipeline_promotion.providers.jenkins.models import Build

log = logging.getLogger(__name__)


def branch_matches(reported: str, branch: str) -> bool:
    """Match a branch against names like ``origin/main``."""
    short = branch.removeprefix("refs/heads/")
    return reported == short or reported.endswith(f"/{short}")


@dataclass(frozen=True, kw_only=True)
class JenkinsProvider(CIProvider):
    """Jenkins provider.

    The pipeline observed is ``config.job_name`` (inside ``config.folder``
    when set). Canonical ids are ``"{job full name}-{build number}"``.
    """

    config: JenkinsConfig
    client: JenkinsClient = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: JenkinsConfig
    ) -> AsyncGenerator["JenkinsProvider", None]:
        """Create provider with managed session lifecycle."""
        auth = aiohttp.BasicAuth(config.username, config.token.get_secret_value())
        async with aiohttp.ClientSession(auth=auth) as session:
            client = JenkinsClient(config=config, session=session)
            yield cls(config=config, client=client)

    @property
    def job_full_name(self) -> str:
        return self.qualify(self.config.job_name)

    def qualify(self, name: str) -> str:
        """Prefix ``name`` with the configured folder, if any."""
        if self.config.folder:
            return f"{self.config.folder.strip('/')}/{name}"
        return name

    async def resolve_pipeline_id(self, name: str) -> str | None:
        """Resolve a job's full name, looking inside the configured folder."""
        full_name = self.qualify(name)
        try:
            job = await self.client.get_job(full_name)
        except ResourceNotFoundError:
            log.warning("Job '%s' not found", full_name)
            return None
        return job.full_name or full_name

    async def get_pipeline_for_event(
        self, ref: PipelineRef, event_type: EventType = EventType.ANY
    ) -> Pipeline | None:
        """Find the build of the configured job matching ``ref``."""
        full_name = self.job_full_name
        try:
            builds = await self.client.list_builds(
                full_name, self.config.max_builds_to_check
            )
        except ResourceNotFoundError:
            log.warning("Job '%s' not found", full_name)
            return None

        candidates = self._narrow_builds(builds, ref)
        if not candidates:
            log.info("No build of %s matches %r", full_name, ref)
            return None

        pipelines = [self.to_pipeline(build, full_name) for build in candidates]
        return self.select_candidate(pipelines, event_type)

    async def fetch_pipeline(self, pipeline: Pipeline) -> Pipeline:
        """Re-read the build behind ``pipeline``."""
        build = await self.client.get_build(pipeline.definition_id, pipeline.run_id)
        return self.to_pipeline(build, pipeline.definition_id)

    async def list_in_flight(self, pipeline_id: str) -> Sequence[Pipeline]:
        """List queued and building builds among the recent ones."""
        builds = await self.client.list_builds(
            pipeline_id, self.config.max_builds_to_check
        )
        pipelines = [self.to_pipeline(build, pipeline_id) for build in builds]
        return [
            p
            for p in pipelines
            if p.status in (PipelineStatus.PENDING, PipelineStatus.RUNNING)
        ]

    async def trigger_build(self, parameters: Mapping[str, str] | None = None) -> None:
        """Queue a build of the configured job."""
        await self.client.trigger_build(self.job_full_name, parameters)

    def to_pipeline(self, build: Build, full_name: str) -> Pipeline:
        """Convert a raw build into the canonical record."""
        return Pipeline(
            ci_type=CIType.JENKINS,
            definition_id=full_name,
            run_id=build.number,
            name=full_name,
            repository=full_name.rsplit("/", 1)[-1],
            status=STATUS_TABLE.normalize(build.state, build.result),
            trigger=TRIGGER_CLASSIFIER.classify(build),
            started_at=build.started_at,
            finished_at=build.finished_at,
            sha=commit_sha(build),
            url=build.url,
        )

    def _narrow_builds(
        self, builds: Sequence[Build], ref: PipelineRef
    ) -> Sequence[Build]:
        depth = self.config.max_builds_to_check
        if ref.sha:
            return find_runs_by_commit(
                builds,
                ref.sha,
                depth,
                matchers=COMMIT_MATCHERS,
                number=lambda build: build.number,
            )

        window = builds[:depth]
        if ref.pull_number is not None:
            number = str(ref.pull_number)
            return [b for b in window if number in set(pull_request_numbers(b))]
        if ref.branch:
            return [
                b
                for b in window
                if any(branch_matches(name, ref.branch) for name in built_branches(b))
            ]
        return window
