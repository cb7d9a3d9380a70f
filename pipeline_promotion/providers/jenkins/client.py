"""Thin Jenkins JSON API client."""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from urllib.parse import quote

import aiohttp

from pipeline_promotion.errors import ResourceNotFoundError
from pipeline_promotion.providers.http import request_json
from pipeline_promotion.providers.jenkins.config import JenkinsConfig
from pipeline_promotion.providers.jenkins.models import Build, JobInfo

log = logging.getLogger(__name__)


def job_path(full_name: str) -> str:
    """Translate ``folder/job`` into Jenkins' ``job/folder/job/job`` URL path."""
    return "/".join(
        f"job/{quote(part, safe='')}" for part in full_name.split("/") if part
    )


@dataclass(frozen=True, kw_only=True)
class JenkinsClient:
    """Issues requests against one Jenkins controller.

    URLs are absolute: Jenkins frequently lives below a path prefix, which
    ``ClientSession.base_url`` does not handle uniformly.
    """

    config: JenkinsConfig
    session: aiohttp.ClientSession = field(repr=False)

    def url(self, full_name: str, suffix: str) -> str:
        return f"{self.config.base_url}{job_path(full_name)}/{suffix}"

    async def get_job(self, full_name: str) -> JobInfo:
        data = await request_json(
            self.session,
            "GET",
            self.url(full_name, "api/json"),
            action=f"get job '{full_name}'",
        )
        return JobInfo.model_validate(data)

    async def get_build(self, full_name: str, number: int) -> Build:
        data = await request_json(
            self.session,
            "GET",
            self.url(full_name, f"{number}/api/json"),
            action=f"get build #{number} of '{full_name}'",
        )
        return Build.model_validate(data)

    async def list_builds(self, full_name: str, limit: int) -> Sequence[Build]:
        """Fetch the ``limit`` most recent builds of a job, newest first.

        Builds deleted between the job read and the build reads are skipped.
        """
        job = await self.get_job(full_name)
        numbers = sorted((ref.number for ref in job.builds), reverse=True)[:limit]
        builds = await asyncio.gather(
            *(self._get_build_if_present(full_name, number) for number in numbers)
        )
        return [build for build in builds if build is not None]

    async def _get_build_if_present(self, full_name: str, number: int) -> Build | None:
        try:
            return await self.get_build(full_name, number)
        except ResourceNotFoundError:
            log.info("Build #%d of %s no longer exists", number, full_name)
            return None

    async def trigger_build(
        self, full_name: str, parameters: Mapping[str, str] | None = None
    ) -> None:
        """Queue a new build, with parameters when the job takes any."""
        suffix = "buildWithParameters" if parameters else "build"
        await request_json(
            self.session,
            "POST",
            self.url(full_name, suffix),
            action=f"trigger build of '{full_name}'",
            expected=(200, 201),
            params=dict(parameters or {}),
        )
        log.info("Queued build of %s", full_name)
