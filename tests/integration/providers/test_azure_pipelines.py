"""Integration tests for Azure Pipelines provider."""

from collections.abc import AsyncGenerator

import pytest
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from pipeline_promotion.errors import (
    ProviderAPIError,
    ResourceNotFoundError,
    TransportFaultError,
)
from pipeline_promotion.models.pipeline import (
    CIType,
    EventType,
    PipelineRef,
    PipelineStatus,
    TriggerReason,
)
from pipeline_promotion.providers.azure_pipelines import (
    AzurePipelinesConfig,
    AzurePipelinesProvider,
)
from pipeline_promotion.testing.azure.payloads import (
    list_response,
    pipeline_definition,
    pipeline_run,
)

API_BASE_URL = "http://azure.test"
API_ROOT = f"{API_BASE_URL}/test-org/test-project/_apis"
PIPELINES_URL = f"{API_ROOT}/pipelines?api-version=7.1"
RUNS_URL = f"{API_ROOT}/pipelines/42/runs?api-version=7.1"
SHA = "9c1e5b7a3d2f4e6b8a0c1d2e3f4a5b6c7d8e9f01"


@pytest.fixture
def config() -> AzurePipelinesConfig:
    """Create test configuration."""
    return AzurePipelinesConfig(
        token=SecretStr("test-pat-token"),
        organization="test-org",
        project="test-project",
        pipeline_name="gitops-promotion",
        api_base_url=API_BASE_URL,
        poll_interval=0.01,
        poll_timeout=1,
    )


@pytest.fixture
async def provider(
    config: AzurePipelinesConfig, aioresponses: aioresponses_cls
) -> AsyncGenerator[AzurePipelinesProvider, None]:
    """Create provider with managed session."""
    async with AzurePipelinesProvider.from_config(config) as impl:
        yield impl


def mock_definitions(aioresponses: aioresponses_cls) -> None:
    aioresponses.get(
        PIPELINES_URL,
        payload=list_response(
            [
                pipeline_definition(pipeline_id=41, name="build"),
                pipeline_definition(pipeline_id=42, name="gitops-promotion"),
            ]
        ),
    )


class TestGetPipelineForEvent:
    """Tests for get_pipeline_for_event."""

    @pytest.fixture(autouse=True)
    def runs(self, aioresponses: aioresponses_cls) -> None:
        """A PR run and a push run built from the same commit."""
        mock_definitions(aioresponses)
        aioresponses.get(
            RUNS_URL,
            payload=list_response(
                [
                    pipeline_run(
                        run_id=101,
                        reason="pullRequest",
                        trigger_info={"pr.pullRequestId": "5", "pr.sourceSha": SHA},
                        finished_date="2099-01-01T12:30:00Z",
                    ),
                    pipeline_run(
                        run_id=102,
                        reason="individualCI",
                        source_version=SHA,
                        finished_date="2099-01-01T12:10:00Z",
                    ),
                    pipeline_run(run_id=99, source_version="0" * 40),
                ]
            ),
        )

    async def test_filters_push_runs(self, provider: AzurePipelinesProvider) -> None:
        """Only push-triggered runs are returned for push events."""
        pipeline = await provider.get_pipeline_for_event(
            PipelineRef.for_commit(SHA[:8]), EventType.PUSH
        )

        assert pipeline is not None
        assert pipeline.run_id == 102
        assert pipeline.trigger == TriggerReason.PUSH
        assert pipeline.ci_type == CIType.AZURE_PIPELINES
        assert pipeline.id == "42-102"
        assert pipeline.sha == SHA

    async def test_filters_pull_request_runs(
        self, provider: AzurePipelinesProvider
    ) -> None:
        """Only PR-triggered runs are returned for pull request events."""
        pipeline = await provider.get_pipeline_for_event(
            PipelineRef.for_commit(SHA), EventType.PULL_REQUEST
        )

        assert pipeline is not None
        assert pipeline.run_id == 101
        assert pipeline.status == PipelineStatus.SUCCESS
        assert pipeline.url.endswith("buildId=101")

    async def test_any_event_prefers_latest_finished(
        self, provider: AzurePipelinesProvider
    ) -> None:
        """Without an event filter the most recently finished match wins."""
        pipeline = await provider.get_pipeline_for_event(PipelineRef.for_commit(SHA))

        assert pipeline is not None
        assert pipeline.run_id == 101

    async def test_pull_request_number(self, provider: AzurePipelinesProvider) -> None:
        """Runs can be found by pull request id."""
        pipeline = await provider.get_pipeline_for_event(
            PipelineRef.for_pull_request(number=5)
        )

        assert pipeline is not None
        assert pipeline.run_id == 101

    async def test_absent_commit_is_none(
        self, provider: AzurePipelinesProvider
    ) -> None:
        """Returns None when no run was built from the commit."""
        ref = PipelineRef.for_commit("f" * 40)

        assert await provider.get_pipeline_for_event(ref) is None


async def test_unknown_pipeline_is_none(
    provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
) -> None:
    """Returns None when the configured pipeline does not exist."""
    aioresponses.get(PIPELINES_URL, payload=list_response([]), repeat=True)

    assert await provider.get_pipeline_for_event(PipelineRef()) is None
    assert await provider.resolve_pipeline_id("gitops-promotion") is None


async def test_fetch_pipeline_maps_in_progress(
    provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
) -> None:
    """A fresh read of a running run reports RUNNING without finish time."""
    mock_definitions(aioresponses)
    aioresponses.get(
        RUNS_URL,
        payload=list_response([pipeline_run(run_id=7, source_version=SHA)]),
    )
    aioresponses.get(
        f"{API_ROOT}/pipelines/42/runs/7?api-version=7.1",
        payload=pipeline_run(
            run_id=7, state="inProgress", result=None, finished_date=None
        ),
    )

    pipeline = await provider.get_pipeline_for_event(PipelineRef.for_commit(SHA))
    assert pipeline is not None
    refreshed = await provider.fetch_pipeline(pipeline)

    assert refreshed.status == PipelineStatus.RUNNING
    assert refreshed.finished_at is None
    assert refreshed.id == pipeline.id


async def test_wait_for_pipeline_to_finish(
    provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
) -> None:
    """Polls the run until it completes."""
    run_url = f"{API_ROOT}/pipelines/42/runs/7?api-version=7.1"
    aioresponses.get(
        run_url, payload=pipeline_run(run_id=7, state="inProgress", result=None)
    )
    aioresponses.get(run_url, status=503, body="Service Unavailable")
    aioresponses.get(
        run_url,
        payload=pipeline_run(run_id=7, state="completed", result="partiallySucceeded"),
    )
    mock_definitions(aioresponses)
    aioresponses.get(RUNS_URL, payload=list_response([pipeline_run(run_id=7)]))

    pipeline = await provider.get_pipeline_for_event(PipelineRef())
    assert pipeline is not None
    status = await provider.wait_for_pipeline_to_finish(pipeline)

    assert status == PipelineStatus.SUCCESS
    assert len(aioresponses.requests[("GET", URL(run_url))]) == 3


async def test_list_in_flight(
    provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
) -> None:
    """Only pending and running runs are in flight."""
    aioresponses.get(
        RUNS_URL,
        payload=list_response(
            [
                pipeline_run(run_id=3, state="inProgress", result=None),
                pipeline_run(run_id=2, state="notStarted", result=None),
                pipeline_run(run_id=1),
            ]
        ),
    )

    in_flight = await provider.list_in_flight("42")

    assert [p.run_id for p in in_flight] == [3, 2]


class TestErrors:
    """Tests for response classification."""

    @pytest.mark.parametrize(
        ("status", "error"),
        [
            (404, ResourceNotFoundError),
            (401, ProviderAPIError),
            (500, TransportFaultError),
        ],
    )
    async def test_classifies_status(
        self,
        provider: AzurePipelinesProvider,
        aioresponses: aioresponses_cls,
        status: int,
        error: type[Exception],
    ) -> None:
        """Maps HTTP statuses into the error taxonomy."""
        aioresponses.get(PIPELINES_URL, status=status, body="nope")

        with pytest.raises(error, match=f"Failed to list pipelines: {status} nope"):
            await provider.resolve_pipeline_id("gitops-promotion")


class TestSetup:
    """Tests for pipeline setup operations."""

    async def test_create_pipeline_uses_github_repository_type(
        self, provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Creates a YAML pipeline bound to a GitHub repository."""
        aioresponses.post(
            PIPELINES_URL,
            status=201,
            payload=pipeline_definition(pipeline_id=77, name="service-a"),
        )

        definition = await provider.create_pipeline(
            "service-a", "octo/service-a", "github"
        )

        assert definition.id == 77
        request = aioresponses.requests[("POST", URL(PIPELINES_URL))][0]
        configuration = request.kwargs["json"]["configuration"]
        assert configuration["type"] == "yaml"
        assert configuration["path"] == "azure-pipelines.yml"
        assert configuration["repository"]["type"] == "gitHub"
        assert configuration["repository"]["fullName"] == "octo/service-a"

    async def test_create_variable_group_marks_secrets(
        self, provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Variables are stored as secrets."""
        url = f"{API_ROOT}/distributedtask/variablegroups?api-version=7.1"
        aioresponses.post(url, status=200, payload={"id": 5, "name": "service-a"})

        await provider.create_variable_group("service-a", {"TOKEN": "s3cr3t"})

        payload = aioresponses.requests[("POST", URL(url))][0].kwargs["json"]
        assert payload["variables"] == {"TOKEN": {"value": "s3cr3t", "isSecret": True}}
        assert payload["description"] == "Variable group for service-a"

    async def test_authorize_pipeline(
        self, provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Authorizes the pipeline for its queue and variable group."""
        mock_definitions(aioresponses)
        aioresponses.get(
            f"{API_ROOT}/distributedtask/queues?queueNames=Default"
            "&api-version=7.1-preview.1",
            payload=list_response([{"id": 9, "name": "Default"}]),
        )
        aioresponses.get(
            f"{API_ROOT}/distributedtask/variablegroups?groupName=gitops-promotion"
            "&api-version=7.1-preview.2",
            payload=list_response([{"id": 5, "name": "gitops-promotion"}]),
        )
        queue_url = (
            f"{API_ROOT}/pipelines/pipelinePermissions/queue/9"
            "?api-version=7.1-preview.1"
        )
        group_url = (
            f"{API_ROOT}/pipelines/pipelinePermissions/variablegroup/5"
            "?api-version=7.1-preview.1"
        )
        aioresponses.patch(queue_url, payload={})
        aioresponses.patch(group_url, payload={})

        await provider.authorize_pipeline("gitops-promotion")

        queue_call = aioresponses.requests[("PATCH", URL(queue_url))][0]
        assert queue_call.kwargs["json"]["pipelines"] == [
            {"id": 42, "authorized": True}
        ]
        assert queue_call.kwargs["json"]["resource"] == {"id": "9", "type": "queue"}
        assert len(aioresponses.requests[("PATCH", URL(group_url))]) == 1

    async def test_authorize_pipeline_requires_queue(
        self, provider: AzurePipelinesProvider, aioresponses: aioresponses_cls
    ) -> None:
        """Raises when the agent queue does not exist."""
        mock_definitions(aioresponses)
        aioresponses.get(
            f"{API_ROOT}/distributedtask/queues?queueNames=Missing"
            "&api-version=7.1-preview.1",
            payload=list_response([]),
        )
        aioresponses.get(
            f"{API_ROOT}/distributedtask/variablegroups?groupName=gitops-promotion"
            "&api-version=7.1-preview.2",
            payload=list_response([{"id": 5, "name": "gitops-promotion"}]),
        )

        with pytest.raises(ResourceNotFoundError, match="Agent queue 'Missing'"):
            await provider.authorize_pipeline("gitops-promotion", agent_queue="Missing")
