"""Abstract base class for CI provider façades."""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from pipeline_promotion.errors import (
    PipelineNotFoundError,
    PipelineTimeoutError,
    WaitCancelledError,
)
from pipeline_promotion.models.pipeline import (
    EventType,
    Pipeline,
    PipelineRef,
    PipelineStatus,
)
from pipeline_promotion.poller import BackoffPolicy, DeadlinePolicy, await_terminal
from pipeline_promotion.providers.config import ProviderConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class CIProvider(ABC):
    """Uniform view over one CI provider.

    Subclasses own the conversion of raw provider payloads into canonical
    ``Pipeline`` records; everything built on top of them (waiting, event
    filtering, the promotion workflows) only sees the canonical model. No
    response is cached: every status query is a fresh read.
    """

    config: ProviderConfig

    @abstractmethod
    async def resolve_pipeline_id(self, name: str) -> str | None:
        """Resolve the provider-side pipeline, job or workflow id for ``name``.

        Returns:
            The identifier, or None if no such pipeline exists

        """

    @abstractmethod
    async def get_pipeline_for_event(
        self, ref: PipelineRef, event_type: EventType = EventType.ANY
    ) -> Pipeline | None:
        """Find the run matching ``ref`` and ``event_type``.

        Returns:
            The chosen run, or None when no run matches yet

        """

    @abstractmethod
    async def fetch_pipeline(self, pipeline: Pipeline) -> Pipeline:
        """Re-read ``pipeline`` from the provider."""

    @abstractmethod
    async def list_in_flight(self, pipeline_id: str) -> Sequence[Pipeline]:
        """List the non-terminal runs of ``pipeline_id``."""

    async def current_status(self, pipeline: Pipeline) -> PipelineStatus:
        """Return the current canonical status of ``pipeline``."""
        return (await self.fetch_pipeline(pipeline)).status

    async def get_pipeline(
        self,
        ref: PipelineRef,
        expected_status: PipelineStatus | None = None,
        event_type: EventType = EventType.ANY,
    ) -> Pipeline | None:
        """Find a run, optionally requiring it to be in ``expected_status``."""
        pipeline = await self.get_pipeline_for_event(ref, event_type)
        if pipeline is None:
            return None
        if expected_status is not None and pipeline.status != expected_status:
            log.info(
                "Pipeline %s is %s, expected %s",
                pipeline.display_name,
                pipeline.status,
                expected_status,
            )
            return None
        return pipeline

    async def wait_for_pipeline(
        self,
        ref: PipelineRef,
        event_type: EventType = EventType.ANY,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Pipeline:
        """Wait until a run matching ``ref`` and ``event_type`` shows up.

        Raises:
            PipelineNotFoundError: If no run appeared within the timeout
            WaitCancelledError: If ``cancel`` fired first

        """
        policy = DeadlinePolicy(
            timeout=self.config.poll_timeout if timeout is None else timeout,
            interval=self.config.poll_interval,
        )
        result = await await_terminal(
            lambda: self.get_pipeline_for_event(ref, event_type),
            lambda pipeline: pipeline is not None,
            policy=policy,
            max_transport_retries=self.config.transport_retries,
            cancel=cancel,
        )
        if result.outcome == "cancelled":
            raise WaitCancelledError(f"Wait for a pipeline for {ref!r} was cancelled")
        if result.value is None:
            raise PipelineNotFoundError(
                f"No {event_type.value} pipeline found for {ref!r} "
                f"after {result.elapsed:.0f}s"
            )
        return result.value

    async def wait_for_pipeline_to_finish(
        self,
        pipeline: Pipeline,
        timeout: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> PipelineStatus:
        """Wait for ``pipeline`` to reach a terminal status and return it.

        Raises:
            PipelineTimeoutError: If the run is still not terminal at timeout
            WaitCancelledError: If ``cancel`` fired first

        """
        policy = DeadlinePolicy(
            timeout=self.config.poll_timeout if timeout is None else timeout,
            interval=self.config.poll_interval,
        )
        log.info("Waiting for pipeline %s to finish", pipeline.display_name)
        result = await await_terminal(
            lambda: self.fetch_pipeline(pipeline),
            lambda observed: observed.is_terminal,
            policy=policy,
            max_transport_retries=self.config.transport_retries,
            cancel=cancel,
        )
        if result.outcome == "cancelled":
            raise WaitCancelledError(
                f"Wait for pipeline {pipeline.display_name} was cancelled"
            )
        if not result.is_terminal or result.value is None:
            last = result.value.status if result.value is not None else None
            raise PipelineTimeoutError(
                f"Pipeline {pipeline.display_name} did not finish within "
                f"{policy.timeout} seconds (last status: {last})"
            )

        log.info(
            "Pipeline %s finished with status=%s",
            pipeline.display_name,
            result.value.status,
        )
        return result.value.status

    async def wait_for_all_in_flight_to_finish(
        self, pipeline_name: str, cancel: asyncio.Event | None = None
    ) -> None:
        """Wait until ``pipeline_name`` has no pending or running runs.

        Uses a fixed attempt count with a bounded backoff rather than a
        wall-clock deadline.

        Raises:
            PipelineTimeoutError: If runs are still in flight after all attempts
            WaitCancelledError: If ``cancel`` fired first

        """
        pipeline_id = await self.resolve_pipeline_id(pipeline_name)
        if pipeline_id is None:
            log.info("Pipeline %s not found, nothing to wait for", pipeline_name)
            return

        policy = BackoffPolicy(
            attempts=self.config.in_flight_attempts,
            min_delay=self.config.in_flight_min_delay,
            max_delay=self.config.in_flight_max_delay,
        )
        log.info("Waiting for all runs of %s to finish", pipeline_name)
        result = await await_terminal(
            lambda: self.list_in_flight(pipeline_id),
            lambda in_flight: len(in_flight) == 0,
            policy=policy,
            max_transport_retries=self.config.transport_retries,
            cancel=cancel,
        )
        if result.outcome == "cancelled":
            raise WaitCancelledError(
                f"Wait for in-flight runs of {pipeline_name} was cancelled"
            )
        if not result.is_terminal:
            remaining = len(result.value) if result.value is not None else "unknown"
            raise PipelineTimeoutError(
                f"Runs of {pipeline_name} still in flight after "
                f"{result.attempts} attempts ({remaining} remaining)"
            )

    def select_candidate(
        self, pipelines: Sequence[Pipeline], event_type: EventType
    ) -> Pipeline | None:
        """Apply the event filter and pick the most recently finished run.

        Runs still in flight count as the most recent ones.
        """
        candidates = [p for p in pipelines if event_type.accepts(p.trigger)]
        if not candidates:
            if pipelines:
                log.info(
                    "None of %d run(s) was triggered by a %s event",
                    len(pipelines),
                    event_type.value,
                )
            return None
        return max(candidates, key=_recency_key)


def _recency_key(pipeline: Pipeline) -> tuple[bool, datetime, datetime, int]:
    started = _naive_utc(pipeline.started_at) or datetime.min
    finished = _naive_utc(pipeline.finished_at)
    return (finished is None, finished or started, started, pipeline.run_id)


def _naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
