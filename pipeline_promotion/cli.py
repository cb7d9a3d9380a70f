"""CLI entry point for querying and awaiting pipelines on CI providers."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from pipeline_promotion.errors import PromotionEngineError
from pipeline_promotion.models.pipeline import (
    EventType,
    Pipeline,
    PipelineRef,
    PipelineStatus,
)
from pipeline_promotion.providers.loading import (
    available_providers,
    load_provider_manifest,
)

STATUS_SYMBOLS = {
    PipelineStatus.SUCCESS: "✅",
    PipelineStatus.FAILURE: "❌",
    PipelineStatus.CANCELLED: "⛔",
    PipelineStatus.PENDING: "⏳",
    PipelineStatus.RUNNING: "🔄",
    PipelineStatus.UNKNOWN: "❔",
}


def format_pipeline(pipeline: Pipeline) -> dict[str, Any]:
    """Format a pipeline for JSON output."""
    return {
        "id": pipeline.id,
        "ci_type": pipeline.ci_type.value,
        "name": pipeline.name,
        "repository": pipeline.repository,
        "status": pipeline.status.value,
        "trigger": pipeline.trigger.value,
        "sha": pipeline.sha,
        "url": pipeline.url,
        "started_at": pipeline.started_at.isoformat() if pipeline.started_at else None,
        "finished_at": (
            pipeline.finished_at.isoformat() if pipeline.finished_at else None
        ),
    }


def log_pipeline_summary(log: logging.Logger, pipeline: Pipeline) -> None:
    symbol = STATUS_SYMBOLS.get(pipeline.status, "?")
    log.info(
        "%s %s: %s (trigger=%s)",
        symbol,
        pipeline.display_name,
        pipeline.status,
        pipeline.trigger,
    )
    if pipeline.url:
        log.info("  Run URL: %s", pipeline.url)


async def run(
    provider_key: str,
    provider_config_json: str,
    ref: PipelineRef,
    event_type: EventType = EventType.ANY,
    wait: bool = False,
    timeout: float | None = None,
    wait_in_flight: str | None = None,
) -> int:
    """Look up (and optionally await) a pipeline and return the exit code."""
    log = logging.getLogger("pipeline_promotion")

    log.info("Loading provider: %s", provider_key)
    manifest = load_provider_manifest(provider_key)

    config_dict = json.loads(provider_config_json)
    config = manifest.config_cls(**config_dict)

    pipeline: Pipeline | None = None
    try:
        async with manifest.provider_factory(config) as provider:
            if wait_in_flight:
                await provider.wait_for_all_in_flight_to_finish(wait_in_flight)

            if wait:
                pipeline = await provider.wait_for_pipeline(ref, event_type, timeout)
                await provider.wait_for_pipeline_to_finish(pipeline, timeout)
                pipeline = await provider.fetch_pipeline(pipeline)
            else:
                pipeline = await provider.get_pipeline_for_event(ref, event_type)
    except PromotionEngineError as exc:
        log.error("%s", exc)
        print(json.dumps({"found": pipeline is not None, "error": str(exc)}))
        return 1

    if pipeline is None:
        log.info("No pipeline found for %r (event=%s)", ref, event_type)
        print(json.dumps({"found": False, "pipeline": None}))
        return 1

    log_pipeline_summary(log, pipeline)
    print(json.dumps({"found": True, "pipeline": format_pipeline(pipeline)}, indent=2))

    if wait and pipeline.status is not PipelineStatus.SUCCESS:
        return 1
    return 0


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Find and await pipeline runs on CI/CD providers"
    )
    parser.add_argument(
        "--provider",
        required=True,
        help=f"Provider key ({', '.join(available_providers()) or 'none installed'})",
    )
    parser.add_argument(
        "--provider-config",
        required=True,
        help="JSON configuration for the provider",
    )
    selector = parser.add_mutually_exclusive_group()
    selector.add_argument("--sha", help="Commit SHA the run was built from")
    selector.add_argument("--branch", help="Branch the run was built from")
    selector.add_argument(
        "--pull-number", type=int, help="Pull request number the run belongs to"
    )
    parser.add_argument(
        "--event",
        choices=[event.value for event in EventType],
        default=EventType.ANY.value,
        help="Only accept runs triggered by this event",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the run to appear and finish",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait (defaults to the provider's poll_timeout)",
    )
    parser.add_argument(
        "--pipeline",
        help="Pipeline, job or workflow name used by --wait-in-flight",
    )
    parser.add_argument(
        "--wait-in-flight",
        action="store_true",
        help="First wait until --pipeline has no pending or running runs",
    )

    args = parser.parse_args()
    if args.wait_in_flight and not args.pipeline:
        parser.error("--wait-in-flight requires --pipeline")

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    exit_code = asyncio.run(
        run(
            provider_key=args.provider,
            provider_config_json=args.provider_config,
            ref=PipelineRef(
                sha=args.sha, branch=args.branch, pull_number=args.pull_number
            ),
            event_type=EventType(args.event),
            wait=args.wait,
            timeout=args.timeout,
            wait_in_flight=args.pipeline if args.wait_in_flight else None,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
