"""Error taxonomy shared by the façades, the poller and the orchestrator."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipeline_promotion.models.pipeline import PipelineStatus
    from pipeline_promotion.models.promotion import Stage


class PromotionEngineError(Exception):
    """Base class for all errors raised by the engine."""


class ResourceNotFoundError(PromotionEngineError):
    """Raised when a provider answers 404 for a resource."""


class PipelineNotFoundError(PromotionEngineError):
    """Raised when an expected pipeline run never showed up."""


class PipelineTimeoutError(PromotionEngineError, TimeoutError):
    """Raised when a pipeline is still not terminal once the wait is over."""


class WaitCancelledError(PipelineTimeoutError):
    """Raised when a wait was ended early by its cancellation signal."""


class ProviderAPIError(PromotionEngineError, RuntimeError):
    """Raised when a provider rejects a request (non-retryable status)."""


class TransportFaultError(PromotionEngineError):
    """Raised when a request failed at the transport level or with a 5xx.

    The underlying exception, if any, is kept on ``cause`` in addition to the
    regular ``__cause__`` chaining.
    """

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class WorkflowAbortedError(PromotionEngineError):
    """Raised when a promotion stage did not end successfully."""

    def __init__(
        self,
        *,
        stage: Stage,
        environment: str,
        mode: str,
        last_completed: Stage | None,
        reason: str,
        status: PipelineStatus | None = None,
    ) -> None:
        self.stage = stage
        self.environment = environment
        self.mode = mode
        self.last_completed = last_completed
        self.reason = reason
        self.status = status
        completed = last_completed.value if last_completed is not None else "none"
        message = (
            f"Workflow {mode} for environment '{environment}' aborted at stage "
            f"{stage.value}: {reason} (last completed stage: {completed})"
        )
        if status is not None:
            message = f"{message} [status={status.value}]"
        super().__init__(message)
