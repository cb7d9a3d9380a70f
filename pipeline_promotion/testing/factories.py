"""Test factories for generating canonical records and workflow models."""

from polyfactory.factories import DataclassFactory
from polyfactory.factories.pydantic_factory import ModelFactory

from pipeline_promotion.models.pipeline import (
    CIType,
    Pipeline,
    PipelineStatus,
    TriggerReason,
)
from pipeline_promotion.models.promotion import (
    Application,
    PromotionRequest,
    PullRequest,
    SyncResult,
)


class PipelineFactory(DataclassFactory[Pipeline]):
    """Factory for Pipeline."""

    __model__ = Pipeline

    ci_type = CIType.AZURE_PIPELINES
    status = PipelineStatus.SUCCESS
    trigger = TriggerReason.PUSH
    url = ""


class PromotionRequestFactory(ModelFactory[PromotionRequest]):
    """Factory for PromotionRequest."""

    environment = "stage"
    mode = "with-pr"


class PullRequestFactory(ModelFactory[PullRequest]):
    """Factory for PullRequest."""

    branch = None


class ApplicationFactory(ModelFactory[Application]):
    """Factory for Application."""


class SyncResultFactory(ModelFactory[SyncResult]):
    """Factory for SyncResult."""

    synced = True
    message = ""
