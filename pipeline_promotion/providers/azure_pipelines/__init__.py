"""Azure Pipelines provider module."""

from pipeline_promotion.providers.azure_pipelines.config import AzurePipelinesConfig
from pipeline_promotion.providers.azure_pipelines.manifest import (
    azure_pipelines_manifest,
)
from pipeline_promotion.providers.azure_pipelines.provider import (
    AzurePipelinesProvider,
)

__all__ = ["AzurePipelinesConfig", "AzurePipelinesProvider", "azure_pipelines_manifest"]
