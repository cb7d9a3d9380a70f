"""Azure Pipelines provider manifest."""

from pipeline_promotion.providers.azure_pipelines.config import AzurePipelinesConfig
from pipeline_promotion.providers.azure_pipelines.provider import (
    AzurePipelinesProvider,
)
from pipeline_promotion.providers.manifest import ProviderManifest

azure_pipelines_manifest = ProviderManifest(
    config_cls=AzurePipelinesConfig,
    provider_factory=AzurePipelinesProvider.from_config,
)
