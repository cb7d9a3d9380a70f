"""Configuration for Azure Pipelines provider."""

from pydantic import Field, SecretStr

from pipeline_promotion.providers.config import ProviderConfig


class AzurePipelinesConfig(ProviderConfig):
    """Configuration for Azure Pipelines provider."""

    token: SecretStr
    organization: str = Field(..., min_length=1)
    project: str = Field(..., min_length=1)
    pipeline_name: str = Field(..., min_length=1)
    api_base_url: str = "https://dev.azure.com"
    api_version: str = "7.1"
    agent_queue: str = "Default"
    service_connection_id: str | None = None
    max_runs_to_check: int = Field(default=50, ge=1)
