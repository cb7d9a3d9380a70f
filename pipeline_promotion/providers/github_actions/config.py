"""Configuration for GitHub Actions provider."""

from pydantic import Field, SecretStr

from pipeline_promotion.providers.config import ProviderConfig


class GitHubActionsConfig(ProviderConfig):
    """Configuration for GitHub Actions provider.

    ``workflow`` is either the workflow's display name or its file name
    (``ci.yml``); both are resolved to the numeric workflow id.
    """

    token: SecretStr
    owner: str = Field(..., min_length=1)
    repo: str = Field(..., min_length=1)
    workflow: str = Field(..., min_length=1)
    api_base_url: str = "https://api.github.com"
    max_runs_to_check: int = Field(default=50, ge=1, le=100)
