"""Configuration for Jenkins provider."""

from pydantic import Field, SecretStr, field_validator

from pipeline_promotion.providers.config import ProviderConfig


class JenkinsConfig(ProviderConfig):
    """Configuration for Jenkins provider.

    ``job_name`` may live inside ``folder``; builds of the job are inspected
    at most ``max_builds_to_check`` at a time, most recent first.
    """

    base_url: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    token: SecretStr
    job_name: str = Field(..., min_length=1)
    folder: str | None = None
    max_builds_to_check: int = Field(default=50, ge=1)

    @field_validator("base_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        # Job paths are resolved relative to the base URL.
        return value if value.endswith("/") else f"{value}/"
