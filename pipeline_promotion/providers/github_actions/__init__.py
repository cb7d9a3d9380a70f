"""GitHub Actions provider module."""

from pipeline_promotion.providers.github_actions.config import GitHubActionsConfig
from pipeline_promotion.providers.github_actions.manifest import (
    github_actions_manifest,
)
from pipeline_promotion.providers.github_actions.provider import (
    GitHubActionsProvider,
)

__all__ = ["GitHubActionsConfig", "GitHubActionsProvider", "github_actions_manifest"]
