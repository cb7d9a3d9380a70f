"""GitHub Actions provider manifest."""

from pipeline_promotion.providers.github_actions.config import GitHubActionsConfig
from pipeline_promotion.providers.github_actions.provider import (
    GitHubActionsProvider,
)
from pipeline_promotion.providers.manifest import ProviderManifest

github_actions_manifest = ProviderManifest(
    config_cls=GitHubActionsConfig,
    provider_factory=GitHubActionsProvider.from_config,
)
