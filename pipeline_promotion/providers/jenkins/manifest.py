"""Jenkins provider manifest."""

from pipeline_promotion.providers.jenkins.config import JenkinsConfig
from pipeline_promotion.providers.jenkins.provider import JenkinsProvider
from pipeline_promotion.providers.manifest import ProviderManifest

jenkins_manifest = ProviderManifest(
    config_cls=JenkinsConfig,
    provider_factory=JenkinsProvider.from_config,
)
