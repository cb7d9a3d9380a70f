"""Jenkins provider module."""

from pipeline_promotion.providers.jenkins.config import JenkinsConfig
from pipeline_promotion.providers.jenkins.manifest import jenkins_manifest
from pipeline_promotion.providers.jenkins.provider import JenkinsProvider

__all__ = ["JenkinsConfig", "JenkinsProvider", "jenkins_manifest"]
