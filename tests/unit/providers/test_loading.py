"""Tests for provider loading module."""

import pytest

from pipeline_promotion.errors import PromotionEngineError
from pipeline_promotion.providers.azure_pipelines import azure_pipelines_manifest
from pipeline_promotion.providers.github_actions import github_actions_manifest
from pipeline_promotion.providers.jenkins import jenkins_manifest
from pipeline_promotion.providers.loading import (
    ProviderNotFoundError,
    available_providers,
    load_provider_manifest,
)


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("azure-pipelines", azure_pipelines_manifest),
        ("jenkins", jenkins_manifest),
        ("github-actions", github_actions_manifest),
    ],
)
def test_load_provider_manifest_returns_manifest(key: str, expected: object) -> None:
    """Loads provider manifest by key."""
    assert load_provider_manifest(key) is expected


def test_available_providers_lists_installed_keys() -> None:
    """Lists every registered provider, sorted."""
    providers = available_providers()

    assert list(providers) == sorted(providers)
    assert {"azure-pipelines", "jenkins", "github-actions"} <= set(providers)


def test_load_provider_manifest_raises_for_unknown_provider() -> None:
    """Raises ProviderNotFoundError for unknown provider key."""
    with pytest.raises(ProviderNotFoundError) as exc_info:
        load_provider_manifest("unknown-provider")

    assert "unknown-provider" in str(exc_info.value)
    assert "Available providers" in str(exc_info.value)
    assert isinstance(exc_info.value, PromotionEngineError)
