"""Discovery of CI provider plugins registered as entry points."""

from collections.abc import Sequence
from importlib.metadata import EntryPoint, entry_points
from typing import Any

from pipeline_promotion.errors import PromotionEngineError
from pipeline_promotion.providers.manifest import ProviderManifest

ENTRY_POINT_GROUP = "pipeline_promotion.providers"


class ProviderNotFoundError(PromotionEngineError):
    """Raised when no plugin is registered under the requested key."""


def _provider_entries() -> dict[str, EntryPoint]:
    return {entry.name: entry for entry in entry_points(group=ENTRY_POINT_GROUP)}


def available_providers() -> Sequence[str]:
    """Keys of every installed provider, e.g. ``["azure-pipelines", "jenkins"]``."""
    return sorted(_provider_entries())


def load_provider_manifest(key: str) -> ProviderManifest[Any]:
    """Import the manifest registered under ``key``.

    Raises:
        ProviderNotFoundError: If no provider with the given key is installed

    """
    entries = _provider_entries()
    if (entry := entries.get(key)) is None:
        raise ProviderNotFoundError(
            f"Provider '{key}' not found. Available providers: {sorted(entries)}"
        )

    manifest: ProviderManifest[Any] = entry.load()
    return manifest
