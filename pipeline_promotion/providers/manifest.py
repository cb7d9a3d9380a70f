"""Provider manifest definition for the plugin system."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from pipeline_promotion.providers.base import CIProvider
from pipeline_promotion.providers.config import ProviderConfig


@dataclass(frozen=True, kw_only=True)
class ProviderManifest[ConfigT: ProviderConfig]:
    """Manifest describing a CI provider plugin.

    Holds the configuration class used to validate the provider settings and
    the factory opening a façade with its HTTP session.
    """

    config_cls: type[ConfigT]
    provider_factory: Callable[[ConfigT], AbstractAsyncContextManager[CIProvider]]
