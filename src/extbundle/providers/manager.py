"""Provider manager -- discovery, ordering and metadata resolution.

This module contains :class:`ProviderManager`, the central coordinator for
source info providers. It registers the built-in providers, discovers
third-party ones registered as Python entry points, applies enable/disable
filtering from the build configuration, and turns a provider's raw record
into a validated :class:`~extbundle.models.SourceInfo`.

The entry-point group used for discovery is ``extbundle.providers``.
Third-party packages register providers by declaring an entry point under
this group in their ``pyproject.toml``::

    [project.entry-points."extbundle.providers"]
    toml = "my_package.provider:TomlProvider"
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any, Optional

from pydantic import ValidationError

from extbundle.exceptions import ProviderError, SourceError
from extbundle.models import BuildConfig, ModuleContext, SourceInfo
from extbundle.providers.base import SourceInfoProvider
from extbundle.providers.node.plugin import NodeInfoProvider
from extbundle.providers.static.plugin import StaticInfoProvider

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "extbundle.providers"
"""The entry-point group name used for provider discovery."""

BUILTIN_PROVIDERS: tuple[type[SourceInfoProvider], ...] = (
    StaticInfoProvider,
    NodeInfoProvider,
)
"""Built-in providers, in resolution order."""

# Author-facing field name -> manifest field name.
_FIELD_MAP = {
    "name": "name",
    "author": "author",
    "description": "desc",
    "authorWebsite": "website",
    "version": "version",
    "icon": "icon",
    "websiteBaseURL": "websiteBaseURL",
}


class ProviderManager:
    """Loads source info providers and resolves module metadata.

    The *enabled* and *disabled* lists in
    :class:`~extbundle.models.ProvidersConfig` act as an explicit
    allowlist/blocklist. When *enabled* is non-empty only those providers
    are loaded; otherwise every provider not in *disabled* is loaded.
    Built-ins come first, followed by entry-point providers in discovery
    order.

    Example:
        Typical usage::

            manager = ProviderManager()
            manager.discover(config)
            info = manager.resolve(ModuleContext.for_module(config, "MangaDex"))
    """

    def __init__(self) -> None:
        self._providers: dict[str, SourceInfoProvider] = {}

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, config: BuildConfig, include_entry_points: bool = True) -> list[str]:
        """Load the built-in providers and those registered as entry points.

        Args:
            config: Build configuration whose ``providers.enabled`` and
                ``providers.disabled`` lists control what is loaded.
            include_entry_points: Set to ``False`` to load built-ins only.

        Returns:
            Names of the providers that were loaded. Entry points that fail
            to load are logged as warnings and skipped.
        """
        loaded: list[str] = []
        enabled_set = set(config.providers.enabled)
        disabled_set = set(config.providers.disabled)

        def wanted(name: str) -> bool:
            if enabled_set and name not in enabled_set:
                logger.debug("Provider '%s' not in enabled list, skipping", name)
                return False
            if name in disabled_set:
                logger.debug("Provider '%s' is disabled, skipping", name)
                return False
            return True

        for provider_cls in BUILTIN_PROVIDERS:
            provider = provider_cls()
            if wanted(provider.name):
                self.load_provider(provider.name, provider, config)
                loaded.append(provider.name)

        if include_entry_points:
            for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
                if not wanted(ep.name):
                    continue
                try:
                    provider_cls = ep.load()
                    self.load_provider(ep.name, provider_cls(), config)
                    loaded.append(ep.name)
                except Exception as exc:
                    logger.warning("Failed to load provider '%s': %s", ep.name, exc)

        return loaded

    def load_provider(
        self, name: str, provider: SourceInfoProvider, config: BuildConfig
    ) -> None:
        """Initialise *provider* and register it under *name*.

        Raises:
            ProviderError: If a provider with the same *name* is already loaded.
        """
        if name in self._providers:
            raise ProviderError(f"Provider '{name}' is already loaded")
        provider.on_init(config)
        self._providers[name] = provider
        logger.debug("Loaded provider '%s' v%s", name, provider.version)

    # ------------------------------------------------------------------
    # Querying
    # ------------------------------------------------------------------

    def get_provider(self, name: str) -> SourceInfoProvider:
        try:
            return self._providers[name]
        except KeyError:
            raise ProviderError(f"Provider '{name}' is not loaded") from None

    def list_providers(self) -> list[dict[str, str]]:
        return [
            {
                "name": name,
                "version": provider.version,
                "description": provider.description,
            }
            for name, provider in self._providers.items()
        ]

    def select(self, ctx: ModuleContext) -> Optional[SourceInfoProvider]:
        """Return the first provider that supports *ctx*, or ``None``."""
        for provider in self._providers.values():
            try:
                supported = provider.supports(ctx)
            except Exception as exc:
                raise SourceError(
                    f"[{ctx.id}] provider '{provider.name}' failed: {exc}"
                ) from exc
            if supported:
                return provider
        return None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, ctx: ModuleContext) -> SourceInfo:
        """Describe the module in *ctx* with the first supporting provider.

        Raises:
            ProviderError: If no loaded provider supports the module.
            SourceError: If the provider fails or the record is invalid.
        """
        provider = self.select(ctx)
        if provider is None:
            raise ProviderError(f"[{ctx.id}] No provider can read this module's metadata")
        logger.debug("Resolving '%s' with provider '%s'", ctx.id, provider.name)
        try:
            raw = provider.load(ctx)
        except SourceError:
            raise
        except Exception as exc:
            raise SourceError(
                f"[{ctx.id}] provider '{provider.name}' failed: {exc}"
            ) from exc
        if not isinstance(raw, dict):
            raise SourceError(
                f"[{ctx.id}] provider '{provider.name}' returned "
                f"{type(raw).__name__}, expected an object"
            )
        return to_source_info(ctx.id, raw)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def cleanup(self) -> None:
        """Clean up every provider; errors are logged so all get a chance to run."""
        for name, provider in self._providers.items():
            try:
                provider.cleanup()
            except Exception as exc:
                logger.warning("Error cleaning up provider '%s': %s", name, exc)
        self._providers.clear()


def to_source_info(module_id: str, raw: dict[str, Any]) -> SourceInfo:
    """Map an author-facing metadata record onto a manifest entry.

    ``sourceTags`` wins over ``tags`` when both are present. The module id
    always comes from the directory name, never from the record.

    Raises:
        SourceError: If required fields are missing or have the wrong type.
    """
    data: dict[str, Any] = {"id": module_id}
    for key, target in _FIELD_MAP.items():
        if raw.get(key) is not None:
            data[target] = raw[key]
    tags = raw.get("sourceTags", raw.get("tags"))
    if tags is not None:
        data["tags"] = tags

    try:
        return SourceInfo.model_validate(data)
    except ValidationError as exc:
        raise SourceError(f"[{module_id}] Invalid metadata: {exc}") from exc
