"""Abstract base class for source info providers.

A provider answers one question: *what metadata does this module declare?*
Every provider must subclass :class:`SourceInfoProvider` and implement
:attr:`name`, :meth:`supports` and :meth:`load`. The lifecycle hooks
(``on_init``, ``cleanup``) are optional no-ops.

Providers are tried in order by
:class:`~extbundle.providers.manager.ProviderManager`; the first one whose
:meth:`supports` returns ``True`` describes the module. Third-party
providers register as entry points in the ``extbundle.providers`` group.

Example:
    Minimal provider reading a ``meta.toml`` file::

        class TomlProvider(SourceInfoProvider):
            @property
            def name(self) -> str:
                return "toml"

            def supports(self, ctx):
                return (ctx.source_dir / "meta.toml").is_file()

            def load(self, ctx):
                return tomllib.loads((ctx.source_dir / "meta.toml").read_text())
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from extbundle.models import BuildConfig, ModuleContext


class SourceInfoProvider(ABC):
    """Base class for all source info providers.

    The provider lifecycle is:

    1. Instantiation -- the :class:`ProviderManager` calls the no-arg constructor.
    2. :meth:`on_init` -- called once with the build configuration.
    3. :meth:`supports` / :meth:`load` -- called once per module, possibly
       from several threads at once.
    4. :meth:`cleanup` -- called once after the manifest phase.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the unique provider name used for discovery and logging."""
        ...

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def description(self) -> str:
        return ""

    def on_init(self, config: BuildConfig) -> None:
        """Called once when the provider is loaded.

        Args:
            config: The effective build configuration.
        """

    @abstractmethod
    def supports(self, ctx: ModuleContext) -> bool:
        """Return ``True`` if this provider can describe the module in *ctx*."""
        ...

    @abstractmethod
    def load(self, ctx: ModuleContext) -> dict[str, Any]:
        """Return the module's raw metadata record.

        The record uses the field names extension authors write
        (``name``, ``author``, ``description``, ``authorWebsite``,
        ``version``, ``icon``, ``sourceTags``, ``websiteBaseURL``).

        Raises:
            SourceError: If the metadata cannot be read.
        """
        ...

    def cleanup(self) -> None:
        """Called once after the manifest phase to release resources."""
