"""Source info providers -- how extbundle learns what each module declares.

Every module in the manifest is described by a provider. Built-in providers
read a static ``source.json``/``source.yaml`` descriptor or evaluate the
bundled script with Node.js; third-party packages can add more by declaring
an entry point in the ``extbundle.providers`` group.

Key classes:

* :class:`SourceInfoProvider` -- Abstract base class every provider extends.
* :class:`ProviderManager` -- Loads providers and resolves module metadata.
* :class:`StaticInfoProvider` -- Static descriptor next to the sources.
* :class:`NodeInfoProvider` -- ``<id>Info`` export of the bundled script.
"""

from extbundle.providers.base import SourceInfoProvider
from extbundle.providers.manager import ProviderManager, to_source_info
from extbundle.providers.node import NodeInfoProvider
from extbundle.providers.static import StaticInfoProvider

__all__ = [
    "SourceInfoProvider",
    "ProviderManager",
    "NodeInfoProvider",
    "StaticInfoProvider",
    "to_source_info",
]
