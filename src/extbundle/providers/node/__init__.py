"""Node.js provider reading the ``<id>Info`` export of a bundled script."""

from extbundle.providers.node.plugin import NodeInfoProvider

__all__ = ["NodeInfoProvider"]
