"""Static descriptor provider (``source.json`` / ``source.yaml``)."""

from extbundle.providers.static.plugin import StaticInfoProvider

__all__ = ["StaticInfoProvider"]
