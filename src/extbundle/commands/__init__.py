"""Built-in CLI commands.

* ``bundle`` -- build the extension repository (:func:`bundle_command`).
"""

from extbundle.commands.bundle import bundle_command

__all__ = ["bundle_command"]
