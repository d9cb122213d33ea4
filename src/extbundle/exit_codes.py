"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~extbundle.exceptions.ExtbundleError` subclass.
CI workflows can inspect the exit code to tell a broken compile from a
broken homepage without parsing stderr.

Example::

    $ extbundle bundle
    $ echo $?
    3   # EXIT_COMPILE_ERROR -- tsc rejected the project
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or from the wrong directory."""

EXIT_COMPILE_ERROR = 3
"""The external compiler could not be run or exited with a non-zero status."""

EXIT_BUNDLE_ERROR = 4
"""The external bundler could not be run or exited with a non-zero status."""

EXIT_SOURCE_ERROR = 5
"""A source module declared invalid metadata (e.g. missing icon)."""

EXIT_MANIFEST_ERROR = 6
"""The versioning manifest is missing or malformed."""

EXIT_DESCRIPTOR_ERROR = 7
"""The project descriptor (``package.json``) is malformed."""

EXIT_PROVIDER_ERROR = 10
"""A source info provider failed to load or could not handle a module."""
