"""Exception hierarchy for extbundle.

All exceptions inherit from :class:`ExtbundleError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`extbundle.exit_codes`.
The top-level error handler in :func:`extbundle.app.main` catches
``ExtbundleError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Per-module errors (:class:`BundleError`, :class:`SourceError`,
:class:`ProviderError`) are normally caught at the module boundary by
:func:`extbundle.tasks.run_tasks` and only reach the entry point when raised
outside a fan-out.

Subclass hierarchy::

    ExtbundleError (exit 1)
    +-- ConfigError          (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- CompileError         (exit 3)
    +-- BundleError          (exit 4)
    +-- SourceError          (exit 5)
    |   +-- MissingIconError (exit 5)
    +-- ManifestError        (exit 6)
    +-- DescriptorError      (exit 7)
    +-- ProviderError        (exit 10)
    +-- ModuleSkipped        (exit 0, never reaches the entry point)
"""

from extbundle.exit_codes import (
    EXIT_BUNDLE_ERROR,
    EXIT_COMPILE_ERROR,
    EXIT_DESCRIPTOR_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MANIFEST_ERROR,
    EXIT_PROVIDER_ERROR,
    EXIT_SOURCE_ERROR,
    EXIT_SUCCESS,
)


class ExtbundleError(Exception):
    """Base exception for all extbundle errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`extbundle.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(ExtbundleError):
    """Raised for configuration problems (invalid ``extbundle.json``, bad env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(ExtbundleError):
    """Raised when the command is run somewhere it cannot work (e.g. no ``src/``)."""

    exit_code = EXIT_INVALID_USAGE


class CompileError(ExtbundleError):
    """Raised when the compiler cannot be started or exits non-zero."""

    exit_code = EXIT_COMPILE_ERROR


class BundleError(ExtbundleError):
    """Raised when the bundler fails for a single module."""

    exit_code = EXIT_BUNDLE_ERROR


class SourceError(ExtbundleError):
    """Raised when a module's metadata is invalid."""

    exit_code = EXIT_SOURCE_ERROR


class MissingIconError(SourceError):
    """Raised when a module's icon is not inside its ``includes`` folder."""


class ManifestError(ExtbundleError):
    """Raised when ``versioning.json`` is missing or cannot be parsed."""

    exit_code = EXIT_MANIFEST_ERROR


class DescriptorError(ExtbundleError):
    """Raised when ``package.json`` is malformed or lacks required fields."""

    exit_code = EXIT_DESCRIPTOR_ERROR


class ProviderError(ExtbundleError):
    """Raised when a provider fails to load, or no provider can describe a module."""

    exit_code = EXIT_PROVIDER_ERROR


class ModuleSkipped(ExtbundleError):
    """Raised inside a per-module task to mark the module as skipped, not failed.

    :func:`extbundle.tasks.run_tasks` records the key under ``skipped`` and
    logs the message; it is never treated as an error.
    """

    exit_code = EXIT_SUCCESS
