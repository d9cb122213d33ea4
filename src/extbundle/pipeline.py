"""Build orchestrator -- runs every phase of ``extbundle bundle`` in order.

Phases, each timed and logged:

1. **Transpile** -- recreate ``temp_build/`` and run the compiler.
2. **Bundle** -- recreate ``bundles/`` and bundle every module concurrently.
   ``temp_build/`` is removed afterwards, even on failure.
3. **Versioning file** -- write ``bundles/versioning.json``.
4. **Homepage** -- render ``bundles/index.html`` from the in-memory manifest.

Both output roots are deleted before use, so a build after a previous build
behaves exactly like a build on a fresh checkout.
"""

from __future__ import annotations

from typing import Mapping, Optional

from extbundle.bundler import bundle_all
from extbundle.compiler import compile_project
from extbundle.exceptions import ConfigError, InvalidUsageError
from extbundle.fsutil import delete_tree, reset_dir
from extbundle.homepage import generate_homepage
from extbundle.manifest import generate_manifest
from extbundle.models import BuildConfig, BuildReport
from extbundle.output import info, timed
from extbundle.providers import ProviderManager


class BuildPipeline:
    """Runs compile, bundle, manifest and homepage for one project.

    Args:
        config: Effective build configuration.
        providers: Provider manager for the manifest phase. A manager with
            the built-in and entry-point providers is created when omitted.
        environ: Environment used for homepage base URL resolution.
    """

    def __init__(
        self,
        config: BuildConfig,
        providers: Optional[ProviderManager] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config = config
        self._providers = providers
        self._environ = environ

    def run(self) -> BuildReport:
        """Run every phase and return a :class:`~extbundle.models.BuildReport`.

        Raises:
            InvalidUsageError: If the project has no source directory.
            ConfigError: If an output directory is not safe to delete.
            CompileError: If compilation fails and the config does not allow
                continuing.
            ManifestError / DescriptorError: Propagated from the last phases.
        """
        config = self.config
        if not config.source_path.is_dir():
            raise InvalidUsageError(
                f"No {config.source_dir}/ directory in {config.project_root}"
            )
        # Configs built with model_copy() skip validation.
        problem = config.output_dir_problem()
        if problem:
            raise ConfigError(problem)

        info(f"Working directory: {config.project_root}")
        report = BuildReport()

        with timed("Execution time") as total:
            try:
                self._bundle_sources(report)
            finally:
                delete_tree(config.build_path)
            self._generate_manifest(report)
            self._generate_homepage(report)

        report.timings["total"] = total["elapsed"]
        return report

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _bundle_sources(self, report: BuildReport) -> None:
        config = self.config
        reset_dir(config.build_path)

        with timed("Transpiling project") as t:
            compile_project(config)
        report.timings["transpile"] = t["elapsed"]

        reset_dir(config.bundles_path)
        with timed("Bundle time") as t:
            results = bundle_all(config)
        report.timings["bundle"] = t["elapsed"]

        report.bundled = sorted(results.succeeded)
        report.bundle_skipped = list(results.skipped)
        report.bundle_failed = {f.key: f.message for f in results.failed}

    def _generate_manifest(self, report: BuildReport) -> None:
        providers = self._providers
        owns_providers = providers is None
        if providers is None:
            providers = ProviderManager()
            providers.discover(self.config)

        try:
            with timed("Versioning File") as t:
                manifest, results = generate_manifest(self.config, providers)
        finally:
            if owns_providers:
                providers.cleanup()

        report.timings["manifest"] = t["elapsed"]
        report.manifest = manifest
        report.manifest_failed = {f.key: f.message for f in results.failed}

    def _generate_homepage(self, report: BuildReport) -> None:
        with timed("Homepage Generation") as t:
            report.homepage = generate_homepage(
                self.config, report.manifest, environ=self._environ
            )
        report.timings["homepage"] = t["elapsed"]
