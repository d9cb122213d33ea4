"""Canonical Pydantic models shared across all extbundle modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- loaded from ``extbundle.json`` and the environment:
    :class:`ProvidersConfig` and :class:`BuildConfig`.

**Input models** -- read from the extension project:
    :class:`ProjectDescriptor` (``package.json``) and :class:`ModuleContext`.

**Output models** -- produced by the build phases:
    :class:`SourceTag`, :class:`SourceInfo`, :class:`Manifest`,
    :class:`HomepageSource`, :class:`RepositoryDescriptor` and
    :class:`BuildReport`.

The manifest and homepage models keep the camelCase field names of the
published file formats so that ``model_dump()`` produces exactly what
Paperback clients and the homepage template expect.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# --- Configuration ---


DEFAULT_IGNORED_MODULES = [
    "./node_modules/paperback-extensions-common/dist/APIWrapper.js",
]
"""Modules excluded from every bundle (the runtime API wrapper)."""

DEFAULT_EXTERNAL_MODULES = ["axios", "cheerio", "fs"]
"""Libraries provided by the host app at load time, never inlined."""


class ProvidersConfig(BaseModel):
    """Explicit provider allow/deny lists stored in :class:`BuildConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class BuildConfig(BaseModel):
    """Effective configuration for one build, threaded through every phase.

    Built by :func:`~extbundle.config.resolve_config` from defaults, the
    project-local ``extbundle.json`` and ``EXTBUNDLE_*`` environment
    variables. Relative directory fields are resolved against
    :attr:`project_root` by the ``*_path`` properties.
    """

    model_config = ConfigDict(extra="forbid")

    project_root: Path = Field(default_factory=Path.cwd)
    source_dir: str = Field(default="src", description="Extension sources")
    build_dir: str = Field(
        default="temp_build", description="Intermediate compiler output"
    )
    bundles_dir: str = Field(default="bundles", description="Final artifact output")
    descriptor_file: str = Field(default="package.json")
    manifest_file: str = Field(default="versioning.json")
    homepage_file: str = Field(default="index.html")
    homepage_template: Optional[str] = Field(
        default=None, description="Custom Jinja2 homepage template path"
    )
    compiler_command: list[str] = Field(default_factory=lambda: ["npx", "tsc"])
    bundler_command: list[str] = Field(default_factory=lambda: ["npx", "browserify"])
    node_command: list[str] = Field(default_factory=lambda: ["node"])
    standalone_name: str = Field(default="Sources")
    ignored_modules: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORED_MODULES)
    )
    external_modules: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXTERNAL_MODULES)
    )
    workers: Optional[int] = Field(
        default=None, ge=1, description="Max concurrent module tasks"
    )
    continue_on_compile_error: bool = False
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    @property
    def source_path(self) -> Path:
        return self.project_root / self.source_dir

    @property
    def build_path(self) -> Path:
        return self.project_root / self.build_dir

    @property
    def bundles_path(self) -> Path:
        return self.project_root / self.bundles_dir

    @property
    def descriptor_path(self) -> Path:
        return self.project_root / self.descriptor_file

    @property
    def manifest_path(self) -> Path:
        return self.bundles_path / self.manifest_file

    @property
    def homepage_path(self) -> Path:
        return self.bundles_path / self.homepage_file

    def output_dir_problem(self) -> Optional[str]:
        """Explain why ``build_dir`` or ``bundles_dir`` is unsafe to wipe, if it is.

        Both are deleted and recreated on every build, so each must sit
        strictly inside the project root and must not overlap the sources
        or the other output directory.
        """
        root = self.project_root.resolve()
        source = self.source_path.resolve()
        outputs = {
            "build_dir": self.build_path.resolve(),
            "bundles_dir": self.bundles_path.resolve(),
        }
        for name, path in outputs.items():
            value = getattr(self, name)
            if root not in path.parents:
                return f"{name} must be a directory inside the project root (got {value!r})"
            if _overlaps(path, source):
                return f"{name} must not overlap {self.source_dir}/ (got {value!r})"
        if _overlaps(outputs["build_dir"], outputs["bundles_dir"]):
            return "build_dir and bundles_dir must not overlap"
        return None

    @model_validator(mode="after")
    def _check_output_dirs(self) -> "BuildConfig":
        problem = self.output_dir_problem()
        if problem:
            raise ValueError(problem)
        return self


def _overlaps(a: Path, b: Path) -> bool:
    return a == b or a in b.parents or b in a.parents


# --- Inputs ---


class ProjectDescriptor(BaseModel):
    """The fields of ``package.json`` that drive homepage generation.

    ``name`` and ``description`` are required. Everything else in the file
    (dependencies, scripts, ...) is preserved in ``model_extra`` and ignored.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    description: str
    baseURL: Optional[str] = None
    noAddToPaperbackButton: Optional[bool] = None
    repositoryLogo: Optional[str] = None


class ModuleContext(BaseModel):
    """Paths describing one module, handed to source info providers."""

    id: str
    source_dir: Path
    bundle_dir: Path

    @property
    def script_path(self) -> Path:
        """The bundled standalone script (``bundles/<id>/source.js``)."""
        return self.bundle_dir / "source.js"

    @property
    def includes_dir(self) -> Path:
        """The copied asset folder (``bundles/<id>/includes``)."""
        return self.bundle_dir / "includes"

    @classmethod
    def for_module(cls, config: BuildConfig, module_id: str) -> "ModuleContext":
        return cls(
            id=module_id,
            source_dir=config.source_path / module_id,
            bundle_dir=config.bundles_path / module_id,
        )


# --- Outputs ---


class SourceTag(BaseModel):
    """A badge shown next to a source (e.g. ``{"text": "18+", "type": "danger"}``)."""

    model_config = ConfigDict(extra="allow")

    text: str
    type: Optional[str] = None


class SourceInfo(BaseModel):
    """One entry of the ``sources`` array in ``versioning.json``."""

    id: str
    name: str
    author: str = ""
    desc: str = ""
    website: Optional[str] = None
    version: str
    icon: Optional[str] = None
    tags: list[Union[SourceTag, str]] = Field(default_factory=list)
    websiteBaseURL: Optional[str] = None


class Manifest(BaseModel):
    """The versioning manifest written to ``bundles/versioning.json``."""

    buildTime: str
    sources: list[SourceInfo] = Field(default_factory=list)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, exclude_none=True) + "\n"


class HomepageSource(BaseModel):
    """A source as listed on the homepage."""

    name: str
    tags: list[Union[SourceTag, str]] = Field(default_factory=list)


class RepositoryDescriptor(BaseModel):
    """Template context for the repository homepage.

    ``repositoryLogo`` and ``noAddToPaperbackButton`` are left out of
    :meth:`template_context` when unset so templates can test for them.
    """

    repositoryName: str
    repositoryDescription: str
    baseURL: str
    sources: list[HomepageSource] = Field(default_factory=list)
    repositoryLogo: Optional[str] = None
    noAddToPaperbackButton: Optional[bool] = None

    def template_context(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class BuildReport(BaseModel):
    """Summary of a full :class:`~extbundle.pipeline.BuildPipeline` run."""

    bundled: list[str] = Field(default_factory=list)
    bundle_skipped: list[str] = Field(default_factory=list)
    bundle_failed: dict[str, str] = Field(default_factory=dict)
    manifest: Optional[Manifest] = None
    manifest_failed: dict[str, str] = Field(default_factory=dict)
    homepage: Optional[Path] = None
    timings: dict[str, float] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """``True`` when no module failed in any phase."""
        return not self.bundle_failed and not self.manifest_failed
