"""Homepage generator -- ``bundles/index.html``.

Renders a static landing page for the repository from ``package.json`` and
the manifest. The following fields of ``package.json`` are used::

    {
      "name": "The repository name",                 # required
      "description": "The repository description",   # required
      "baseURL": "https://custom.example",           # optional
      "noAddToPaperbackButton": true,                # optional
      "repositoryLogo": "https://.../logo.png"       # optional
    }

When ``baseURL`` is absent it is derived from the ``GITHUB_REPOSITORY``
variable set by GitHub Actions (``owner/repo`` becomes
``https://owner.github.io/repo``). When neither is available the page is
rendered without the "Add to Paperback" button.

The page is skipped entirely (not an error) when the project has no
``package.json``.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import ValidationError

from extbundle.config import atomic_write
from extbundle.exceptions import DescriptorError
from extbundle.manifest import load_manifest
from extbundle.models import (
    BuildConfig,
    HomepageSource,
    Manifest,
    ProjectDescriptor,
    RepositoryDescriptor,
)
from extbundle.output import info

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Directory holding the bundled ``homepage.html.j2`` template."""

DEFAULT_TEMPLATE = "homepage.html.j2"
GITHUB_REPOSITORY_ENV = "GITHUB_REPOSITORY"
UNDEFINED_BASE_URL = "undefined"


def generate_homepage(
    config: BuildConfig,
    manifest: Optional[Manifest] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Optional[Path]:
    """Render ``index.html`` into the bundle directory.

    Args:
        config: Build configuration.
        manifest: The manifest produced by this run. When ``None`` it is
            read back from ``bundles/versioning.json``.
        environ: Environment used for base URL resolution. Defaults to
            ``os.environ``.

    Returns:
        Path of the written page, or ``None`` when the project has no
        descriptor file.

    Raises:
        DescriptorError: If the descriptor is malformed.
        ManifestError: If the manifest has to be read from disk and is
            missing or malformed.
    """
    if not config.descriptor_path.is_file():
        info(f"No {config.descriptor_file} found, skipping homepage generation")
        return None

    info("Generating the repository homepage")
    descriptor = load_descriptor(config.descriptor_path)
    if manifest is None:
        manifest = load_manifest(config.manifest_path)

    repository = build_repository_descriptor(
        descriptor, manifest, os.environ if environ is None else environ
    )
    template_path = None
    if config.homepage_template:
        template_path = str(config.project_root / config.homepage_template)
    html = render_homepage(repository, template_path)
    atomic_write(config.homepage_path, html)
    return config.homepage_path


def load_descriptor(path: Path) -> ProjectDescriptor:
    """Parse ``package.json`` into a :class:`~extbundle.models.ProjectDescriptor`.

    Raises:
        DescriptorError: If the file is not JSON or lacks ``name`` / ``description``.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise DescriptorError(f"Cannot read {path.name}: {exc}") from exc
    try:
        return ProjectDescriptor.model_validate(data)
    except ValidationError as exc:
        raise DescriptorError(f"Invalid {path.name}: {exc}") from exc


def resolve_base_url(
    descriptor: ProjectDescriptor, environ: Mapping[str, str]
) -> Optional[str]:
    """Return the public base URL of the repository, or ``None`` if unknown.

    An explicit ``baseURL`` always wins. Otherwise ``GITHUB_REPOSITORY``
    must look like ``owner/repo`` to be used; extra path segments are ignored.
    """
    if descriptor.baseURL is not None:
        info(f"Using custom baseURL: {descriptor.baseURL}")
        return descriptor.baseURL

    repository = environ.get(GITHUB_REPOSITORY_ENV, "")
    owner, _, rest = repository.partition("/")
    repo = rest.split("/", 1)[0]
    if not owner or not repo:
        return None

    base_url = f"https://{owner}.github.io/{repo}"
    info(f"Using base URL derived from {GITHUB_REPOSITORY_ENV}: {base_url}")
    return base_url


def build_repository_descriptor(
    descriptor: ProjectDescriptor,
    manifest: Manifest,
    environ: Mapping[str, str],
) -> RepositoryDescriptor:
    """Assemble the homepage template context."""
    sources = [HomepageSource(name=s.name, tags=s.tags) for s in manifest.sources]

    base_url = resolve_base_url(descriptor, environ)
    hide_button: Optional[bool] = None
    if base_url is None:
        info(
            f"Neither {GITHUB_REPOSITORY_ENV} nor baseURL is defined, "
            "setting noAddToPaperbackButton to true"
        )
        base_url = UNDEFINED_BASE_URL
        hide_button = True

    if descriptor.noAddToPaperbackButton is not None:
        info("Using noAddToPaperbackButton parameter")
        hide_button = descriptor.noAddToPaperbackButton

    if descriptor.repositoryLogo is not None:
        info("Using repositoryLogo parameter")

    return RepositoryDescriptor(
        repositoryName=descriptor.name,
        repositoryDescription=descriptor.description,
        baseURL=base_url,
        sources=sources,
        repositoryLogo=descriptor.repositoryLogo,
        noAddToPaperbackButton=hide_button,
    )


def render_homepage(
    repository: RepositoryDescriptor, template_path: Optional[str] = None
) -> str:
    """Render the homepage HTML.

    Args:
        repository: Template context.
        template_path: Optional path to a custom template; the bundled
            ``homepage.html.j2`` is used when ``None``.
    """
    if template_path:
        custom = Path(template_path)
        env = _create_jinja_env(custom.parent)
        template = env.get_template(custom.name)
    else:
        env = _create_jinja_env(TEMPLATE_DIR)
        template = env.get_template(DEFAULT_TEMPLATE)
    return template.render(**repository.template_context())


def _create_jinja_env(search_path: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(search_path)),
        autoescape=select_autoescape(enabled_extensions=("html", "html.j2", "j2")),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
