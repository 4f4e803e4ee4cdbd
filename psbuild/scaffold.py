"""Project scaffolding for ``psbuild init``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
import uuid

from .core import DESCRIPTOR_NAME
from .errors import BuildIOError, ProjectExistsError
from .manifest import DEFAULT_DOTNET_VERSION, DEFAULT_POWERSHELL_VERSION
from .models import InitOptions

logger = logging.getLogger(__name__)


def default_init_options(project_folder: Path | str | None = None) -> InitOptions:
    folder = Path(project_folder or ".").expanduser().resolve()
    return InitOptions(project_folder=folder, project_name=folder.name)


def scaffold_project(options: InitOptions, overwrite: bool = False) -> Path:
    """Write ``psproj.json`` and create the source/dist/tests folders.

    Returns the descriptor path.
    """
    folder = Path(options.project_folder)
    descriptor = folder / DESCRIPTOR_NAME
    if descriptor.exists() and not overwrite:
        raise ProjectExistsError(f"{descriptor} already exists")

    data = {
        "projectName": options.project_name,
        "uniqueId": str(uuid.uuid4()),
        "companyName": options.company_name,
        "version": options.version,
        "description": options.description,
        "authors": list(options.authors),
        "dotNetVersion": DEFAULT_DOTNET_VERSION,
        "powerShellVersion": DEFAULT_POWERSHELL_VERSION,
        "src": options.src,
        "dist": options.dist,
        "tests": options.tests,
    }

    try:
        folder.mkdir(parents=True, exist_ok=True)
        descriptor.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        for sub in (options.src, options.dist, options.tests):
            (folder / sub).mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise BuildIOError(f"Cannot scaffold project in {folder}: {exc}") from exc

    logger.info("Initialized project %s in %s", options.project_name, folder)
    return descriptor
