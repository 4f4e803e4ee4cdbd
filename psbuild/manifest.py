"""
Module manifest generation.

Writes a ``.psd1`` data file next to the module, describing version,
authorship and the sibling modules packaged with it.
"""

from __future__ import annotations

from datetime import datetime
import logging
import os
from pathlib import Path
import uuid

from .core import (
    DEFAULT_STAGING_DIR,
    DISTRIBUTABLE_EXTS,
    MANIFEST_EXT,
    MODULE_EXT,
    iter_files,
    strip_module_ext,
)
from .distdir import remove_tree
from .errors import BuildIOError, InvalidModuleError, NotFoundError
from .models import Manifest, ProjectProperties
from .project import build_excludes

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "0.0.0"
DEFAULT_POWERSHELL_VERSION = "4.0"
DEFAULT_DOTNET_VERSION = "4.5"


def effective_version(project: ProjectProperties) -> str:
    return project.version or DEFAULT_VERSION


def _relative(path: Path, base: Path) -> str:
    return Path(os.path.relpath(path, base)).as_posix()


def locate_module_file(
    project: ProjectProperties,
    module_name: str,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
) -> Path:
    """Find ``<module_name>.psm1``, searching the source path before the project root."""
    target = f"{module_name}{MODULE_EXT}".lower()
    exclude = build_excludes(project, staging_dir_name)
    for base in (project.src_path, project.project_root):
        for path in iter_files(base, [MODULE_EXT], exclude=exclude):
            if path.name.lower() == target:
                return path
    raise NotFoundError(f"Module file {module_name}{MODULE_EXT} not found under {project.project_root}")


def build_manifest(
    project: ProjectProperties,
    module_name: str,
    module_file: Path,
    now: datetime | None = None,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
) -> Manifest:
    """Compute manifest fields, applying generation-time defaults.

    Nested modules and the file list are relative to the manifest's directory.
    """
    module_dir = module_file.parent
    year = (now or datetime.now()).year
    owner = project.company_name or project.authors

    exclude = build_excludes(project, staging_dir_name)
    manifest_name = f"{module_name}{MANIFEST_EXT}".lower()

    nested = [
        _relative(p, module_dir)
        for p in iter_files(project.src_path, [MODULE_EXT], exclude=exclude)
        if p.resolve() != module_file.resolve()
    ]
    file_list = [
        _relative(p, module_dir)
        for p in iter_files(project.src_path, DISTRIBUTABLE_EXTS, exclude=exclude)
        if not (p.parent == module_dir and p.name.lower() == manifest_name)
    ]

    return Manifest(
        path=module_dir / f"{module_name}{MANIFEST_EXT}",
        root_module=module_file.name,
        module_version=effective_version(project),
        guid=project.unique_id or str(uuid.uuid4()),
        author=project.authors,
        company_name=project.company_name,
        copyright=f"(c) {year} {owner}. All rights reserved." if owner else f"(c) {year}. All rights reserved.",
        description=project.description,
        powershell_version=project.powershell_version or DEFAULT_POWERSHELL_VERSION,
        dotnet_framework_version=project.dotnet_version or DEFAULT_DOTNET_VERSION,
        required_modules=list(project.dependencies),
        nested_modules=nested,
        file_list=file_list,
    )


def _psd1_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _psd1_array(values: list[str]) -> str:
    return "@(" + ", ".join(_psd1_string(v) for v in values) + ")"


def render_manifest(manifest: Manifest) -> str:
    """Render ``manifest`` as a PowerShell data file."""
    entries = [
        ("RootModule", _psd1_string(manifest.root_module)),
        ("ModuleVersion", _psd1_string(manifest.module_version)),
        ("GUID", _psd1_string(manifest.guid)),
        ("Author", _psd1_string(manifest.author)),
        ("CompanyName", _psd1_string(manifest.company_name)),
        ("Copyright", _psd1_string(manifest.copyright)),
        ("Description", _psd1_string(manifest.description)),
        ("PowerShellVersion", _psd1_string(manifest.powershell_version)),
        ("DotNetFrameworkVersion", _psd1_string(manifest.dotnet_framework_version)),
        ("RequiredModules", _psd1_array(manifest.required_modules)),
        ("NestedModules", _psd1_array(manifest.nested_modules)),
        ("FileList", _psd1_array(manifest.file_list)),
    ]
    width = max(len(key) for key, _ in entries)
    body = "\n".join(f"    {key.ljust(width)} = {value}" for key, value in entries)
    return f"#\n# Module manifest for module '{strip_module_ext(manifest.root_module)}'\n#\n\n@{{\n{body}\n}}\n"


def generate_manifest(
    project: ProjectProperties,
    module_name: str,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
    now: datetime | None = None,
) -> Manifest:
    """Validate ``module_name`` and (re)write its manifest next to the module file.

    Raises:
        InvalidModuleError: the module is not among the discovered modules
        NotFoundError: no module file could be located
        InvalidModuleError: the module file lies outside the source path
        BuildIOError: the manifest could not be written
    """
    name = strip_module_ext(module_name)
    if name not in project.module_names:
        known = ", ".join(sorted(project.module_names)) or "none"
        raise InvalidModuleError(f"Module '{name}' is not part of this project (found: {known})")

    module_file = locate_module_file(project, name, staging_dir_name)
    if not module_file.resolve().is_relative_to(project.src_path):
        raise InvalidModuleError(
            f"Module file {module_file} is outside the source path {project.src_path}"
        )
    manifest = build_manifest(project, name, module_file, now=now, staging_dir_name=staging_dir_name)

    remove_tree(manifest.path)
    try:
        manifest.path.write_text(render_manifest(manifest), encoding="utf-8")
    except OSError as exc:
        raise BuildIOError(f"Cannot write manifest {manifest.path}: {exc}") from exc
    logger.info("Wrote manifest %s (version %s)", manifest.path, manifest.module_version)
    return manifest
