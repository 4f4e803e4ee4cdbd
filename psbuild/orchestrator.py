"""
Build and install orchestration.

Build runs a fixed, fail-fast sequence:
LoadProject -> RunTests -> EnsureModuleLoaded -> CreateDistDir ->
GenerateManifest -> StageArtifacts -> Compress.

Nothing is rolled back on failure; every step resets its own target, so a
rerun recovers from a previous failed run.
"""

from __future__ import annotations

import logging
from pathlib import Path
import re

from .archive import compress, extract
from .config import load_tool_config
from .distdir import create_dist_dir
from .errors import InvalidModuleError, NotFoundError
from .manifest import generate_manifest, locate_module_file
from .models import BuildResult, ProjectProperties, ToolConfig
from .project import load_project, resolve_root_module
from .registry import ModuleRegistry, PwshScriptHost, ScriptHost, SessionRegistry
from .stager import stage_artifacts
from .testrunner import run_tests

logger = logging.getLogger(__name__)

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?$")


def build(
    project_root: Path | str,
    module_name: str | None = None,
    *,
    config: ToolConfig | None = None,
    registry: ModuleRegistry | None = None,
    host: ScriptHost | None = None,
) -> BuildResult:
    """Test, manifest, stage and archive a project. Returns the build result."""
    config = config or load_tool_config()
    registry = registry if registry is not None else SessionRegistry()
    host = host or PwshScriptHost(config.pwsh_executable)
    staging = config.staging_dir_name

    project = load_project(project_root, staging_dir_name=staging)
    name = resolve_root_module(project, module_name)
    logger.info("Building %s from %s", name, project.project_root)

    report = run_tests(project, registry, host, staging_dir_name=staging)

    loaded_here = _ensure_module_loaded(project, name, registry, staging)
    try:
        create_dist_dir(project)
        manifest = generate_manifest(project, name, staging_dir_name=staging)
        stage_artifacts(project, name, staging_dir_name=staging)
        archive = compress(project, name, staging_dir_name=staging)
    finally:
        if loaded_here:
            registry.unload(name)

    logger.info("Build of %s complete: %s", name, archive)
    return BuildResult(
        module_name=name, archive_path=archive, manifest=manifest, test_report=report
    )


def _ensure_module_loaded(
    project: ProjectProperties,
    name: str,
    registry: ModuleRegistry,
    staging_dir_name: str,
) -> bool:
    """Load ``name`` unless it is loaded already. Returns True if loaded here."""
    if registry.is_loaded(name):
        return False
    if name not in project.module_names:
        known = ", ".join(sorted(project.module_names)) or "none"
        raise InvalidModuleError(f"Module '{name}' is not part of this project (found: {known})")
    registry.load(name, locate_module_file(project, name, staging_dir_name))
    return True


def _version_key(archive: Path, module_name: str) -> tuple:
    stem = archive.stem
    version = stem[len(module_name) + 1:] if stem.startswith(f"{module_name}-") else ""
    match = _SEMVER_RE.match(version)
    if not match:
        return (0, (0, 0, 0), 0, archive.name)
    major, minor, patch, pre = match.groups()
    return (1, (int(major), int(minor), int(patch)), 0 if pre else 1, archive.name)


def find_latest_archive(project: ProjectProperties, module_name: str) -> Path:
    """Newest ``<module>-<version>.zip`` in the distribution directory by semantic version.

    Archives of other modules sharing the name as a prefix are ignored.

    Names without a parseable version rank below versioned ones; ties break
    on file name.
    """
    candidates = (
        [
            p
            for p in sorted(project.dist_path.glob(f"{module_name}*.zip"))
            if p.stem == module_name or p.stem.startswith(f"{module_name}-")
        ]
        if project.dist_path.is_dir()
        else []
    )
    if not candidates:
        raise NotFoundError(f"Module {module_name} not built yet (no archive in {project.dist_path})")
    return max(candidates, key=lambda p: _version_key(p, module_name))


def install(
    project_root: Path | str,
    modules_dir: Path | str | None = None,
    *,
    config: ToolConfig | None = None,
    registry: ModuleRegistry | None = None,
) -> Path:
    """Extract the latest built archive into ``<modules_dir>/<rootModule>``.

    Any previous install of the module is replaced. Returns the install path.
    """
    config = config or load_tool_config()
    registry = registry if registry is not None else SessionRegistry()

    project = load_project(project_root, staging_dir_name=config.staging_dir_name)
    name = resolve_root_module(project)
    archive = find_latest_archive(project, name)

    target_root = Path(modules_dir).expanduser() if modules_dir else config.modules_dir
    dest = extract(archive, target_root / name, replace=True)
    logger.info("Installed %s into %s", archive.name, dest)

    if registry.is_loaded(name):
        registry.unload(name)
    return dest
