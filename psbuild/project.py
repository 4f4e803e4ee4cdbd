"""
Project descriptor loading.

Reads ``psproj.json`` from a project root and decodes it into a
``ProjectProperties`` record, scanning the tree for module files on every
call.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .core import (
    DEFAULT_STAGING_DIR,
    DESCRIPTOR_NAME,
    MODULE_EXT,
    iter_files,
    strip_module_ext,
)
from .errors import BuildIOError, NotFoundError, ParseError
from .models import ProjectProperties

logger = logging.getLogger(__name__)

_STRING_KEYS = {
    "projectName": "project_name",
    "uniqueId": "unique_id",
    "companyName": "company_name",
    "version": "version",
    "description": "description",
    "dotNetVersion": "dotnet_version",
    "powerShellVersion": "powershell_version",
}


def descriptor_path(project_root: Path) -> Path:
    return Path(project_root) / DESCRIPTOR_NAME


def _read_descriptor(path: Path) -> dict[str, Any]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8-sig"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise BuildIOError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ParseError(f"{path} must contain a JSON object")
    return raw


def _optional_str(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None:
        return ""
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ParseError(f"'{key}' must be a string, got {type(value).__name__}")
    return str(value)


def _string_list(raw: dict[str, Any], key: str) -> list[str]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ParseError(f"'{key}' must be an array of strings")
    return value


def discover_modules(project_root: Path, exclude: list[Path] | None = None) -> frozenset[str]:
    """Return base names of every module file under ``project_root``."""
    return frozenset(
        strip_module_ext(p.name)
        for p in iter_files(project_root, [MODULE_EXT], exclude=exclude or [])
    )


def load_project(
    project_root: Path | str,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
) -> ProjectProperties:
    """Load ``psproj.json`` from ``project_root``.

    Raises:
        NotFoundError: no descriptor at the root
        ParseError: the descriptor is not a well-formed JSON object
    """
    root = Path(project_root).expanduser().resolve()
    path = descriptor_path(root)
    if not path.is_file():
        raise NotFoundError(f"No {DESCRIPTOR_NAME} found in {root}")

    raw = _read_descriptor(path)
    fields = {attr: _optional_str(raw, key) for key, attr in _STRING_KEYS.items()}

    src_path = (root / (_optional_str(raw, "src") or "src")).resolve()
    dist_path = (root / (_optional_str(raw, "dist") or "dist")).resolve()
    tests_path = (root / (_optional_str(raw, "tests") or "tests")).resolve()

    modules = discover_modules(root, exclude=[root / staging_dir_name, dist_path])
    root_module = _optional_str(raw, "rootModule") or None

    project = ProjectProperties(
        project_root=root,
        src_path=src_path,
        dist_path=dist_path,
        tests_path=tests_path,
        authors=", ".join(_string_list(raw, "authors")),
        root_module=strip_module_ext(root_module) if root_module else None,
        module_names=modules,
        dependencies=tuple(_string_list(raw, "dependencies")),
        **fields,
    )
    logger.debug(
        "Loaded project %s from %s (%d modules)",
        project.project_name or root.name,
        path,
        len(modules),
    )
    return project


def resolve_root_module(project: ProjectProperties, requested: str | None = None) -> str:
    """Pick the module a command targets.

    Explicit name first, then ``rootModule``, then the only discovered
    module, then the project name. Membership is not checked here.
    """
    if requested:
        return strip_module_ext(requested)
    if project.root_module:
        return project.root_module
    if len(project.module_names) == 1:
        return next(iter(project.module_names))
    return project.project_name or project.project_root.name


def build_excludes(
    project: ProjectProperties, staging_dir_name: str = DEFAULT_STAGING_DIR
) -> list[Path]:
    """Directories every scan of the project tree must skip (staging and dist)."""
    return [project.project_root / staging_dir_name, project.dist_path]
