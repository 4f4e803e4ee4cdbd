"""Distribution directory reset and project cleanup."""

from __future__ import annotations

import logging
from pathlib import Path
import shutil

from .core import DEFAULT_STAGING_DIR
from .errors import BuildIOError
from .models import ProjectProperties

logger = logging.getLogger(__name__)


def remove_tree(path: Path) -> bool:
    """Delete ``path`` (directory or file) if it exists. Returns True if removed."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif path.exists() or path.is_symlink():
            path.unlink()
        else:
            return False
    except OSError as exc:
        raise BuildIOError(f"Cannot remove {path}: {exc}") from exc
    return True


def create_dist_dir(project: ProjectProperties) -> Path:
    """Reset the distribution directory to an empty directory."""
    dist = project.dist_path
    if remove_tree(dist):
        logger.debug("Removed existing distribution directory %s", dist)
    try:
        dist.mkdir(parents=True)
    except OSError as exc:
        raise BuildIOError(f"Cannot create {dist}: {exc}") from exc
    logger.info("Created distribution directory %s", dist)
    return dist


def clean_project(
    project: ProjectProperties, staging_dir_name: str = DEFAULT_STAGING_DIR
) -> list[Path]:
    """Remove the distribution and staging directories. Returns what was removed."""
    removed = []
    for path in (project.dist_path, project.project_root / staging_dir_name):
        if remove_tree(path):
            removed.append(path)
    return removed
