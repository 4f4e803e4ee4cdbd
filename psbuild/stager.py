"""Copies distributable files into the staging tree."""

from __future__ import annotations

import logging
from pathlib import Path
import shutil

from .core import DEFAULT_STAGING_DIR, DISTRIBUTABLE_EXTS, iter_files
from .errors import BuildIOError
from .models import ProjectProperties
from .project import build_excludes

logger = logging.getLogger(__name__)


def staging_root(project: ProjectProperties, staging_dir_name: str = DEFAULT_STAGING_DIR) -> Path:
    return project.project_root / staging_dir_name


def stage_artifacts(
    project: ProjectProperties,
    module_name: str,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
) -> Path:
    """Copy module, manifest, script and help files into ``<staging>/<module_name>``.

    Relative paths under the source path are preserved. Content left by an
    earlier run is not cleared here; the archiver removes the staging tree.
    """
    target = staging_root(project, staging_dir_name) / module_name
    copied = 0
    try:
        target.mkdir(parents=True, exist_ok=True)
        exclude = build_excludes(project, staging_dir_name)
        for path in iter_files(project.src_path, DISTRIBUTABLE_EXTS, exclude=exclude):
            dest = target / path.relative_to(project.src_path)
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, dest)
            copied += 1
    except OSError as exc:
        raise BuildIOError(f"Staging into {target} failed: {exc}") from exc
    logger.info("Staged %d files into %s", copied, target)
    return target
