"""
Zip packaging of staged modules and extraction of built archives.
"""

from __future__ import annotations

import logging
from pathlib import Path
import zipfile

from .core import DEFAULT_STAGING_DIR
from .distdir import remove_tree
from .errors import BuildIOError, NotFoundError
from .manifest import effective_version
from .models import ProjectProperties
from .stager import staging_root

logger = logging.getLogger(__name__)


def archive_name(module_name: str, version: str) -> str:
    return f"{module_name}-{version}.zip"


def compress(
    project: ProjectProperties,
    module_name: str,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
) -> Path:
    """Zip ``<staging>/<module_name>`` into ``dist/<module>-<version>.zip``.

    Entries are stored relative to the staged module folder, so the archive
    has no wrapper directory. The staging tree is removed afterwards.
    """
    stage_root = staging_root(project, staging_dir_name)
    source = stage_root / module_name
    if not source.is_dir():
        raise NotFoundError(f"Nothing staged for {module_name} in {stage_root}")

    archive = project.dist_path / archive_name(module_name, effective_version(project))
    remove_tree(archive)

    try:
        archive.parent.mkdir(parents=True, exist_ok=True)
        # Files older than 1980 are clamped to the earliest zip timestamp.
        with zipfile.ZipFile(
            archive,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=9,
            strict_timestamps=False,
        ) as zf:
            for path in sorted(source.rglob("*")):
                if path.is_file():
                    zf.write(path, path.relative_to(source).as_posix())
    except OSError as exc:
        raise BuildIOError(f"Cannot write archive {archive}: {exc}") from exc

    remove_tree(stage_root)
    logger.info("Created archive %s", archive)
    return archive


def _safe_target(dest: Path, member: str) -> Path:
    target = (dest / member).resolve()
    if not target.is_relative_to(dest):
        raise BuildIOError(f"Archive entry escapes destination: {member!r}")
    return target


def extract(archive: Path, dest: Path, replace: bool = False) -> Path:
    """Extract every entry of ``archive`` into ``dest``, preserving relative paths.

    With ``replace`` an existing destination is deleted first instead of
    merged into.
    """
    archive = Path(archive)
    if not archive.is_file():
        raise NotFoundError(f"Archive not found: {archive}")

    dest = Path(dest).expanduser().resolve()
    if replace:
        remove_tree(dest)

    try:
        dest.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                _safe_target(dest, member)
            zf.extractall(dest)
    except BuildIOError:
        raise
    except zipfile.BadZipFile as exc:
        raise BuildIOError(f"Corrupt archive {archive}: {exc}") from exc
    except OSError as exc:
        raise BuildIOError(f"Cannot extract {archive} to {dest}: {exc}") from exc

    logger.info("Extracted %s to %s", archive, dest)
    return dest
