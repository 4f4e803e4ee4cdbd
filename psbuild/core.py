from collections.abc import Iterable, Iterator
from pathlib import Path

PSBUILD_VERSION = "0.3.0"

DESCRIPTOR_NAME = "psproj.json"
DEFAULT_STAGING_DIR = ".psbuild-staging"

MODULE_EXT = ".psm1"
MANIFEST_EXT = ".psd1"
SCRIPT_EXT = ".ps1"
HELP_EXT = ".txt"
TEST_SUFFIX = ".tests.ps1"

DISTRIBUTABLE_EXTS = (MODULE_EXT, MANIFEST_EXT, SCRIPT_EXT, HELP_EXT)


def find_project_root(start_path: Path | None = None) -> Path:
    """
    Find the project root by looking for a psproj.json descriptor.
    """
    if start_path is None:
        start_path = Path(".")
    current = start_path.resolve()
    for parent in [current, *current.parents]:
        if (parent / DESCRIPTOR_NAME).is_file():
            return parent

    # Fallback: return the start directory (loading will fail with NotFoundError)
    return current


def iter_files(
    base: Path,
    suffixes: Iterable[str],
    exclude: Iterable[Path] = (),
) -> Iterator[Path]:
    """Yield files under ``base`` whose name ends with one of ``suffixes``.

    Matching is case-insensitive. Anything under an ``exclude`` directory is
    skipped. Results are sorted for stable ordering.
    """
    if not base.is_dir():
        return
    wanted = tuple(s.lower() for s in suffixes)
    excluded = [p.resolve() for p in exclude]
    for path in sorted(base.rglob("*")):
        if not path.is_file() or not path.name.lower().endswith(wanted):
            continue
        resolved = path.resolve()
        if any(resolved.is_relative_to(ex) for ex in excluded):
            continue
        yield path


def strip_module_ext(name: str) -> str:
    """Drop a module-file extension ("Foo.psm1" -> "Foo"); dotted names like "My.Tools" stay intact."""
    path = Path(name)
    if path.suffix.lower() in (MODULE_EXT, MANIFEST_EXT, SCRIPT_EXT):
        return path.stem
    return name
