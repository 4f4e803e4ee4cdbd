"""Runs a project's test scripts against its source modules."""

from __future__ import annotations

import logging
from pathlib import Path

from .core import DEFAULT_STAGING_DIR, MODULE_EXT, TEST_SUFFIX, iter_files, strip_module_ext
from .models import ProjectProperties, TestRunReport
from .project import build_excludes
from .registry import ModuleRegistry, ScriptHost, loaded_modules

logger = logging.getLogger(__name__)


def find_test_scripts(tests_path: Path) -> list[Path]:
    """Test scripts directly inside ``tests_path`` (not recursive)."""
    if not tests_path.is_dir():
        return []
    return sorted(
        p
        for p in tests_path.iterdir()
        if p.is_file() and p.name.lower().endswith(TEST_SUFFIX)
    )


def run_tests(
    project: ProjectProperties,
    registry: ModuleRegistry,
    host: ScriptHost,
    staging_dir_name: str = DEFAULT_STAGING_DIR,
) -> TestRunReport:
    """Load every source module, run every test script, unload the modules.

    The first failing script raises ``TestFailureError``; modules are
    unloaded before it propagates.
    """
    exclude = build_excludes(project, staging_dir_name)
    modules = [
        (strip_module_ext(p.name), p)
        for p in iter_files(project.src_path, [MODULE_EXT], exclude=exclude)
    ]
    scripts = find_test_scripts(project.tests_path)
    if not project.tests_path.is_dir():
        logger.warning("Tests directory %s does not exist", project.tests_path)

    report = TestRunReport()
    with loaded_modules(registry, modules) as names:
        report.loaded_modules = list(names)
        for script in scripts:
            logger.info("Running %s", script.name)
            result = host.invoke(script, registry)
            for line in result.output.splitlines():
                logger.info("[%s] %s", script.name, line)
            report.results.append(result)

    logger.info(
        "%d/%d test scripts passed", report.passed, len(report.results)
    )
    return report
