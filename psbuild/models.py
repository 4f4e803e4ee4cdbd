"""Data models for psbuild."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class ProjectProperties:
    """Normalized view of a project descriptor plus the module scan.

    Built once per invocation by ``load_project``; never written back.
    """

    project_root: Path
    src_path: Path
    dist_path: Path
    tests_path: Path
    project_name: str = ""
    unique_id: str = ""
    authors: str = ""
    company_name: str = ""
    description: str = ""
    version: str = ""
    dotnet_version: str = ""
    powershell_version: str = ""
    root_module: str | None = None
    module_names: frozenset[str] = frozenset()
    dependencies: tuple[str, ...] = ()


@dataclass
class Manifest:
    path: Path
    root_module: str
    module_version: str
    guid: str
    author: str
    company_name: str
    copyright: str
    description: str
    powershell_version: str
    dotnet_framework_version: str
    required_modules: list[str] = field(default_factory=list)
    nested_modules: list[str] = field(default_factory=list)
    file_list: list[str] = field(default_factory=list)


@dataclass
class ScriptResult:
    script: Path
    exit_code: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass
class TestRunReport:
    __test__ = False  # keep pytest from collecting this class

    loaded_modules: list[str] = field(default_factory=list)
    results: list[ScriptResult] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.success)


@dataclass
class BuildResult:
    module_name: str
    archive_path: Path
    manifest: Manifest
    test_report: TestRunReport


@dataclass
class InitOptions:
    """Fully-populated options for scaffolding a project.

    Defaults are filled in by the caller (see ``default_init_options``).
    """

    project_folder: Path
    project_name: str
    company_name: str = ""
    version: str = "1.0.0"
    description: str = ""
    authors: list[str] = field(default_factory=list)
    src: str = "src"
    dist: str = "dist"
    tests: str = "tests"


@dataclass
class ToolConfig:
    modules_dir: Path
    log_level: str = "INFO"
    log_path: Path | None = None
    pwsh_executable: str = "pwsh"
    staging_dir_name: str = ".psbuild-staging"
