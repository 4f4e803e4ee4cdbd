from collections.abc import Callable
import json
import logging
from pathlib import Path
import sys

import pytest

# Ensure repo root is importable when running without an editable install.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from psbuild.errors import TestFailureError  # noqa: E402
from psbuild.models import ScriptResult, ToolConfig  # noqa: E402


@pytest.fixture(autouse=True)
def hermetic_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Autouse: each test runs in its own tmp cwd with HOME and tool config inside tmp.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("PSBUILD_CONFIG", str(home / ".psbuild" / "config.yml"))
    monkeypatch.setenv("PSBUILD_MODULES_DIR", str(tmp_path / "modules"))
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_psbuild_logger():
    """CLI invocations attach handlers bound to CliRunner streams; drop them."""
    yield
    logger = logging.getLogger("psbuild")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def tool_config(tmp_path: Path) -> ToolConfig:
    return ToolConfig(modules_dir=tmp_path / "modules")


class FakeRegistry:
    """Registry double that records every load/unload call."""

    def __init__(self) -> None:
        self.modules: dict[str, Path] = {}
        self.calls: list[tuple[str, str]] = []

    def load(self, name: str, path: Path) -> None:
        self.calls.append(("load", name))
        self.modules[name] = Path(path)

    def unload(self, name: str) -> None:
        self.calls.append(("unload", name))
        self.modules.pop(name, None)

    def is_loaded(self, name: str) -> bool:
        return name in self.modules

    def loaded(self) -> dict[str, Path]:
        return dict(self.modules)


class FakeHost:
    """Script host double; scripts listed in ``failing`` raise TestFailureError."""

    def __init__(self, failing: set[str] | None = None, output: str = "ok") -> None:
        self.failing = failing or set()
        self.output = output
        self.invoked: list[str] = []
        self.loaded_during_run: list[list[str]] = []

    def invoke(self, script: Path, registry) -> ScriptResult:
        self.invoked.append(script.name)
        self.loaded_during_run.append(sorted(registry.loaded()))
        if script.name in self.failing:
            raise TestFailureError(script, 1, "boom")
        return ScriptResult(script=script, exit_code=0, output=self.output)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory: write a psproj.json plus source/test files under tmp_path/<name>."""

    def _make(
        descriptor: dict | None = None,
        modules: dict[str, str] | None = None,
        tests: dict[str, str] | None = None,
        extra_files: dict[str, str] | None = None,
        name: str = "proj",
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        data = {"projectName": "MyModule", "src": "src", "dist": "dist", "tests": "tests"}
        if descriptor is not None:
            data.update(descriptor)
        (root / "psproj.json").write_text(json.dumps(data), encoding="utf-8")

        src = root / data["src"]
        src.mkdir(parents=True, exist_ok=True)
        for rel, content in (modules or {}).items():
            path = src / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")

        tests_dir = root / data["tests"]
        tests_dir.mkdir(parents=True, exist_ok=True)
        for rel, content in (tests or {}).items():
            (tests_dir / rel).write_text(content, encoding="utf-8")

        for rel, content in (extra_files or {}).items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def sample_project(make_project) -> Path:
    """The MyModule/Helper project used across build and install tests."""
    return make_project(
        descriptor={
            "version": "1.2.3",
            "rootModule": "MyModule",
            "authors": ["Ada", "Grace"],
            "companyName": "Contoso",
            "uniqueId": "6f2c1f0e-8a51-4a6b-9c55-0d1c2b3a4f5e",
        },
        modules={
            "MyModule.psm1": "function Get-Thing { 'thing' }\n",
            "Helper.psm1": "function Get-Help2 { 'help' }\n",
        },
    )
