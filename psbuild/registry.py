"""
Module-loading environment.

The registry tracks which modules are loaded for the current invocation and
the script host runs test scripts against them. Both are injected into the
Test Runner and orchestrators so tests can swap in fakes.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
import logging
from pathlib import Path
import subprocess
from typing import Protocol

from .errors import NotFoundError, TestFailureError
from .models import ScriptResult

logger = logging.getLogger(__name__)


class ModuleRegistry(Protocol):
    def load(self, name: str, path: Path) -> None: ...

    def unload(self, name: str) -> None: ...

    def is_loaded(self, name: str) -> bool: ...

    def loaded(self) -> dict[str, Path]: ...


class ScriptHost(Protocol):
    def invoke(self, script: Path, registry: ModuleRegistry) -> ScriptResult: ...


class SessionRegistry:
    """Registry holding modules loaded during this process."""

    def __init__(self) -> None:
        self._modules: dict[str, Path] = {}

    def load(self, name: str, path: Path) -> None:
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(f"Module file not found: {path}")
        self._modules[name] = path.resolve()
        logger.debug("Loaded module %s from %s", name, path)

    def unload(self, name: str) -> None:
        if self._modules.pop(name, None) is not None:
            logger.debug("Unloaded module %s", name)

    def is_loaded(self, name: str) -> bool:
        return name in self._modules

    def loaded(self) -> dict[str, Path]:
        return dict(self._modules)


@contextmanager
def loaded_modules(
    registry: ModuleRegistry, modules: Iterable[tuple[str, Path]]
) -> Iterator[list[str]]:
    """Load ``modules`` for the duration of the block, then unload them.

    Unloading happens on every exit path, including partial loads. Modules
    that were already loaded are left alone.
    """
    names: list[str] = []
    try:
        for name, path in modules:
            if registry.is_loaded(name):
                continue
            registry.load(name, path)
            names.append(name)
        yield names
    finally:
        for name in reversed(names):
            registry.unload(name)


def _quote(value: Path | str) -> str:
    return "'" + str(value).replace("'", "''") + "'"


class PwshScriptHost:
    """Runs test scripts in a PowerShell process with the loaded modules imported."""

    def __init__(self, executable: str = "pwsh") -> None:
        self.executable = executable

    def build_command(self, script: Path, registry: ModuleRegistry) -> list[str]:
        imports = [
            f"Import-Module {_quote(path)} -Force -DisableNameChecking"
            for path in registry.loaded().values()
        ]
        body = "; ".join(
            ["$ErrorActionPreference = 'Stop'", *imports, f". {_quote(script)}"]
        )
        return [self.executable, "-NoProfile", "-NonInteractive", "-Command", body]

    def invoke(self, script: Path, registry: ModuleRegistry) -> ScriptResult:
        cmd = self.build_command(script, registry)
        # No timeout: a hanging test script hangs the build.
        try:
            proc = subprocess.run(
                cmd,
                check=False,
                cwd=script.parent,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise NotFoundError(
                f"PowerShell host not found: {self.executable}"
            ) from exc

        output = proc.stdout + proc.stderr
        if proc.returncode != 0:
            raise TestFailureError(script, proc.returncode, output)
        return ScriptResult(script=script, exit_code=proc.returncode, output=output)
