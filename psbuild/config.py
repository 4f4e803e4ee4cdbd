"""Tool-level configuration for psbuild (not the project descriptor)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from .errors import ParseError
from .models import ToolConfig

DEFAULT_CONFIG_PATH = "~/.psbuild/config.yml"
DEFAULT_MODULES_DIR = "~/.local/share/powershell/Modules"


def _expand(path: str | Path) -> Path:
    return Path(os.path.expanduser(str(path))).resolve()


def default_modules_dir() -> Path:
    return _expand(os.environ.get("PSBUILD_MODULES_DIR", DEFAULT_MODULES_DIR))


def load_tool_config(path: str | Path | None = None) -> ToolConfig:
    """Load tool config from YAML (or return defaults)."""
    if path is None:
        path = os.environ.get("PSBUILD_CONFIG", DEFAULT_CONFIG_PATH)

    cfg_path = _expand(path)
    if not cfg_path.exists():
        return ToolConfig(modules_dir=default_modules_dir())

    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            raw: Any = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ParseError(f"Invalid YAML in {cfg_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ParseError(f"Tool config {cfg_path} must be a mapping")

    modules_dir = raw.get("modules_dir")
    log_path = raw.get("log_path")

    return ToolConfig(
        modules_dir=_expand(modules_dir) if modules_dir else default_modules_dir(),
        log_level=str(raw.get("log_level", "INFO")),
        log_path=_expand(log_path) if log_path else None,
        pwsh_executable=str(raw.get("pwsh_executable", "pwsh")),
        staging_dir_name=str(raw.get("staging_dir_name", ".psbuild-staging")),
    )
