"""
Build orchestration for script-module projects.

Loads a ``psproj.json`` descriptor, runs the project's tests, writes a module
manifest and packages the module into a versioned zip archive.
"""

from psbuild.core import PSBUILD_VERSION
from psbuild.errors import (
    BuildIOError,
    InvalidModuleError,
    NotFoundError,
    ParseError,
    PsBuildError,
    TestFailureError,
)
from psbuild.models import ProjectProperties
from psbuild.orchestrator import build, install
from psbuild.project import load_project

__version__ = PSBUILD_VERSION

__all__ = [
    "BuildIOError",
    "InvalidModuleError",
    "NotFoundError",
    "ParseError",
    "ProjectProperties",
    "PsBuildError",
    "TestFailureError",
    "build",
    "install",
    "load_project",
]
