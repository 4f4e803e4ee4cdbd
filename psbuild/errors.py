"""
Error taxonomy for psbuild.

Every component raises one of these and lets it propagate; only the CLI
turns them into exit codes.
"""


class PsBuildError(Exception):
    """Base class for all psbuild failures."""


class NotFoundError(PsBuildError):
    """Raised when a descriptor, module file, archive or tool is missing."""


class ParseError(PsBuildError):
    """Raised when a descriptor or config file cannot be decoded."""


class InvalidModuleError(PsBuildError):
    """Raised when a module name is not among the discovered modules."""


class BuildIOError(PsBuildError, OSError):
    """Raised when a filesystem operation fails (permissions, locks, disk full)."""


class TestFailureError(PsBuildError):
    """Raised when a test script exits unsuccessfully."""

    __test__ = False  # keep pytest from collecting this class

    def __init__(self, script, exit_code: int, output: str = ""):
        self.script = script
        self.exit_code = exit_code
        self.output = output
        super().__init__(f"Test script {script} failed with exit code {exit_code}")


class ProjectExistsError(PsBuildError):
    """Raised when init would overwrite an existing descriptor."""
