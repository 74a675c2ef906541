"""Exception hierarchy for kickstart.

Validation errors are raised before anything touches the filesystem.  Stage
errors are raised by the individual generation steps; the pipeline decides
whether a stage error is fatal (rollback + ``ProjectCreationError``) or is
degraded to a warning.
"""

from __future__ import annotations

from pathlib import Path


class KickstartError(Exception):
    """Base class for every error kickstart raises on purpose."""


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

INVALID_NAME = "invalid-name"
DIRECTORY_EXISTS = "directory-exists"


class ProjectValidationError(KickstartError):
    """Raised when the project name is invalid or the target directory exists."""

    def __init__(
        self,
        kind: str,
        message: str,
        *,
        errors: list[str] | None = None,
        suggestion: str | None = None,
        path: Path | None = None,
    ) -> None:
        self.kind = kind
        self.errors = errors or []
        self.suggestion = suggestion
        self.path = path
        super().__init__(message)


# ---------------------------------------------------------------------------
# Generation stages
# ---------------------------------------------------------------------------

class StageError(KickstartError):
    """Raised by a generation stage when its work cannot be completed."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class BootstrapError(StageError):
    """The base project skeleton could not be created."""


class AddOnError(StageError):
    """An add-on could not be added or initialised."""


class StructureError(StageError):
    """The folder structure could not be applied."""


class InstallError(StageError):
    """The package manager's install command failed."""


class GitError(StageError):
    """``git init`` failed or git is not available."""


class ProjectCreationError(KickstartError):
    """Raised by the pipeline after a fatal stage failure.

    Carries the name of the stage that failed, the original exception, and
    whether the partially created directory was removed.
    """

    def __init__(self, stage: str, cause: BaseException, rolled_back: bool) -> None:
        self.stage = stage
        self.cause = cause
        self.rolled_back = rolled_back
        super().__init__(f"Stage '{stage}' failed: {cause}")
