"""Project-name and target-directory validation.

Name rules follow the npm package naming rules: the project name becomes both
the directory name and the ``name`` field of the generated ``package.json``.
Results are returned as structured values; only :func:`validate_config`
raises, so the interactive flow can re-prompt while the non-interactive flow
aborts.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, Field

from kickstart.errors import DIRECTORY_EXISTS, INVALID_NAME, ProjectValidationError
from kickstart.models import ProjectConfig

MAX_NAME_LENGTH = 214
DEFAULT_SUGGESTION = "my-project"

_NAME_RE = re.compile(r"^(?:@[a-z0-9~][a-z0-9._~-]*/)?[a-z0-9._~-]+$")
_SCOPED_RE = re.compile(r"^@([^/]+)/(.+)$")

# Node core modules and names npm refuses or that shadow very common packages.
RESERVED_NAMES: frozenset[str] = frozenset({
    "node_modules", "favicon.ico",
    "assert", "buffer", "child_process", "cluster", "console", "constants",
    "crypto", "dgram", "dns", "domain", "events", "fs", "http", "http2",
    "https", "module", "net", "os", "path", "process", "punycode",
    "querystring", "readline", "repl", "stream", "string_decoder", "sys",
    "timers", "tls", "tty", "url", "util", "v8", "vm", "worker_threads",
    "zlib",
    "react", "react-dom", "vue", "next", "nuxt", "svelte", "express",
    "fastify", "koa", "typescript", "vite", "webpack", "lodash", "axios",
})


class NameValidation(BaseModel):
    """Outcome of :func:`validate_project_name`."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class DirectoryCheck(BaseModel):
    """Outcome of :func:`check_directory_exists`."""

    exists: bool
    path: Path


def validate_project_name(name: str) -> NameValidation:
    """Check *name* against the package naming rules.

    Rules are checked in order and each violated rule contributes its own
    message.  A name that collides with a core module or a very common
    package is still valid; the collision is reported as a warning.
    """
    if not name or not name.strip():
        return NameValidation(valid=False, errors=["Project name is required"])

    errors: list[str] = []
    if not _NAME_RE.match(name):
        errors.append(_describe_syntax_problem(name))

    bare = _bare_name(name)
    if bare.startswith((".", "_")) or name.startswith((".", "_")):
        errors.append("Project name cannot start with a dot or an underscore")

    if len(name) > MAX_NAME_LENGTH:
        errors.append(f"Project name must be {MAX_NAME_LENGTH} characters or less")

    warnings: list[str] = []
    if bare.lower() in RESERVED_NAMES:
        warnings.append(
            f'"{bare}" is a core module or a well-known package name; '
            "consider a more specific name"
        )

    return NameValidation(valid=not errors, errors=errors, warnings=warnings)


def suggest_project_name(raw: str) -> str:
    """Derive a valid project name from arbitrary user input.

    Examples::

        suggest_project_name("My App")      -> "my-app"
        suggest_project_name("_Secret_Lib") -> "secret-lib"
        suggest_project_name("!!!")         -> "my-project"
    """
    text = (raw or "").strip()
    scoped = _SCOPED_RE.match(text)
    if scoped:
        scope = _clean_segment(scoped.group(1))
        bare = _clean_segment(scoped.group(2))
        if scope and bare:
            candidate = f"@{scope}/{bare}"
            if len(candidate) <= MAX_NAME_LENGTH:
                return candidate
        text = scoped.group(2)

    cleaned = _clean_segment(text)
    return cleaned or DEFAULT_SUGGESTION


def check_directory_exists(name: str, base_dir: str | Path | None = None) -> DirectoryCheck:
    """Report whether ``base_dir / name`` already exists.

    *base_dir* defaults to the current working directory.  Read-only.
    """
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    path = base / name
    return DirectoryCheck(exists=path.exists(), path=path)


def validate_config(config: ProjectConfig, base_dir: str | Path | None = None) -> Path:
    """Validate a complete configuration before anything is created.

    Returns:
        The project path that will be created.

    Raises:
        ProjectValidationError: ``invalid-name`` with a suggested name, or
            ``directory-exists`` with the offending path.
    """
    result = validate_project_name(config.project_name)
    if not result.valid:
        raise ProjectValidationError(
            INVALID_NAME,
            f'Invalid project name "{config.project_name}"',
            errors=result.errors,
            suggestion=suggest_project_name(config.project_name),
        )

    check = check_directory_exists(config.project_name, base_dir)
    if check.exists:
        raise ProjectValidationError(
            DIRECTORY_EXISTS,
            f'Directory "{config.project_name}" already exists',
            path=check.path,
        )
    return check.path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bare_name(name: str) -> str:
    """Strip an ``@scope/`` prefix."""
    scoped = _SCOPED_RE.match(name)
    return scoped.group(2) if scoped else name


def _describe_syntax_problem(name: str) -> str:
    if any(ch.isspace() for ch in name):
        return "Project name cannot contain spaces; use hyphens instead"
    if name != name.lower():
        return "Project name must be lowercase"
    return (
        "Project name may only contain lowercase letters, digits, hyphens, "
        "dots, underscores and tildes (with an optional @scope/ prefix)"
    )


def _clean_segment(text: str) -> str:
    segment = text.strip().lower()
    segment = re.sub(r"[\s_]+", "-", segment)
    segment = re.sub(r"[^a-z0-9.~-]", "", segment)
    segment = re.sub(r"-{2,}", "-", segment)
    segment = segment.lstrip(".-_")
    segment = segment[:MAX_NAME_LENGTH]
    return segment.rstrip(".-")
