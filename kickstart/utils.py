"""Shared utility functions for kickstart.

Provides async command execution, JSON I/O, file-system helpers and the
Rich-based output helpers used by the presentation layer.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
import shutil
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# Environment every external tool is started with so that generators and
# package managers take their non-interactive code paths.
NON_INTERACTIVE_ENV: dict[str, str] = {
    "CI": "true",
    "npm_config_yes": "true",
}

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------

CommandResult = tuple[int, str, str]
CommandRunner = Callable[..., Awaitable[CommandResult]]


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: Optional[int] = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command asynchronously and wait for it to exit.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits until the process exits.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A command that cannot be
        started at all (e.g. the executable is missing) yields return code
        127 with the OS error as stderr.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    cmd_text = cmd if isinstance(cmd, str) else " ".join(cmd)

    try:
        if isinstance(cmd, list):
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        else:
            process = await asyncio.create_subprocess_shell(
                cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
    except OSError as exc:
        return (127, "", f"Could not start {cmd_text}: {exc}")

    try:
        if timeout is None:
            stdout_bytes, stderr_bytes = await process.communicate()
        else:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {cmd_text}")
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


def tail(text: str, lines: int = 15) -> str:
    """Return the last *lines* lines of *text* (for error messages)."""
    return "\n".join(text.strip().splitlines()[-lines:])


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file that contains an object.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the top-level value is not an object.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


# Comments or string literals; strings are matched first so that "//" inside
# a URL survives.
_JSONC_COMMENT = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r'"(?:\\.|[^"\\])*"|,(\s*[}\]])')


def strip_json_comments(text: str) -> str:
    """Turn JSONC (as written by tsc and most generators) into plain JSON.

    Drops ``//`` and ``/* */`` comments and commas directly before a closing
    bracket.  String literals are left untouched.
    """
    text = _JSONC_COMMENT.sub(lambda m: m.group(0) if m.group(0).startswith('"') else " ", text)
    return _TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(0), text)


def load_jsonc(path: str | Path) -> dict[str, Any]:
    """Like :func:`load_json`, but accepts comments and trailing commas."""
    data = json.loads(strip_json_comments(Path(path).read_text(encoding="utf-8")))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON with a trailing newline.

    Parent directories are created automatically and the write runs in a
    worker thread so it does not block the event loop.
    """
    file_path = Path(path)
    content = json.dumps(data, indent=2, ensure_ascii=False) + "\n"
    await asyncio.to_thread(write_text, file_path, content)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def write_text(path: Path, content: str) -> None:
    """Create parent dirs and write *content* to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def write_if_missing(path: Path, content: str) -> bool:
    """Write *content* only when *path* does not exist yet.

    Returns:
        ``True`` if the file was written.
    """
    if path.exists():
        return False
    write_text(path, content)
    return True


async def remove_tree(path: Path) -> bool:
    """Recursively delete *path* if it exists.

    Returns:
        ``True`` if something was removed.
    """
    if not path.exists() and not path.is_symlink():
        return False
    if path.is_dir() and not path.is_symlink():
        await asyncio.to_thread(shutil.rmtree, path)
    else:
        await asyncio.to_thread(path.unlink)
    return True


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_TITLES: dict[str, str] = {
    "bootstrapping": "Bootstrapping project",
    "installing-add-ons": "Installing add-ons",
    "enhancing-structure": "Applying folder structure",
    "installing-dependencies": "Installing dependencies",
    "initializing-git": "Initializing git",
}

STAGE_COLORS: dict[str, str] = {
    "bootstrapping": "bright_cyan",
    "installing-add-ons": "bright_green",
    "enhancing-structure": "bright_yellow",
    "installing-dependencies": "bright_magenta",
    "initializing-git": "bright_blue",
}


def print_stage_header(stage: str, out: Console | None = None) -> None:
    """Print a full-width rule announcing a pipeline stage."""
    out = out or console
    color = STAGE_COLORS.get(stage, "white")
    title = STAGE_TITLES.get(stage, stage)
    out.print()
    out.print(Rule(f"[bold {color}] {escape(title)} [/bold {color}]", style=color))


def print_summary_table(data: dict[str, str], title: str = "Summary", out: Console | None = None) -> None:
    """Print a two-column key/value summary table."""
    out = out or console
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(escape(key), escape(str(value)))

    out.print(table)
    out.print()


def print_success(message: str, out: Console | None = None) -> None:
    """Print a green success message."""
    (out or console).print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str, out: Console | None = None) -> None:
    """Print a red error message."""
    (out or console).print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str, out: Console | None = None) -> None:
    """Print a yellow warning message."""
    (out or console).print(f"[bold yellow]{escape(message)}[/bold yellow]")
