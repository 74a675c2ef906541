"""Terminal presentation of progress events and errors.

:class:`ConsoleReporter` is the only place where pipeline progress reaches
the terminal; every stage just emits :class:`~kickstart.events.ProgressEvent`
objects.  :func:`display_error` renders the errors the CLI catches, with
suggestions per error kind.
"""

from __future__ import annotations

import errno
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from kickstart.errors import (
    DIRECTORY_EXISTS,
    AddOnError,
    BootstrapError,
    ProjectCreationError,
    ProjectValidationError,
    StageError,
    StructureError,
)
from kickstart.events import ProgressEvent
from kickstart.models import PackageManager
from kickstart.package_manager import install_command, run_script_command
from kickstart.utils import (
    STAGE_TITLES,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)
from kickstart.utils import console as default_console


class ConsoleReporter:
    """Event sink that renders progress with Rich.

    Args:
        verbose: Also show the commands being run and captured stderr.
        console: Console to print to (defaults to the shared one).
    """

    def __init__(self, verbose: bool = False, console: Optional[Console] = None) -> None:
        self.verbose = verbose
        self.console = console or default_console

    def __call__(self, event: ProgressEvent) -> None:
        handler = getattr(self, f"_on_{event.kind.value.replace('-', '_')}", None)
        if handler is not None:
            handler(event)

    # -- Handlers ----------------------------------------------------------

    def _on_stage_started(self, event: ProgressEvent) -> None:
        print_stage_header(event.stage or event.message, out=self.console)

    def _on_stage_completed(self, event: ProgressEvent) -> None:
        duration = event.detail.get("duration")
        suffix = f" [dim]({format_duration(duration)})[/dim]" if duration is not None else ""
        self.console.print(f"[green]✔[/green] {escape(event.message)}{suffix}")

    def _on_stage_skipped(self, event: ProgressEvent) -> None:
        title = STAGE_TITLES.get(event.stage or "", event.stage or "")
        self.console.print(f"[dim]- {escape(title)}: {escape(event.message)}[/dim]")

    def _on_step(self, event: ProgressEvent) -> None:
        self.console.print(f"  • {escape(event.message)}")

    def _on_command(self, event: ProgressEvent) -> None:
        if self.verbose and event.command:
            self.console.print(f"  [dim]$ {escape(event.command)}[/dim]")

    def _on_warning(self, event: ProgressEvent) -> None:
        print_warning(f"! {event.message}", out=self.console)
        if event.command:
            self.console.print(f"  [yellow]Run manually:[/yellow] [cyan]{escape(event.command)}[/cyan]")
        stderr = event.detail.get("stderr")
        if self.verbose and stderr:
            self.console.print(f"[dim]{escape(str(stderr))}[/dim]")

    def _on_rollback(self, event: ProgressEvent) -> None:
        self.console.print(f"[yellow]↺ {escape(event.message)}[/yellow]")

    def _on_done(self, event: ProgressEvent) -> None:
        summary: dict[str, str] = event.detail.get("summary", {})
        self.console.print()
        print_summary_table(summary, title="Project", out=self.console)

        duration = event.detail.get("duration")
        took = f" in {format_duration(duration)}" if duration is not None else ""
        print_success(f"{event.message}{took}", out=self.console)
        if event.detail.get("warnings"):
            self.console.print(
                f"[yellow]Finished with {len(event.detail['warnings'])} warning(s); see above.[/yellow]"
            )
        self._print_next_steps(summary)

    def _print_next_steps(self, summary: dict[str, str]) -> None:
        name = summary.get("Name")
        if not name:
            return
        pm = PackageManager(summary.get("Package manager", PackageManager.NPM.value))
        steps = [f"cd {name}"]
        if summary.get("Install") != "yes":
            steps.append(" ".join(install_command(pm)))
        steps.append(" ".join(run_script_command(pm, "dev")))
        body = "\n".join(f"[cyan]{escape(step)}[/cyan]" for step in steps)
        self.console.print(Panel(body, title="Next steps", border_style="green", expand=False))


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

_STAGE_SUGGESTIONS: dict[type[StageError], list[str]] = {
    BootstrapError: [
        "Check your internet connection; framework generators are downloaded on demand",
        "Make sure Node.js and your package manager are installed and on PATH",
        "Re-run with --verbose to see the generator's output",
    ],
    AddOnError: [
        "Re-run with fewer add-ons to find the one that fails",
        "Re-run with --verbose to see the failing command",
    ],
    StructureError: [
        "Check that you have write permission in the target directory",
        "Make sure there is enough free disk space",
    ],
}

_OS_SUGGESTIONS: dict[int, list[str]] = {
    errno.EACCES: ["Run kickstart in a directory you can write to"],
    errno.EPERM: ["Run kickstart in a directory you can write to"],
    errno.ENOSPC: ["Free up some disk space and try again"],
}


def suggestions_for(exc: BaseException) -> list[str]:
    """Return user-facing hints for an error caught by the CLI."""
    if isinstance(exc, ProjectValidationError):
        if exc.kind == DIRECTORY_EXISTS:
            return [
                "Choose a different project name",
                f"Or remove the existing directory: rm -rf {exc.path}",
            ]
        hints = ["Use lowercase letters, digits and hyphens (e.g. my-app)"]
        if exc.suggestion:
            hints.insert(0, f"Try: {exc.suggestion}")
        return hints

    if isinstance(exc, ProjectCreationError):
        cause = exc.cause
        if isinstance(cause, OSError) and cause.errno in _OS_SUGGESTIONS:
            return list(_OS_SUGGESTIONS[cause.errno])
        for error_type, hints in _STAGE_SUGGESTIONS.items():
            if isinstance(cause, error_type):
                return list(hints)
    return []


def display_error(exc: BaseException, verbose: bool = False, console: Optional[Console] = None) -> None:
    """Render an error caught at the CLI boundary."""
    out = console or default_console
    out.print()

    if isinstance(exc, ProjectValidationError):
        out.print(f"[bold red]Error:[/bold red] [red]{escape(str(exc))}[/red]")
        for rule in exc.errors:
            out.print(f"  [red]• {escape(rule)}[/red]")
    elif isinstance(exc, ProjectCreationError):
        out.print(f"[bold red]Error:[/bold red] [red]{escape(str(exc))}[/red]")
        if exc.rolled_back:
            out.print("[yellow]Partially created files were removed.[/yellow]")
        else:
            out.print("[yellow]The project directory could not be removed completely.[/yellow]")
        cause = exc.cause
        if isinstance(cause, StageError):
            if cause.command:
                out.print(f"  [dim]Command: {escape(cause.command)}[/dim]")
            if cause.stderr and verbose:
                out.print(f"[dim]{escape(cause.stderr)}[/dim]")
    else:
        print_error(f"Unexpected error: {exc}", out=out)

    hints = suggestions_for(exc)
    if hints:
        out.print("\n[cyan]Suggestions:[/cyan]")
        for hint in hints:
            out.print(f"  [cyan]• {escape(hint)}[/cyan]")
    out.print()
