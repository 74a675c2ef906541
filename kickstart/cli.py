"""Command-line entry point for kickstart.

Usage::

    kickstart                          # fully interactive
    kickstart my-app                   # interactive, name given
    kickstart my-app --yes             # defaults, no prompts
    kickstart api -y --type backend -t fastify --js -p pnpm --no-git
    kickstart my-app --preset answers.json

Exit codes: 0 success, 1 creation failure, 2 validation or usage error,
130 interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from rich.table import Table

from kickstart import __version__
from kickstart.config import Settings
from kickstart.errors import DIRECTORY_EXISTS, ProjectCreationError, ProjectValidationError
from kickstart.models import (
    ORM,
    Authentication,
    Database,
    Feature,
    Framework,
    Language,
    PackageManager,
    ProjectConfig,
    ProjectType,
    StateManagement,
    Styling,
    TestingFramework,
    UILibrary,
    FRAMEWORKS_BY_TYPE,
)
from kickstart.pipeline import Pipeline
from kickstart.prompts import ask_questions
from kickstart.questions import (
    Answers,
    build_config,
    default_answers,
    get_questions,
    project_type_for,
)
from kickstart.reporter import ConsoleReporter, display_error
from kickstart.utils import console, print_error, print_warning
from kickstart.validation import check_directory_exists, validate_project_name

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


class UsageError(Exception):
    """Raised for contradictory or unusable command-line input."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kickstart",
        description="kickstart -- scaffold a JavaScript / TypeScript project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  kickstart my-app\n"
            "  kickstart my-app --yes --template nextjs\n"
            "  kickstart api -y --type backend -t fastify --js -p pnpm --no-git\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", default=None, help="Project directory / package name")
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Skip all prompts and use the defaults",
    )
    language = parser.add_mutually_exclusive_group()
    language.add_argument(
        "--ts", "--typescript",
        dest="language",
        action="store_const",
        const=Language.TYPESCRIPT.value,
        help="Use TypeScript",
    )
    language.add_argument(
        "--js", "--javascript",
        dest="language",
        action="store_const",
        const=Language.JAVASCRIPT.value,
        help="Use JavaScript",
    )
    parser.add_argument(
        "-t", "--template",
        choices=[f.value for f in Framework],
        default=None,
        help="Framework to bootstrap",
    )
    parser.add_argument(
        "--type",
        dest="project_type",
        choices=[t.value for t in ProjectType],
        default=None,
        help="Project type",
    )
    parser.add_argument("--no-git", action="store_true", help="Skip git initialisation")
    parser.add_argument("--no-install", action="store_true", help="Skip dependency installation")
    parser.add_argument(
        "-p", "--package-manager",
        choices=[p.value for p in PackageManager],
        default=None,
        help="Package manager to use (default: npm)",
    )
    parser.add_argument(
        "--preset",
        type=Path,
        default=None,
        help="JSON file with a complete project configuration",
    )
    parser.add_argument("--verbose", action="store_true", default=None, help="Show commands and their output")
    parser.add_argument("--list", action="store_true", help="List frameworks and add-ons, then exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


# ---------------------------------------------------------------------------
# Building the configuration
# ---------------------------------------------------------------------------


def overrides_from_flags(args: argparse.Namespace) -> Answers:
    """Translate command-line flags into pinned question answers."""
    overrides: Answers = {}
    project_type = args.project_type

    if args.template:
        template_type = project_type_for(args.template).value
        if project_type and project_type != template_type:
            raise UsageError(
                f"--template {args.template} is a {template_type} framework, "
                f"but --type {project_type} was given"
            )
        project_type = template_type
        if template_type == ProjectType.FRONTEND.value:
            overrides["frontend_framework"] = args.template
        elif template_type == ProjectType.BACKEND.value:
            overrides["backend_framework"] = args.template

    if project_type:
        overrides["project_type"] = project_type
    if args.project_name:
        overrides["project_name"] = args.project_name
    if args.language:
        overrides["language"] = args.language
    if args.package_manager:
        overrides["package_manager"] = args.package_manager
    if args.no_git:
        overrides["git_init"] = False
    return overrides


def load_preset(path: Path, args: argparse.Namespace) -> ProjectConfig:
    """Load a preset configuration and apply command-line overrides to it.

    Only the name, package manager, ``--no-git`` and ``--no-install`` can be
    overridden.  Flags that would reshape the preset are rejected.
    """
    conflicting = [
        flag
        for flag, value in (
            ("--ts/--js", args.language),
            ("--template", args.template),
            ("--type", args.project_type),
            ("--yes", args.yes),
        )
        if value
    ]
    if conflicting:
        raise UsageError(
            f"{', '.join(conflicting)} cannot be combined with --preset; edit the preset file instead"
        )

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise UsageError(f"Cannot read preset {path}: {exc}") from exc

    config = ProjectConfig.model_validate_json(raw)
    update: dict[str, Any] = {}
    if args.project_name:
        update["project_name"] = args.project_name
    if args.package_manager:
        update["package_manager"] = PackageManager(args.package_manager)
    if args.no_git:
        update["git_init"] = False
    if args.no_install:
        update["install_dependencies"] = False
    if update:
        config = ProjectConfig.model_validate({**config.model_dump(), **update})
    return config


def resolve_config(args: argparse.Namespace, settings: Settings) -> ProjectConfig:
    """Produce the :class:`ProjectConfig` for this invocation.

    Raises:
        UsageError: On contradictory flags or a missing name with ``--yes``.
        ProjectValidationError: If the name given on the command line is
            already taken by a directory.
        pydantic.ValidationError: If the answers are inconsistent.
    """
    if args.preset is not None:
        return load_preset(args.preset, args)

    overrides = overrides_from_flags(args)
    install = not args.no_install

    if args.yes:
        if not args.project_name:
            raise UsageError("A project name is required with --yes")
        answers = default_answers(overrides)
        return build_config(answers, install_dependencies=install)

    initial_name = args.project_name
    if initial_name and not validate_project_name(initial_name).valid:
        print_warning(f'"{initial_name}" is not a valid project name; please pick another one.')
        overrides.pop("project_name", None)
        initial_name = None

    if initial_name:
        check = check_directory_exists(initial_name, settings.base_dir)
        if check.exists:
            raise ProjectValidationError(
                DIRECTORY_EXISTS,
                f'Directory "{initial_name}" already exists',
                path=check.path,
            )

    questions = get_questions(initial_name, base_dir=settings.base_dir)
    answers = ask_questions(questions, overrides)
    return build_config(answers, install_dependencies=install)


# ---------------------------------------------------------------------------
# --list
# ---------------------------------------------------------------------------


def print_catalogue() -> None:
    table = Table(title="Frameworks", show_header=True, header_style="bold cyan")
    table.add_column("Project type", style="dim", no_wrap=True)
    table.add_column("Frameworks")
    for project_type, frameworks in FRAMEWORKS_BY_TYPE.items():
        table.add_row(project_type.value, ", ".join(f.value for f in frameworks))
    console.print(table)

    table = Table(title="Add-ons", show_header=True, header_style="bold cyan")
    table.add_column("Category", style="dim", no_wrap=True)
    table.add_column("Choices")
    for label, enum in (
        ("Styling", Styling),
        ("State management", StateManagement),
        ("UI library", UILibrary),
        ("Database", Database),
        ("ORM", ORM),
        ("Authentication", Authentication),
        ("Testing", TestingFramework),
        ("Dev tools", Feature),
        ("Package manager", PackageManager),
    ):
        table.add_row(label, ", ".join(member.value for member in enum))
    console.print(table)


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """Run kickstart and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        print_catalogue()
        return EXIT_OK

    settings = Settings.from_env(verbose=args.verbose)

    try:
        config = resolve_config(args, settings)
    except UsageError as exc:
        print_error(f"Error: {exc}")
        return EXIT_USAGE
    except ProjectValidationError as exc:
        display_error(exc, verbose=settings.verbose)
        return EXIT_USAGE
    except ValidationError as exc:
        print_error("Error: invalid project configuration")
        for err in exc.errors():
            console.print(f"  [red]• {err['msg']}[/red]", markup=True, highlight=False)
        return EXIT_USAGE
    except (KeyboardInterrupt, EOFError):
        console.print("\n[yellow]Cancelled.[/yellow]")
        return EXIT_INTERRUPTED

    for warning in validate_project_name(config.project_name).warnings:
        print_warning(warning)

    pipeline = Pipeline(config, settings, sink=ConsoleReporter(verbose=settings.verbose))
    try:
        asyncio.run(pipeline.run())
    except ProjectValidationError as exc:
        display_error(exc, verbose=settings.verbose)
        return EXIT_USAGE
    except ProjectCreationError as exc:
        display_error(exc, verbose=settings.verbose)
        return EXIT_FAILED
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled; partially created files were removed.[/yellow]")
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
