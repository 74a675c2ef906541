"""Interactive rendering of the question graph with Rich prompts.

Walks :func:`kickstart.questions.get_questions` top to bottom, asking only
the questions whose predicate holds for the answers collected so far.
Invalid free-text answers are re-asked with the suggested correction as the
new default.
"""

from __future__ import annotations

from typing import Any, Optional

from rich.console import Console
from rich.prompt import Confirm, Prompt

from kickstart.questions import Answers, Choice, Question, QuestionKind
from kickstart.utils import console as default_console


def ask_questions(
    questions: list[Question],
    answers: Optional[Answers] = None,
    console: Optional[Console] = None,
) -> Answers:
    """Ask every applicable question and return the collected answers.

    Keys already present in *answers* are not asked again but still feed
    the predicates of later questions.
    """
    out = console or default_console
    collected: Answers = dict(answers or {})
    for question in questions:
        if question.key in collected or not question.applies(collected):
            continue
        collected[question.key] = ask(question, collected, out)
    return collected


def ask(question: Question, answers: Answers, console: Console) -> Any:
    """Ask a single question and return its validated value."""
    default = question.default_for(answers)

    if question.kind is QuestionKind.CONFIRM:
        return Confirm.ask(question.message, default=bool(default), console=console)

    if question.kind is QuestionKind.TEXT:
        return _ask_text(question, default, console)

    choices = question.choices_for(answers)
    if question.kind is QuestionKind.MULTI_SELECT:
        return _ask_many(question, choices, default or [], console)
    return _ask_one(question, choices, default, console)


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


def _ask_text(question: Question, default: Any, console: Console) -> str:
    current = str(default) if default is not None else None
    while True:
        value = Prompt.ask(question.message, default=current, console=console) or ""
        value = value.strip()
        error = question.validate(value) if question.validate else None
        if error is None:
            return value
        console.print(f"[red]{error}[/red]")
        if question.suggest:
            current = question.suggest(value)


def _ask_one(question: Question, choices: list[Choice], default: Any, console: Console) -> str:
    _print_choices(question.message, choices, console)
    values = [c.value for c in choices]
    default_index = values.index(default) + 1 if default in values else 1

    while True:
        raw = Prompt.ask("Select", default=str(default_index), console=console).strip()
        picked = _resolve(raw, choices)
        if picked is not None:
            return picked
        console.print(f"[red]Please enter a number between 1 and {len(choices)}[/red]")


def _ask_many(
    question: Question,
    choices: list[Choice],
    default: list[str],
    console: Console,
) -> list[str]:
    _print_choices(f"{question.message} [dim](comma-separated, empty for none)[/dim]", choices, console)
    values = [c.value for c in choices]
    default_text = ",".join(str(values.index(v) + 1) for v in default if v in values)

    while True:
        raw = Prompt.ask("Select", default=default_text, show_default=bool(default_text), console=console)
        tokens = [t.strip() for t in (raw or "").split(",") if t.strip()]
        picked = [_resolve(token, choices) for token in tokens]
        if all(p is not None for p in picked):
            return list(dict.fromkeys(p for p in picked if p is not None))
        console.print("[red]Unknown selection; use the numbers shown above[/red]")


def _print_choices(message: str, choices: list[Choice], console: Console) -> None:
    console.print(f"[bold]{message}[/bold]")
    for index, choice in enumerate(choices, start=1):
        console.print(f"  [cyan]{index}[/cyan]) {choice.label}")


def _resolve(token: str, choices: list[Choice]) -> Optional[str]:
    """Map a 1-based index or a literal value to a choice value."""
    if token.isdigit():
        index = int(token)
        if 1 <= index <= len(choices):
            return choices[index - 1].value
        return None
    for choice in choices:
        if choice.value == token:
            return choice.value
    return None
