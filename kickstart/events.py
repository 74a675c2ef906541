"""Structured progress events.

Every generation stage reports what it is doing by emitting ``ProgressEvent``
instances to an ``EventSink`` instead of writing to the terminal.  The CLI
plugs in :class:`kickstart.reporter.ConsoleReporter`; tests plug in a list.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    STAGE_STARTED = "stage-started"
    STAGE_COMPLETED = "stage-completed"
    STAGE_SKIPPED = "stage-skipped"
    STEP = "step"
    COMMAND = "command"
    WARNING = "warning"
    ROLLBACK = "rollback"
    DONE = "done"


class ProgressEvent(BaseModel):
    """One thing that happened while creating a project."""

    kind: EventKind
    message: str = Field(default="")
    stage: Optional[str] = Field(default=None, description="Pipeline stage the event belongs to")
    command: Optional[str] = Field(
        default=None, description="Command line run, or the manual follow-up for warnings"
    )
    detail: dict[str, Any] = Field(default_factory=dict)


EventSink = Callable[[ProgressEvent], None]


def null_sink(event: ProgressEvent) -> None:
    """Discard an event."""


class Emitter:
    """Small convenience wrapper that stamps events with the current stage."""

    def __init__(self, sink: EventSink | None = None, stage: str | None = None) -> None:
        self.sink: EventSink = sink or null_sink
        self.stage = stage

    def for_stage(self, stage: str) -> "Emitter":
        return Emitter(self.sink, stage)

    def emit(self, kind: EventKind, message: str = "", **fields: Any) -> None:
        self.sink(ProgressEvent(kind=kind, message=message, stage=self.stage, **fields))

    def step(self, message: str, **detail: Any) -> None:
        self.emit(EventKind.STEP, message, detail=detail)

    def command(self, command: list[str] | str, cwd: Any = None) -> None:
        text = command if isinstance(command, str) else " ".join(command)
        self.emit(EventKind.COMMAND, f"Running {text}", command=text, detail={"cwd": str(cwd or "")})

    def warning(self, message: str, follow_up: str | None = None, **detail: Any) -> None:
        self.emit(EventKind.WARNING, message, command=follow_up, detail=detail)
