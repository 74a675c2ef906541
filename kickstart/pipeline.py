"""kickstart project-creation pipeline.

Drives the generation stages strictly in order:

    NOT_STARTED -> BOOTSTRAPPING -> INSTALLING_ADD_ONS -> ENHANCING_STRUCTURE
                -> INSTALLING_DEPENDENCIES -> INITIALIZING_GIT -> DONE

with ``FAILED`` reachable from any stage.  The configuration is validated
before anything touches the filesystem.  Bootstrap, add-on and structure
failures are fatal: the partially created project directory (and any empty
scope directory the run created for it) is removed and a
:class:`ProjectCreationError` naming the stage is raised.  Install and git
failures only produce warnings carrying the command to run by hand.
Cancellation goes through the same rollback before being re-raised.

Usage::

    pipeline = Pipeline(config, settings, sink=ConsoleReporter())
    result = await pipeline.run()
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field

from kickstart.config import Settings
from kickstart.errors import ProjectCreationError, ProjectValidationError, StageError
from kickstart.events import Emitter, EventKind, EventSink
from kickstart.models import ProjectConfig
from kickstart.package_manager import DependencyInstaller, follow_up_command
from kickstart.registry import VersionResolver
from kickstart.scaffolder.addons import AddOnInstaller, has_add_ons
from kickstart.scaffolder.bootstrap import Bootstrapper
from kickstart.scaffolder.git import GitInitializer
from kickstart.scaffolder.structure import StructureEnhancer
from kickstart.scaffolder.templates import TemplateRenderer
from kickstart.utils import STAGE_TITLES, CommandRunner, remove_tree, run_command
from kickstart.validation import validate_config


class PipelineState(str, Enum):
    NOT_STARTED = "not-started"
    BOOTSTRAPPING = "bootstrapping"
    INSTALLING_ADD_ONS = "installing-add-ons"
    ENHANCING_STRUCTURE = "enhancing-structure"
    INSTALLING_DEPENDENCIES = "installing-dependencies"
    INITIALIZING_GIT = "initializing-git"
    DONE = "done"
    FAILED = "failed"


# A failure in one of these stages removes the project directory.
FATAL_STAGES = frozenset({
    PipelineState.BOOTSTRAPPING,
    PipelineState.INSTALLING_ADD_ONS,
    PipelineState.ENHANCING_STRUCTURE,
})


class CreationResult(BaseModel):
    """Outcome of a successful :meth:`Pipeline.run`."""

    project_path: Path
    state: PipelineState = Field(default=PipelineState.DONE)
    completed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration: float = Field(default=0.0, description="Wall-clock seconds")


class Pipeline:
    """Creates one project from a validated :class:`ProjectConfig`.

    Every stage object can be injected; by default they are built from
    *settings* and share the same *runner* and event *sink*.

    Attributes:
        state: The current :class:`PipelineState`.
        completed: Stage names that finished successfully.
        skipped: Stage names that were not applicable.
        warnings: Messages of non-fatal stage failures.
    """

    def __init__(
        self,
        config: ProjectConfig,
        settings: Settings | None = None,
        sink: EventSink | None = None,
        runner: CommandRunner = run_command,
        *,
        bootstrapper: Bootstrapper | None = None,
        add_on_installer: AddOnInstaller | None = None,
        structure_enhancer: StructureEnhancer | None = None,
        dependency_installer: DependencyInstaller | None = None,
        git_initializer: GitInitializer | None = None,
    ) -> None:
        self.config = config
        self.settings = settings or Settings()
        self.emitter = Emitter(sink)
        self.state = PipelineState.NOT_STARTED
        self.completed: list[str] = []
        self.skipped: list[str] = []
        self.warnings: list[str] = []
        self._created_parents: list[Path] = []

        timeout = self.settings.command_timeout
        renderer = TemplateRenderer()
        resolver = VersionResolver.from_settings(self.settings)

        def stage_emitter(state: PipelineState) -> Emitter:
            return self.emitter.for_stage(state.value)

        self.bootstrapper = bootstrapper or Bootstrapper(
            runner=runner,
            emitter=stage_emitter(PipelineState.BOOTSTRAPPING),
            renderer=renderer,
            resolver=resolver,
            timeout=timeout,
        )
        self.add_on_installer = add_on_installer or AddOnInstaller(
            runner=runner,
            emitter=stage_emitter(PipelineState.INSTALLING_ADD_ONS),
            renderer=renderer,
            resolver=resolver,
            timeout=timeout,
        )
        self.structure_enhancer = structure_enhancer or StructureEnhancer(
            emitter=stage_emitter(PipelineState.ENHANCING_STRUCTURE),
            renderer=renderer,
        )
        self.dependency_installer = dependency_installer or DependencyInstaller(
            runner=runner,
            emitter=stage_emitter(PipelineState.INSTALLING_DEPENDENCIES),
            timeout=timeout,
        )
        self.git_initializer = git_initializer or GitInitializer(
            runner=runner,
            emitter=stage_emitter(PipelineState.INITIALIZING_GIT),
            renderer=renderer,
            timeout=timeout,
        )

    @property
    def project_path(self) -> Path:
        return self.settings.project_path(self.config.project_name)

    # ------------------------------------------------------------------
    # Stage table
    # ------------------------------------------------------------------

    def _stages(self) -> list[tuple[PipelineState, Callable[[], Awaitable[object]], Optional[str]]]:
        """Return ``(state, action, skip_reason)`` for every stage in order."""
        config = self.config
        path = self.project_path
        return [
            (
                PipelineState.BOOTSTRAPPING,
                lambda: self.bootstrapper.bootstrap(path, config),
                None,
            ),
            (
                PipelineState.INSTALLING_ADD_ONS,
                lambda: self.add_on_installer.install_add_ons(path, config),
                None if has_add_ons(config) else "no add-ons selected",
            ),
            (
                PipelineState.ENHANCING_STRUCTURE,
                lambda: self.structure_enhancer.apply_folder_structure(path, config),
                None,
            ),
            (
                PipelineState.INSTALLING_DEPENDENCIES,
                lambda: self.dependency_installer.install(path, config.package_manager),
                None if config.install_dependencies else "dependency install disabled",
            ),
            (
                PipelineState.INITIALIZING_GIT,
                lambda: self.git_initializer.init_git(path),
                None if config.git_init else "git initialisation disabled",
            ),
        ]

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> CreationResult:
        """Validate the configuration and run every applicable stage.

        Returns:
            A :class:`CreationResult` in state ``DONE``.

        Raises:
            ProjectValidationError: Before any stage runs, if the name is
                invalid or the directory already exists.
            ProjectCreationError: After rollback, if a fatal stage failed.
        """
        started = time.monotonic()
        try:
            validate_config(self.config, self.settings.base_dir)
        except ProjectValidationError:
            self.state = PipelineState.FAILED
            raise

        self._created_parents = self._missing_parents()

        for state, action, skip_reason in self._stages():
            emitter = self.emitter.for_stage(state.value)
            if skip_reason is not None:
                self.skipped.append(state.value)
                emitter.emit(EventKind.STAGE_SKIPPED, f"Skipped: {skip_reason}")
                continue

            self.state = state
            emitter.emit(EventKind.STAGE_STARTED, STAGE_TITLES.get(state.value, state.value))
            stage_started = time.monotonic()
            try:
                await action()
            except (KeyboardInterrupt, asyncio.CancelledError):
                await self._rollback(state)
                self.state = PipelineState.FAILED
                raise
            except Exception as exc:
                if state in FATAL_STAGES:
                    await self._fail(state, exc)
                self._degrade(state, exc)
                continue

            self.completed.append(state.value)
            emitter.emit(
                EventKind.STAGE_COMPLETED,
                f"{STAGE_TITLES.get(state.value, state.value)} done",
                detail={"duration": time.monotonic() - stage_started},
            )

        self.state = PipelineState.DONE
        duration = time.monotonic() - started
        self.emitter.emit(
            EventKind.DONE,
            f"Created {self.config.project_name}",
            detail={
                "path": str(self.project_path),
                "summary": self.config.summary(),
                "duration": duration,
                "warnings": list(self.warnings),
            },
        )
        return CreationResult(
            project_path=self.project_path,
            state=self.state,
            completed=list(self.completed),
            skipped=list(self.skipped),
            warnings=list(self.warnings),
            duration=duration,
        )

    # ------------------------------------------------------------------
    # Failure handling
    # ------------------------------------------------------------------

    async def _fail(self, state: PipelineState, exc: Exception) -> None:
        rolled_back = await self._rollback(state)
        self.state = PipelineState.FAILED
        raise ProjectCreationError(state.value, exc, rolled_back) from exc

    def _missing_parents(self) -> list[Path]:
        """Directories above the project that do not exist yet, deepest first.

        A scoped name such as ``@acme/web`` creates ``@acme/`` as well.
        """
        missing: list[Path] = []
        parent = self.project_path.parent
        while parent != parent.parent and not parent.exists():
            missing.append(parent)
            parent = parent.parent
        return missing

    async def _rollback(self, state: PipelineState) -> bool:
        """Remove the project directory and the empty parents this run created.

        Returns ``True`` if the project directory is gone.
        """
        path = self.project_path
        emitter = self.emitter.for_stage(state.value)
        if path.exists():
            emitter.emit(EventKind.ROLLBACK, f"Removing {path}", detail={"path": str(path)})
            try:
                await remove_tree(path)
            except OSError as exc:
                emitter.warning(f"Could not remove {path}: {exc}", follow_up=f"rm -rf {path}")
                return not path.exists()

        for parent in self._created_parents:
            if not parent.is_dir() or any(parent.iterdir()):
                break
            try:
                parent.rmdir()
            except OSError as exc:
                emitter.warning(f"Could not remove {parent}: {exc}", follow_up=f"rmdir {parent}")
                break
        return not path.exists()

    def _degrade(self, state: PipelineState, exc: Exception) -> None:
        name = self.config.project_name
        if state is PipelineState.INSTALLING_DEPENDENCIES:
            message = f"Dependency installation failed: {exc}"
            follow_up = follow_up_command(name, self.config.package_manager)
        else:
            message = f"Git initialisation failed: {exc}"
            follow_up = f"cd {name} && git init"
        self.warnings.append(message)
        detail = {}
        if isinstance(exc, StageError) and exc.stderr:
            detail["stderr"] = exc.stderr
        self.emitter.for_stage(state.value).warning(message, follow_up=follow_up, **detail)
