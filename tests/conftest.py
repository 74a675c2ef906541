"""Shared pytest fixtures for the kickstart test suite.

Provides reusable fixtures for:
- Temporary base directories and settings
- A fake command runner that records invocations and simulates generators
- An event recorder used as the pipeline's event sink
- Sample project configurations
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import pytest

from kickstart.config import Settings
from kickstart.events import EventKind, ProgressEvent
from kickstart.models import (
    AddOns,
    Database,
    FolderStructure,
    Framework,
    Language,
    ORM,
    PackageManager,
    ProjectConfig,
    ProjectType,
    Styling,
    TypeScriptStrictness,
)


# ---------------------------------------------------------------------------
# Paths & Settings
# ---------------------------------------------------------------------------

@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    """Directory projects are created in (auto-cleanup)."""
    work = tmp_path / "work"
    work.mkdir()
    yield work


@pytest.fixture
def settings(base_dir: Path) -> Settings:
    """Settings pointing at *base_dir* with registry lookups disabled."""
    return Settings(base_dir=base_dir, resolve_versions=False)


# ---------------------------------------------------------------------------
# Fake command runner
# ---------------------------------------------------------------------------

# Generator package -> sub-command that precedes the project name, if any.
GENERATORS: dict[str, Optional[str]] = {
    "create-vite@latest": None,
    "create-next-app@latest": None,
    "create-vue@latest": None,
    "nuxi@latest": "init",
    "sv": "create",
    "express-generator": None,
    "@nestjs/cli": "new",
    "fastify-cli": "generate",
}


@dataclass
class RecordedCall:
    argv: list[str]
    cwd: Optional[Path]
    env: Optional[dict[str, str]]

    @property
    def line(self) -> str:
        return " ".join(self.argv)


@dataclass
class FakeRunner:
    """Stand-in for ``kickstart.utils.run_command``.

    Every call is recorded.  Generator invocations create the project
    directory with a minimal ``package.json`` (and, for Vite templates, a
    plain-JSON ``tsconfig.app.json`` plus ``src/index.css``) unless
    ``simulate`` is off.  ``fail_on`` makes commands containing a marker
    return a non-zero exit code.
    """

    simulate: bool = True
    calls: list[RecordedCall] = field(default_factory=list)
    failures: dict[str, tuple[int, str, bool]] = field(default_factory=dict)

    def fail_on(self, marker: str, rc: int = 1, stderr: str = "boom", simulate: bool = False) -> None:
        self.failures[marker] = (rc, stderr, simulate)

    @property
    def lines(self) -> list[str]:
        return [call.line for call in self.calls]

    async def __call__(
        self,
        cmd: str | list[str],
        cwd: str | Path | None = None,
        timeout: Optional[int] = None,
        env: dict[str, str] | None = None,
    ) -> tuple[int, str, str]:
        argv = list(cmd) if isinstance(cmd, list) else cmd.split()
        call = RecordedCall(argv=argv, cwd=Path(cwd) if cwd else None, env=env)
        self.calls.append(call)

        for marker, (rc, stderr, simulate) in self.failures.items():
            if marker in call.line:
                if simulate:
                    self._simulate(call)
                return rc, "", stderr

        if self.simulate:
            self._simulate(call)
        return 0, "", ""

    def _simulate(self, call: RecordedCall) -> None:
        package = next((p for p in GENERATORS if p in call.argv), None)
        if package is None or call.cwd is None:
            return
        index = call.argv.index(package) + 1
        if GENERATORS[package] is not None:
            index += 1
        name = call.argv[index]
        project = call.cwd / name
        project.mkdir(parents=True, exist_ok=True)
        manifest = {
            "name": name,
            "private": True,
            "scripts": {"dev": "dev-server"},
            "dependencies": {"left-pad": "1.0.0"},
        }
        (project / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        if "react-ts" in call.argv:
            (project / "tsconfig.app.json").write_text(
                json.dumps({"compilerOptions": {"target": "ES2020"}}), encoding="utf-8"
            )
        if package == "create-vite@latest":
            (project / "src").mkdir(exist_ok=True)
            (project / "src" / "index.css").write_text("body { margin: 0; }\n", encoding="utf-8")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


# ---------------------------------------------------------------------------
# Event recorder
# ---------------------------------------------------------------------------

class EventRecorder:
    """Event sink that keeps every event for later assertions."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[EventKind]:
        return [event.kind for event in self.events]

    def of_kind(self, kind: EventKind) -> list[ProgressEvent]:
        return [event for event in self.events if event.kind is kind]


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


# ---------------------------------------------------------------------------
# Sample configurations
# ---------------------------------------------------------------------------

def make_config(**overrides: Any) -> ProjectConfig:
    """Build a ``ProjectConfig`` with frontend/React defaults."""
    values: dict[str, Any] = {
        "project_name": "my-app",
        "project_type": ProjectType.FRONTEND,
        "framework": Framework.REACT,
        "language": Language.TYPESCRIPT,
        "typescript_strictness": TypeScriptStrictness.STRICT,
        "folder_structure": FolderStructure.FEATURE_BASED,
        "styling": Styling.TAILWIND,
        "package_manager": PackageManager.NPM,
        "git_init": True,
        "install_dependencies": True,
    }
    values.update(overrides)
    return ProjectConfig(**values)


@pytest.fixture
def react_config() -> ProjectConfig:
    """React + TypeScript + Tailwind, feature-based, npm, git."""
    return make_config()


@pytest.fixture
def plain_react_config() -> ProjectConfig:
    """React with plain CSS and no add-ons at all."""
    return make_config(styling=Styling.CSS)


@pytest.fixture
def backend_config() -> ProjectConfig:
    """Koa + JavaScript + PostgreSQL/Prisma, mvc layout, pnpm."""
    return make_config(
        project_name="my-api",
        project_type=ProjectType.BACKEND,
        framework=Framework.KOA,
        language=Language.JAVASCRIPT,
        typescript_strictness=None,
        folder_structure=FolderStructure.MVC,
        styling=None,
        add_ons=AddOns(database=Database.POSTGRESQL, orm=ORM.PRISMA),
        package_manager=PackageManager.PNPM,
    )


@pytest.fixture
def library_config() -> ProjectConfig:
    return make_config(
        project_name="my-lib",
        project_type=ProjectType.LIBRARY,
        framework=Framework.PLAIN,
        folder_structure=FolderStructure.FLAT,
        styling=None,
    )


@pytest.fixture
def config_factory():
    """Return :func:`make_config` so tests can build variations."""
    return make_config
