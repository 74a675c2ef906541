"""End-to-end project creation through the full pipeline.

Every framework is created with the fake runner standing in for the
external generators and the package manager.  One Koa project is created
for real (internal skeleton + real git) when git is available.
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from kickstart.config import Settings
from kickstart.events import EventKind
from kickstart.models import (
    FOLDER_STRUCTURES_BY_TYPE,
    FRAMEWORKS_BY_TYPE,
    AddOns,
    Database,
    Framework,
    ProjectConfig,
    ProjectType,
    Styling,
)
from kickstart.pipeline import Pipeline, PipelineState
from kickstart.utils import run_command

ALL_FRAMEWORKS = [
    (project_type, framework)
    for project_type, frameworks in FRAMEWORKS_BY_TYPE.items()
    for framework in frameworks
]


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "project_type, framework",
    ALL_FRAMEWORKS,
    ids=[framework.value for _, framework in ALL_FRAMEWORKS],
)
async def test_every_framework(project_type: ProjectType, framework: Framework, config_factory, settings, base_dir: Path, fake_runner, recorder):
    config = config_factory(
        project_name=f"{framework.value}-app",
        project_type=project_type,
        framework=framework,
        folder_structure=FOLDER_STRUCTURES_BY_TYPE[project_type][0],
        styling=Styling.TAILWIND if project_type is ProjectType.FRONTEND else None,
    )
    result = await Pipeline(config, settings, sink=recorder, runner=fake_runner).run()

    project = base_dir / config.project_name
    assert result.state is PipelineState.DONE
    assert result.warnings == []
    assert json.loads((project / "package.json").read_text())["name"] == config.project_name
    assert (project / "src").is_dir()
    assert (project / ".gitignore").is_file()
    assert fake_runner.lines[-4:] == [
        "npm install",
        "git init",
        "git add -A",
        "git commit -m Initial commit",
    ]
    assert recorder.kinds()[-1] is EventKind.DONE


@pytest.mark.integration
@pytest.mark.asyncio
@pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
async def test_real_koa_project(backend_config, base_dir: Path, monkeypatch: pytest.MonkeyPatch):
    for key in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(key, "Kickstart Test")
    for key in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(key, "test@example.com")

    # No ORM: prisma init would need the network.
    config = ProjectConfig.model_validate(
        {
            **backend_config.model_dump(),
            "add_ons": AddOns(database=Database.POSTGRESQL),
            "install_dependencies": False,
        }
    )
    settings = Settings(base_dir=base_dir, resolve_versions=False)

    result = await Pipeline(config, settings).run()

    project = base_dir / "my-api"
    assert result.state is PipelineState.DONE
    assert result.skipped == ["installing-dependencies"]
    assert result.warnings == []
    assert (project / "src" / "index.js").is_file()
    assert (project / "src" / "models" / "index.js").is_file()
    assert (project / ".env.example").is_file()

    rc, stdout, _ = await run_command(["git", "log", "--format=%s"], cwd=project)
    assert rc == 0
    assert stdout == "Initial commit"
    rc, stdout, _ = await run_command(["git", "status", "--porcelain"], cwd=project)
    assert stdout == ""
