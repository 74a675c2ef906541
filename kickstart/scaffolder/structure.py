"""Folder-structure conventions applied on top of the bootstrapped skeleton.

Every layout is a list of directories relative to ``src/``.  Directories are
created idempotently and each code folder gets a placeholder barrel file
(``index.ts`` / ``index.js``) with TODO comments and no exports.  Nothing
that already exists is overwritten.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from kickstart.errors import StructureError
from kickstart.events import Emitter
from kickstart.models import FolderStructure, Framework, ProjectConfig, ProjectType
from kickstart.scaffolder.templates import TemplateRenderer
from kickstart.utils import write_if_missing


def _nested(parents: list[str], children: list[str]) -> list[str]:
    return [f"{parent}/{child}" for parent in parents for child in children]


_SHARED = _nested(["shared"], ["components", "hooks", "utils", "types"])

FRONTEND_LAYOUTS: dict[FolderStructure, list[str]] = {
    FolderStructure.FEATURE_BASED: [
        *_nested(["features/auth", "features/dashboard"], ["components", "hooks", "services", "types"]),
        *_SHARED,
    ],
    FolderStructure.TYPE_BASED: [
        "components", "hooks", "services", "utils", "types", "pages", "styles", "assets",
    ],
    FolderStructure.DOMAIN_DRIVEN: [
        *_nested(["domains/user", "domains/product"], ["entities", "services", "repositories", "components"]),
        *_SHARED,
    ],
    FolderStructure.FLAT: ["components", "utils"],
}

BACKEND_LAYOUTS: dict[FolderStructure, list[str]] = {
    FolderStructure.MVC: ["models", "views", "controllers", "routes", "middlewares", "config"],
    FolderStructure.CLEAN_ARCHITECTURE: [
        "domain/entities",
        "domain/repositories",
        "application/use-cases",
        "infrastructure/database",
        "infrastructure/http",
        "interfaces/controllers",
    ],
    FolderStructure.FEATURE_BASED: [
        *_nested(["modules/users", "modules/auth"], ["controllers", "services", "routes", "models"]),
        *_nested(["common"], ["middlewares", "utils", "config"]),
    ],
    FolderStructure.LAYERED: [
        "controllers", "services", "repositories", "models", "middlewares", "config", "utils",
    ],
}

LIBRARY_LAYOUT: list[str] = ["utils"]

# Folders that hold assets, templates or framework routes rather than modules.
NON_CODE_DIRS = frozenset({"assets", "styles", "pages", "views"})


def layout_for(config: ProjectConfig) -> list[str]:
    """Return the directories (relative to ``src/``) implied by *config*."""
    if config.project_type is ProjectType.LIBRARY:
        return list(LIBRARY_LAYOUT)
    table = FRONTEND_LAYOUTS if config.project_type is ProjectType.FRONTEND else BACKEND_LAYOUTS
    layout = list(table[config.folder_structure])
    if config.framework is Framework.NEXTJS:
        # src/pages would switch Next.js to the pages router.
        layout = [d for d in layout if d != "pages"]
    return layout


class StructureEnhancer:
    """Creates the folder convention's directories and barrel files."""

    def __init__(
        self,
        emitter: Emitter | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.emitter = emitter or Emitter()
        self.renderer = renderer or TemplateRenderer()

    async def apply_folder_structure(self, project_path: Path, config: ProjectConfig) -> list[Path]:
        """Apply ``config.folder_structure`` under ``project_path / "src"``.

        Returns:
            The barrel files that were written (existing files are skipped).

        Raises:
            StructureError: If a directory or file cannot be created.
        """
        src = project_path / "src"
        written: list[Path] = []
        layout = layout_for(config)

        try:
            for rel in layout:
                directory = src / rel
                directory.mkdir(parents=True, exist_ok=True)
                kind = rel.rsplit("/", 1)[-1]
                if kind in NON_CODE_DIRS:
                    continue
                barrel = directory / f"index.{config.source_extension}"
                content = self.renderer.render(
                    "barrel_index.j2", {"folder": f"src/{rel}", "kind": kind}
                )
                if await asyncio.to_thread(write_if_missing, barrel, content):
                    written.append(barrel)
        except OSError as exc:
            raise StructureError(f"Could not create folder structure: {exc}") from exc

        self.emitter.step(
            f"Applied {config.folder_structure.value} structure",
            directories=len(layout),
            files=len(written),
        )
        return written
