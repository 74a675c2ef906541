"""Reading and updating the generated project's ``package.json``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from kickstart.utils import load_json, save_json

MANIFEST = "package.json"


def manifest_path(project_path: Path) -> Path:
    return project_path / MANIFEST


def read_manifest(project_path: Path) -> dict[str, Any]:
    """Load ``package.json`` from *project_path*.

    Raises:
        FileNotFoundError: If the project has no manifest.
        ValueError: If the manifest is not a JSON object.
    """
    return load_json(manifest_path(project_path))


async def write_manifest(project_path: Path, manifest: dict[str, Any]) -> None:
    await save_json(manifest, manifest_path(project_path))


def add_dependencies(
    manifest: dict[str, Any],
    versions: dict[str, str],
    dev: bool = False,
) -> dict[str, Any]:
    """Merge *versions* into ``dependencies`` (or ``devDependencies``).

    Versions already pinned by the framework generator are kept.  The
    section is re-sorted alphabetically, as npm itself does.
    """
    section = "devDependencies" if dev else "dependencies"
    current: dict[str, str] = dict(manifest.get(section) or {})
    for name, version in versions.items():
        current.setdefault(name, version)
    manifest[section] = dict(sorted(current.items()))
    return manifest


def add_scripts(manifest: dict[str, Any], scripts: dict[str, str]) -> dict[str, Any]:
    """Add ``scripts`` entries without replacing ones that already exist."""
    current: dict[str, str] = dict(manifest.get("scripts") or {})
    for name, command in scripts.items():
        current.setdefault(name, command)
    manifest["scripts"] = current
    return manifest
