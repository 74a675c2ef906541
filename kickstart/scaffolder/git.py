"""Git repository initialisation for a freshly generated project.

``git init`` failing (e.g. git is not installed) raises :class:`GitError`,
which the pipeline downgrades to a warning.  A failed initial commit (usually
a missing ``user.name`` / ``user.email``) only emits a warning: the
repository itself is still usable.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from kickstart.errors import GitError
from kickstart.events import Emitter
from kickstart.scaffolder.templates import TemplateRenderer
from kickstart.utils import CommandRunner, run_command, tail, write_text

INITIAL_COMMIT_MESSAGE = "Initial commit"


def merge_gitignore(existing: str, standard: str) -> str:
    """Append the entries of *standard* that *existing* does not list yet.

    Comments and blank lines of *standard* are not carried over; the order
    of *existing* is preserved.
    """
    present = {line.strip() for line in existing.splitlines() if line.strip()}
    missing = [
        line.strip()
        for line in standard.splitlines()
        if line.strip() and not line.lstrip().startswith("#") and line.strip() not in present
    ]
    if not missing:
        return existing
    base = existing.rstrip("\n")
    block = "\n".join(["# Added by kickstart", *missing])
    return f"{base}\n\n{block}\n" if base else f"{block}\n"


class GitInitializer:
    """Runs ``git init``, writes ``.gitignore`` and makes the initial commit."""

    def __init__(
        self,
        runner: CommandRunner = run_command,
        emitter: Emitter | None = None,
        renderer: TemplateRenderer | None = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.runner = runner
        self.emitter = emitter or Emitter()
        self.renderer = renderer or TemplateRenderer()
        self.timeout = timeout

    async def _run_git(self, *args: str, cwd: Path) -> tuple[int, str]:
        cmd = ["git", *args]
        self.emitter.command(cmd, cwd)
        rc, _stdout, stderr = await self.runner(cmd, cwd=cwd, timeout=self.timeout)
        return rc, stderr

    async def init_git(self, project_path: Path) -> bool:
        """Initialise a repository in *project_path*.

        Returns:
            ``True`` if the initial commit was made as well.

        Raises:
            GitError: If ``git init`` fails or ``.gitignore`` cannot be written.
        """
        rc, stderr = await self._run_git("init", cwd=project_path)
        if rc != 0:
            raise GitError(
                f"git init exited with code {rc}",
                command="git init",
                stderr=tail(stderr),
            )

        try:
            await asyncio.to_thread(self._write_gitignore, project_path)
        except OSError as exc:
            raise GitError(f"Could not write .gitignore: {exc}") from exc

        rc, stderr = await self._run_git("add", "-A", cwd=project_path)
        if rc == 0:
            rc, stderr = await self._run_git(
                "commit", "-m", INITIAL_COMMIT_MESSAGE, cwd=project_path
            )
        if rc != 0:
            self.emitter.warning(
                "Repository initialised but the initial commit failed",
                follow_up=f'git add -A && git commit -m "{INITIAL_COMMIT_MESSAGE}"',
                stderr=tail(stderr, 5),
            )
            return False

        self.emitter.step("Created initial commit")
        return True

    def _write_gitignore(self, project_path: Path) -> None:
        target = project_path / ".gitignore"
        standard = self.renderer.render("gitignore.j2", {})
        if target.exists():
            existing = target.read_text(encoding="utf-8")
            merged = merge_gitignore(existing, standard)
            if merged != existing:
                write_text(target, merged)
        else:
            write_text(target, standard)
