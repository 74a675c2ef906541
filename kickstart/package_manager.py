"""Package-manager command tables and the dependency-install stage.

All four supported package managers (npm, yarn, pnpm, bun) are described by
the lookup tables below.  Every place in kickstart that needs to run a package
binary goes through :func:`binary_runner_prefix`, so supporting another
package manager only means adding rows here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from kickstart.errors import InstallError
from kickstart.events import Emitter
from kickstart.models import PackageManager
from kickstart.utils import NON_INTERACTIVE_ENV, CommandRunner, run_command, tail


_RUNNER_PREFIX: dict[PackageManager, list[str]] = {
    PackageManager.NPM: ["npx"],
    PackageManager.YARN: ["yarn", "dlx"],
    PackageManager.PNPM: ["pnpm", "dlx"],
    PackageManager.BUN: ["bunx"],
}


def binary_runner_prefix(package_manager: PackageManager) -> list[str]:
    """Return the argv prefix used to run a package's binary without installing it.

    Examples::

        binary_runner_prefix(PackageManager.NPM)  -> ["npx"]
        binary_runner_prefix(PackageManager.PNPM) -> ["pnpm", "dlx"]
    """
    return list(_RUNNER_PREFIX[PackageManager(package_manager)])


def install_command(package_manager: PackageManager) -> list[str]:
    """Return the argv that installs every dependency listed in ``package.json``."""
    return [PackageManager(package_manager).value, "install"]


def run_script_command(package_manager: PackageManager, script: str) -> list[str]:
    """Return the argv that runs a ``package.json`` script (e.g. ``dev``)."""
    pm = PackageManager(package_manager)
    if pm in (PackageManager.NPM, PackageManager.BUN):
        return [pm.value, "run", script]
    return [pm.value, script]


def follow_up_command(project_name: str, package_manager: PackageManager) -> str:
    """Return the shell line a user can run to finish a failed install."""
    return f"cd {project_name} && {' '.join(install_command(package_manager))}"


# ---------------------------------------------------------------------------
# Dependency Installer
# ---------------------------------------------------------------------------


class DependencyInstaller:
    """Runs the package manager's install command inside the project.

    Failures raise :class:`InstallError`; the pipeline turns that into a
    warning, since a project without ``node_modules`` is still usable.
    """

    def __init__(
        self,
        runner: CommandRunner = run_command,
        emitter: Emitter | None = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.runner = runner
        self.emitter = emitter or Emitter()
        self.timeout = timeout

    async def install(self, project_path: Path, package_manager: PackageManager) -> None:
        """Install dependencies in *project_path*.

        Raises:
            InstallError: If the install command exits non-zero or cannot be
                started.
        """
        cmd = install_command(package_manager)
        self.emitter.step(f"Installing dependencies with {PackageManager(package_manager).value}")
        self.emitter.command(cmd, project_path)

        rc, _stdout, stderr = await self.runner(
            cmd, cwd=project_path, timeout=self.timeout, env=NON_INTERACTIVE_ENV
        )
        if rc != 0:
            raise InstallError(
                f"{' '.join(cmd)} exited with code {rc}",
                command=" ".join(cmd),
                stderr=tail(stderr),
            )
