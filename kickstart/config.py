"""kickstart runtime settings.

Typed settings for a kickstart run.  These are about *how* the tool runs
(where projects are created, whether versions are looked up on the npm
registry, command timeouts) as opposed to ``ProjectConfig``, which describes
*what* gets created.  Uses a Pydantic v2 model so values are validated at
construction time; values can also be read from the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Global kickstart settings.

    Instances are created once by the CLI entry point (usually through
    :meth:`from_env`) and passed to the pipeline and its stages.
    """

    base_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory in which the project directory is created",
    )
    verbose: bool = Field(default=False, description="Show commands and their stderr")
    resolve_versions: bool = Field(
        default=True,
        description="Look up latest versions on the npm registry for generated package.json files",
    )
    registry_url: str = Field(default="https://registry.npmjs.org")
    registry_timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")
    command_timeout: Optional[int] = Field(
        default=None,
        ge=1,
        description="Kill external commands after this many seconds (None waits forever)",
    )

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def project_path(self, project_name: str) -> Path:
        """Return the directory a project named *project_name* is created in."""
        return self.base_dir / project_name

    @classmethod
    def from_env(cls, **overrides: Any) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            KICKSTART_BASE_DIR, KICKSTART_VERBOSE, KICKSTART_RESOLVE_VERSIONS,
            KICKSTART_REGISTRY_URL, KICKSTART_REGISTRY_TIMEOUT,
            KICKSTART_COMMAND_TIMEOUT.

        Keyword *overrides* win over the environment (used for CLI flags).
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("KICKSTART_BASE_DIR"):
            kwargs["base_dir"] = Path(os.environ["KICKSTART_BASE_DIR"])
        if os.environ.get("KICKSTART_VERBOSE"):
            kwargs["verbose"] = os.environ["KICKSTART_VERBOSE"].lower() in _TRUE_VALUES
        if os.environ.get("KICKSTART_RESOLVE_VERSIONS"):
            kwargs["resolve_versions"] = (
                os.environ["KICKSTART_RESOLVE_VERSIONS"].lower() in _TRUE_VALUES
            )
        if os.environ.get("KICKSTART_REGISTRY_URL"):
            kwargs["registry_url"] = os.environ["KICKSTART_REGISTRY_URL"]
        if os.environ.get("KICKSTART_REGISTRY_TIMEOUT"):
            kwargs["registry_timeout"] = float(os.environ["KICKSTART_REGISTRY_TIMEOUT"])
        if os.environ.get("KICKSTART_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["KICKSTART_COMMAND_TIMEOUT"])

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
