"""Creation of the initial project skeleton.

Each supported ``(project_type, framework)`` pair maps to a
:class:`BootstrapStrategy`.  Frameworks with an official generator are
bootstrapped by running that generator non-interactively through the
package manager's binary runner; the rest get a small internal skeleton
rendered from Jinja2 templates.

Typical usage::

    bootstrapper = Bootstrapper(emitter=emitter)
    await bootstrapper.bootstrap(Path("/work/my-app"), config)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from kickstart.errors import BootstrapError
from kickstart.events import Emitter
from kickstart.models import Framework, ProjectConfig, ProjectType, Styling, TypeScriptStrictness
from kickstart.package_manager import binary_runner_prefix, install_command, run_script_command
from kickstart.registry import VersionResolver
from kickstart.scaffolder.manifest import (
    add_dependencies,
    add_scripts,
    read_manifest,
    write_manifest,
)
from kickstart.scaffolder.templates import TemplateRenderer, project_context
from kickstart.utils import (
    NON_INTERACTIVE_ENV,
    CommandRunner,
    load_jsonc,
    run_command,
    save_json,
    tail,
)


# ---------------------------------------------------------------------------
# TypeScript strictness
# ---------------------------------------------------------------------------

STRICTNESS_OPTIONS: dict[TypeScriptStrictness, dict[str, bool]] = {
    TypeScriptStrictness.STRICT: {
        "strict": True,
        "noUnusedLocals": True,
        "noUnusedParameters": True,
        "noFallthroughCasesInSwitch": True,
    },
    TypeScriptStrictness.MODERATE: {
        "strict": True,
        "noUnusedLocals": False,
        "noUnusedParameters": False,
    },
    TypeScriptStrictness.RELAXED: {
        "strict": False,
        "noImplicitAny": False,
    },
}

TSCONFIG_CANDIDATES = ("tsconfig.app.json", "tsconfig.json")


async def apply_typescript_strictness(
    project_path: Path,
    strictness: TypeScriptStrictness,
    emitter: Emitter,
) -> Optional[Path]:
    """Merge the compiler options for *strictness* into the project's tsconfig.

    Generators write tsconfig files as JSONC; comments and trailing commas are
    dropped when the file is rewritten.  A file that still does not parse is
    left untouched and a warning is emitted instead.

    Returns:
        The tsconfig path that was updated, or ``None``.
    """
    target = next(
        (project_path / name for name in TSCONFIG_CANDIDATES if (project_path / name).is_file()),
        None,
    )
    if target is None:
        emitter.warning("No tsconfig.json found; TypeScript strictness was not applied")
        return None

    try:
        data = load_jsonc(target)
    except ValueError:
        emitter.warning(
            f"{target.name} could not be parsed; set the '{strictness.value}' "
            "compiler options by hand"
        )
        return None

    options = data.setdefault("compilerOptions", {})
    options.update(STRICTNESS_OPTIONS[strictness])
    await save_json(data, target)
    emitter.step(f"Applied {strictness.value} TypeScript settings to {target.name}")
    return target


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@dataclass
class BootstrapTools:
    """Collaborators shared by every strategy."""

    runner: CommandRunner = run_command
    emitter: Emitter = field(default_factory=Emitter)
    renderer: TemplateRenderer = field(default_factory=TemplateRenderer)
    resolver: VersionResolver = field(default_factory=lambda: VersionResolver(enabled=False))
    timeout: Optional[int] = None


class BootstrapStrategy(ABC):
    """Creates the project directory and its initial files."""

    description = ""

    def __init__(self, tools: BootstrapTools) -> None:
        self.tools = tools

    @abstractmethod
    async def run(self, project_path: Path, config: ProjectConfig) -> None:
        """Create *project_path*; raise :class:`BootstrapError` on failure."""


class ExternalGenerator(BootstrapStrategy):
    """Runs an official generator from the parent directory.

    Subclasses set :attr:`package` and build the generator's flags in
    :meth:`arguments`.
    """

    package = ""

    @property
    def description(self) -> str:  # type: ignore[override]
        return self.package.split("@latest")[0] or self.package

    def arguments(self, config: ProjectConfig) -> list[str]:
        return []

    def command(self, project_path: Path, config: ProjectConfig) -> list[str]:
        return [
            *binary_runner_prefix(config.package_manager),
            self.package,
            project_path.name,
            *self.arguments(config),
        ]

    async def run(self, project_path: Path, config: ProjectConfig) -> None:
        parent = project_path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BootstrapError(f"Cannot create {parent}: {exc}") from exc

        cmd = self.command(project_path, config)
        self.tools.emitter.command(cmd, parent)
        rc, _stdout, stderr = await self.tools.runner(
            cmd, cwd=parent, timeout=self.tools.timeout, env=NON_INTERACTIVE_ENV
        )
        if rc != 0:
            raise BootstrapError(
                f"{self.description} exited with code {rc}",
                command=" ".join(cmd),
                stderr=tail(stderr),
            )
        if not project_path.is_dir():
            raise BootstrapError(
                f"{self.description} finished but did not create {project_path}",
                command=" ".join(cmd),
            )
        if config.project_name != project_path.name:
            await self._restore_scoped_name(project_path, config.project_name)
        await self.after(project_path, config)

    async def _restore_scoped_name(self, project_path: Path, name: str) -> None:
        """Generators only see the directory name; put the @scope/ back."""
        if not (project_path / "package.json").is_file():
            return
        try:
            manifest = read_manifest(project_path)
        except (OSError, ValueError) as exc:
            raise BootstrapError(f"Cannot read package.json: {exc}") from exc
        manifest["name"] = name
        await write_manifest(project_path, manifest)

    async def after(self, project_path: Path, config: ProjectConfig) -> None:
        """Hook for fixing up the generator's output."""


class CreateViteReact(ExternalGenerator):
    package = "create-vite@latest"

    def arguments(self, config: ProjectConfig) -> list[str]:
        return ["--template", "react-ts" if config.is_typescript else "react"]


class CreateNextApp(ExternalGenerator):
    package = "create-next-app@latest"

    def arguments(self, config: ProjectConfig) -> list[str]:
        return [
            "--ts" if config.is_typescript else "--js",
            "--tailwind" if config.styling is Styling.TAILWIND else "--no-tailwind",
            "--eslint",
            "--app",
            "--src-dir",
            "--import-alias",
            "@/*",
            f"--use-{config.package_manager.value}",
            "--skip-install",
            "--disable-git",
            "--yes",
        ]


class CreateVue(ExternalGenerator):
    package = "create-vue@latest"

    def arguments(self, config: ProjectConfig) -> list[str]:
        args = ["--default"]
        if config.is_typescript:
            args.append("--typescript")
        return args


class NuxiInit(ExternalGenerator):
    package = "nuxi@latest"

    def command(self, project_path: Path, config: ProjectConfig) -> list[str]:
        return [
            *binary_runner_prefix(config.package_manager),
            self.package,
            "init",
            project_path.name,
            "--packageManager",
            config.package_manager.value,
            "--no-gitInit",
            "--no-install",
        ]


class SvCreate(ExternalGenerator):
    package = "sv"

    def command(self, project_path: Path, config: ProjectConfig) -> list[str]:
        return [
            *binary_runner_prefix(config.package_manager),
            self.package,
            "create",
            project_path.name,
            "--template",
            "minimal",
            "--types",
            "ts" if config.is_typescript else "jsdoc",
            "--no-add-ons",
            "--no-install",
        ]


class ExpressGenerator(ExternalGenerator):
    """express-generator only emits JavaScript; TypeScript support is layered on top."""

    package = "express-generator"

    def arguments(self, config: ProjectConfig) -> list[str]:
        return ["--no-view"]

    async def after(self, project_path: Path, config: ProjectConfig) -> None:
        if not config.is_typescript:
            return
        await self.tools.renderer.render_to_file(
            "tsconfig.json.j2",
            project_path / "tsconfig.json",
            project_context(config, node=True, declaration=False),
        )
        try:
            manifest = read_manifest(project_path)
        except (OSError, ValueError) as exc:
            raise BootstrapError(f"Cannot read package.json: {exc}") from exc
        versions = await self.tools.resolver.resolve_many(
            ["typescript", "@types/node", "@types/express"]
        )
        add_dependencies(manifest, versions, dev=True)
        await write_manifest(project_path, manifest)
        self.tools.emitter.step("Added TypeScript tooling to the Express project")


class NestNew(ExternalGenerator):
    package = "@nestjs/cli"

    def command(self, project_path: Path, config: ProjectConfig) -> list[str]:
        return [
            *binary_runner_prefix(config.package_manager),
            self.package,
            "new",
            project_path.name,
            "--package-manager",
            config.package_manager.value,
            "--skip-git",
            "--skip-install",
            "--language",
            config.source_extension,
        ]


class FastifyGenerate(ExternalGenerator):
    package = "fastify-cli"

    def command(self, project_path: Path, config: ProjectConfig) -> list[str]:
        cmd = [
            *binary_runner_prefix(config.package_manager),
            self.package,
            "generate",
            project_path.name,
        ]
        if config.is_typescript:
            cmd.append("--lang=ts")
        return cmd


# ---------------------------------------------------------------------------
# Internal skeletons
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Skeleton:
    """What the internal generator writes for one framework."""

    description: str
    templates: dict[str, str]
    dependencies: tuple[str, ...] = ()
    dev_dependencies: tuple[str, ...] = ()
    ts_dev_dependencies: tuple[str, ...] = ()
    ts_scripts: dict[str, str] = field(default_factory=dict)
    js_scripts: dict[str, str] = field(default_factory=dict)
    node: bool = True
    library: bool = False


SKELETONS: dict[Framework, Skeleton] = {
    Framework.VANILLA: Skeleton(
        description="A vanilla web app built with Vite.",
        templates={
            "skeleton/vanilla/index.html.j2": "index.html",
            "skeleton/vanilla/main.j2": "src/main.{ext}",
            "skeleton/vanilla/style.css.j2": "src/style.css",
        },
        dev_dependencies=("vite",),
        ts_dev_dependencies=("typescript",),
        ts_scripts={"dev": "vite", "build": "tsc && vite build", "preview": "vite preview"},
        js_scripts={"dev": "vite", "build": "vite build", "preview": "vite preview"},
        node=False,
    ),
    Framework.KOA: Skeleton(
        description="A Koa HTTP API.",
        templates={"skeleton/koa/index.j2": "src/index.{ext}"},
        dependencies=("koa", "@koa/router"),
        ts_dev_dependencies=("typescript", "tsx", "@types/node", "@types/koa", "@types/koa__router"),
        ts_scripts={"dev": "tsx watch src/index.ts", "build": "tsc", "start": "node dist/index.js"},
        js_scripts={"dev": "node --watch src/index.js", "start": "node src/index.js"},
    ),
    Framework.HAPI: Skeleton(
        description="A hapi HTTP API.",
        templates={"skeleton/hapi/index.j2": "src/index.{ext}"},
        dependencies=("@hapi/hapi",),
        ts_dev_dependencies=("typescript", "tsx", "@types/node"),
        ts_scripts={"dev": "tsx watch src/index.ts", "build": "tsc", "start": "node dist/index.js"},
        js_scripts={"dev": "node --watch src/index.js", "start": "node src/index.js"},
    ),
    Framework.PLAIN: Skeleton(
        description="A Node.js package.",
        templates={"skeleton/plain/index.j2": "src/index.{ext}"},
        ts_dev_dependencies=("typescript", "@types/node"),
        ts_scripts={"build": "tsc", "prepublishOnly": "tsc"},
        library=True,
    ),
}


class InternalSkeleton(BootstrapStrategy):
    """Writes a minimal project for frameworks without an official generator."""

    description = "the built-in skeleton"

    async def run(self, project_path: Path, config: ProjectConfig) -> None:
        skeleton = SKELETONS[config.framework]
        try:
            (project_path / "src").mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise BootstrapError(f"Cannot create {project_path}: {exc}") from exc

        renderer = self.tools.renderer
        context = project_context(config, node=skeleton.node, declaration=skeleton.library)
        for template, output in skeleton.templates.items():
            target = project_path / output.format(ext=config.source_extension)
            await renderer.render_to_file(template, target, context)

        if config.is_typescript:
            await renderer.render_to_file("tsconfig.json.j2", project_path / "tsconfig.json", context)

        manifest = await self._manifest(config, skeleton)
        await write_manifest(project_path, manifest)

        scripts = list(manifest.get("scripts", {}).items())
        dev_command = ""
        if "dev" in manifest.get("scripts", {}):
            dev_command = " ".join(run_script_command(config.package_manager, "dev"))
        await renderer.render_to_file(
            "README.md.j2",
            project_path / "README.md",
            project_context(
                config,
                description=skeleton.description,
                install_command=" ".join(install_command(config.package_manager)),
                dev_command=dev_command,
                scripts=[
                    (name, " ".join(run_script_command(config.package_manager, name)))
                    for name, _ in scripts
                ],
            ),
        )
        self.tools.emitter.step(f"Wrote {config.framework.value} skeleton", path=str(project_path))

    async def _manifest(self, config: ProjectConfig, skeleton: Skeleton) -> dict[str, Any]:
        dev = list(skeleton.dev_dependencies)
        if config.is_typescript:
            dev += skeleton.ts_dev_dependencies
        versions = await self.tools.resolver.resolve_many([*skeleton.dependencies, *dev])

        manifest: dict[str, Any] = {
            "name": config.project_name,
            "version": "0.1.0" if skeleton.library else "0.0.0",
            "private": not skeleton.library,
            "type": "module",
        }
        if skeleton.library:
            if config.is_typescript:
                manifest.update(main="dist/index.js", types="dist/index.d.ts", files=["dist"])
            else:
                manifest.update(main="src/index.js", files=["src"])
        add_scripts(manifest, skeleton.ts_scripts if config.is_typescript else skeleton.js_scripts)
        if skeleton.dependencies:
            add_dependencies(manifest, {n: versions[n] for n in skeleton.dependencies})
        if dev:
            add_dependencies(manifest, {n: versions[n] for n in dev}, dev=True)
        return manifest


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

STRATEGY_CLASSES: dict[tuple[ProjectType, Framework], type[BootstrapStrategy]] = {
    (ProjectType.FRONTEND, Framework.REACT): CreateViteReact,
    (ProjectType.FRONTEND, Framework.NEXTJS): CreateNextApp,
    (ProjectType.FRONTEND, Framework.VUE): CreateVue,
    (ProjectType.FRONTEND, Framework.NUXT): NuxiInit,
    (ProjectType.FRONTEND, Framework.SVELTE): SvCreate,
    (ProjectType.FRONTEND, Framework.VANILLA): InternalSkeleton,
    (ProjectType.BACKEND, Framework.EXPRESS): ExpressGenerator,
    (ProjectType.BACKEND, Framework.NESTJS): NestNew,
    (ProjectType.BACKEND, Framework.FASTIFY): FastifyGenerate,
    (ProjectType.BACKEND, Framework.KOA): InternalSkeleton,
    (ProjectType.BACKEND, Framework.HAPI): InternalSkeleton,
    (ProjectType.LIBRARY, Framework.PLAIN): InternalSkeleton,
}


def default_strategies(tools: BootstrapTools) -> dict[tuple[ProjectType, Framework], BootstrapStrategy]:
    return {key: cls(tools) for key, cls in STRATEGY_CLASSES.items()}


class Bootstrapper:
    """Creates the project skeleton for a configuration.

    Args:
        runner: Async command runner (``kickstart.utils.run_command``).
        emitter: Progress event emitter.
        renderer: Template renderer for internal skeletons.
        resolver: npm registry resolver for generated ``package.json`` files.
        timeout: Per-command timeout in seconds (``None`` waits forever).
        strategies: Override the strategy registry (mainly for tests).
    """

    def __init__(
        self,
        runner: CommandRunner = run_command,
        emitter: Emitter | None = None,
        renderer: TemplateRenderer | None = None,
        resolver: VersionResolver | None = None,
        timeout: Optional[int] = None,
        strategies: dict[tuple[ProjectType, Framework], BootstrapStrategy] | None = None,
    ) -> None:
        self.tools = BootstrapTools(
            runner=runner,
            emitter=emitter or Emitter(),
            renderer=renderer or TemplateRenderer(),
            resolver=resolver or VersionResolver(enabled=False),
            timeout=timeout,
        )
        self.strategies = strategies if strategies is not None else default_strategies(self.tools)

    @property
    def emitter(self) -> Emitter:
        return self.tools.emitter

    def strategy_for(self, config: ProjectConfig) -> BootstrapStrategy:
        key = (config.project_type, config.framework)
        try:
            return self.strategies[key]
        except KeyError:
            raise BootstrapError(
                f"No bootstrap strategy for {config.project_type.value}/{config.framework.value}"
            ) from None

    async def bootstrap(self, project_path: Path, config: ProjectConfig) -> None:
        """Create *project_path* for *config*.

        Raises:
            BootstrapError: If the generator fails, cannot be started, or does
                not produce the project directory.
        """
        strategy = self.strategy_for(config)
        self.emitter.step(
            f"Creating {config.framework.value} project with {strategy.description}",
            framework=config.framework.value,
        )
        try:
            await strategy.run(project_path, config)
        except BootstrapError:
            raise
        except OSError as exc:
            raise BootstrapError(f"Could not write project files: {exc}") from exc

        if not project_path.is_dir():
            raise BootstrapError(f"Project directory {project_path} was not created")

        if config.is_typescript and config.typescript_strictness is not None:
            try:
                await apply_typescript_strictness(
                    project_path, config.typescript_strictness, self.emitter
                )
            except OSError as exc:
                raise BootstrapError(f"Could not update tsconfig: {exc}") from exc
