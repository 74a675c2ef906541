"""Unit tests for the bootstrap stage (kickstart.scaffolder.bootstrap).

Tests cover:
- generator command lines per framework and package manager
- the strategy registry covering every (project type, framework) pair
- running external generators (cwd, env, failure modes)
- internal skeletons (vanilla, koa, library)
- TypeScript strictness application
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kickstart.errors import BootstrapError
from kickstart.events import Emitter, EventKind
from kickstart.models import (
    FRAMEWORKS_BY_TYPE,
    FolderStructure,
    Framework,
    Language,
    PackageManager,
    ProjectType,
    Styling,
    TypeScriptStrictness,
)
from kickstart.registry import VersionResolver
from kickstart.scaffolder.bootstrap import (
    STRATEGY_CLASSES,
    BootstrapTools,
    Bootstrapper,
    CreateNextApp,
    CreateViteReact,
    CreateVue,
    FastifyGenerate,
    InternalSkeleton,
    NestNew,
    NuxiInit,
    SvCreate,
    apply_typescript_strictness,
)
from kickstart.utils import NON_INTERACTIVE_ENV

APP = Path("/work/app")


def _backend(config_factory, framework: Framework, **overrides):
    return config_factory(
        project_type=ProjectType.BACKEND,
        framework=framework,
        folder_structure=FolderStructure.MVC,
        styling=None,
        **overrides,
    )


# ---------------------------------------------------------------------------
# Command lines
# ---------------------------------------------------------------------------


class TestGeneratorCommands:
    @pytest.mark.unit
    def test_create_vite(self, config_factory):
        tools = BootstrapTools()
        assert CreateViteReact(tools).command(APP, config_factory()) == [
            "npx", "create-vite@latest", "app", "--template", "react-ts",
        ]
        js = config_factory(language=Language.JAVASCRIPT, typescript_strictness=None)
        assert CreateViteReact(tools).command(APP, js)[-1] == "react"

    @pytest.mark.unit
    def test_create_vite_uses_package_manager_runner(self, config_factory):
        config = config_factory(package_manager=PackageManager.PNPM)
        assert CreateViteReact(BootstrapTools()).command(APP, config)[:3] == [
            "pnpm", "dlx", "create-vite@latest",
        ]

    @pytest.mark.unit
    def test_create_next_app(self, config_factory):
        config = config_factory(framework=Framework.NEXTJS, package_manager=PackageManager.YARN)
        cmd = CreateNextApp(BootstrapTools()).command(APP, config)
        assert cmd[:4] == ["yarn", "dlx", "create-next-app@latest", "app"]
        for flag in ("--ts", "--tailwind", "--app", "--use-yarn", "--skip-install", "--disable-git", "--yes"):
            assert flag in cmd

    @pytest.mark.unit
    def test_create_next_app_without_tailwind(self, config_factory):
        config = config_factory(
            framework=Framework.NEXTJS,
            language=Language.JAVASCRIPT,
            typescript_strictness=None,
            styling=Styling.CSS_MODULES,
        )
        cmd = CreateNextApp(BootstrapTools()).command(APP, config)
        assert "--js" in cmd
        assert "--no-tailwind" in cmd

    @pytest.mark.unit
    def test_create_vue(self, config_factory):
        cmd = CreateVue(BootstrapTools()).command(APP, config_factory(framework=Framework.VUE))
        assert cmd == ["npx", "create-vue@latest", "app", "--default", "--typescript"]

    @pytest.mark.unit
    def test_nuxi_init(self, config_factory):
        config = config_factory(framework=Framework.NUXT, package_manager=PackageManager.BUN)
        assert NuxiInit(BootstrapTools()).command(APP, config) == [
            "bunx", "nuxi@latest", "init", "app",
            "--packageManager", "bun", "--no-gitInit", "--no-install",
        ]

    @pytest.mark.unit
    def test_sv_create(self, config_factory):
        config = config_factory(framework=Framework.SVELTE, language=Language.JAVASCRIPT, typescript_strictness=None)
        cmd = SvCreate(BootstrapTools()).command(APP, config)
        assert cmd[:4] == ["npx", "sv", "create", "app"]
        assert cmd[cmd.index("--types") + 1] == "jsdoc"
        assert "--no-install" in cmd

    @pytest.mark.unit
    def test_nest_new(self, config_factory):
        config = _backend(config_factory, Framework.NESTJS, package_manager=PackageManager.PNPM)
        assert NestNew(BootstrapTools()).command(APP, config) == [
            "pnpm", "dlx", "@nestjs/cli", "new", "app",
            "--package-manager", "pnpm", "--skip-git", "--skip-install", "--language", "ts",
        ]

    @pytest.mark.unit
    def test_fastify_generate(self, config_factory):
        ts = _backend(config_factory, Framework.FASTIFY)
        js = _backend(config_factory, Framework.FASTIFY, language=Language.JAVASCRIPT, typescript_strictness=None)
        assert FastifyGenerate(BootstrapTools()).command(APP, ts)[-1] == "--lang=ts"
        assert FastifyGenerate(BootstrapTools()).command(APP, js) == ["npx", "fastify-cli", "generate", "app"]


class TestStrategyRegistry:
    @pytest.mark.unit
    def test_every_framework_has_a_strategy(self):
        pairs = {(t, f) for t, frameworks in FRAMEWORKS_BY_TYPE.items() for f in frameworks}
        assert set(STRATEGY_CLASSES) == pairs

    @pytest.mark.unit
    @pytest.mark.parametrize("framework", [Framework.VANILLA, Framework.KOA, Framework.HAPI, Framework.PLAIN])
    def test_internal_frameworks(self, framework: Framework):
        key = next(k for k in STRATEGY_CLASSES if k[1] is framework)
        assert STRATEGY_CLASSES[key] is InternalSkeleton

    @pytest.mark.unit
    def test_unknown_pair_raises(self, config_factory):
        with pytest.raises(BootstrapError, match="No bootstrap strategy"):
            Bootstrapper(strategies={}).strategy_for(config_factory())

    @pytest.mark.unit
    def test_description(self):
        assert CreateViteReact(BootstrapTools()).description == "create-vite"
        assert NestNew(BootstrapTools()).description == "@nestjs/cli"


# ---------------------------------------------------------------------------
# External generators
# ---------------------------------------------------------------------------


class TestExternalGenerator:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_from_parent_non_interactively(self, base_dir: Path, fake_runner, recorder, config_factory):
        bootstrapper = Bootstrapper(runner=fake_runner, emitter=Emitter(recorder, "bootstrapping"))
        project = base_dir / "my-app"
        await bootstrapper.bootstrap(project, config_factory())

        call = fake_runner.calls[0]
        assert call.cwd == base_dir
        assert call.env == NON_INTERACTIVE_ENV
        assert call.argv[:3] == ["npx", "create-vite@latest", "my-app"]
        assert project.is_dir()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_applies_strictness_to_tsconfig_app(self, base_dir: Path, fake_runner, config_factory):
        project = base_dir / "my-app"
        config = config_factory(typescript_strictness=TypeScriptStrictness.RELAXED)
        await Bootstrapper(runner=fake_runner).bootstrap(project, config)

        options = json.loads((project / "tsconfig.app.json").read_text())["compilerOptions"]
        assert options["strict"] is False
        assert options["noImplicitAny"] is False
        assert options["target"] == "ES2020"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_zero_exit(self, base_dir: Path, fake_runner, config_factory):
        fake_runner.fail_on("create-vite", rc=1, stderr="npm ERR! 404")
        with pytest.raises(BootstrapError) as exc_info:
            await Bootstrapper(runner=fake_runner).bootstrap(base_dir / "my-app", config_factory())
        err = exc_info.value
        assert "exited with code 1" in str(err)
        assert err.command.startswith("npx create-vite@latest my-app")
        assert "404" in err.stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_directory_after_success(self, base_dir: Path, fake_runner, config_factory):
        fake_runner.simulate = False
        with pytest.raises(BootstrapError, match="did not create"):
            await Bootstrapper(runner=fake_runner).bootstrap(base_dir / "my-app", config_factory())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_emits_step_and_command(self, base_dir: Path, fake_runner, recorder, config_factory):
        bootstrapper = Bootstrapper(runner=fake_runner, emitter=Emitter(recorder, "bootstrapping"))
        await bootstrapper.bootstrap(base_dir / "my-app", config_factory())

        kinds = recorder.kinds()
        assert kinds[0] is EventKind.STEP
        assert EventKind.COMMAND in kinds
        assert all(event.stage == "bootstrapping" for event in recorder.events)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_express_typescript_tooling(self, base_dir: Path, fake_runner, config_factory):
        project = base_dir / "my-api"
        config = _backend(config_factory, Framework.EXPRESS, project_name="my-api")
        await Bootstrapper(runner=fake_runner).bootstrap(project, config)

        assert fake_runner.calls[0].argv == ["npx", "express-generator", "my-api", "--no-view"]
        manifest = json.loads((project / "package.json").read_text())
        assert manifest["devDependencies"] == {
            "@types/express": "latest",
            "@types/node": "latest",
            "typescript": "latest",
        }
        assert manifest["dependencies"] == {"left-pad": "1.0.0"}
        assert (project / "tsconfig.json").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_express_javascript_left_alone(self, base_dir: Path, fake_runner, config_factory):
        project = base_dir / "my-api"
        config = _backend(
            config_factory,
            Framework.EXPRESS,
            project_name="my-api",
            language=Language.JAVASCRIPT,
            typescript_strictness=None,
        )
        await Bootstrapper(runner=fake_runner).bootstrap(project, config)
        assert not (project / "tsconfig.json").exists()
        assert "devDependencies" not in json.loads((project / "package.json").read_text())

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_is_forwarded(self, base_dir: Path, config_factory):
        seen: dict[str, object] = {}

        async def runner(cmd, cwd=None, timeout=None, env=None):
            seen["timeout"] = timeout
            return 1, "", "timed out"

        with pytest.raises(BootstrapError):
            await Bootstrapper(runner=runner, timeout=90).bootstrap(base_dir / "my-app", config_factory())
        assert seen["timeout"] == 90


# ---------------------------------------------------------------------------
# Internal skeletons
# ---------------------------------------------------------------------------


class TestInternalSkeleton:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_koa_javascript(self, base_dir: Path, fake_runner, backend_config):
        project = base_dir / "my-api"
        await Bootstrapper(runner=fake_runner).bootstrap(project, backend_config)

        assert fake_runner.calls == []
        source = (project / "src" / "index.js").read_text()
        assert 'import Koa from "koa";' in source
        assert "my-api listening" in source
        assert not (project / "tsconfig.json").exists()

        manifest = json.loads((project / "package.json").read_text())
        assert manifest["name"] == "my-api"
        assert manifest["private"] is True
        assert manifest["dependencies"] == {"@koa/router": "latest", "koa": "latest"}
        assert "devDependencies" not in manifest
        assert manifest["scripts"]["start"] == "node src/index.js"

        readme = (project / "README.md").read_text()
        assert readme.startswith("# My Api")
        assert "pnpm install" in readme
        assert "pnpm dev" in readme

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_hapi_typescript(self, base_dir: Path, config_factory):
        project = base_dir / "svc"
        config = _backend(config_factory, Framework.HAPI, project_name="svc")
        await Bootstrapper().bootstrap(project, config)

        assert "Promise<void>" in (project / "src" / "index.ts").read_text()
        tsconfig = json.loads((project / "tsconfig.json").read_text())
        assert tsconfig["compilerOptions"]["module"] == "NodeNext"
        assert tsconfig["compilerOptions"]["noUnusedLocals"] is True
        manifest = json.loads((project / "package.json").read_text())
        assert "tsx" in manifest["devDependencies"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_vanilla(self, base_dir: Path, config_factory):
        project = base_dir / "site"
        config = config_factory(
            project_name="site",
            framework=Framework.VANILLA,
            language=Language.JAVASCRIPT,
            typescript_strictness=None,
            styling=Styling.CSS,
        )
        await Bootstrapper().bootstrap(project, config)

        assert '/src/main.js"' in (project / "index.html").read_text()
        assert (project / "src" / "main.js").is_file()
        assert (project / "src" / "style.css").is_file()
        manifest = json.loads((project / "package.json").read_text())
        assert manifest["scripts"]["build"] == "vite build"
        assert manifest["devDependencies"] == {"vite": "latest"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_typescript_library(self, base_dir: Path, library_config):
        project = base_dir / "my-lib"
        await Bootstrapper().bootstrap(project, library_config)

        manifest = json.loads((project / "package.json").read_text())
        assert manifest["version"] == "0.1.0"
        assert manifest["private"] is False
        assert manifest["main"] == "dist/index.js"
        assert manifest["types"] == "dist/index.d.ts"
        assert manifest["files"] == ["dist"]
        assert "dependencies" not in manifest
        tsconfig = json.loads((project / "tsconfig.json").read_text())
        assert tsconfig["compilerOptions"]["declaration"] is True
        assert "export function greet(name: string): string" in (project / "src" / "index.ts").read_text()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_resolved_versions(self, base_dir: Path, backend_config):
        resolver = VersionResolver(enabled=False)

        async def resolve_many(names):
            return {name: "^1.0.0" for name in names}

        resolver.resolve_many = resolve_many  # type: ignore[method-assign]
        project = base_dir / "my-api"
        await Bootstrapper(resolver=resolver).bootstrap(project, backend_config)
        manifest = json.loads((project / "package.json").read_text())
        assert manifest["dependencies"]["koa"] == "^1.0.0"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unwritable_location(self, tmp_path: Path, backend_config):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        with pytest.raises(BootstrapError, match="Cannot create"):
            await Bootstrapper().bootstrap(blocker / "my-api", backend_config)


# ---------------------------------------------------------------------------
# apply_typescript_strictness
# ---------------------------------------------------------------------------


class TestApplyTypescriptStrictness:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_strict_options(self, tmp_path: Path, recorder):
        (tmp_path / "tsconfig.json").write_text('{"compilerOptions": {"target": "ES2022"}}')
        target = await apply_typescript_strictness(tmp_path, TypeScriptStrictness.STRICT, Emitter(recorder))

        assert target == tmp_path / "tsconfig.json"
        options = json.loads(target.read_text())["compilerOptions"]
        assert options == {
            "target": "ES2022",
            "strict": True,
            "noUnusedLocals": True,
            "noUnusedParameters": True,
            "noFallthroughCasesInSwitch": True,
        }
        assert recorder.kinds() == [EventKind.STEP]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_prefers_tsconfig_app(self, tmp_path: Path, recorder):
        (tmp_path / "tsconfig.json").write_text('{"files": [], "references": []}')
        (tmp_path / "tsconfig.app.json").write_text("{}")
        target = await apply_typescript_strictness(tmp_path, TypeScriptStrictness.MODERATE, Emitter(recorder))

        assert target == tmp_path / "tsconfig.app.json"
        assert json.loads(target.read_text())["compilerOptions"]["strict"] is True
        assert json.loads((tmp_path / "tsconfig.json").read_text()) == {"files": [], "references": []}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_tsconfig_warns(self, tmp_path: Path, recorder):
        assert await apply_typescript_strictness(tmp_path, TypeScriptStrictness.STRICT, Emitter(recorder)) is None
        assert recorder.kinds() == [EventKind.WARNING]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_commented_tsconfig_app(self, tmp_path: Path, recorder):
        (tmp_path / "tsconfig.app.json").write_text(
            "{\n"
            '  "compilerOptions": {\n'
            '    "tsBuildInfoFile": "./node_modules/.tmp/tsconfig.app.tsbuildinfo",\n'
            '    "target": "ES2022",\n'
            "\n"
            "    /* Bundler mode */\n"
            '    "moduleResolution": "bundler",\n'
            '    "paths": { "@/*": ["./src/*"] },\n'
            "    // Linting\n"
            '    "strict": false,\n'
            "  },\n"
            '  "include": ["src"],\n'
            "}\n"
        )
        target = await apply_typescript_strictness(tmp_path, TypeScriptStrictness.STRICT, Emitter(recorder))

        assert target == tmp_path / "tsconfig.app.json"
        data = json.loads(target.read_text())
        assert data["include"] == ["src"]
        options = data["compilerOptions"]
        assert options["strict"] is True
        assert options["noUnusedLocals"] is True
        assert options["paths"] == {"@/*": ["./src/*"]}
        assert options["tsBuildInfoFile"] == "./node_modules/.tmp/tsconfig.app.tsbuildinfo"
        assert recorder.kinds() == [EventKind.STEP]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unparseable_tsconfig_left_untouched(self, tmp_path: Path, recorder):
        original = '{\n  "compilerOptions": {\n    /* unterminated\n  }\n}\n'
        (tmp_path / "tsconfig.json").write_text(original)
        assert await apply_typescript_strictness(tmp_path, TypeScriptStrictness.RELAXED, Emitter(recorder)) is None
        assert (tmp_path / "tsconfig.json").read_text() == original
        warning = recorder.of_kind(EventKind.WARNING)[0]
        assert "could not be parsed" in warning.message
