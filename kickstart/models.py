"""Pydantic v2 models for a kickstart project configuration.

Defines the enumerations for every question the user can answer and the
``ProjectConfig`` model that the question flow produces and the pipeline
consumes.  Each add-on category is its own enum so that an unknown value is
rejected at construction time instead of silently ignored later.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProjectType(str, Enum):
    """Kind of project to scaffold."""
    FRONTEND = "frontend"
    BACKEND = "backend"
    LIBRARY = "library"


class Framework(str, Enum):
    """Framework the project is built on. Valid values depend on ``ProjectType``."""
    # frontend
    REACT = "react"
    VUE = "vue"
    NEXTJS = "nextjs"
    NUXT = "nuxt"
    SVELTE = "svelte"
    VANILLA = "vanilla"
    # backend
    EXPRESS = "express"
    NESTJS = "nestjs"
    FASTIFY = "fastify"
    KOA = "koa"
    HAPI = "hapi"
    # library
    PLAIN = "plain"


class Language(str, Enum):
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"


class TypeScriptStrictness(str, Enum):
    """How strict the generated ``tsconfig.json`` should be."""
    STRICT = "strict"
    MODERATE = "moderate"
    RELAXED = "relaxed"


class FolderStructure(str, Enum):
    """Folder convention applied on top of the bootstrapped skeleton."""
    FEATURE_BASED = "feature-based"
    TYPE_BASED = "type-based"
    DOMAIN_DRIVEN = "domain-driven"
    FLAT = "flat"
    MVC = "mvc"
    CLEAN_ARCHITECTURE = "clean-architecture"
    LAYERED = "layered"


class Styling(str, Enum):
    TAILWIND = "tailwind"
    CSS_MODULES = "css-modules"
    STYLED_COMPONENTS = "styled-components"
    EMOTION = "emotion"
    SASS = "sass"
    CSS = "css"
    NONE = "none"


class StateManagement(str, Enum):
    NONE = "none"
    REDUX_TOOLKIT = "redux-toolkit"
    ZUSTAND = "zustand"
    JOTAI = "jotai"
    PINIA = "pinia"


class UILibrary(str, Enum):
    NONE = "none"
    SHADCN = "shadcn"
    MUI = "mui"
    ANTD = "antd"
    CHAKRA = "chakra"
    MANTINE = "mantine"
    DAISYUI = "daisyui"


class Database(str, Enum):
    NONE = "none"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"
    MONGODB = "mongodb"


class ORM(str, Enum):
    NONE = "none"
    PRISMA = "prisma"
    DRIZZLE = "drizzle"
    TYPEORM = "typeorm"
    MONGOOSE = "mongoose"


class Authentication(str, Enum):
    NONE = "none"
    NEXTAUTH = "nextauth"
    CLERK = "clerk"
    SUPABASE = "supabase"
    AUTH0 = "auth0"
    LUCIA = "lucia"
    PASSPORT = "passport"
    JWT = "jwt"


class TestingFramework(str, Enum):
    VITEST = "vitest"
    JEST = "jest"
    PLAYWRIGHT = "playwright"
    CYPRESS = "cypress"
    TESTING_LIBRARY = "testing-library"


class Feature(str, Enum):
    """Development tooling written into the project next to the add-ons."""
    ESLINT = "eslint"
    PRETTIER = "prettier"
    HUSKY = "husky"
    LINT_STAGED = "lint-staged"
    DOCKER = "docker"
    GITHUB_ACTIONS = "github-actions"
    DOTENV = "dotenv"
    EDITORCONFIG = "editorconfig"


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"


# ---------------------------------------------------------------------------
# Compatibility tables
# ---------------------------------------------------------------------------

FRAMEWORKS_BY_TYPE: dict[ProjectType, tuple[Framework, ...]] = {
    ProjectType.FRONTEND: (
        Framework.REACT,
        Framework.VUE,
        Framework.NEXTJS,
        Framework.NUXT,
        Framework.SVELTE,
        Framework.VANILLA,
    ),
    ProjectType.BACKEND: (
        Framework.EXPRESS,
        Framework.NESTJS,
        Framework.FASTIFY,
        Framework.KOA,
        Framework.HAPI,
    ),
    ProjectType.LIBRARY: (Framework.PLAIN,),
}

FOLDER_STRUCTURES_BY_TYPE: dict[ProjectType, tuple[FolderStructure, ...]] = {
    ProjectType.FRONTEND: (
        FolderStructure.FEATURE_BASED,
        FolderStructure.TYPE_BASED,
        FolderStructure.DOMAIN_DRIVEN,
        FolderStructure.FLAT,
    ),
    ProjectType.BACKEND: (
        FolderStructure.MVC,
        FolderStructure.CLEAN_ARCHITECTURE,
        FolderStructure.FEATURE_BASED,
        FolderStructure.LAYERED,
    ),
    ProjectType.LIBRARY: (FolderStructure.FLAT,),
}

ORMS_BY_DATABASE: dict[Database, tuple[ORM, ...]] = {
    Database.NONE: (ORM.NONE,),
    Database.POSTGRESQL: (ORM.NONE, ORM.PRISMA, ORM.DRIZZLE, ORM.TYPEORM),
    Database.MYSQL: (ORM.NONE, ORM.PRISMA, ORM.DRIZZLE, ORM.TYPEORM),
    Database.SQLITE: (ORM.NONE, ORM.PRISMA, ORM.DRIZZLE, ORM.TYPEORM),
    Database.MONGODB: (ORM.NONE, ORM.MONGOOSE, ORM.PRISMA),
}


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------

class AddOns(BaseModel):
    """Optional capabilities, each toggled independently of the framework."""

    model_config = ConfigDict(frozen=True)

    state_management: StateManagement = Field(default=StateManagement.NONE)
    ui_library: UILibrary = Field(default=UILibrary.NONE)
    database: Database = Field(default=Database.NONE)
    orm: ORM = Field(default=ORM.NONE)
    authentication: Authentication = Field(default=Authentication.NONE)
    testing: list[TestingFramework] = Field(
        default_factory=list, description="Test runners / tools (multi-select)"
    )
    libraries: list[str] = Field(
        default_factory=list, description="Extra npm packages added as dependencies"
    )
    features: list[Feature] = Field(
        default_factory=list, description="Linting, formatting, CI and container tooling"
    )


class ProjectConfig(BaseModel):
    """The resolved set of answers describing one project to create.

    Built once per invocation (interactively, from ``--yes`` defaults, or
    from a preset file) and read-only afterwards.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., description="npm package / directory name")
    project_type: ProjectType = Field(default=ProjectType.FRONTEND)
    framework: Framework = Field(default=Framework.REACT)
    language: Language = Field(default=Language.TYPESCRIPT)
    typescript_strictness: Optional[TypeScriptStrictness] = Field(default=None)
    folder_structure: FolderStructure = Field(default=FolderStructure.FEATURE_BASED)
    styling: Optional[Styling] = Field(default=None)
    add_ons: AddOns = Field(default_factory=AddOns)
    package_manager: PackageManager = Field(default=PackageManager.NPM)
    git_init: bool = Field(default=True)
    install_dependencies: bool = Field(default=True)

    @model_validator(mode="after")
    def _check_consistency(self) -> "ProjectConfig":
        allowed = FRAMEWORKS_BY_TYPE[self.project_type]
        if self.framework not in allowed:
            raise ValueError(
                f"framework '{self.framework.value}' is not available for "
                f"{self.project_type.value} projects "
                f"(choose from: {', '.join(f.value for f in allowed)})"
            )

        if self.language is Language.JAVASCRIPT and self.typescript_strictness is not None:
            raise ValueError("typescript_strictness is only valid for TypeScript projects")

        if self.project_type is not ProjectType.FRONTEND and self.styling is not None:
            raise ValueError("styling is only valid for frontend projects")

        structures = FOLDER_STRUCTURES_BY_TYPE[self.project_type]
        if self.folder_structure not in structures:
            raise ValueError(
                f"folder structure '{self.folder_structure.value}' is not available for "
                f"{self.project_type.value} projects"
            )

        orms = ORMS_BY_DATABASE[self.add_ons.database]
        if self.add_ons.orm not in orms:
            raise ValueError(
                f"ORM '{self.add_ons.orm.value}' cannot be used with database "
                f"'{self.add_ons.database.value}'"
            )
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def is_typescript(self) -> bool:
        return self.language is Language.TYPESCRIPT

    @property
    def source_extension(self) -> str:
        """``ts`` or ``js``, used for generated entry and barrel files."""
        return "ts" if self.is_typescript else "js"

    def summary(self) -> dict[str, str]:
        """Return a flat ``{label: value}`` mapping for the final report."""
        rows: dict[str, str] = {
            "Name": self.project_name,
            "Type": self.project_type.value,
            "Framework": self.framework.value,
            "Language": self.language.value,
        }
        if self.typescript_strictness is not None:
            rows["TypeScript"] = self.typescript_strictness.value
        rows["Folder structure"] = self.folder_structure.value
        if self.styling is not None:
            rows["Styling"] = self.styling.value

        add_ons = self.add_ons
        for label, value in (
            ("State management", add_ons.state_management),
            ("UI library", add_ons.ui_library),
            ("Database", add_ons.database),
            ("ORM", add_ons.orm),
            ("Authentication", add_ons.authentication),
        ):
            if value.value != "none":
                rows[label] = value.value
        if add_ons.testing:
            rows["Testing"] = ", ".join(t.value for t in add_ons.testing)
        if add_ons.libraries:
            rows["Libraries"] = ", ".join(add_ons.libraries)
        if add_ons.features:
            rows["Dev tools"] = ", ".join(f.value for f in add_ons.features)

        rows["Package manager"] = self.package_manager.value
        rows["Git"] = "yes" if self.git_init else "no"
        rows["Install"] = "yes" if self.install_dependencies else "no"
        return rows
