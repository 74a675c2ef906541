"""The conditional question flow.

:func:`get_questions` returns an ordered list of :class:`Question` specs.
Each question's ``when`` predicate, choice set and default may depend on
answers given *earlier* in the list, never later, so walking the list top to
bottom yields a deterministic sequence for any set of answers.  The same
list drives the interactive prompts (:mod:`kickstart.prompts`), the ``--yes``
defaults and :func:`applicable_keys`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from kickstart.models import (
    FOLDER_STRUCTURES_BY_TYPE,
    FRAMEWORKS_BY_TYPE,
    ORMS_BY_DATABASE,
    AddOns,
    Authentication,
    Database,
    Feature,
    FolderStructure,
    Framework,
    Language,
    ORM,
    PackageManager,
    ProjectConfig,
    ProjectType,
    StateManagement,
    Styling,
    TestingFramework,
    TypeScriptStrictness,
    UILibrary,
)
from kickstart.validation import (
    check_directory_exists,
    suggest_project_name,
    validate_project_name,
)

Answers = dict[str, Any]


class QuestionKind(str, Enum):
    SELECT = "select"
    MULTI_SELECT = "multi-select"
    TEXT = "text"
    CONFIRM = "confirm"


@dataclass(frozen=True)
class Choice:
    value: str
    label: str


ChoiceSource = Union[list[Choice], Callable[[Answers], list[Choice]]]


def _always(answers: Answers) -> bool:
    return True


@dataclass
class Question:
    """One node of the question graph.

    ``choices`` and ``default`` may be plain values or callables receiving
    the answers collected so far.  ``validate`` returns an error message or
    ``None``; ``suggest`` maps a rejected value to a corrected one.
    """

    key: str
    kind: QuestionKind
    message: str
    choices: ChoiceSource = field(default_factory=list)
    default: Any = None
    when: Callable[[Answers], bool] = _always
    validate: Optional[Callable[[Any], Optional[str]]] = None
    suggest: Optional[Callable[[str], str]] = None

    def applies(self, answers: Answers) -> bool:
        return bool(self.when(answers))

    def choices_for(self, answers: Answers) -> list[Choice]:
        if callable(self.choices):
            return self.choices(answers)
        return list(self.choices)

    def default_for(self, answers: Answers) -> Any:
        if callable(self.default):
            return self.default(answers)
        if isinstance(self.default, list):
            return list(self.default)
        return self.default


# ---------------------------------------------------------------------------
# Choice tables
# ---------------------------------------------------------------------------

FRAMEWORK_LABELS: dict[Framework, str] = {
    Framework.REACT: "React (Vite)",
    Framework.VUE: "Vue",
    Framework.NEXTJS: "Next.js",
    Framework.NUXT: "Nuxt",
    Framework.SVELTE: "SvelteKit",
    Framework.VANILLA: "Vanilla",
    Framework.EXPRESS: "Express",
    Framework.NESTJS: "NestJS",
    Framework.FASTIFY: "Fastify",
    Framework.KOA: "Koa",
    Framework.HAPI: "Hapi",
    Framework.PLAIN: "Plain package",
}

DEFAULT_NAMES: dict[ProjectType, str] = {
    ProjectType.FRONTEND: "my-frontend-app",
    ProjectType.BACKEND: "my-backend-api",
    ProjectType.LIBRARY: "my-package",
}

COMMON_LIBRARIES: list[Choice] = [
    Choice("axios", "Axios (HTTP client)"),
    Choice("lodash", "Lodash (utilities)"),
    Choice("date-fns", "date-fns (dates)"),
    Choice("zod", "Zod (schema validation)"),
]

FRONTEND_LIBRARIES: list[Choice] = [
    Choice("clsx", "clsx (class names)"),
    Choice("nanoid", "nanoid (ids)"),
]

REACT_LIBRARIES: list[Choice] = [
    Choice("@tanstack/react-query", "TanStack Query (data fetching)"),
    Choice("react-hook-form", "React Hook Form (forms)"),
    Choice("framer-motion", "Framer Motion (animations)"),
]

BACKEND_LIBRARIES: list[Choice] = [
    Choice("dotenv", "dotenv (environment variables)"),
    Choice("cors", "cors (CORS middleware)"),
    Choice("bcrypt", "bcrypt (password hashing)"),
    Choice("winston", "Winston (logging)"),
]

LIBRARY_LIBRARIES: list[Choice] = [
    Choice("debug", "debug (debug logging)"),
    Choice("eventemitter3", "EventEmitter3 (events)"),
]

FEATURE_CHOICES: list[Choice] = [
    Choice(Feature.ESLINT.value, "ESLint (linting)"),
    Choice(Feature.PRETTIER.value, "Prettier (formatting)"),
    Choice(Feature.HUSKY.value, "Husky (git hooks)"),
    Choice(Feature.LINT_STAGED.value, "lint-staged (lint staged files)"),
    Choice(Feature.DOCKER.value, "Docker configuration"),
    Choice(Feature.GITHUB_ACTIONS.value, "GitHub Actions CI"),
    Choice(Feature.DOTENV.value, "Environment variables (.env)"),
    Choice(Feature.EDITORCONFIG.value, "EditorConfig"),
]

DEFAULT_FEATURES: list[str] = [
    Feature.ESLINT.value,
    Feature.PRETTIER.value,
    Feature.DOTENV.value,
    Feature.EDITORCONFIG.value,
]

_REACT_LIKE = {Framework.REACT.value, Framework.NEXTJS.value}
_VUE_LIKE = {Framework.VUE.value, Framework.NUXT.value}


def _choices(values: list[Enum] | tuple[Enum, ...], labels: dict[Any, str] | None = None) -> list[Choice]:
    labels = labels or {}
    return [Choice(v.value, labels.get(v, v.value)) for v in values]


def _is(project_type: ProjectType) -> Callable[[Answers], bool]:
    return lambda answers: answers.get("project_type") == project_type.value


def _frontend_or_backend(answers: Answers) -> bool:
    return answers.get("project_type") in (ProjectType.FRONTEND.value, ProjectType.BACKEND.value)


def _frontend_framework(answers: Answers) -> str:
    return answers.get("frontend_framework", Framework.REACT.value)


def _orm_choices(answers: Answers) -> list[Choice]:
    database = Database(answers.get("database", Database.NONE.value))
    return _choices(ORMS_BY_DATABASE[database])


def _orm_default(answers: Answers) -> str:
    choices = _orm_choices(answers)
    return choices[1].value if len(choices) > 1 else ORM.NONE.value


def _folder_choices(answers: Answers) -> list[Choice]:
    project_type = ProjectType(answers.get("project_type", ProjectType.FRONTEND.value))
    return _choices(FOLDER_STRUCTURES_BY_TYPE[project_type])


def _state_choices(answers: Answers) -> list[Choice]:
    framework = _frontend_framework(answers)
    if framework in _VUE_LIKE:
        options = [StateManagement.NONE, StateManagement.PINIA]
    elif framework in _REACT_LIKE:
        options = [
            StateManagement.NONE,
            StateManagement.REDUX_TOOLKIT,
            StateManagement.ZUSTAND,
            StateManagement.JOTAI,
        ]
    else:
        options = [StateManagement.NONE, StateManagement.ZUSTAND]
    return _choices(options)


def _ui_choices(answers: Answers) -> list[Choice]:
    framework = _frontend_framework(answers)
    tailwind = answers.get("styling") == Styling.TAILWIND.value
    options = [UILibrary.NONE]
    if framework in _REACT_LIKE:
        if tailwind:
            options.append(UILibrary.SHADCN)
        options += [UILibrary.MUI, UILibrary.ANTD, UILibrary.CHAKRA, UILibrary.MANTINE]
    if tailwind:
        options.append(UILibrary.DAISYUI)
    return _choices(options)


def _auth_choices(answers: Answers) -> list[Choice]:
    if answers.get("project_type") == ProjectType.BACKEND.value:
        options = [
            Authentication.NONE,
            Authentication.JWT,
            Authentication.PASSPORT,
            Authentication.LUCIA,
            Authentication.CLERK,
        ]
    else:
        options = [Authentication.NONE]
        if _frontend_framework(answers) == Framework.NEXTJS.value:
            options.append(Authentication.NEXTAUTH)
        options += [Authentication.CLERK, Authentication.SUPABASE, Authentication.AUTH0]
    return _choices(options)


def _testing_choices(answers: Answers) -> list[Choice]:
    options = [TestingFramework.VITEST, TestingFramework.JEST]
    if answers.get("project_type") == ProjectType.FRONTEND.value:
        options += [
            TestingFramework.TESTING_LIBRARY,
            TestingFramework.PLAYWRIGHT,
            TestingFramework.CYPRESS,
        ]
    return _choices(options)


def _library_choices(answers: Answers) -> list[Choice]:
    project_type = answers.get("project_type")
    choices = list(COMMON_LIBRARIES)
    if project_type == ProjectType.FRONTEND.value:
        choices += FRONTEND_LIBRARIES
        if _frontend_framework(answers) in _REACT_LIKE:
            choices += REACT_LIBRARIES
    elif project_type == ProjectType.BACKEND.value:
        choices += BACKEND_LIBRARIES
    elif project_type == ProjectType.LIBRARY.value:
        choices += LIBRARY_LIBRARIES
    return choices


def _default_name(answers: Answers) -> str:
    project_type = ProjectType(answers.get("project_type", ProjectType.FRONTEND.value))
    return DEFAULT_NAMES[project_type]


def _name_validator(base_dir: Optional[Path]) -> Callable[[Any], Optional[str]]:
    def validate(value: Any) -> Optional[str]:
        name = str(value or "")
        result = validate_project_name(name)
        if not result.valid:
            return f"{result.errors[0]} (suggestion: {suggest_project_name(name)})"
        if check_directory_exists(name, base_dir).exists:
            return f'Directory "{name}" already exists. Please choose a different name.'
        return None

    return validate


# ---------------------------------------------------------------------------
# The question graph
# ---------------------------------------------------------------------------


def get_questions(
    initial_name: Optional[str] = None,
    base_dir: Optional[Path] = None,
) -> list[Question]:
    """Return the ordered question graph.

    Args:
        initial_name: Project name given on the command line.  When set, the
            ``project_name`` question is left out entirely.
        base_dir: Directory the project will be created in, used for the
            "directory already exists" check on the name question.
    """
    questions: list[Question] = [
        Question(
            key="project_type",
            kind=QuestionKind.SELECT,
            message="What type of project do you want to create?",
            choices=[
                Choice(ProjectType.FRONTEND.value, "Frontend application"),
                Choice(ProjectType.BACKEND.value, "Backend API"),
                Choice(ProjectType.LIBRARY.value, "Node.js library / package"),
            ],
            default=ProjectType.FRONTEND.value,
        ),
    ]

    if not initial_name:
        questions.append(
            Question(
                key="project_name",
                kind=QuestionKind.TEXT,
                message="What is your project name?",
                default=_default_name,
                validate=_name_validator(base_dir),
                suggest=suggest_project_name,
            )
        )

    questions += [
        Question(
            key="frontend_framework",
            kind=QuestionKind.SELECT,
            message="Choose your frontend framework:",
            choices=_choices(FRAMEWORKS_BY_TYPE[ProjectType.FRONTEND], FRAMEWORK_LABELS),
            default=Framework.REACT.value,
            when=_is(ProjectType.FRONTEND),
        ),
        Question(
            key="backend_framework",
            kind=QuestionKind.SELECT,
            message="Choose your backend framework:",
            choices=_choices(FRAMEWORKS_BY_TYPE[ProjectType.BACKEND], FRAMEWORK_LABELS),
            default=Framework.EXPRESS.value,
            when=_is(ProjectType.BACKEND),
        ),
        Question(
            key="database",
            kind=QuestionKind.SELECT,
            message="Choose your database:",
            choices=_choices(list(Database)),
            default=Database.NONE.value,
            when=_is(ProjectType.BACKEND),
        ),
        Question(
            key="orm",
            kind=QuestionKind.SELECT,
            message="Choose an ORM / ODM:",
            choices=_orm_choices,
            default=_orm_default,
            when=lambda a: (
                a.get("project_type") == ProjectType.BACKEND.value
                and a.get("database", Database.NONE.value) != Database.NONE.value
            ),
        ),
        Question(
            key="language",
            kind=QuestionKind.SELECT,
            message="Choose your language:",
            choices=[
                Choice(Language.TYPESCRIPT.value, "TypeScript (recommended)"),
                Choice(Language.JAVASCRIPT.value, "JavaScript"),
            ],
            default=Language.TYPESCRIPT.value,
        ),
        Question(
            key="typescript_strictness",
            kind=QuestionKind.SELECT,
            message="TypeScript strictness level:",
            choices=[
                Choice(TypeScriptStrictness.STRICT.value, "Strict (recommended)"),
                Choice(TypeScriptStrictness.MODERATE.value, "Moderate"),
                Choice(TypeScriptStrictness.RELAXED.value, "Relaxed"),
            ],
            default=TypeScriptStrictness.STRICT.value,
            when=lambda a: a.get("language") == Language.TYPESCRIPT.value,
        ),
        Question(
            key="folder_structure",
            kind=QuestionKind.SELECT,
            message="Choose your folder structure:",
            choices=_folder_choices,
            default=lambda a: _folder_choices(a)[0].value,
            when=_frontend_or_backend,
        ),
        Question(
            key="styling",
            kind=QuestionKind.SELECT,
            message="Choose your styling solution:",
            choices=_choices(list(Styling)),
            default=Styling.TAILWIND.value,
            when=_is(ProjectType.FRONTEND),
        ),
        Question(
            key="state_management",
            kind=QuestionKind.SELECT,
            message="Choose a state management library:",
            choices=_state_choices,
            default=StateManagement.NONE.value,
            when=_is(ProjectType.FRONTEND),
        ),
        Question(
            key="ui_library",
            kind=QuestionKind.SELECT,
            message="Choose a UI component library:",
            choices=_ui_choices,
            default=UILibrary.NONE.value,
            when=_is(ProjectType.FRONTEND),
        ),
        Question(
            key="authentication",
            kind=QuestionKind.SELECT,
            message="Choose an authentication solution:",
            choices=_auth_choices,
            default=Authentication.NONE.value,
            when=_frontend_or_backend,
        ),
        Question(
            key="testing",
            kind=QuestionKind.MULTI_SELECT,
            message="Select testing tools:",
            choices=_testing_choices,
            default=[],
        ),
        Question(
            key="libraries",
            kind=QuestionKind.MULTI_SELECT,
            message="Select additional libraries:",
            choices=_library_choices,
            default=[],
        ),
        Question(
            key="features",
            kind=QuestionKind.MULTI_SELECT,
            message="Select development tools:",
            choices=FEATURE_CHOICES,
            default=DEFAULT_FEATURES,
        ),
        Question(
            key="package_manager",
            kind=QuestionKind.SELECT,
            message="Choose your package manager:",
            choices=_choices(list(PackageManager)),
            default=PackageManager.NPM.value,
        ),
        Question(
            key="git_init",
            kind=QuestionKind.CONFIRM,
            message="Initialize a git repository?",
            default=True,
        ),
    ]
    return questions


# ---------------------------------------------------------------------------
# Walking the graph
# ---------------------------------------------------------------------------


def applicable_keys(answers: Answers, questions: list[Question] | None = None) -> list[str]:
    """Return the keys that would be asked, in order, for *answers*.

    Predicates are evaluated against the answers accumulated so far; a key
    that applies but has no answer contributes its default to the prefix.
    """
    questions = questions if questions is not None else get_questions()
    prefix: Answers = {}
    keys: list[str] = []
    for question in questions:
        if not question.applies(prefix):
            continue
        keys.append(question.key)
        prefix[question.key] = (
            answers[question.key] if question.key in answers else question.default_for(prefix)
        )
    return keys


def default_answers(
    overrides: Answers | None = None,
    questions: list[Question] | None = None,
) -> Answers:
    """Answer every applicable question with its default (the ``--yes`` path).

    *overrides* pin individual keys (e.g. from CLI flags); they take part in
    later predicates exactly as interactive answers would.
    """
    overrides = dict(overrides or {})
    questions = questions if questions is not None else get_questions(overrides.get("project_name"))
    answers: Answers = {}
    for question in questions:
        if not question.applies(answers):
            continue
        if question.key in overrides:
            answers[question.key] = overrides[question.key]
        else:
            answers[question.key] = question.default_for(answers)

    # Keys outside the graph (e.g. a name given on the command line).
    for key, value in overrides.items():
        answers.setdefault(key, value)
    return answers


def project_type_for(framework: Framework | str) -> ProjectType:
    """Return the project type a framework belongs to."""
    fw = Framework(framework)
    for project_type, frameworks in FRAMEWORKS_BY_TYPE.items():
        if fw in frameworks:
            return project_type
    raise ValueError(f"Unknown framework: {framework}")


def build_config(
    answers: Answers,
    *,
    project_name: Optional[str] = None,
    install_dependencies: bool = True,
    git_init: Optional[bool] = None,
) -> ProjectConfig:
    """Turn a flat answers mapping into a validated :class:`ProjectConfig`.

    Keys that were not asked fall back to the values that make sense for the
    project type (e.g. libraries are always ``plain`` + ``flat``).

    Raises:
        pydantic.ValidationError: If the answers are inconsistent.
    """
    project_type = ProjectType(answers.get("project_type", ProjectType.FRONTEND.value))

    if project_type is ProjectType.FRONTEND:
        framework = Framework(answers.get("frontend_framework", Framework.REACT.value))
    elif project_type is ProjectType.BACKEND:
        framework = Framework(answers.get("backend_framework", Framework.EXPRESS.value))
    else:
        framework = Framework.PLAIN

    language = Language(answers.get("language", Language.TYPESCRIPT.value))
    strictness = None
    if language is Language.TYPESCRIPT:
        strictness = TypeScriptStrictness(
            answers.get("typescript_strictness") or TypeScriptStrictness.STRICT.value
        )

    if project_type is ProjectType.LIBRARY:
        folder_structure = FolderStructure.FLAT
    else:
        folder_structure = FolderStructure(
            answers.get("folder_structure") or FOLDER_STRUCTURES_BY_TYPE[project_type][0].value
        )

    styling = None
    if project_type is ProjectType.FRONTEND:
        styling = Styling(answers.get("styling", Styling.TAILWIND.value))

    add_ons = AddOns(
        state_management=answers.get("state_management", StateManagement.NONE.value),
        ui_library=answers.get("ui_library", UILibrary.NONE.value),
        database=answers.get("database", Database.NONE.value),
        orm=answers.get("orm", ORM.NONE.value),
        authentication=answers.get("authentication", Authentication.NONE.value),
        testing=list(answers.get("testing") or []),
        libraries=list(answers.get("libraries") or []),
        features=list(answers.get("features") or []),
    )

    wants_git = bool(answers.get("git_init", True))
    if git_init is not None:
        wants_git = wants_git and git_init

    return ProjectConfig(
        project_name=project_name or answers.get("project_name") or "",
        project_type=project_type,
        framework=framework,
        language=language,
        typescript_strictness=strictness,
        folder_structure=folder_structure,
        styling=styling,
        add_ons=add_ons,
        package_manager=PackageManager(answers.get("package_manager", PackageManager.NPM.value)),
        git_init=wants_git,
        install_dependencies=install_dependencies,
    )
