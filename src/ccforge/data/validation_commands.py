"""Validation command catalogue.

Maps technology stack identifiers to the commands each validation level runs,
and describes the levels themselves. The catalogue is read-only configuration;
projects override it through ``.ccforge/config.json``.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Union

from ..exceptions import InvalidArgumentError
from ..models.validation import ValidationCommandSet
from ..types.enums import ValidationLevel

TECH_STACK_VALIDATION_COMMANDS: Dict[str, ValidationCommandSet] = {
    # Frontend frameworks
    "nextjs": ValidationCommandSet(
        syntax=("npm run type-check", "npm run lint"),
        tests=("npm test -- --coverage",),
        build="npm run build",
        start="npm run dev",
        type_check="npm run type-check",
        lint="npm run lint",
        format="npm run format",
        coverage="npm test -- --coverage --watchAll=false",
        security=("npm audit", "next-secure-headers --check"),
    ),
    "react": ValidationCommandSet(
        syntax=("npm run type-check", "npm run lint"),
        tests=("npm test -- --coverage --watchAll=false",),
        build="npm run build",
        start="npm start",
        type_check="tsc --noEmit",
        lint="eslint src --ext .ts,.tsx",
        format='prettier --write "src/**/*.{ts,tsx}"',
        coverage="npm test -- --coverage --watchAll=false",
    ),
    "vue": ValidationCommandSet(
        syntax=("npm run type-check", "npm run lint"),
        tests=("npm run test:unit", "npm run test:coverage"),
        build="npm run build",
        start="npm run dev",
        type_check="vue-tsc --noEmit",
        lint="eslint . --ext .vue,.ts,.tsx",
        format='prettier --write "src/**/*.{vue,ts,tsx}"',
        coverage="vitest --coverage",
    ),
    "angular": ValidationCommandSet(
        syntax=("ng lint", "ng build --configuration development"),
        tests=("ng test --no-watch --code-coverage",),
        build="ng build --configuration production",
        start="ng serve",
        lint="ng lint",
        format='prettier --write "src/**/*.{ts,html,scss}"',
        coverage="ng test --no-watch --code-coverage",
        security=(
            "npm audit",
            "ng build --configuration production --stats-json"
            " && webpack-bundle-analyzer dist/stats.json",
        ),
    ),
    # Backend frameworks
    "express": ValidationCommandSet(
        syntax=("npm run type-check", "npm run lint"),
        tests=("npm test", "npm run test:integration"),
        build="npm run build",
        start="npm run dev",
        type_check="tsc --noEmit",
        lint="eslint src --ext .ts",
        format='prettier --write "src/**/*.ts"',
        coverage="jest --coverage",
        security=("npm audit", "npm run security:check"),
    ),
    "fastapi": ValidationCommandSet(
        syntax=("mypy app", "ruff check ."),
        tests=("pytest", "pytest --cov=app --cov-report=html"),
        build="python -m compileall app",
        start="uvicorn app.main:app --reload",
        lint="ruff check . --fix",
        format="black .",
        type_check="mypy app",
        coverage="pytest --cov=app --cov-report=term-missing",
        security=("bandit -r app", "safety check"),
    ),
    "django": ValidationCommandSet(
        syntax=("python manage.py check", "ruff check .", "mypy ."),
        tests=("python manage.py test", "pytest --cov"),
        build="python manage.py collectstatic --noinput",
        start="python manage.py runserver",
        lint="ruff check . --fix",
        format="black .",
        type_check="mypy .",
        coverage="pytest --cov --cov-report=html",
        security=("python manage.py check --deploy", "bandit -r . -ll", "safety check"),
    ),
    "spring": ValidationCommandSet(
        syntax=("mvn compile", "mvn checkstyle:check"),
        tests=("mvn test", "mvn verify"),
        build="mvn clean package",
        start="mvn spring-boot:run",
        lint="mvn checkstyle:check",
        format="mvn spotless:apply",
        coverage="mvn test jacoco:report",
        security=("mvn dependency-check:check", "mvn spotbugs:check"),
    ),
    "rails": ValidationCommandSet(
        syntax=("bundle exec rubocop", "rails zeitwerk:check"),
        tests=("bundle exec rspec", "rails test"),
        build="rails assets:precompile",
        start="rails server",
        lint="bundle exec rubocop",
        format="bundle exec rubocop -A",
        coverage="bundle exec rspec --format RspecJunitFormatter --out rspec.xml",
        security=("bundle exec brakeman", "bundle audit check"),
    ),
}

DEFAULT_VALIDATION_COMMANDS = ValidationCommandSet(
    syntax=("npm run lint", "npm run type-check"),
    tests=("npm test",),
    build="npm run build",
    start="npm start",
    lint="npm run lint",
    coverage="npm test -- --coverage",
)

VALIDATION_LEVELS: Dict[str, Dict[str, Union[str, bool]]] = {
    ValidationLevel.SYNTAX.value: {
        "name": "Syntax Check",
        "description": "Validates code syntax and type safety",
        "critical": True,
    },
    ValidationLevel.LINT.value: {
        "name": "Linting",
        "description": "Checks code style and potential errors",
        "critical": True,
    },
    ValidationLevel.TESTS.value: {
        "name": "Unit Tests",
        "description": "Runs unit and integration tests",
        "critical": True,
    },
    ValidationLevel.BUILD.value: {
        "name": "Build",
        "description": "Builds the project for production",
        "critical": True,
    },
    ValidationLevel.COVERAGE.value: {
        "name": "Test Coverage",
        "description": "Checks test coverage meets minimum requirements",
        "critical": False,
    },
    ValidationLevel.SECURITY.value: {
        "name": "Security Check",
        "description": "Scans for security vulnerabilities",
        "critical": False,
    },
}


def get_supported_stacks() -> List[str]:
    """Stack identifiers with a dedicated command set."""
    return sorted(TECH_STACK_VALIDATION_COMMANDS)


def get_validation_commands(tech_stack: Optional[Mapping[str, Optional[str]]] = None) -> ValidationCommandSet:
    """Pick the command set for a project's technology stack.

    The frontend framework wins over the backend one; when neither has a
    dedicated entry the generic npm command set is returned.
    """
    tech_stack = tech_stack or {}
    for key in ("frontend", "backend"):
        stack_id = tech_stack.get(key)
        if stack_id and stack_id.lower() in TECH_STACK_VALIDATION_COMMANDS:
            return TECH_STACK_VALIDATION_COMMANDS[stack_id.lower()]
    return DEFAULT_VALIDATION_COMMANDS


def resolve_levels(levels: Union[None, str, Iterable[str]] = None) -> List[ValidationLevel]:
    """Turn a level selection into an ordered list of levels.

    Args:
        levels: None for the default (critical) levels, ``"all"`` for every
            level in pipeline order, a comma-separated string or an iterable
            of level names. Explicit selections keep the caller's order;
            duplicates are dropped.

    Raises:
        InvalidArgumentError: If a level name is unknown or nothing was selected
    """
    if levels is None:
        return [ValidationLevel(name) for name in ValidationLevel.get_default_levels()]

    if isinstance(levels, str):
        if levels.strip().lower() == "all":
            return list(ValidationLevel)
        names = levels.split(",")
    else:
        names = list(levels)

    resolved: List[ValidationLevel] = []
    for name in names:
        if isinstance(name, ValidationLevel):
            level = name
        else:
            if not str(name).strip():
                continue
            try:
                level = ValidationLevel.from_string(str(name))
            except ValueError as e:
                raise InvalidArgumentError(
                    str(e),
                    argument_name="levels",
                    valid_values=ValidationLevel.get_all_levels(),
                ) from e
        if level not in resolved:
            resolved.append(level)

    if not resolved:
        raise InvalidArgumentError(
            "No validation levels selected",
            argument_name="levels",
            valid_values=ValidationLevel.get_all_levels(),
        )
    return resolved
