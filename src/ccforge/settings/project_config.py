"""Project configuration loading.

A project is configured by ``<project>/.ccforge/config.json``. The file is
read-only from the engine's point of view except for ``reset_config`` recovery,
which rewrites it with :func:`default_config_data`.

Environment overrides:
- CCFORGE_HOOK_DIR: hook directory, wins over the config file
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..exceptions import ConfigurationError
from ..models.hook import DEFAULT_HOOK_TIMEOUT_MS
from ..models.validation import ValidationCommandSet
from ..utils.file_operations import FileOperationError, read_json_file

CONFIG_DIR = ".ccforge"
CONFIG_FILE = "config.json"
CONFIG_VERSION = "1.0"
HOOK_DIR_ENV = "CCFORGE_HOOK_DIR"

DEFAULT_COMMAND_TIMEOUT_MS = 300000


def get_config_path(project_path: Union[str, Path]) -> Path:
    return Path(project_path) / CONFIG_DIR / CONFIG_FILE


def default_hook_directory() -> Path:
    """Hook directory used when neither the environment nor the config names one."""
    env_dir = os.getenv(HOOK_DIR_ENV)
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".claude" / "hooks"


def default_config_data(project_name: str) -> Dict[str, Any]:
    """Content written by a configuration reset."""
    return {
        "version": CONFIG_VERSION,
        "project_name": project_name,
        "tech_stack": {},
        "validation_levels": None,
        "hook_timeout_ms": DEFAULT_HOOK_TIMEOUT_MS,
        "command_timeout_ms": DEFAULT_COMMAND_TIMEOUT_MS,
    }


@dataclass
class ProjectConfig:
    """Settings the engine reads for one project.

    Attributes:
        project_name: Name shown in reports
        project_path: Project root directory
        tech_stack: Stack identifiers, e.g. {"frontend": "react", "backend": "fastapi"}
        hook_directory: Directory scanned for hooks, None for the default
        validation_levels: Levels run when the caller selects none
        hook_timeout_ms: Timeout applied to every discovered hook
        command_timeout_ms: Timeout applied to every validation command
        validation_commands: Project-specific command set overriding the catalogue
    """
    project_name: str
    project_path: Path
    tech_stack: Dict[str, str] = field(default_factory=dict)
    hook_directory: Optional[Path] = None
    validation_levels: Optional[List[str]] = None
    hook_timeout_ms: int = DEFAULT_HOOK_TIMEOUT_MS
    command_timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS
    validation_commands: Optional[ValidationCommandSet] = None

    def resolve_hook_directory(self) -> Path:
        """The environment wins, then the config file, then ~/.claude/hooks."""
        if os.getenv(HOOK_DIR_ENV):
            return default_hook_directory()
        if self.hook_directory is not None:
            return self.hook_directory
        return default_hook_directory()

    @classmethod
    def defaults(cls, project_path: Union[str, Path]) -> "ProjectConfig":
        path = Path(project_path).resolve()
        return cls(project_name=path.name, project_path=path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], project_path: Union[str, Path],
                  config_path: Optional[Path] = None) -> "ProjectConfig":
        """Build a config from parsed JSON, accepting camelCase keys.

        Raises:
            ConfigurationError: If a field has the wrong type
        """
        path = Path(project_path).resolve()

        def pick(snake: str, camel: str, default: Any = None) -> Any:
            return data.get(snake, data.get(camel, default))

        tech_stack = pick("tech_stack", "techStack", {}) or {}
        if not isinstance(tech_stack, dict):
            raise ConfigurationError("'tech_stack' must be an object", config_path=config_path)

        levels = pick("validation_levels", "validationLevels")
        if levels is not None and not (
                isinstance(levels, list) and all(isinstance(v, str) for v in levels)):
            raise ConfigurationError("'validation_levels' must be a list of level names",
                                     config_path=config_path)

        timeouts = {}
        for snake, camel, default in (
            ("hook_timeout_ms", "hookTimeoutMs", DEFAULT_HOOK_TIMEOUT_MS),
            ("command_timeout_ms", "commandTimeoutMs", DEFAULT_COMMAND_TIMEOUT_MS),
        ):
            value = pick(snake, camel, default)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"'{snake}' must be a positive integer",
                                         config_path=config_path)
            timeouts[snake] = value

        hook_dir = pick("hook_directory", "hookDirectory")
        hook_directory = None
        if hook_dir:
            hook_directory = Path(hook_dir).expanduser()
            if not hook_directory.is_absolute():
                hook_directory = path / hook_directory

        commands = pick("validation_commands", "validationCommands")
        command_set = None
        if commands is not None:
            if not isinstance(commands, dict):
                raise ConfigurationError("'validation_commands' must be an object",
                                         config_path=config_path)
            command_set = ValidationCommandSet.from_dict(commands)

        return cls(
            project_name=pick("project_name", "projectName") or path.name,
            project_path=path,
            tech_stack={k: v for k, v in tech_stack.items() if isinstance(v, str)},
            hook_directory=hook_directory,
            validation_levels=levels,
            validation_commands=command_set,
            **timeouts,
        )


def load_project_config(project_path: Union[str, Path]) -> ProjectConfig:
    """Load ``<project>/.ccforge/config.json``.

    Raises:
        ConfigurationError: If the file is missing, unreadable or malformed
    """
    config_path = get_config_path(project_path)
    try:
        data = read_json_file(config_path)
    except FileOperationError as e:
        raise ConfigurationError(
            f"Cannot load project configuration: {e.message}",
            config_path=config_path,
            original_error=e,
        ) from e
    return ProjectConfig.from_dict(data, project_path, config_path=config_path)


def load_project_config_or_default(project_path: Union[str, Path]) -> ProjectConfig:
    """Like :func:`load_project_config`, but a missing file yields defaults.

    A file that exists but is malformed still raises ConfigurationError.
    """
    if not get_config_path(project_path).exists():
        return ProjectConfig.defaults(project_path)
    return load_project_config(project_path)
