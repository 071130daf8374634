"""Project configuration for ccforge."""

from .project_config import (
    CONFIG_DIR,
    CONFIG_FILE,
    CONFIG_VERSION,
    DEFAULT_COMMAND_TIMEOUT_MS,
    ProjectConfig,
    default_config_data,
    default_hook_directory,
    get_config_path,
    load_project_config,
    load_project_config_or_default,
)

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "CONFIG_VERSION",
    "DEFAULT_COMMAND_TIMEOUT_MS",
    "ProjectConfig",
    "default_config_data",
    "default_hook_directory",
    "get_config_path",
    "load_project_config",
    "load_project_config_or_default",
]
