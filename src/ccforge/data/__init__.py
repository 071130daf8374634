"""Static data shipped with ccforge."""

from .validation_commands import (
    DEFAULT_VALIDATION_COMMANDS,
    TECH_STACK_VALIDATION_COMMANDS,
    VALIDATION_LEVELS,
    get_supported_stacks,
    get_validation_commands,
    resolve_levels,
)

__all__ = [
    "DEFAULT_VALIDATION_COMMANDS",
    "TECH_STACK_VALIDATION_COMMANDS",
    "VALIDATION_LEVELS",
    "get_supported_stacks",
    "get_validation_commands",
    "resolve_levels",
]
