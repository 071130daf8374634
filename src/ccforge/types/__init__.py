"""Type definitions package for ccforge."""

from .enums import (
    ActionType,
    ErrorCategory,
    HookState,
    OutputFormat,
    RuntimeType,
    Severity,
    ValidationLevel,
)

__all__ = [
    "ActionType",
    "ErrorCategory",
    "HookState",
    "OutputFormat",
    "RuntimeType",
    "Severity",
    "ValidationLevel",
]
