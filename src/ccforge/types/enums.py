"""Enumerations for the ccforge execution and recovery engine.

All enums inherit from str and Enum to support JSON serialization and
provide utility methods for validation and parsing.
"""

from enum import Enum
from typing import List, Optional


class RuntimeType(str, Enum):
    """Runtime families a hook script can be written for.

    Values:
        SHELL: POSIX shell script, executed directly (needs the executable bit)
        PYTHON: Python script, executed through the Python interpreter
        NODE: JavaScript module, executed through node
    """
    SHELL = "shell"
    PYTHON = "python"
    NODE = "node"

    @classmethod
    def from_string(cls, value: str) -> "RuntimeType":
        """Parse runtime type from string.

        Raises:
            ValueError: If value is not a supported runtime
        """
        try:
            return cls(value.lower())
        except ValueError:
            valid_values = [runtime.value for runtime in cls]
            raise ValueError(f"Invalid runtime type '{value}'. Valid values: {valid_values}")


class HookState(str, Enum):
    """Lifecycle state of a discovered hook.

    Discovered -> Validating -> {Enabled, Disabled}. Operators may toggle
    between Enabled and Disabled; nothing moves a hook back to Validating.
    """
    DISCOVERED = "discovered"
    VALIDATING = "validating"
    ENABLED = "enabled"
    DISABLED = "disabled"


class ValidationLevel(str, Enum):
    """Stages of the validation pipeline, in canonical order."""
    SYNTAX = "syntax"
    LINT = "lint"
    TESTS = "tests"
    BUILD = "build"
    COVERAGE = "coverage"
    SECURITY = "security"

    @classmethod
    def from_string(cls, value: str) -> "ValidationLevel":
        """Parse validation level from string.

        Raises:
            ValueError: If value is not a known level
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid validation level '{value}'. Valid values: {cls.get_all_levels()}"
            )

    @classmethod
    def get_all_levels(cls) -> List[str]:
        """Get all level names in pipeline order."""
        return [level.value for level in cls]

    @classmethod
    def get_default_levels(cls) -> List[str]:
        """Levels run when the caller does not choose any."""
        return [level.value for level in cls if level.is_critical_by_default()]

    def is_critical_by_default(self) -> bool:
        """Whether a failure at this level aborts the rest of the pipeline."""
        cls = type(self)
        return self in (cls.SYNTAX, cls.LINT, cls.TESTS, cls.BUILD)


class ErrorCategory(str, Enum):
    """Classification buckets produced by the error classifier."""
    PERMISSION = "permission"
    DEPENDENCY = "dependency"
    NETWORK = "network"
    CONFIGURATION = "configuration"
    UNKNOWN = "unknown"


class Severity(str, Enum):
    """Severity / priority scale shared by analyses and recovery actions."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key: lower rank is handled first."""
        return _SEVERITY_RANK[self]

    @classmethod
    def from_string(cls, value: Optional[str], default: "Severity" = None) -> "Severity":
        """Parse a severity, falling back to ``default`` when given."""
        try:
            return cls(str(value).lower())
        except ValueError:
            if default is not None:
                return default
            raise ValueError(f"Invalid severity '{value}'. Valid values: {[s.value for s in cls]}")


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MEDIUM: 2,
    Severity.LOW: 3,
}


class ActionType(str, Enum):
    """Remediation kinds the recovery orchestrator knows how to run."""
    FIX_PERMISSIONS = "fix_permissions"
    INSTALL_DEPENDENCY = "install_dependency"
    CREATE_DIRECTORY = "create_directory"
    RESET_CONFIG = "reset_config"
    MANUAL = "manual"

    def is_automatable(self) -> bool:
        """Manual actions are only ever displayed, never executed."""
        return self is not ActionType.MANUAL


class OutputFormat(str, Enum):
    """Output format options for CLI commands."""
    JSON = "json"
    TABLE = "table"

    @classmethod
    def get_all_formats(cls) -> List[str]:
        return [fmt.value for fmt in cls]
