"""ccforge: hook execution, validation pipelines and failure recovery.

Basic Usage:
    from ccforge import HookRegistry, ValidationRunner, RecoveryOrchestrator

    registry = HookRegistry("~/.claude/hooks")
    registry.initialize()
    result = registry.execute("pre-commit", ["--verbose"])

    orchestrator = RecoveryOrchestrator()
    report = orchestrator.recover_from_error(error, "/path/to/project")
"""

__version__ = "1.0.0"

from .exceptions import (
    CCForgeError,
    ConfigurationError,
    InvalidArgumentError,
    ReportError,
)
from .models import (
    ErrorAnalysis,
    HookDescriptor,
    HookExecutionResult,
    RecoveryAction,
    RecoveryReport,
    ValidationReport,
    ValidationResult,
)
from .services import (
    ErrorClassifier,
    HookRegistry,
    RecoveryOrchestrator,
    ValidationRunner,
)
from .types import (
    ActionType,
    ErrorCategory,
    HookState,
    RuntimeType,
    Severity,
    ValidationLevel,
)

__all__ = [
    "__version__",
    # Exceptions
    "CCForgeError",
    "ConfigurationError",
    "InvalidArgumentError",
    "ReportError",
    # Models
    "ErrorAnalysis",
    "HookDescriptor",
    "HookExecutionResult",
    "RecoveryAction",
    "RecoveryReport",
    "ValidationReport",
    "ValidationResult",
    # Services
    "ErrorClassifier",
    "HookRegistry",
    "RecoveryOrchestrator",
    "ValidationRunner",
    # Enums
    "ActionType",
    "ErrorCategory",
    "HookState",
    "RuntimeType",
    "Severity",
    "ValidationLevel",
]
