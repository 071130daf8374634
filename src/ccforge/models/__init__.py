"""Data model package for ccforge.

This package contains the dataclasses exchanged between the hook registry,
the validation pipeline runner, the recovery orchestrator and their callers.
"""

from .hook import HookDescriptor, HookExecutionResult, HookValidationOutcome
from .recovery import (
    ErrorAnalysis,
    ErrorContext,
    ErrorLocation,
    RecoveryAction,
    RecoveryOutcome,
    RecoveryReport,
    Suggestion,
)
from .validation import (
    ValidationCommandSet,
    ValidationReport,
    ValidationResult,
    ValidationSummary,
)

__all__ = [
    "HookDescriptor",
    "HookExecutionResult",
    "HookValidationOutcome",
    "ErrorAnalysis",
    "ErrorContext",
    "ErrorLocation",
    "RecoveryAction",
    "RecoveryOutcome",
    "RecoveryReport",
    "Suggestion",
    "ValidationCommandSet",
    "ValidationReport",
    "ValidationResult",
    "ValidationSummary",
]
