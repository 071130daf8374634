"""Exception hierarchy for ccforge.

Only caller mistakes and unreadable inputs are raised as exceptions. Subprocess
failures, hook failures and recovery failures are reported through result
objects instead (see ``ccforge.models``).

Hierarchy:
- CCForgeError
  - ConfigurationError: project configuration missing or malformed
  - InvalidArgumentError: bad level names, runtime names, CLI arguments
  - ReportError: a persisted validation report cannot be read
"""

import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class CCForgeError(Exception):
    """Base exception for all ccforge errors.

    Attributes:
        message: Human readable error message
        error_code: Standardized error code (format: CATEGORY_SPECIFIC_CODE)
        suggested_fix: Hint shown to the operator
        context: Extra context collected where the error was raised
        original_error: Wrapped lower-level exception, if any
        error_id: Short unique identifier for log correlation
        timestamp: When the error was created
    """

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        suggested_fix: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.suggested_fix = suggested_fix
        self.context = context or {}
        self.original_error = original_error
        self.error_id = str(uuid.uuid4())[:8]
        self.timestamp = datetime.now()

    def get_user_message(self) -> str:
        """Get the operator-facing message, including the suggested fix."""
        user_msg = f"{self.message} (error id: {self.error_id})"
        if self.suggested_fix:
            user_msg += f"\n\nSuggested fix:\n{self.suggested_fix}"
        return user_msg


class ConfigurationError(CCForgeError):
    """Project configuration is missing, unreadable or invalid."""

    def __init__(self, message: str, config_path: Union[str, Path, None] = None, **kwargs):
        self.config_path = Path(config_path) if config_path else None
        kwargs.setdefault("error_code", "USER_CONFIG_INVALID")
        kwargs.setdefault(
            "suggested_fix",
            "Check the configuration file format and make sure all required fields are set",
        )
        if self.config_path:
            kwargs.setdefault("context", {}).update({"config_path": str(self.config_path)})
        super().__init__(message, **kwargs)


class InvalidArgumentError(CCForgeError):
    """Invalid argument supplied by the caller."""

    def __init__(
        self,
        message: str,
        argument_name: Optional[str] = None,
        valid_values: Optional[List[str]] = None,
        **kwargs,
    ):
        self.argument_name = argument_name
        self.valid_values = valid_values or []
        kwargs.setdefault("error_code", "USER_INVALID_ARGUMENT")

        suggested_fix = "Check the command arguments"
        if self.argument_name:
            suggested_fix += f"; '{self.argument_name}'"
        if self.valid_values:
            suggested_fix += f" must be one of: {', '.join(self.valid_values)}"
        kwargs.setdefault("suggested_fix", suggested_fix)

        context = kwargs.setdefault("context", {})
        if self.argument_name:
            context["argument_name"] = self.argument_name
        if self.valid_values:
            context["valid_values"] = self.valid_values

        super().__init__(message, **kwargs)


class ReportError(CCForgeError):
    """A persisted validation report could not be read or parsed."""

    def __init__(self, message: str, report_path: Union[str, Path, None] = None, **kwargs):
        self.report_path = Path(report_path) if report_path else None
        kwargs.setdefault("error_code", "SYSTEM_REPORT_UNREADABLE")
        kwargs.setdefault("suggested_fix", "Re-run the validation to produce a fresh report")
        if self.report_path:
            kwargs.setdefault("context", {}).update({"report_path": str(self.report_path)})
        super().__init__(message, **kwargs)


__all__ = [
    "CCForgeError",
    "ConfigurationError",
    "InvalidArgumentError",
    "ReportError",
]
