"""Hook models: descriptors, validation outcomes and execution results."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..types.enums import RuntimeType

DEFAULT_HOOK_TIMEOUT_MS = 30000


@dataclass
class HookDescriptor:
    """A hook script found in the hook directory.

    Descriptors are created at discovery time and owned by the registry.
    ``enabled`` is the only attribute that changes after creation, and it is
    only ever changed by a single assignment.

    Attributes:
        id: Stable identifier derived from the resolved script path
        name: Lookup name (the file stem)
        runtime_type: Runtime used to execute the script
        path: Absolute path to the script
        enabled: Whether the hook may be executed
        timeout_ms: Execution timeout in milliseconds
        permissions: Free-form permission tags declared for the hook
    """
    id: str
    name: str
    runtime_type: RuntimeType
    path: Path
    enabled: bool = True
    timeout_ms: int = DEFAULT_HOOK_TIMEOUT_MS
    permissions: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be a positive integer")
        self.path = Path(self.path)
        if not isinstance(self.runtime_type, RuntimeType):
            self.runtime_type = RuntimeType.from_string(self.runtime_type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.runtime_type.value,
            "path": str(self.path),
            "enabled": self.enabled,
            "timeout_ms": self.timeout_ms,
            "permissions": list(self.permissions),
        }


@dataclass
class HookValidationOutcome:
    """Result of validating one hook.

    Attributes:
        hook_id: Identifier of the validated descriptor
        valid: False when the hook was disabled by validation
        warnings: Non-blocking remarks (e.g. probe timed out)
        reason: Why validation failed, when it did
    """
    hook_id: str
    valid: bool
    warnings: List[str] = field(default_factory=list)
    reason: Optional[str] = None

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def fail(self, reason: str) -> "HookValidationOutcome":
        self.valid = False
        self.reason = reason
        return self


@dataclass
class HookExecutionResult:
    """Outcome of a single hook invocation.

    ``duration_ms`` is recorded for every result, including failures that
    never started a process (zero in that case).
    """
    success: bool
    duration_ms: int
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    exit_code: Optional[int] = None
    error: Optional[str] = None
    timed_out: bool = False

    @classmethod
    def failure(cls, error: str, duration_ms: int = 0) -> HookExecutionResult:
        """Build a failure result for a hook that did not run."""
        return cls(success=False, duration_ms=duration_ms, error=error)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "success": self.success,
            "duration_ms": self.duration_ms,
            "timed_out": self.timed_out,
        }
        for key in ("stdout", "stderr", "exit_code", "error"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result
