"""Validation models: command sets, per-command results and run reports.

This module contains the ValidationCommandSet, ValidationResult, ValidationSummary
and ValidationReport models used by the validation pipeline runner and the
report generator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..types.enums import ValidationLevel


def _field(data: Dict[str, Any], key: str, legacy_key: str) -> Any:
    """Artifact keys are camelCase; snake_case is accepted on read."""
    if key in data:
        return data[key]
    return data[legacy_key]


def _as_tuple(value: Optional[Sequence[str]]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class ValidationCommandSet:
    """Commands used to validate one technology stack.

    Multi-command levels (syntax, tests, security) hold tuples; single-command
    levels hold a string or None when the stack has nothing for that level.
    """
    syntax: Tuple[str, ...]
    tests: Tuple[str, ...]
    build: str
    start: str
    lint: Optional[str] = None
    coverage: Optional[str] = None
    security: Tuple[str, ...] = ()
    type_check: Optional[str] = None
    format: Optional[str] = None

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        for name in ("syntax", "tests", "security"):
            object.__setattr__(self, name, _as_tuple(getattr(self, name)))

    def commands_for(self, level: ValidationLevel) -> List[str]:
        """Get the ordered commands for a level (empty when not configured)."""
        value = getattr(self, ValidationLevel(level).value)
        if not value:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ValidationCommandSet:
        """Create a command set from configuration data (camelCase accepted)."""
        return cls(
            syntax=_as_tuple(data.get("syntax")),
            tests=_as_tuple(data.get("tests")),
            build=data.get("build", ""),
            start=data.get("start", ""),
            lint=data.get("lint"),
            coverage=data.get("coverage"),
            security=_as_tuple(data.get("security")),
            type_check=data.get("type_check", data.get("typeCheck")),
            format=data.get("format"),
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of one validation command.

    Skipped entries stand for a whole requested level that was never run
    because an earlier critical level failed.
    """
    level: str
    command: str
    success: bool
    duration_ms: int
    output: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False

    @property
    def failed(self) -> bool:
        return not self.success and not self.skipped

    @classmethod
    def skipped_level(cls, level: str, command: str = "") -> ValidationResult:
        return cls(level=level, command=command, success=False, duration_ms=0, skipped=True)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "level": self.level,
            "command": self.command,
            "success": self.success,
            "durationMs": self.duration_ms,
            "skipped": self.skipped,
        }
        if self.output is not None:
            result["output"] = self.output
        if self.error is not None:
            result["error"] = self.error
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ValidationResult:
        return cls(
            level=data["level"],
            command=data["command"],
            success=data["success"],
            duration_ms=_field(data, "durationMs", "duration_ms"),
            output=data.get("output"),
            error=data.get("error"),
            skipped=data.get("skipped", False),
        )


@dataclass(frozen=True)
class ValidationSummary:
    """Counts over the results of a run."""
    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_results(cls, results: Sequence[ValidationResult]) -> ValidationSummary:
        return cls(
            total=len(results),
            passed=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if r.failed),
            skipped=sum(1 for r in results if r.skipped),
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ValidationSummary:
        return cls(
            total=data.get("total", 0),
            passed=data.get("passed", 0),
            failed=data.get("failed", 0),
            skipped=data.get("skipped", 0),
        )


@dataclass(frozen=True)
class ValidationReport:
    """Immutable record of one validation run.

    Attributes:
        project_name: Name of the validated project
        timestamp: ISO-8601 creation time
        overall_success: True when no command failed
        results: Per-command results in execution order
        summary: Aggregated counts
    """
    project_name: str
    timestamp: str
    overall_success: bool
    results: Tuple[ValidationResult, ...] = field(default_factory=tuple)
    summary: ValidationSummary = field(default_factory=ValidationSummary)

    def __post_init__(self):
        object.__setattr__(self, "results", tuple(self.results))

    @classmethod
    def build(cls, project_name: str, timestamp: str,
              results: Sequence[ValidationResult]) -> ValidationReport:
        """Aggregate results into a report."""
        summary = ValidationSummary.from_results(results)
        return cls(
            project_name=project_name,
            timestamp=timestamp,
            overall_success=summary.failed == 0,
            results=tuple(results),
            summary=summary,
        )

    @property
    def failed_results(self) -> List[ValidationResult]:
        return [r for r in self.results if r.failed]

    @property
    def skipped_levels(self) -> List[str]:
        return [r.level for r in self.results if r.skipped]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectName": self.project_name,
            "timestamp": self.timestamp,
            "overallSuccess": self.overall_success,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ValidationReport:
        return cls(
            project_name=_field(data, "projectName", "project_name"),
            timestamp=data["timestamp"],
            overall_success=_field(data, "overallSuccess", "overall_success"),
            results=tuple(ValidationResult.from_dict(r) for r in data.get("results", [])),
            summary=ValidationSummary.from_dict(data.get("summary", {})),
        )
