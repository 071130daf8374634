"""Recovery models: error analyses, recovery actions and their outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..types.enums import ActionType, ErrorCategory, Severity


@dataclass(frozen=True)
class ErrorLocation:
    """Best-effort source location extracted from a stack trace."""
    file: str
    line: Optional[int] = None

    def __str__(self) -> str:
        return f"{self.file}:{self.line}" if self.line is not None else self.file


@dataclass(frozen=True)
class ErrorContext:
    """Diagnostic context attached to an analysis. Never used for classification."""
    stack_excerpt: Optional[str] = None
    location: Optional[ErrorLocation] = None


@dataclass(frozen=True)
class ErrorAnalysis:
    """Classification of one error.

    Attributes:
        category: Taxonomy bucket
        severity: How urgent the error is
        auto_fixable: True when an automated remedy exists for the category
        message: Error message the classification was computed from
        rule: Name of the matching classification rule, None when unknown
        context: Stack excerpt and location for display
    """
    category: ErrorCategory
    severity: Severity
    auto_fixable: bool
    message: str = ""
    rule: Optional[str] = None
    context: ErrorContext = field(default_factory=ErrorContext)

    def to_dict(self) -> Dict[str, Any]:
        location = self.context.location
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "auto_fixable": self.auto_fixable,
            "message": self.message,
            "rule": self.rule,
            "location": str(location) if location else None,
        }


@dataclass
class RecoveryAction:
    """A concrete remediation derived from an error.

    ``action_type`` is normally an :class:`ActionType`; unknown strings are
    tolerated so that ``execute_action`` can report them instead of raising.
    """
    id: str
    action_type: Union[ActionType, str]
    title: str
    description: str
    priority: Severity
    automated: bool
    target: Optional[str] = None
    command: Optional[str] = None

    @property
    def type(self) -> str:
        """Plain string form of the action type."""
        if isinstance(self.action_type, ActionType):
            return self.action_type.value
        return str(self.action_type)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "automated": self.automated,
        }
        if self.target is not None:
            result["target"] = self.target
        if self.command is not None:
            result["command"] = self.command
        return result


@dataclass(frozen=True)
class RecoveryOutcome:
    """Result of executing one recovery action."""
    success: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message}


@dataclass(frozen=True)
class Suggestion:
    """Extra advice returned by an advisory provider."""
    title: str
    description: str
    priority: Severity = Severity.MEDIUM


@dataclass
class RecoveryReport:
    """Everything ``recover_from_error`` did for one error.

    Attributes:
        analysis: Classification of the error
        actions: All derived actions, in priority order
        attempted: Number of automated actions executed
        successful: Number of executed actions that succeeded
        outcomes: (action, outcome) pairs in execution order
        manual_actions: Non-automated actions left for the operator
    """
    analysis: ErrorAnalysis
    actions: List[RecoveryAction] = field(default_factory=list)
    attempted: int = 0
    successful: int = 0
    outcomes: List[Tuple[RecoveryAction, RecoveryOutcome]] = field(default_factory=list)
    manual_actions: List[RecoveryAction] = field(default_factory=list)

    def record(self, action: RecoveryAction, outcome: RecoveryOutcome) -> None:
        self.attempted += 1
        if outcome.success:
            self.successful += 1
        self.outcomes.append((action, outcome))

    @property
    def fully_recovered(self) -> bool:
        return self.attempted > 0 and self.successful == self.attempted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis.to_dict(),
            "attempted": self.attempted,
            "successful": self.successful,
            "outcomes": [
                {"action": action.to_dict(), "outcome": outcome.to_dict()}
                for action, outcome in self.outcomes
            ],
            "manual_actions": [action.to_dict() for action in self.manual_actions],
        }
