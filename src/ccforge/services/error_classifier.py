"""Error classification.

Errors are matched against an ordered table of :class:`ClassificationRule`.
Each rule looks at three things: lower-cased indicator substrings in the
message, error codes (``EACCES``, ``MODULE_NOT_FOUND``...) as whole tokens,
and exception types, either on a live exception or named in traceback text.
The first matching rule decides the category; anything unmatched is
``unknown / medium / not auto-fixable``.

Classification is pure: the same error always yields the same analysis. The
stack location attached to an analysis is for display only and never
influences the category.
"""

import errno
import re
import traceback
from dataclasses import dataclass, field
from typing import List, Optional, Pattern, Tuple, Type, Union

from ..models.recovery import ErrorAnalysis, ErrorContext, ErrorLocation
from ..types.enums import ActionType, ErrorCategory, Severity

ErrorInput = Union[BaseException, str]

STACK_EXCERPT_LINES = 5

_PY_FRAME_RE = re.compile(r'File "(?P<file>[^"]+)", line (?P<line>\d+)')
_JS_FRAME_RE = re.compile(r"at (?:.*?\()?(?P<file>[^\s()]+?):(?P<line>\d+)(?::\d+)?\)?\s*$", re.MULTILINE)


@dataclass(frozen=True)
class ErrorFacts:
    """Normalised view of an error, computed once per analysis."""
    message: str
    text: str
    codes: Tuple[str, ...]
    frame: Optional[str] = None
    exception: Optional[BaseException] = None

    @property
    def lowered(self) -> str:
        return self.text.lower()


@dataclass(frozen=True)
class ClassificationRule:
    """One row of the classification table.

    Attributes:
        name: Rule identifier reported in the analysis
        category: Category assigned on match
        severity: Severity assigned on match
        auto_fixable: Whether the remedy can run unattended
        remedy: Recovery action type derived from this rule
        indicators: Lower-case substrings searched in the message
        error_codes: Codes matched as whole tokens (case-sensitive)
        exception_types: Exception classes matched by isinstance or by name
        patterns: Extra regular expressions (case-insensitive)
    """
    name: str
    category: ErrorCategory
    severity: Severity
    auto_fixable: bool
    remedy: ActionType
    indicators: Tuple[str, ...] = ()
    error_codes: Tuple[str, ...] = ()
    exception_types: Tuple[Type[BaseException], ...] = ()
    patterns: Tuple[Pattern, ...] = field(default=())

    @property
    def automated(self) -> bool:
        """Whether a match yields an action that runs unattended."""
        return self.auto_fixable and self.remedy.is_automatable()

    def matches(self, facts: ErrorFacts) -> bool:
        lowered = facts.lowered
        if any(indicator in lowered for indicator in self.indicators):
            return True
        if any(code in facts.codes for code in self.error_codes):
            return True
        for exc_type in self.exception_types:
            if facts.exception is not None and isinstance(facts.exception, exc_type):
                return True
            name_re = rf"\b{exc_type.__name__}\b"
            if re.search(name_re, facts.text) or (facts.frame and re.search(name_re, facts.frame)):
                return True
        return any(pattern.search(facts.text) for pattern in self.patterns)


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        name="permission",
        category=ErrorCategory.PERMISSION,
        severity=Severity.CRITICAL,
        auto_fixable=True,
        remedy=ActionType.FIX_PERMISSIONS,
        indicators=("permission denied", "operation not permitted", "access denied"),
        error_codes=("EACCES", "EPERM"),
        exception_types=(PermissionError,),
    ),
    ClassificationRule(
        name="dependency",
        category=ErrorCategory.DEPENDENCY,
        severity=Severity.HIGH,
        auto_fixable=True,
        remedy=ActionType.INSTALL_DEPENDENCY,
        indicators=("cannot find module", "no module named", "npm err!", "package not found"),
        error_codes=("MODULE_NOT_FOUND", "ERR_MODULE_NOT_FOUND"),
        exception_types=(ModuleNotFoundError, ImportError),
        patterns=(re.compile(r"\byarn\b.*\berror\b", re.IGNORECASE | re.DOTALL),),
    ),
    ClassificationRule(
        name="network",
        category=ErrorCategory.NETWORK,
        severity=Severity.MEDIUM,
        auto_fixable=False,
        remedy=ActionType.MANUAL,
        indicators=("getaddrinfo", "network", "fetch failed", "socket hang up", "timeout",
                    "timed out", "connection refused", "connection reset"),
        error_codes=("ENOTFOUND", "ECONNREFUSED", "ECONNRESET", "ETIMEDOUT", "EAI_AGAIN"),
        exception_types=(ConnectionError, TimeoutError),
    ),
    ClassificationRule(
        name="missing_path",
        category=ErrorCategory.CONFIGURATION,
        severity=Severity.HIGH,
        auto_fixable=True,
        remedy=ActionType.CREATE_DIRECTORY,
        indicators=("no such file or directory",),
        error_codes=("ENOENT",),
        exception_types=(FileNotFoundError,),
    ),
    ClassificationRule(
        name="configuration",
        category=ErrorCategory.CONFIGURATION,
        severity=Severity.MEDIUM,
        auto_fixable=True,
        remedy=ActionType.RESET_CONFIG,
        indicators=("config", "invalid json"),
    ),
    ClassificationRule(
        name="path_conflict",
        category=ErrorCategory.CONFIGURATION,
        severity=Severity.LOW,
        auto_fixable=False,
        remedy=ActionType.MANUAL,
        indicators=("file already exists",),
        error_codes=("EEXIST",),
        exception_types=(FileExistsError,),
    ),
    ClassificationRule(
        name="resource_exhausted",
        category=ErrorCategory.CONFIGURATION,
        severity=Severity.HIGH,
        auto_fixable=False,
        remedy=ActionType.MANUAL,
        indicators=("no space left on device", "too many open files"),
        error_codes=("ENOSPC", "EMFILE", "ENFILE"),
    ),
)


def _error_message(error: ErrorInput) -> str:
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return str(error)


def _extract_codes(text: str, error: ErrorInput) -> Tuple[str, ...]:
    codes = set(re.findall(r"\b[A-Z][A-Z_]{2,}\b", text))
    if isinstance(error, OSError) and error.errno in errno.errorcode:
        codes.add(errno.errorcode[error.errno])
    return tuple(sorted(codes))


def _traceback_text(error: ErrorInput) -> Optional[str]:
    if isinstance(error, BaseException):
        if error.__traceback__ is None:
            return None
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    text = str(error)
    if _PY_FRAME_RE.search(text) or _JS_FRAME_RE.search(text):
        return text
    return None


def _innermost_frame(error: ErrorInput, stack: Optional[str]) -> Optional[str]:
    """Text of the frame where the error was raised."""
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        frames = traceback.extract_tb(error.__traceback__)
        if frames:
            frame = frames[-1]
            return f'File "{frame.filename}", line {frame.lineno}, in {frame.name}\n{frame.line or ""}'
    if not stack:
        return None
    py_frames = list(_PY_FRAME_RE.finditer(stack))
    if py_frames:
        return py_frames[-1].group(0)
    js_frame = _JS_FRAME_RE.search(stack)
    return js_frame.group(0) if js_frame else None


def extract_location(error: ErrorInput) -> Optional[ErrorLocation]:
    """Best-effort ``file:line`` of the innermost frame.

    Python tracebacks list the innermost frame last, JavaScript stacks first.
    """
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        frames = traceback.extract_tb(error.__traceback__)
        if frames:
            return ErrorLocation(file=frames[-1].filename, line=frames[-1].lineno)

    stack = _traceback_text(error)
    if not stack:
        return None
    py_frames = list(_PY_FRAME_RE.finditer(stack))
    if py_frames:
        match = py_frames[-1]
        return ErrorLocation(file=match.group("file"), line=int(match.group("line")))
    match = _JS_FRAME_RE.search(stack)
    if match:
        return ErrorLocation(file=match.group("file"), line=int(match.group("line")))
    return None


class ErrorClassifier:
    """Matches errors against an ordered rule table.

    Args:
        rules: Rule table, evaluated in order; defaults to CLASSIFICATION_RULES
    """

    def __init__(self, rules: Optional[Tuple[ClassificationRule, ...]] = None):
        self.rules = tuple(rules) if rules is not None else CLASSIFICATION_RULES

    def facts_for(self, error: ErrorInput) -> ErrorFacts:
        message = _error_message(error)
        stack = _traceback_text(error)
        parts = [message]
        if isinstance(error, BaseException):
            parts.append(type(error).__name__)
        text = "\n".join(parts)
        return ErrorFacts(
            message=message,
            text=text,
            codes=_extract_codes(text, error),
            frame=_innermost_frame(error, stack),
            exception=error if isinstance(error, BaseException) else None,
        )

    def matching_rules(self, error: ErrorInput) -> List[ClassificationRule]:
        """Every rule that matches, in table order."""
        facts = self.facts_for(error)
        return [rule for rule in self.rules if rule.matches(facts)]

    def analyze(self, error: ErrorInput) -> ErrorAnalysis:
        """Classify an error. The first matching rule wins."""
        facts = self.facts_for(error)
        stack = _traceback_text(error)
        context = ErrorContext(
            stack_excerpt="\n".join(stack.strip().splitlines()[-STACK_EXCERPT_LINES:]) if stack else None,
            location=extract_location(error),
        )

        for rule in self.rules:
            if rule.matches(facts):
                return ErrorAnalysis(
                    category=rule.category,
                    severity=rule.severity,
                    auto_fixable=rule.automated,
                    message=facts.message,
                    rule=rule.name,
                    context=context,
                )

        return ErrorAnalysis(
            category=ErrorCategory.UNKNOWN,
            severity=Severity.MEDIUM,
            auto_fixable=False,
            message=facts.message,
            context=context,
        )


_default_classifier = ErrorClassifier()


def analyze(error: ErrorInput) -> ErrorAnalysis:
    """Classify an error with the default rule table."""
    return _default_classifier.analyze(error)


__all__ = [
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "ErrorClassifier",
    "ErrorFacts",
    "analyze",
    "extract_location",
]
