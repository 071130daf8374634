"""Service layer for ccforge.

Services:
- HookRegistry: discover, validate and execute hook scripts
- ValidationRunner: run validation levels against a project
- ErrorClassifier: classify errors with an ordered rule table
- RecoveryOrchestrator: derive and execute recovery actions
- report_generator: persist and summarise validation reports
"""

from .advisory import NullSuggestionProvider, SuggestionProvider
from .error_classifier import CLASSIFICATION_RULES, ClassificationRule, ErrorClassifier, analyze
from .hook_registry import HookRegistry, hook_id_for
from .hook_runtimes import HookRuntime, NodeRuntime, PythonRuntime, ShellRuntime
from .recovery_orchestrator import RecoveryOrchestrator
from .report_generator import generate_validation_summary, load_latest_report, load_report, save_report
from .validation_runner import CriticalLevelFailure, ValidationRunner

__all__ = [
    "NullSuggestionProvider",
    "SuggestionProvider",
    "CLASSIFICATION_RULES",
    "ClassificationRule",
    "ErrorClassifier",
    "analyze",
    "HookRegistry",
    "hook_id_for",
    "HookRuntime",
    "NodeRuntime",
    "PythonRuntime",
    "ShellRuntime",
    "RecoveryOrchestrator",
    "generate_validation_summary",
    "load_latest_report",
    "load_report",
    "save_report",
    "CriticalLevelFailure",
    "ValidationRunner",
]
