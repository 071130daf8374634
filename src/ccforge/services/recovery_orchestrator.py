"""Recovery orchestration: turn a classified error into remediation.

``recover_from_error`` runs the whole flow:

1. classify the error (:mod:`.error_classifier`)
2. derive an automated action from the winning rule; other matching rules
   only contribute manual steps
3. execute every automated action in priority order, each at most once
4. collect non-automated actions, plus any advisory suggestions, as manual steps

By default every automated action is attempted even after one succeeds;
``stop_after_first_success=True`` opts into short-circuiting.

Action handlers never raise. They are idempotent: running one when the
condition is already gone (directory exists, target removed) reports success.
"""

import os
import re
import shlex
import shutil
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

from ..models.recovery import ErrorAnalysis, RecoveryAction, RecoveryOutcome, RecoveryReport, Suggestion
from ..settings.project_config import CONFIG_DIR, default_config_data, get_config_path
from ..types.enums import ActionType, ErrorCategory
from ..utils.file_operations import FileOperationError, read_json_file, write_json_file
from ..utils.logging import get_logger
from ..utils.permissions import fix_permissions
from ..utils.process import run_process
from .advisory import NullSuggestionProvider, SuggestionProvider
from .error_classifier import ClassificationRule, ErrorClassifier, ErrorInput

T = TypeVar("T")

DEFAULT_INSTALL_TIMEOUT_MS = 10 * 60 * 1000

CACHE_DIRECTORIES = (
    Path(CONFIG_DIR) / "cache",
    Path("node_modules") / ".cache",
)

_QUOTED_PATH_RE = re.compile(r"""['"](?P<path>[^'"]*[/\\][^'"]*)['"]""")
_BARE_PATH_RE = re.compile(r"(?:^|\s)(?P<path>/[^\s,:'\"]+)")
_MODULE_RE = re.compile(r"""(?:cannot find module|no module named)\s+['"]?(?P<name>[^'"\s]+)""", re.IGNORECASE)

ActionHandler = Callable[[RecoveryAction], RecoveryOutcome]


def extract_path(error: ErrorInput) -> Optional[str]:
    """Path named by an error, if any.

    OSError subclasses carry it in ``filename``; otherwise the first quoted
    path, then the first absolute path in the message, is used.
    """
    if isinstance(error, OSError) and error.filename:
        return os.fsdecode(error.filename)
    message = str(error)
    match = _QUOTED_PATH_RE.search(message) or _BARE_PATH_RE.search(message)
    return match.group("path") if match else None


def detect_install_command(project_path: Path) -> Optional[str]:
    """Install command for the dependency manifest found in ``project_path``."""
    if (project_path / "package.json").exists():
        if (project_path / "yarn.lock").exists():
            return "yarn install"
        if (project_path / "pnpm-lock.yaml").exists():
            return "pnpm install"
        return "npm install"
    python = shlex.quote(sys.executable or "python3")
    if (project_path / "requirements.txt").exists():
        return f"{python} -m pip install -r requirements.txt"
    if (project_path / "pyproject.toml").exists() or (project_path / "setup.py").exists():
        return f"{python} -m pip install -e ."
    if (project_path / "Gemfile").exists():
        return "bundle install"
    return None


class RecoveryOrchestrator:
    """Derives and runs recovery actions for classified errors.

    Args:
        classifier: Error classifier; defaults to the standard rule table
        suggestion_provider: Optional advisory collaborator
        install_timeout_ms: Timeout for dependency installation commands
        stop_after_first_success: Default short-circuit policy
    """

    def __init__(self, classifier: Optional[ErrorClassifier] = None,
                 suggestion_provider: Optional[SuggestionProvider] = None,
                 install_timeout_ms: int = DEFAULT_INSTALL_TIMEOUT_MS,
                 stop_after_first_success: bool = False):
        self.classifier = classifier or ErrorClassifier()
        self.suggestion_provider = suggestion_provider or NullSuggestionProvider()
        self.install_timeout_ms = install_timeout_ms
        self.stop_after_first_success = stop_after_first_success
        self._logger = get_logger()

        self._handlers: Dict[ActionType, ActionHandler] = {}
        self._register_default_handlers()

    def _register_default_handlers(self) -> None:
        self._handlers = {
            ActionType.FIX_PERMISSIONS: self._fix_permissions,
            ActionType.INSTALL_DEPENDENCY: self._install_dependency,
            ActionType.CREATE_DIRECTORY: self._create_directory,
            ActionType.RESET_CONFIG: self._reset_config,
            ActionType.MANUAL: self._manual,
        }

    def register_handler(self, action_type: ActionType, handler: ActionHandler) -> None:
        """Replace the handler for one action type."""
        self._handlers[action_type] = handler
        self._logger.debug(f"Registered recovery handler: {action_type.value}")

    # ---- action derivation ----

    def analyze(self, error: ErrorInput) -> ErrorAnalysis:
        return self.classifier.analyze(error)

    def get_recovery_actions(self, error: ErrorInput,
                             target_path: Union[str, Path]) -> List[RecoveryAction]:
        """Prioritized actions for an error.

        Only the winning rule yields an automated action. Other matching rules
        are listed as manual steps so nothing the classification did not ask
        for runs unattended.
        """
        target_path = Path(target_path)
        rules = self.classifier.matching_rules(error)
        if not rules:
            return []

        primary = self._build_action(rules[0], error, target_path)
        actions: List[RecoveryAction] = [primary]
        seen = {primary.id}
        for rule in rules[1:]:
            action = self._build_action(rule, error, target_path)
            if action.automated:
                action = replace(
                    action,
                    id=f"manual-{rule.name}",
                    action_type=ActionType.MANUAL,
                    description=f"{action.description} (not run automatically)",
                    automated=False,
                )
            if action.id in seen:
                continue
            seen.add(action.id)
            actions.append(action)
        return sorted(actions, key=lambda a: a.priority.rank)

    def _build_action(self, rule: ClassificationRule, error: ErrorInput,
                      target_path: Path) -> RecoveryAction:
        affected = extract_path(error)
        affected_path = target_path / affected if affected else None

        if rule.remedy == ActionType.FIX_PERMISSIONS:
            target = affected_path or target_path
            return RecoveryAction(
                id="fix-permissions",
                action_type=ActionType.FIX_PERMISSIONS,
                title="Fix file permissions",
                description=f"Grant the current user read/write access to {target}",
                priority=rule.severity,
                automated=rule.automated,
                target=str(target),
            )

        if rule.remedy == ActionType.INSTALL_DEPENDENCY:
            match = _MODULE_RE.search(str(error))
            missing = f" ('{match.group('name')}' is missing)" if match else ""
            return RecoveryAction(
                id="install-dependencies",
                action_type=ActionType.INSTALL_DEPENDENCY,
                title="Install missing dependencies",
                description=f"Install the project's declared dependencies{missing}",
                priority=rule.severity,
                automated=rule.automated,
                target=str(target_path),
                command=detect_install_command(target_path) or "npm install",
            )

        if rule.remedy == ActionType.CREATE_DIRECTORY:
            directory = target_path
            if affected_path is not None:
                # a missing file means its parent directory is missing
                directory = affected_path.parent if affected_path.suffix else affected_path
            return RecoveryAction(
                id="create-missing-dirs",
                action_type=ActionType.CREATE_DIRECTORY,
                title="Create missing directories",
                description=f"Create {directory} and any missing parents",
                priority=rule.severity,
                automated=rule.automated,
                target=str(directory),
            )

        if rule.remedy == ActionType.RESET_CONFIG:
            return RecoveryAction(
                id="reset-config",
                action_type=ActionType.RESET_CONFIG,
                title="Reset configuration",
                description="Restore the default project configuration and clear cached state",
                priority=rule.severity,
                automated=rule.automated,
                target=str(target_path),
            )

        return RecoveryAction(
            id=f"manual-{rule.name}",
            action_type=ActionType.MANUAL,
            title=_MANUAL_TITLES.get(rule.name, "Investigate the error"),
            description=_manual_description(rule, str(error)),
            priority=rule.severity,
            automated=False,
            target=affected,
        )

    # ---- execution ----

    def execute_action(self, action: RecoveryAction) -> RecoveryOutcome:
        """Run one action. Unknown action types and failing handlers give a failed outcome."""
        try:
            action_type = ActionType(action.type)
        except ValueError:
            return RecoveryOutcome(False, f"Unknown action type: {action.type}")

        handler = self._handlers.get(action_type)
        if handler is None:
            return RecoveryOutcome(False, f"Unknown action type: {action.type}")

        try:
            outcome = handler(action)
        except Exception as e:
            self._logger.error(f"Recovery handler failed: {action.id}", error=e,
                               action_type=action.type)
            outcome = RecoveryOutcome(False, f"Recovery action '{action.id}' failed: {e}")

        if action_type.is_automatable():
            self._logger.audit(
                action.type,
                resource=action.target,
                result="success" if outcome.success else "failure",
                outcome_message=outcome.message,
            )
        return outcome

    def execute_actions(self, actions: List[RecoveryAction], report: RecoveryReport,
                        stop_after_first_success: Optional[bool] = None) -> RecoveryReport:
        """Run the automated actions of a plan in order, recording them in ``report``.

        Non-automated actions are collected as manual steps.
        """
        if stop_after_first_success is None:
            stop_after_first_success = self.stop_after_first_success

        recovered = False
        for action in actions:
            if not action.automated:
                report.manual_actions.append(action)
                continue
            if recovered and stop_after_first_success:
                continue
            outcome = self.execute_action(action)
            report.record(action, outcome)
            recovered = recovered or outcome.success
        return report

    def recover_from_error(self, error: ErrorInput, target_path: Union[str, Path],
                           stop_after_first_success: Optional[bool] = None) -> RecoveryReport:
        """Classify, derive actions, run the automated ones, collect the rest."""
        analysis = self.analyze(error)
        actions = self.get_recovery_actions(error, target_path)
        report = RecoveryReport(analysis=analysis, actions=list(actions))
        self._logger.info(
            f"Recovering from {analysis.category.value} error",
            severity=analysis.severity.value,
            rule=analysis.rule,
            actions=[a.id for a in actions],
        )

        self.execute_actions(actions, report, stop_after_first_success)

        for index, suggestion in enumerate(self.get_suggestions(error, target_path, analysis)):
            action = RecoveryAction(
                id=f"ai-suggestion-{index}",
                action_type=ActionType.MANUAL,
                title=suggestion.title,
                description=suggestion.description,
                priority=suggestion.priority,
                automated=False,
            )
            report.actions.append(action)
            report.manual_actions.append(action)

        return report

    def get_suggestions(self, error: ErrorInput, target_path: Union[str, Path],
                        analysis: ErrorAnalysis) -> List[Suggestion]:
        """Ask the advisory provider; its failures mean no suggestions."""
        context: Dict[str, Any] = {
            "target_path": str(target_path),
            "category": analysis.category.value,
            "severity": analysis.severity.value,
        }
        try:
            suggestions = self.suggestion_provider.suggest(str(error), context)
        except Exception as e:
            self._logger.debug(f"Advisory suggestions unavailable: {e}",
                               error_type=type(e).__name__)
            return []
        return list(suggestions or [])

    def run_with_recovery(self, operation: Callable[[], T], target_path: Union[str, Path],
                          on_report: Optional[Callable[[RecoveryReport], None]] = None) -> T:
        """Run ``operation``; on failure, recover and re-raise the original error."""
        try:
            return operation()
        except Exception as e:
            report = self.recover_from_error(e, target_path)
            if on_report is not None:
                on_report(report)
            raise

    # ---- handlers ----

    def _fix_permissions(self, action: RecoveryAction) -> RecoveryOutcome:
        target = Path(action.target) if action.target else None
        if target is None:
            return RecoveryOutcome(False, "No target path for permission fix")
        if not target.exists() and not target.is_symlink():
            return RecoveryOutcome(True, f"{target} no longer exists, nothing to fix")

        ok, issues = fix_permissions(target)
        if ok:
            return RecoveryOutcome(True, f"Permissions fixed for {target}")
        details = "; ".join(str(issue) for issue in issues[:3])
        return RecoveryOutcome(False, f"Could not fix permissions for {target}: {details}")

    def _install_dependency(self, action: RecoveryAction) -> RecoveryOutcome:
        project = Path(action.target) if action.target else None
        if project is None or not project.is_dir():
            return RecoveryOutcome(False, f"Project directory not found: {action.target}")

        command = detect_install_command(project)
        if command is None:
            return RecoveryOutcome(False, f"No dependency manifest found in {project}")

        outcome = run_process(shlex.split(command), timeout_ms=self.install_timeout_ms, cwd=project)
        if outcome.success:
            return RecoveryOutcome(True, f"Dependencies installed with '{command}'")
        return RecoveryOutcome(False, outcome.failure_reason(self.install_timeout_ms))

    def _create_directory(self, action: RecoveryAction) -> RecoveryOutcome:
        if not action.target:
            return RecoveryOutcome(False, "No directory to create")
        directory = Path(action.target)
        if directory.is_dir():
            return RecoveryOutcome(True, f"Directory already exists: {directory}")
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return RecoveryOutcome(False, f"Could not create {directory}: {e}")
        return RecoveryOutcome(True, f"Created directory {directory}")

    def _reset_config(self, action: RecoveryAction) -> RecoveryOutcome:
        project = Path(action.target) if action.target else None
        if project is None or not project.is_dir():
            return RecoveryOutcome(False, f"Project directory not found: {action.target}")

        config_path = get_config_path(project)
        project_name = project.resolve().name
        if config_path.exists():
            try:
                project_name = read_json_file(config_path).get("project_name") or project_name
            except FileOperationError:
                # unreadable config is exactly what gets reset
                pass

        try:
            backup = write_json_file(config_path, default_config_data(project_name),
                                     create_backup_first=True)
            cleared = self._clear_caches(project)
        except (OSError, FileOperationError) as e:
            return RecoveryOutcome(False, f"Could not reset configuration: {e}")

        message = "Configuration reset to defaults"
        if backup:
            message += f" (previous config saved to {backup.name})"
        if cleared:
            message += f", cleared {', '.join(cleared)}"
        return RecoveryOutcome(True, message)

    def _clear_caches(self, project: Path) -> List[str]:
        cleared = []
        for relative in CACHE_DIRECTORIES:
            cache = project / relative
            if cache.is_dir():
                shutil.rmtree(cache)
                cleared.append(str(relative))
        return cleared

    def _manual(self, action: RecoveryAction) -> RecoveryOutcome:
        return RecoveryOutcome(False, f"'{action.title}' requires operator intervention")


_MANUAL_TITLES = {
    "network": "Check network connectivity",
    "path_conflict": "Resolve the path conflict",
    "resource_exhausted": "Free system resources",
}


def _manual_description(rule: ClassificationRule, message: str) -> str:
    if rule.category == ErrorCategory.NETWORK:
        return ("A network request failed. Check your network connection, proxy and DNS "
                "settings, then retry the operation (or retry without external services).")
    if rule.name == "path_conflict":
        return "A file or directory already exists where one was to be created. Remove or rename it and retry."
    if rule.name == "resource_exhausted":
        return "The system ran out of a resource (disk space or file handles). Free it up and retry."
    return f"Resolve the error manually: {message}"


__all__ = [
    "RecoveryOrchestrator",
    "detect_install_command",
    "extract_path",
]
