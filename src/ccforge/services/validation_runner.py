"""Validation pipeline runner.

Runs the commands of each requested validation level, in order, inside the
project directory. Levels are critical (syntax, lint, tests, build by default)
or optional (coverage, security). The first failing critical level stops the
pipeline: its remaining commands are not run and every later requested level
is recorded as one skipped result. Optional failures never stop the run.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..data.validation_commands import resolve_levels
from ..models.validation import ValidationCommandSet, ValidationReport, ValidationResult
from ..settings.project_config import DEFAULT_COMMAND_TIMEOUT_MS
from ..types.enums import ValidationLevel
from ..utils.logging import get_logger
from ..utils.process import run_process

VALIDATION_ENV = {"CI": "true"}


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CriticalLevelFailure(Exception):
    """Raised inside the runner when a critical level fails. Never escapes ``run``."""

    def __init__(self, level: ValidationLevel):
        super().__init__(f"Critical validation level failed: {level.value}")
        self.level = level


class ValidationRunner:
    """Runs a validation command set against one project.

    Args:
        project_path: Directory commands run in
        commands: Command set for the project's stack
        project_name: Name recorded in the report; defaults to the directory name
        command_timeout_ms: Timeout applied to every command
        critical_levels: Override of which levels abort the pipeline on failure
    """

    def __init__(self, project_path: Union[str, Path],
                 commands: ValidationCommandSet,
                 project_name: Optional[str] = None,
                 command_timeout_ms: int = DEFAULT_COMMAND_TIMEOUT_MS,
                 critical_levels: Optional[Iterable[Union[ValidationLevel, str]]] = None):
        if command_timeout_ms <= 0:
            raise ValueError("command_timeout_ms must be a positive integer")
        self.project_path = Path(project_path)
        self.commands = commands
        self.project_name = project_name or self.project_path.resolve().name
        self.command_timeout_ms = command_timeout_ms
        self.logger = get_logger()

        if critical_levels is None:
            self.critical_levels = {level for level in ValidationLevel if level.is_critical_by_default()}
        else:
            critical = list(critical_levels)
            self.critical_levels = set(resolve_levels(critical)) if critical else set()

    def is_critical(self, level: ValidationLevel) -> bool:
        return level in self.critical_levels

    def run(self, levels: Union[None, str, Sequence[Union[ValidationLevel, str]]] = None) -> ValidationReport:
        """Run the requested levels and build the report.

        Args:
            levels: Level selection as accepted by ``resolve_levels``

        Raises:
            InvalidArgumentError: If a level name is unknown
        """
        requested = resolve_levels(levels)
        results: List[ValidationResult] = []
        self.logger.info(
            f"Running validation for {self.project_name}",
            levels=[level.value for level in requested],
            project_path=str(self.project_path),
        )

        for index, level in enumerate(requested):
            try:
                self._run_level(level, results)
            except CriticalLevelFailure as failure:
                remaining = requested[index + 1:]
                self.logger.warning(
                    f"{failure}; skipping {len(remaining)} remaining levels",
                    skipped=[lvl.value for lvl in remaining],
                )
                for skipped in remaining:
                    results.append(ValidationResult.skipped_level(
                        skipped.value, command=", ".join(self.commands.commands_for(skipped))))
                break

        report = ValidationReport.build(self.project_name, utc_timestamp(), results)
        self.logger.info(
            f"Validation {'passed' if report.overall_success else 'failed'}",
            **report.summary.to_dict(),
        )
        return report

    def _run_level(self, level: ValidationLevel, results: List[ValidationResult]) -> None:
        commands = self.commands.commands_for(level)
        if not commands:
            self.logger.info(f"No commands configured for level {level.value}, skipping")
            return

        for command in commands:
            result = self.run_command(level, command)
            results.append(result)
            if not result.success and self.is_critical(level):
                raise CriticalLevelFailure(level)

    def run_command(self, level: ValidationLevel, command: str) -> ValidationResult:
        """Run one command through the shell. Never raises for command failures."""
        outcome = run_process(
            command,
            timeout_ms=self.command_timeout_ms,
            cwd=self.project_path,
            env=VALIDATION_ENV,
            shell=True,
        )
        error = None
        if outcome.timed_out or outcome.launch_error:
            error = outcome.failure_reason(self.command_timeout_ms)
        elif not outcome.success:
            error = outcome.stderr.strip() or outcome.failure_reason(self.command_timeout_ms)

        self.logger.performance(
            f"validate:{level.value}",
            outcome.duration_ms,
            status="passed" if outcome.success else "failed",
            command=command,
            exit_code=outcome.exit_code,
        )
        return ValidationResult(
            level=level.value,
            command=command,
            success=outcome.success,
            duration_ms=outcome.duration_ms,
            output=outcome.stdout or None,
            error=error,
        )


__all__ = [
    "CriticalLevelFailure",
    "ValidationRunner",
]
