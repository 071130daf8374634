"""`ccforge recover` command: classify an error message and recover from it."""

import argparse
from pathlib import Path

from ...models.recovery import RecoveryReport
from ...services.recovery_orchestrator import RecoveryOrchestrator
from ...utils.formatters import create_formatter


def execute_recover_command(args: argparse.Namespace) -> int:
    """Show the error category, the attempted fixes with outcomes, then manual steps.

    Returns:
        0 when at least one automated fix ran and all of them succeeded (or
        for a dry run), 1 otherwise
    """
    project = Path(args.path).resolve()
    orchestrator = RecoveryOrchestrator()
    formatter = create_formatter(args.format)

    if args.dry_run:
        actions = orchestrator.get_recovery_actions(args.message, project)
        report = RecoveryReport(
            analysis=orchestrator.analyze(args.message),
            actions=actions,
            manual_actions=[action for action in actions if not action.automated],
        )
        formatter.emit(formatter.format_recovery_report(report, dry_run=True))
        return 0

    report = orchestrator.recover_from_error(args.message, project)
    formatter.emit(formatter.format_recovery_report(report))
    return 0 if report.fully_recovered else 1
