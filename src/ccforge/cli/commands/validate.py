"""`ccforge validate` command: run the validation pipeline for a project."""

import argparse
from pathlib import Path

from ...data.validation_commands import TECH_STACK_VALIDATION_COMMANDS, get_validation_commands
from ...exceptions import InvalidArgumentError
from ...models.validation import ValidationCommandSet
from ...services.report_generator import generate_validation_summary, save_report
from ...services.validation_runner import ValidationRunner
from ...settings.project_config import ProjectConfig, load_project_config_or_default
from ...utils.formatters import create_formatter


def _select_commands(args: argparse.Namespace, config: ProjectConfig) -> ValidationCommandSet:
    if args.stack:
        return TECH_STACK_VALIDATION_COMMANDS[args.stack]
    if config.validation_commands is not None:
        return config.validation_commands
    return get_validation_commands(config.tech_stack)


def execute_validate_command(args: argparse.Namespace) -> int:
    """Run the requested levels and print the report.

    Returns:
        0 when no command failed, 1 otherwise
    """
    project = Path(args.path).resolve()
    if not project.is_dir():
        raise InvalidArgumentError(f"Project directory not found: {project}", argument_name="path")

    config = load_project_config_or_default(project)
    if args.all:
        levels = "all"
    else:
        levels = args.levels or config.validation_levels

    runner = ValidationRunner(
        project,
        _select_commands(args, config),
        project_name=config.project_name,
        command_timeout_ms=config.command_timeout_ms,
    )
    report = runner.run(levels)

    report_path = None if args.no_save else save_report(report, project)

    formatter = create_formatter(args.format)
    if args.report and args.format != "json":
        formatter.emit(generate_validation_summary(report))
    else:
        formatter.emit(formatter.format_validation_report(
            report, str(report_path) if report_path else None))
    return 0 if report.overall_success else 1
