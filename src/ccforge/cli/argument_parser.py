"""CLI argument parser for ccforge.

Commands:
- hooks list: show discovered hooks and their state
- hooks run: execute one hook
- validate: run validation levels against a project
- recover: classify an error message and run automated recovery

Usage:
    from ccforge.cli.argument_parser import parse_args

    args = parse_args(["validate", "--levels", "syntax,tests"])
    print(args.subcommand, args.levels)
"""

import argparse
from typing import List, Optional

from .. import __version__
from ..data.validation_commands import get_supported_stacks
from ..types.enums import OutputFormat, ValidationLevel


def _add_format_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=OutputFormat.get_all_formats(),
        default=OutputFormat.TABLE.value,
        help="Output format (default: table)"
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--path",
        default=".",
        help="Project directory (default: current directory)"
    )


def _add_hook_location_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--hook-dir",
        dest="hook_dir",
        help="Hook directory (default: CCFORGE_HOOK_DIR, config file, or ~/.claude/hooks)"
    )
    _add_path_argument(parser)


def _create_hooks_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "hooks",
        help="List and run hook scripts",
        description="Discover hook scripts in the hook directory, validate them and run them."
    )
    actions = parser.add_subparsers(dest="hooks_action", metavar="ACTION")
    actions.required = True

    list_parser = actions.add_parser("list", help="List hooks with their runtime and state")
    _add_hook_location_arguments(list_parser)
    _add_format_argument(list_parser)

    run_parser = actions.add_parser("run", help="Execute a hook by name")
    _add_hook_location_arguments(run_parser)
    _add_format_argument(run_parser)
    run_parser.add_argument("name", help="Hook name (file name without extension)")
    run_parser.add_argument(
        "hook_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to the hook"
    )
    return parser


def _create_validate_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "validate",
        help="Run validation levels against a project",
        description=(
            "Run the validation pipeline. Critical levels (syntax, lint, tests, build) "
            "stop the run on failure; optional levels (coverage, security) do not."
        )
    )
    _add_path_argument(parser)

    selection = parser.add_mutually_exclusive_group()
    selection.add_argument(
        "--levels",
        help=f"Comma-separated levels to run ({', '.join(ValidationLevel.get_all_levels())})"
    )
    selection.add_argument(
        "--all",
        action="store_true",
        help="Run every validation level"
    )

    parser.add_argument(
        "--stack",
        choices=get_supported_stacks(),
        help="Technology stack whose commands to use (default: from project config)"
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print the plain-text validation summary"
    )
    parser.add_argument(
        "--no-save",
        dest="no_save",
        action="store_true",
        help="Do not write the report to .validation-reports/"
    )
    _add_format_argument(parser)
    return parser


def _create_recover_parser(subparsers) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "recover",
        help="Classify an error and attempt automated recovery",
        description=(
            "Classify an error message, run the automated recovery actions in priority "
            "order and list the remaining manual steps."
        )
    )
    parser.add_argument("message", help="Error message to recover from")
    _add_path_argument(parser)
    parser.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Show the recovery plan without executing anything"
    )
    _add_format_argument(parser)
    return parser


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="ccforge",
        description="ccforge - hook execution, validation pipelines and failure recovery",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ccforge hooks list --format json
  ccforge hooks run pre-commit --verbose
  ccforge validate --levels syntax,tests --stack fastapi
  ccforge recover "EACCES: permission denied, open './dist/app.js'" --dry-run

Environment:
  CCFORGE_HOOK_DIR     Hook directory
  CCFORGE_DEBUG        Log to stderr at debug level (true/false)
  CCFORGE_LOG_LEVEL    Log level (debug/info/warning/error)
  CCFORGE_LOG_DIR      Log file directory (default: ~/.ccforge/logs)
        """
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        help="Available commands",
        metavar="COMMAND"
    )
    subparsers.required = True

    _create_hooks_parser(subparsers)
    _create_validate_parser(subparsers)
    _create_recover_parser(subparsers)
    return parser


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Raises:
        SystemExit: If parsing fails or help was requested
    """
    return create_parser().parse_args(args)
