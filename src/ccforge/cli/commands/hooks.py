"""`ccforge hooks` command: list and run hook scripts."""

import argparse
import sys
from pathlib import Path

from ...services.hook_registry import HookRegistry
from ...settings.project_config import load_project_config_or_default
from ...utils.formatters import create_formatter


def _build_registry(args: argparse.Namespace) -> HookRegistry:
    config = load_project_config_or_default(Path(args.path))
    hook_dir = Path(args.hook_dir).expanduser() if args.hook_dir else config.resolve_hook_directory()
    registry = HookRegistry(hook_dir, default_timeout_ms=config.hook_timeout_ms)
    registry.initialize()
    return registry


def execute_hooks_command(args: argparse.Namespace) -> int:
    """Run `hooks list` or `hooks run`.

    Returns:
        0 on success, 1 when the hook failed
    """
    registry = _build_registry(args)
    formatter = create_formatter(args.format)

    if args.hooks_action == "list":
        formatter.emit(formatter.format_hook_list(registry.get_hook_status()))
        return 0

    result = registry.execute(args.name, args.hook_args or [])
    if args.format == "json":
        message = f"Hook {args.name} succeeded" if result.success else f"Hook {args.name} failed"
        formatter.emit(formatter.format_command_result(
            result.success,
            message,
            data=result.to_dict(),
            errors=[result.error] if result.error else None,
        ))
    else:
        if result.stdout:
            print(result.stdout, end="" if result.stdout.endswith("\n") else "\n")
        if result.stderr:
            print(result.stderr, end="" if result.stderr.endswith("\n") else "\n", file=sys.stderr)
        if not result.success:
            print(f"Error: {result.error}", file=sys.stderr)
    return 0 if result.success else 1
