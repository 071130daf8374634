"""Main CLI entry point for ccforge.

Parses arguments, configures logging from the environment and dispatches to
the command implementations with unified error handling. Exit codes:

- 0: success
- 1: the command ran but reported a failure (hook failed, validation failed,
  recovery incomplete)
- 2: ccforge error (bad argument, unreadable config or report)
- 4: unexpected internal error
- 130: interrupted
"""

import os
import sys
import time
from typing import Any, Callable, List, Optional

from ..exceptions import CCForgeError
from ..utils.logging import LogLevel, configure_logging, get_logger
from .argument_parser import parse_args

DEBUG_ENV = "CCFORGE_DEBUG"
LOG_LEVEL_ENV = "CCFORGE_LOG_LEVEL"

# 命令映射表
COMMAND_REGISTRY = {
    "hooks": ("commands.hooks", "execute_hooks_command", "List and run hook scripts"),
    "validate": ("commands.validate", "execute_validate_command", "Run validation levels"),
    "recover": ("commands.recover", "execute_recover_command", "Classify an error and recover"),
}


def _debug_mode() -> bool:
    return os.getenv(DEBUG_ENV, "false").lower() == "true"


def _configure_logging() -> None:
    if _debug_mode():
        configure_logging(log_level=LogLevel.DEBUG, enable_console=True)
    else:
        level = LogLevel.from_env(os.getenv(LOG_LEVEL_ENV), LogLevel.INFO)
        configure_logging(log_level=level, enable_console=False)


def _load_command(name: str) -> Callable[[Any], int]:
    module_path, func_name, _ = COMMAND_REGISTRY[name]
    module = __import__(f"ccforge.cli.{module_path}", fromlist=[func_name])
    return getattr(module, func_name)


def _execute_command_safely(command_name: str, command_func: Callable[[Any], int], args: Any) -> int:
    """Run a command, mapping exceptions to exit codes."""
    logger = get_logger()
    start = time.perf_counter()
    try:
        return command_func(args)
    except KeyboardInterrupt:
        logger.debug(f"{command_name} interrupted")
        print("\nInterrupted", file=sys.stderr)
        return 130
    except CCForgeError as e:
        logger.error(f"{command_name} failed", error=e)
        print(f"Error: {e.get_user_message()}", file=sys.stderr)
        return 2
    except Exception as e:
        logger.error(f"{command_name} unexpected error", error=e)
        if _debug_mode():
            print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        else:
            print(f"Internal error, set {DEBUG_ENV}=true for details", file=sys.stderr)
        return 4
    finally:
        logger.performance(f"cli.{command_name}", (time.perf_counter() - start) * 1000)


def main(argv: Optional[List[str]] = None) -> int:
    """Parse ``argv`` (defaults to ``sys.argv[1:]``) and run the command."""
    args = parse_args(argv)
    _configure_logging()
    return _execute_command_safely(args.subcommand, _load_command(args.subcommand), args)


if __name__ == "__main__":
    sys.exit(main())
