"""Utility modules for ccforge.

- file_operations: directory creation, atomic JSON read/write, backups
- formatters: JSON and table output for the CLI
- logging: structured logging channels
- permissions: executable checks and permission repair
- process: subprocess supervision with timeouts
"""

from .file_operations import (
    FileOperationError,
    create_backup,
    ensure_directory_exists,
    read_json_file,
    write_json_file,
)
from .logging import configure_logging, get_logger, log_operation
from .permissions import fix_permissions, is_executable, make_script_executable
from .process import ProcessOutcome, run_process, terminate_process_tree

__all__ = [
    "FileOperationError",
    "create_backup",
    "ensure_directory_exists",
    "read_json_file",
    "write_json_file",
    "configure_logging",
    "get_logger",
    "log_operation",
    "fix_permissions",
    "is_executable",
    "make_script_executable",
    "ProcessOutcome",
    "run_process",
    "terminate_process_tree",
]
