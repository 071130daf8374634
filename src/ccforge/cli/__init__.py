"""CLI package for ccforge.

Key modules:
- argument_parser: argparse definitions for the hooks, validate and recover commands
- main: console script entry point and command dispatch
- commands/: command implementations
"""

from .argument_parser import create_parser, parse_args

__all__ = [
    "create_parser",
    "parse_args",
]
