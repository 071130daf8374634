"""Hook runtimes: how a hook of each runtime family is validated and executed.

Each runtime is a variant of the :class:`HookRuntime` capability interface.
Adding support for a new script language means adding a variant and passing
it to the registry; nothing else branches on the runtime type.

The runtimes provided are:
- ShellRuntime: executed directly, must carry the executable bit
- PythonRuntime: executed through the current Python interpreter
- NodeRuntime: executed through ``node``
"""

import os
import shutil
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple

from ..models.hook import HookDescriptor, HookExecutionResult, HookValidationOutcome
from ..types.enums import RuntimeType
from ..utils.logging import get_logger
from ..utils.permissions import is_executable
from ..utils.process import run_process

# --help probe used to check that an interpreted hook at least starts
PROBE_TIMEOUT_MS = 2000
VERSION_PROBE_TIMEOUT_MS = 5000
SHEBANG_READ_BYTES = 256


def read_shebang(path: Path) -> Optional[str]:
    """Return the first line of ``path`` when it is a shebang, else None."""
    try:
        with path.open("rb") as f:
            head = f.read(SHEBANG_READ_BYTES)
    except OSError:
        return None
    if not head.startswith(b"#!"):
        return None
    return head.splitlines()[0].decode("utf-8", errors="replace")


def shebang_program(shebang: str) -> Optional[str]:
    """Name of the program a shebang line runs.

    ``#!/usr/bin/env python3`` and ``#!/usr/bin/python3.11`` both give
    ``python``; trailing version numbers are dropped.
    """
    parts = shebang[2:].strip().split()
    if not parts:
        return None
    program = os.path.basename(parts[0])
    if program == "env":
        # skip env options such as -S
        rest = [p for p in parts[1:] if not p.startswith("-") and "=" not in p]
        if not rest:
            return None
        program = os.path.basename(rest[0])
    return program.rstrip("0123456789.") or None


class HookRuntime(ABC):
    """Capability interface for one hook runtime family.

    Attributes:
        runtime_type: Runtime family handled by this variant
        extensions: File suffixes claimed by this runtime (lower case)
        shebang_programs: Interpreter names recognised in shebang lines
    """

    runtime_type: RuntimeType
    extensions: Tuple[str, ...] = ()
    shebang_programs: Tuple[str, ...] = ()

    def __init__(self):
        self.logger = get_logger()

    def handles_extension(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def handles_shebang(self, shebang: str) -> bool:
        return shebang_program(shebang) in self.shebang_programs

    @abstractmethod
    def validate(self, descriptor: HookDescriptor) -> HookValidationOutcome:
        """Check that the hook can run. Never raises."""

    @abstractmethod
    def build_command(self, descriptor: HookDescriptor, args: Sequence[str]) -> List[str]:
        """Argument vector used to run the hook."""

    def execute(self, descriptor: HookDescriptor, args: Sequence[str] = (),
                env: Optional[Mapping[str, str]] = None) -> HookExecutionResult:
        """Run the hook once under its timeout. Never raises."""
        outcome = run_process(
            self.build_command(descriptor, args),
            timeout_ms=descriptor.timeout_ms,
            cwd=descriptor.path.parent,
            env=env,
        )

        error = None
        if outcome.timed_out:
            error = f"Hook timeout after {descriptor.timeout_ms}ms"
        elif not outcome.success:
            error = outcome.failure_reason(descriptor.timeout_ms)

        result = HookExecutionResult(
            success=outcome.success,
            duration_ms=outcome.duration_ms,
            stdout=outcome.stdout,
            stderr=outcome.stderr,
            exit_code=outcome.exit_code,
            error=error,
            timed_out=outcome.timed_out,
        )
        self.logger.performance(
            f"hook:{descriptor.name}",
            outcome.duration_ms,
            status="completed" if result.success else ("timeout" if result.timed_out else "failed"),
            runtime=self.runtime_type.value,
            exit_code=outcome.exit_code,
        )
        return result


class ShellRuntime(HookRuntime):
    """Shell scripts, executed directly through their shebang."""

    runtime_type = RuntimeType.SHELL
    extensions = (".sh", ".bash", ".zsh")
    shebang_programs = ("sh", "bash", "zsh", "dash", "ksh")

    def validate(self, descriptor: HookDescriptor) -> HookValidationOutcome:
        outcome = HookValidationOutcome(hook_id=descriptor.id, valid=True)
        if not is_executable(descriptor.path):
            return outcome.fail("Not executable")
        return outcome

    def build_command(self, descriptor: HookDescriptor, args: Sequence[str]) -> List[str]:
        return [str(descriptor.path), *args]


class InterpretedRuntime(HookRuntime):
    """Scripts run through an interpreter.

    Validation first probes the interpreter version, then runs the script with
    ``--help``. A probe that times out is only a warning (the hook may simply
    ignore ``--help``); any other probe failure disables the hook.
    """

    version_args: Tuple[str, ...] = ("--version",)
    probe_timeout_ms = PROBE_TIMEOUT_MS

    @property
    @abstractmethod
    def interpreter(self) -> str:
        """Interpreter executable name or path."""

    def interpreter_available(self) -> Tuple[bool, Optional[str]]:
        interpreter = self.interpreter
        if shutil.which(interpreter) is None:
            return False, f"{interpreter} not available"
        outcome = run_process([interpreter, *self.version_args],
                              timeout_ms=VERSION_PROBE_TIMEOUT_MS)
        if not outcome.success:
            return False, f"{interpreter} not available: {outcome.failure_reason(VERSION_PROBE_TIMEOUT_MS)}"
        return True, None

    def check_script(self, descriptor: HookDescriptor, outcome: HookValidationOutcome) -> None:
        """Runtime-specific static checks; may add warnings."""

    def validate(self, descriptor: HookDescriptor) -> HookValidationOutcome:
        outcome = HookValidationOutcome(hook_id=descriptor.id, valid=True)

        available, reason = self.interpreter_available()
        if not available:
            return outcome.fail(reason)

        self.check_script(descriptor, outcome)

        probe = run_process(
            self.build_command(descriptor, ["--help"]),
            timeout_ms=self.probe_timeout_ms,
            cwd=descriptor.path.parent,
        )
        if probe.timed_out:
            outcome.add_warning(f"{descriptor.name} doesn't respond to --help (may still work)")
        elif not probe.success:
            return outcome.fail(probe.failure_reason(self.probe_timeout_ms))
        return outcome

    def build_command(self, descriptor: HookDescriptor, args: Sequence[str]) -> List[str]:
        return [self.interpreter, str(descriptor.path), *args]


class PythonRuntime(InterpretedRuntime):
    runtime_type = RuntimeType.PYTHON
    extensions = (".py",)
    shebang_programs = ("python",)

    def __init__(self, interpreter: Optional[str] = None):
        super().__init__()
        self._interpreter = interpreter or sys.executable or "python3"

    @property
    def interpreter(self) -> str:
        return self._interpreter

    def check_script(self, descriptor: HookDescriptor, outcome: HookValidationOutcome) -> None:
        shebang = read_shebang(descriptor.path)
        if shebang is None or shebang_program(shebang) != "python":
            outcome.add_warning(f"Python hook {descriptor.name} missing proper shebang")


class NodeRuntime(InterpretedRuntime):
    runtime_type = RuntimeType.NODE
    extensions = (".js", ".mjs", ".cjs")
    shebang_programs = ("node", "nodejs")

    def __init__(self, interpreter: str = "node"):
        super().__init__()
        self._interpreter = interpreter

    @property
    def interpreter(self) -> str:
        return self._interpreter


def default_runtimes() -> List[HookRuntime]:
    return [ShellRuntime(), PythonRuntime(), NodeRuntime()]


def select_runtime(path: Path, runtimes: Sequence[HookRuntime]) -> Optional[HookRuntime]:
    """Find the runtime for a file by extension, then by shebang for extensionless files."""
    for runtime in runtimes:
        if runtime.handles_extension(path):
            return runtime
    if path.suffix:
        return None

    shebang = read_shebang(path)
    if shebang is None:
        return None
    for runtime in runtimes:
        if runtime.handles_shebang(shebang):
            return runtime
    return None


__all__ = [
    "HookRuntime",
    "InterpretedRuntime",
    "ShellRuntime",
    "PythonRuntime",
    "NodeRuntime",
    "default_runtimes",
    "select_runtime",
    "read_shebang",
    "shebang_program",
    "PROBE_TIMEOUT_MS",
]
