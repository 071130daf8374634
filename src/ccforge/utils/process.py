"""Subprocess supervision shared by hook execution, validation and recovery.

Every child process runs under an explicit timeout. ``Popen.communicate`` is
the single point where a run settles: either the child exits, or the timeout
fires and the whole process tree is killed before the remaining output is
collected. No other code path can complete the same run.
"""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

import psutil

# Per-stream cap on captured output, in characters.
MAX_OUTPUT_CHARS = 64 * 1024
# How long to wait for the killed tree to release its pipes.
KILL_GRACE_SECONDS = 5.0

TRUNCATION_MARKER = "\n... [output truncated]"

Command = Union[str, Sequence[str]]


@dataclass(frozen=True)
class ProcessOutcome:
    """What happened to one child process.

    Attributes:
        exit_code: Return code, None when the process never started or timed out
        stdout: Captured standard output (bounded)
        stderr: Captured standard error (bounded)
        duration_ms: Wall time from spawn attempt to settlement
        timed_out: True when the child was killed on timeout
        launch_error: OS error text when the process could not be started
    """
    exit_code: Optional[int]
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False
    launch_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.launch_error is None and not self.timed_out and self.exit_code == 0

    def failure_reason(self, timeout_ms: int) -> Optional[str]:
        """Human readable reason for a failed run, None on success."""
        if self.launch_error is not None:
            return f"Failed to start process: {self.launch_error}"
        if self.timed_out:
            return f"Process timeout after {timeout_ms}ms"
        if self.exit_code != 0:
            detail = self.stderr.strip().splitlines()
            suffix = f": {detail[-1]}" if detail else ""
            return f"Command failed with exit code {self.exit_code}{suffix}"
        return None


def _bounded(text: Optional[str], limit: int) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def terminate_process_tree(pid: int, timeout: float = KILL_GRACE_SECONDS) -> List[int]:
    """Kill a process and all of its descendants.

    Returns:
        PIDs that were still alive after waiting ``timeout`` seconds
    """
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return []

    try:
        procs = parent.children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        procs = []
    procs.append(parent)

    for proc in procs:
        try:
            proc.kill()
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue

    _, alive = psutil.wait_procs(procs, timeout=timeout)
    return [proc.pid for proc in alive]


def run_process(command: Command,
                timeout_ms: int,
                cwd: Union[str, Path, None] = None,
                env: Optional[Mapping[str, str]] = None,
                shell: bool = False,
                max_output_chars: int = MAX_OUTPUT_CHARS) -> ProcessOutcome:
    """Run a command to completion or until ``timeout_ms`` elapses.

    Never raises for process-level failures: launch errors, non-zero exits and
    timeouts are all reported through the returned ProcessOutcome.

    Args:
        command: Argument vector, or a command line when ``shell`` is True
        timeout_ms: Hard limit on the run, in milliseconds
        cwd: Working directory for the child
        env: Extra environment variables layered over os.environ
        shell: Run ``command`` through the system shell
        max_output_chars: Per-stream capture limit
    """
    if timeout_ms <= 0:
        raise ValueError("timeout_ms must be a positive integer")

    child_env: Optional[Dict[str, str]] = None
    if env:
        child_env = {**os.environ, **env}

    start = time.perf_counter()
    try:
        proc = subprocess.Popen(
            command,
            cwd=str(cwd) if cwd is not None else None,
            env=child_env,
            shell=shell,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=(os.name == "posix"),
        )
    except (OSError, ValueError) as e:
        return ProcessOutcome(
            exit_code=None,
            stdout="",
            stderr="",
            duration_ms=_elapsed_ms(start),
            launch_error=str(e),
        )

    timed_out = False
    try:
        stdout, stderr = proc.communicate(timeout=timeout_ms / 1000)
    except subprocess.TimeoutExpired:
        timed_out = True
        terminate_process_tree(proc.pid)
        try:
            stdout, stderr = proc.communicate(timeout=KILL_GRACE_SECONDS)
        except subprocess.TimeoutExpired:
            # a detached grandchild still holds the pipes open
            proc.kill()
            stdout, stderr = "", ""

    # psutil may already have reaped a killed child, so its return code is meaningless
    exit_code = None if timed_out else proc.returncode

    return ProcessOutcome(
        exit_code=exit_code,
        stdout=_bounded(stdout, max_output_chars),
        stderr=_bounded(stderr, max_output_chars),
        duration_ms=_elapsed_ms(start),
        timed_out=timed_out,
    )


__all__ = [
    "MAX_OUTPUT_CHARS",
    "ProcessOutcome",
    "run_process",
    "terminate_process_tree",
]
