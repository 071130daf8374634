"""Hook registry: discovery, validation, enable/disable and execution of hooks.

Descriptors are kept in an arena keyed by a stable id (derived from the
resolved script path) with a separate name index. Entries are never removed;
disabling a hook only flips its ``enabled`` flag, so readers on other threads
never see a half-updated structure.

Lifecycle per hook::

    DISCOVERED -> VALIDATING -> ENABLED | DISABLED

A hook disabled by validation stays disabled until an operator calls
:meth:`HookRegistry.set_enabled`; nothing re-validates it automatically.
"""

import hashlib
import os
import threading
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..models.hook import DEFAULT_HOOK_TIMEOUT_MS, HookDescriptor, HookExecutionResult, HookValidationOutcome
from ..settings.project_config import default_hook_directory
from ..types.enums import HookState, RuntimeType
from ..utils.logging import get_logger
from .hook_runtimes import HookRuntime, default_runtimes, select_runtime


def hook_id_for(path: Path) -> str:
    """Stable identifier for a hook script."""
    resolved = str(Path(path).resolve())
    return hashlib.sha1(resolved.encode("utf-8")).hexdigest()[:16]


def _access_tags(path: Path) -> List[str]:
    tags = []
    if os.access(path, os.R_OK):
        tags.append("read")
    if os.access(path, os.W_OK):
        tags.append("write")
    if os.access(path, os.X_OK):
        tags.append("execute")
    return tags


class HookRegistry:
    """Registry of hooks found in one hook directory.

    Args:
        hook_directory: Directory to scan; defaults to CCFORGE_HOOK_DIR or ~/.claude/hooks
        runtimes: Runtime variants to support; defaults to shell, python and node
        default_timeout_ms: Timeout given to every discovered hook
    """

    def __init__(self, hook_directory: Union[str, Path, None] = None,
                 runtimes: Optional[Sequence[HookRuntime]] = None,
                 default_timeout_ms: int = DEFAULT_HOOK_TIMEOUT_MS):
        if default_timeout_ms <= 0:
            raise ValueError("default_timeout_ms must be a positive integer")
        self.hook_directory = Path(hook_directory) if hook_directory else default_hook_directory()
        self.default_timeout_ms = default_timeout_ms
        self.logger = get_logger()

        self._runtimes: List[HookRuntime] = list(runtimes) if runtimes is not None else default_runtimes()
        self._runtime_by_type: Dict[RuntimeType, HookRuntime] = {
            runtime.runtime_type: runtime for runtime in self._runtimes
        }

        self._hooks: Dict[str, HookDescriptor] = {}
        self._names: Dict[str, str] = {}
        self._states: Dict[str, HookState] = {}
        self._lock = threading.Lock()

    # ---- discovery and validation ----

    def discover(self, directory: Union[str, Path, None] = None) -> List[HookDescriptor]:
        """Scan a directory (non-recursive) and register new hook scripts.

        Files no runtime claims are skipped silently. Scripts already in the
        registry keep their existing descriptor. When two files share a stem,
        the first in sorted order owns the name.

        Returns:
            Descriptors added by this scan
        """
        directory = Path(directory) if directory else self.hook_directory
        if not directory.is_dir():
            self.logger.warning(f"Hook directory doesn't exist: {directory}",
                                hook_directory=str(directory))
            return []

        try:
            entries = sorted(directory.iterdir(), key=lambda p: p.name)
        except OSError as e:
            self.logger.error(f"Failed to scan hooks in {directory}", error=e)
            return []

        added = []
        for path in entries:
            if not path.is_file():
                continue
            runtime = select_runtime(path, self._runtimes)
            if runtime is None:
                continue

            descriptor = HookDescriptor(
                id=hook_id_for(path),
                name=path.stem,
                runtime_type=runtime.runtime_type,
                path=path.resolve(),
                timeout_ms=self.default_timeout_ms,
                permissions=_access_tags(path),
            )
            if self._register(descriptor):
                added.append(descriptor)
                self.logger.debug(f"Found {descriptor.runtime_type.value} hook: {descriptor.name}",
                                  hook_id=descriptor.id, path=str(descriptor.path))
        return added

    def _register(self, descriptor: HookDescriptor) -> bool:
        with self._lock:
            if descriptor.id in self._hooks:
                return False
            self._hooks[descriptor.id] = descriptor
            self._states[descriptor.id] = HookState.DISCOVERED
            owner_id = self._names.get(descriptor.name)
            if owner_id is None:
                self._names[descriptor.name] = descriptor.id
                return True

        owner = self._hooks[owner_id]
        self.logger.warning(
            f"Hook name collision: '{descriptor.name}' already used by {owner.path.name}; "
            f"{descriptor.path.name} is not addressable by name",
            hook_id=descriptor.id,
        )
        return True

    def validate(self, descriptor: HookDescriptor) -> HookValidationOutcome:
        """Run the runtime-specific validation and record the result.

        A failing hook is disabled. Never raises.
        """
        runtime = self._runtime_by_type.get(descriptor.runtime_type)
        self._states[descriptor.id] = HookState.VALIDATING

        if runtime is None:
            outcome = HookValidationOutcome(hook_id=descriptor.id, valid=True).fail(
                f"Unsupported hook type: {descriptor.runtime_type.value}")
        else:
            outcome = runtime.validate(descriptor)

        for warning in outcome.warnings:
            self.logger.warning(warning, hook=descriptor.name)

        if outcome.valid:
            # an operator disable made before validation still holds
            self._states[descriptor.id] = HookState.ENABLED if descriptor.enabled else HookState.DISABLED
            self.logger.info(f"{descriptor.runtime_type.value} hook {descriptor.name} validated",
                             enabled=descriptor.enabled)
        else:
            descriptor.enabled = False
            self._states[descriptor.id] = HookState.DISABLED
            self.logger.warning(f"Hook validation failed for {descriptor.name}: {outcome.reason}",
                                hook_id=descriptor.id)
        return outcome

    def initialize(self) -> List[HookValidationOutcome]:
        """Discover hooks, then validate every hook not validated yet."""
        self.discover()
        outcomes = []
        for descriptor in self.list_hooks():
            if self._states.get(descriptor.id) == HookState.DISCOVERED:
                outcomes.append(self.validate(descriptor))
        self.logger.info(f"Hook registry initialized: {len(self._hooks)} hooks",
                         hook_directory=str(self.hook_directory))
        return outcomes

    # ---- lookup ----

    def get(self, name: str) -> Optional[HookDescriptor]:
        hook_id = self._names.get(name)
        return self._hooks.get(hook_id) if hook_id else None

    def get_by_id(self, hook_id: str) -> Optional[HookDescriptor]:
        return self._hooks.get(hook_id)

    def state_of(self, name: str) -> Optional[HookState]:
        descriptor = self.get(name)
        return self._states.get(descriptor.id) if descriptor else None

    def list_hooks(self) -> List[HookDescriptor]:
        """All registered descriptors in discovery order."""
        return list(self._hooks.values())

    def get_hook_status(self) -> List[Dict[str, object]]:
        """Status rows for display: id, name, type, enabled, state and path."""
        rows = []
        for descriptor in self.list_hooks():
            row = descriptor.to_dict()
            row["state"] = self._states[descriptor.id].value
            rows.append(row)
        return rows

    def __len__(self) -> int:
        return len(self._hooks)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    # ---- operator controls ----

    def set_enabled(self, name: str, enabled: bool) -> bool:
        """Enable or disable a hook by name.

        Returns:
            False if no hook has that name
        """
        descriptor = self.get(name)
        if descriptor is None:
            return False
        descriptor.enabled = enabled
        self._states[descriptor.id] = HookState.ENABLED if enabled else HookState.DISABLED
        self.logger.audit("set_hook_enabled", resource=name, enabled=enabled)
        return True

    def disable_runtime(self, runtime_type: Union[RuntimeType, str]) -> int:
        """Disable every hook of one runtime family.

        Returns:
            Number of hooks that were enabled and are now disabled
        """
        runtime_type = RuntimeType(runtime_type)
        count = 0
        for descriptor in self.list_hooks():
            if descriptor.runtime_type == runtime_type and descriptor.enabled:
                descriptor.enabled = False
                self._states[descriptor.id] = HookState.DISABLED
                count += 1
        self.logger.audit("disable_runtime", resource=runtime_type.value, disabled=count)
        return count

    # ---- execution ----

    def execute(self, name: str, args: Sequence[str] = (),
                env: Optional[Mapping[str, str]] = None) -> HookExecutionResult:
        """Run a hook by name.

        Unknown or disabled hooks produce an immediate failure result.
        Never raises for hook failures.
        """
        descriptor = self.get(name)
        if descriptor is None:
            return HookExecutionResult.failure(f"Hook not found: {name}")
        if not descriptor.enabled:
            return HookExecutionResult.failure(f"Hook disabled: {name}")

        runtime = self._runtime_by_type.get(descriptor.runtime_type)
        if runtime is None:
            return HookExecutionResult.failure(
                f"Unsupported hook type: {descriptor.runtime_type.value}")

        result = runtime.execute(descriptor, list(args), env=env)
        if not result.success:
            self.logger.warning(f"Hook {name} failed: {result.error}", hook_id=descriptor.id)
        return result


__all__ = ["HookRegistry", "hook_id_for"]
