"""Hook registry tests: discovery, validation, lifecycle and execution."""

import shutil
import time

import pytest

from ccforge.services.hook_registry import HookRegistry, hook_id_for
from ccforge.services.hook_runtimes import (
    NodeRuntime,
    PythonRuntime,
    ShellRuntime,
    default_runtimes,
    select_runtime,
    shebang_program,
)
from ccforge.types.enums import HookState, RuntimeType

SHELL_ECHO = '#!/bin/sh\necho "hello $1"\n'


class TestShebangParsing:
    """测试shebang解析"""

    @pytest.mark.parametrize("line,expected", [
        ("#!/bin/sh", "sh"),
        ("#!/usr/bin/env bash", "bash"),
        ("#!/usr/bin/env python3", "python"),
        ("#!/usr/bin/python3.11", "python"),
        ("#!/usr/bin/env -S node --no-warnings", "node"),
        ("#!", None),
    ])
    def test_shebang_program(self, line, expected):
        assert shebang_program(line) == expected

    def test_select_runtime_by_extension(self, tmp_path):
        runtimes = default_runtimes()
        assert isinstance(select_runtime(tmp_path / "a.sh", runtimes), ShellRuntime)
        assert isinstance(select_runtime(tmp_path / "a.py", runtimes), PythonRuntime)
        assert isinstance(select_runtime(tmp_path / "a.mjs", runtimes), NodeRuntime)
        assert select_runtime(tmp_path / "README.md", runtimes) is None

    def test_select_runtime_by_shebang_for_extensionless_file(self, tmp_path):
        script = tmp_path / "pre-commit"
        script.write_text("#!/usr/bin/env bash\nexit 0\n")
        assert isinstance(select_runtime(script, default_runtimes()), ShellRuntime)

        plain = tmp_path / "notes"
        plain.write_text("just text\n")
        assert select_runtime(plain, default_runtimes()) is None


class TestDiscovery:
    """测试钩子发现"""

    def test_discovers_supported_scripts_only(self, hook_dir, write_hook, python_hook_body):
        write_hook("greet.sh", SHELL_ECHO)
        write_hook("report.py", python_hook_body)
        (hook_dir / "README.md").write_text("docs")
        (hook_dir / "nested").mkdir()

        registry = HookRegistry(hook_dir)
        added = registry.discover()

        assert sorted(d.name for d in added) == ["greet", "report"]
        assert len(registry) == 2
        assert registry.get("greet").runtime_type == RuntimeType.SHELL
        assert registry.get("report").runtime_type == RuntimeType.PYTHON
        assert registry.state_of("greet") == HookState.DISCOVERED

    def test_missing_directory_yields_nothing(self, tmp_path):
        registry = HookRegistry(tmp_path / "missing")
        assert registry.discover() == []
        assert len(registry) == 0

    def test_rediscovery_keeps_existing_descriptors(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        first = registry.discover()
        assert registry.discover() == []
        assert registry.get("greet") is first[0]

    def test_hook_id_is_stable(self, hook_dir, write_hook):
        path = write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        registry.discover()
        descriptor = registry.get("greet")
        assert descriptor.id == hook_id_for(path)
        assert registry.get_by_id(descriptor.id) is descriptor

    def test_name_collision_first_sorted_file_wins(self, hook_dir, write_hook, python_hook_body):
        write_hook("dup.sh", SHELL_ECHO)
        write_hook("dup.py", python_hook_body)

        registry = HookRegistry(hook_dir)
        registry.discover()

        assert len(registry) == 2
        assert registry.get("dup").runtime_type == RuntimeType.PYTHON

    def test_default_timeout_applied(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir, default_timeout_ms=1234)
        registry.discover()
        assert registry.get("greet").timeout_ms == 1234

    def test_rejects_non_positive_timeout(self, hook_dir):
        with pytest.raises(ValueError):
            HookRegistry(hook_dir, default_timeout_ms=0)


class TestValidation:
    """测试钩子验证与状态转换"""

    def test_executable_shell_hook_enabled(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        outcomes = registry.initialize()

        assert [o.valid for o in outcomes] == [True]
        assert registry.state_of("greet") == HookState.ENABLED
        assert registry.get("greet").enabled

    def test_non_executable_shell_hook_disabled(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO, executable=False)
        registry = HookRegistry(hook_dir)
        outcomes = registry.initialize()

        assert outcomes[0].valid is False
        assert outcomes[0].reason == "Not executable"
        assert registry.state_of("greet") == HookState.DISABLED
        assert registry.get("greet").enabled is False

    def test_python_hook_without_shebang_warns(self, hook_dir, write_hook):
        write_hook("plain.py", "print('ok')\n", executable=False)
        registry = HookRegistry(hook_dir)
        outcomes = registry.initialize()

        assert outcomes[0].valid
        assert any("missing proper shebang" in w for w in outcomes[0].warnings)
        assert registry.state_of("plain") == HookState.ENABLED

    def test_python_hook_failing_probe_disabled(self, hook_dir, write_hook):
        write_hook("broken.py", "#!/usr/bin/env python3\nimport sys\nsys.exit(3)\n")
        registry = HookRegistry(hook_dir)
        outcomes = registry.initialize()

        assert outcomes[0].valid is False
        assert "exit code 3" in outcomes[0].reason
        assert registry.state_of("broken") == HookState.DISABLED

    def test_missing_interpreter_disables_hook(self, hook_dir, write_hook):
        write_hook("app.js", "console.log('hi')\n")
        registry = HookRegistry(hook_dir, runtimes=[NodeRuntime(interpreter="ccforge-no-such-node")])
        outcomes = registry.initialize()

        assert outcomes[0].valid is False
        assert "not available" in outcomes[0].reason

    def test_initialize_validates_only_new_hooks(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        assert len(registry.initialize()) == 1
        assert registry.initialize() == []

    def test_hook_status_rows(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        registry.initialize()

        rows = registry.get_hook_status()
        assert rows[0]["name"] == "greet"
        assert rows[0]["type"] == "shell"
        assert rows[0]["state"] == "enabled"
        assert "execute" in rows[0]["permissions"]


class TestOperatorControls:
    """测试启用/禁用控制"""

    def test_set_enabled(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        registry.initialize()

        assert registry.set_enabled("greet", False)
        assert registry.state_of("greet") == HookState.DISABLED
        assert registry.set_enabled("greet", True)
        assert registry.state_of("greet") == HookState.ENABLED
        assert registry.set_enabled("missing", True) is False

    def test_disable_before_validation_survives_validation(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        registry.discover()
        registry.set_enabled("greet", False)

        outcome = registry.validate(registry.get("greet"))

        assert outcome.valid
        assert registry.get("greet").enabled is False
        assert registry.state_of("greet") == HookState.DISABLED
        assert registry.execute("greet").success is False

    def test_disable_runtime(self, hook_dir, write_hook, python_hook_body):
        write_hook("one.py", python_hook_body)
        write_hook("two.py", python_hook_body)
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        registry.initialize()

        assert registry.disable_runtime("python") == 2
        assert registry.disable_runtime(RuntimeType.PYTHON) == 0
        assert registry.get("greet").enabled
        assert not registry.get("one").enabled


class TestExecution:
    """测试钩子执行"""

    def test_shell_hook_runs_with_args(self, hook_dir, write_hook):
        write_hook("greet.sh", SHELL_ECHO)
        registry = HookRegistry(hook_dir)
        registry.initialize()

        result = registry.execute("greet", ["world"])
        assert result.success
        assert result.exit_code == 0
        assert result.stdout == "hello world\n"
        assert result.error is None
        assert result.duration_ms >= 0

    def test_python_hook_runs(self, hook_dir, write_hook, python_hook_body):
        write_hook("report.py", python_hook_body)
        registry = HookRegistry(hook_dir)
        registry.initialize()

        result = registry.execute("report", ["--verbose"])
        assert result.success
        assert result.stdout.strip() == "args: --verbose"

    @pytest.mark.skipif(shutil.which("node") is None, reason="node not installed")
    def test_node_hook_runs(self, hook_dir, write_hook):
        write_hook("notify.js", "console.log('node', process.argv.slice(2).join(' '));\n")
        registry = HookRegistry(hook_dir)
        registry.initialize()

        result = registry.execute("notify", ["a", "b"])
        assert result.success
        assert result.stdout.strip() == "node a b"

    def test_environment_passed_to_hook(self, hook_dir, write_hook):
        write_hook("env.sh", '#!/bin/sh\necho "$CCFORGE_TEST_VALUE"\n')
        registry = HookRegistry(hook_dir)
        registry.initialize()

        result = registry.execute("env", env={"CCFORGE_TEST_VALUE": "from-test"})
        assert result.stdout.strip() == "from-test"

    def test_failing_hook_reports_exit_code(self, hook_dir, write_hook):
        write_hook("fail.sh", "#!/bin/sh\necho oops >&2\nexit 7\n")
        registry = HookRegistry(hook_dir)
        registry.initialize()

        result = registry.execute("fail")
        assert result.success is False
        assert result.exit_code == 7
        assert result.stderr.strip() == "oops"
        assert "exit code 7" in result.error

    def test_hook_timeout(self, hook_dir, write_hook):
        write_hook("slow.sh", "#!/bin/sh\nsleep 10\n")
        registry = HookRegistry(hook_dir, default_timeout_ms=300)
        registry.initialize()

        start = time.monotonic()
        result = registry.execute("slow")
        elapsed = time.monotonic() - start

        assert result.success is False
        assert result.timed_out
        assert result.exit_code is None
        assert result.error == "Hook timeout after 300ms"
        assert 300 <= result.duration_ms < 1800
        assert elapsed < 8

    def test_unknown_hook(self, hook_dir):
        registry = HookRegistry(hook_dir)
        registry.initialize()

        result = registry.execute("missing")
        assert result.success is False
        assert result.error == "Hook not found: missing"
        assert result.duration_ms == 0

    def test_disabled_hook_not_run(self, hook_dir, write_hook):
        marker = hook_dir / "ran"
        write_hook("touch.sh", f"#!/bin/sh\ntouch {marker}\n")
        registry = HookRegistry(hook_dir)
        registry.initialize()
        registry.set_enabled("touch", False)

        result = registry.execute("touch")
        assert result.success is False
        assert result.error == "Hook disabled: touch"
        assert not marker.exists()
