"""Recovery orchestrator tests: action derivation, execution and reports."""

import json
import stat

import pytest

from ccforge.models.recovery import RecoveryAction, RecoveryOutcome, RecoveryReport, Suggestion
from ccforge.services.advisory import SuggestionProvider
from ccforge.services.recovery_orchestrator import (
    RecoveryOrchestrator,
    detect_install_command,
    extract_path,
)
from ccforge.settings.project_config import load_project_config
from ccforge.types.enums import ActionType, ErrorCategory, Severity


class FailingProvider(SuggestionProvider):
    def suggest(self, error_description, context):
        raise RuntimeError("advisory service unreachable")


class StaticProvider(SuggestionProvider):
    def __init__(self):
        self.calls = []

    def suggest(self, error_description, context):
        self.calls.append((error_description, context))
        return [Suggestion("Pin the dependency", "Add it to package.json", Severity.LOW)]


@pytest.fixture
def orchestrator():
    return RecoveryOrchestrator()


class TestHelpers:

    def test_extract_path_from_oserror(self):
        assert extract_path(FileNotFoundError(2, "missing", "/srv/data.txt")) == "/srv/data.txt"

    def test_extract_path_from_message(self):
        assert extract_path("EACCES: permission denied, open './dist/app.js'") == "./dist/app.js"
        assert extract_path("ENOENT: stat /var/tmp/build failed") == "/var/tmp/build"
        assert extract_path("Something weird happened") is None

    @pytest.mark.parametrize("files,expected", [
        (["package.json"], "npm install"),
        (["package.json", "yarn.lock"], "yarn install"),
        (["package.json", "pnpm-lock.yaml"], "pnpm install"),
        (["Gemfile"], "bundle install"),
        ([], None),
    ])
    def test_detect_install_command(self, project_dir, files, expected):
        for name in files:
            (project_dir / name).write_text("{}")
        assert detect_install_command(project_dir) == expected

    def test_detect_pip_install(self, project_dir):
        (project_dir / "requirements.txt").write_text("")
        assert detect_install_command(project_dir).endswith("-m pip install -r requirements.txt")


class TestActionDerivation:
    """测试恢复动作的生成"""

    def test_permission_error_gives_critical_automated_fix(self, orchestrator, project_dir):
        actions = orchestrator.get_recovery_actions(
            "EACCES: permission denied, open './dist/app.js'", project_dir)

        assert actions[0].id == "fix-permissions"
        assert actions[0].action_type == ActionType.FIX_PERMISSIONS
        assert actions[0].priority == Severity.CRITICAL
        assert actions[0].automated
        assert actions[0].target == str(project_dir / "dist" / "app.js")

    def test_missing_module_gives_install_action(self, orchestrator, project_dir):
        actions = orchestrator.get_recovery_actions("Cannot find module 'express'", project_dir)

        assert [a.id for a in actions] == ["install-dependencies"]
        assert actions[0].priority == Severity.HIGH
        assert actions[0].automated
        assert actions[0].command == "npm install"
        assert "'express' is missing" in actions[0].description

    def test_unknown_error_has_no_automated_action(self, orchestrator, project_dir):
        actions = orchestrator.get_recovery_actions("Something weird happened", project_dir)
        assert not any(a.automated for a in actions)

    def test_offline_error_gives_manual_step(self, orchestrator, project_dir):
        actions = orchestrator.get_recovery_actions("getaddrinfo ENOTFOUND registry.npmjs.org", project_dir)

        assert [a.id for a in actions] == ["manual-network"]
        assert actions[0].automated is False
        assert "network" in actions[0].description.lower()

    def test_secondary_matches_become_manual_steps(self, orchestrator, project_dir):
        actions = orchestrator.get_recovery_actions(
            "EACCES: permission denied, open '/srv/app/config.json'", project_dir)

        assert [a.id for a in actions] == ["fix-permissions", "manual-configuration"]
        assert [a.automated for a in actions] == [True, False]
        assert actions[1].action_type == ActionType.MANUAL
        ranks = [a.priority.rank for a in actions]
        assert ranks == sorted(ranks)

    @pytest.mark.parametrize("message", [
        "EACCES: permission denied, open './dist/app.js'",
        "Cannot find module 'express'",
        "getaddrinfo ENOTFOUND registry.npmjs.org",
        "fetch failed while downloading config",
        "ENOENT: no such file or directory, open 'build/out.txt'",
        "Invalid JSON in settings file",
        "EEXIST: file already exists, mkdir 'build'",
        "ENOSPC: no space left on device, write",
        "Something weird happened",
    ])
    def test_auto_fixable_matches_automated_actions(self, orchestrator, project_dir, message):
        analysis = orchestrator.analyze(message)
        actions = orchestrator.get_recovery_actions(message, project_dir)

        assert analysis.auto_fixable == any(a.automated for a in actions)
        assert sum(1 for a in actions if a.automated) <= 1

    def test_missing_file_targets_parent_directory(self, orchestrator, project_dir):
        actions = orchestrator.get_recovery_actions(
            "ENOENT: no such file or directory, open 'out/logs/app.log'", project_dir)

        assert actions[0].id == "create-missing-dirs"
        assert actions[0].target == str(project_dir / "out" / "logs")


class TestExecution:
    """测试恢复动作的执行"""

    def test_fix_permissions_restores_access(self, orchestrator, project_dir):
        target = project_dir / "dist" / "app.js"
        target.parent.mkdir()
        target.write_text("console.log(1)")
        target.chmod(0o200)

        report = orchestrator.recover_from_error(
            f"EACCES: permission denied, open '{target}'", project_dir)

        assert report.analysis.category == ErrorCategory.PERMISSION
        assert report.attempted == 1
        assert report.successful == 1
        assert report.fully_recovered
        mode = stat.S_IMODE(target.stat().st_mode)
        assert mode & 0o644 == 0o644

    def test_fix_permissions_on_vanished_target_succeeds(self, orchestrator, project_dir):
        report = orchestrator.recover_from_error(
            "EACCES: permission denied, open './gone.txt'", project_dir)

        assert report.fully_recovered
        assert "nothing to fix" in report.outcomes[0][1].message

    def test_install_without_manifest_fails(self, orchestrator, project_dir):
        report = orchestrator.recover_from_error("Cannot find module 'express'", project_dir)

        assert report.attempted == 1
        assert report.successful == 0
        assert not report.fully_recovered
        assert "No dependency manifest found" in report.outcomes[0][1].message

    def test_missing_directory_created(self, orchestrator, project_dir):
        missing = project_dir / "out" / "logs" / "app.log"
        report = orchestrator.recover_from_error(
            f"ENOENT: no such file or directory, open '{missing}'", project_dir)

        assert report.fully_recovered
        assert missing.parent.is_dir()

        again = orchestrator.recover_from_error(
            f"ENOENT: no such file or directory, open '{missing}'", project_dir)
        assert again.fully_recovered
        assert "already exists" in again.outcomes[0][1].message

    def test_settings_reset_with_backup(self, orchestrator, project_dir, write_project_config):
        config_path = write_project_config("{broken")
        cache = project_dir / ".ccforge" / "cache"
        cache.mkdir()
        (cache / "entry").write_text("stale")

        report = orchestrator.recover_from_error("Invalid JSON in settings file", project_dir)

        assert report.fully_recovered
        assert [a.id for a, _ in report.outcomes] == ["reset-config"]
        restored = load_project_config(project_dir)
        assert restored.project_name == "project"
        assert json.loads(config_path.read_text())["version"] == "1.0"
        assert list(config_path.parent.glob("config.json.*.bak"))
        assert not cache.exists()

    def test_unknown_error_attempts_nothing(self, orchestrator, project_dir):
        report = orchestrator.recover_from_error("Something weird happened", project_dir)

        assert report.analysis.category == ErrorCategory.UNKNOWN
        assert report.attempted == 0
        assert report.successful == 0
        assert not report.fully_recovered

    def test_manual_actions_are_not_executed(self, orchestrator, project_dir):
        report = orchestrator.recover_from_error("getaddrinfo ENOTFOUND registry.npmjs.org", project_dir)

        assert report.attempted == 0
        assert [a.id for a in report.manual_actions] == ["manual-network"]

    def test_unknown_action_type(self, orchestrator):
        action = RecoveryAction(
            id="teleport", action_type="teleport", title="Teleport", description="",
            priority=Severity.LOW, automated=True,
        )
        outcome = orchestrator.execute_action(action)
        assert outcome.success is False
        assert outcome.message == "Unknown action type: teleport"

    def test_manual_handler_refuses(self, orchestrator):
        action = RecoveryAction(
            id="manual-x", action_type=ActionType.MANUAL, title="Do it by hand",
            description="", priority=Severity.LOW, automated=False,
        )
        outcome = orchestrator.execute_action(action)
        assert outcome.success is False
        assert "requires operator intervention" in outcome.message

    def test_custom_handler(self, orchestrator, project_dir):
        calls = []

        def handler(action):
            calls.append(action.id)
            return RecoveryOutcome(True, "installed")

        orchestrator.register_handler(ActionType.INSTALL_DEPENDENCY, handler)
        report = orchestrator.recover_from_error("Cannot find module 'express'", project_dir)

        assert calls == ["install-dependencies"]
        assert report.fully_recovered

    def test_permission_error_on_settings_file_keeps_settings(self, orchestrator, project_dir,
                                                              write_project_config):
        config_path = write_project_config({"tech_stack": {"backend": "fastapi"}, "hook_timeout_ms": 1234})
        before = config_path.read_text()

        report = orchestrator.recover_from_error(
            f"EACCES: permission denied, open '{config_path}'", project_dir)

        assert report.analysis.category == ErrorCategory.PERMISSION
        assert [a.id for a, _ in report.outcomes] == ["fix-permissions"]
        assert "manual-configuration" in [a.id for a in report.manual_actions]
        assert config_path.read_text() == before
        assert not list(config_path.parent.glob("config.json.*.bak"))

    def test_raising_handler_becomes_failed_outcome(self, project_dir):
        provider = StaticProvider()
        orchestrator = RecoveryOrchestrator(suggestion_provider=provider)

        def handler(action):
            raise RuntimeError("disk went away")

        orchestrator.register_handler(ActionType.CREATE_DIRECTORY, handler)
        report = orchestrator.recover_from_error(
            "ENOENT: no such file or directory, open 'out/app.log'", project_dir)

        assert report.attempted == 1
        assert report.successful == 0
        outcome = report.outcomes[0][1]
        assert outcome.success is False
        assert "disk went away" in outcome.message
        assert report.manual_actions[-1].id == "ai-suggestion-0"

    @pytest.mark.parametrize("message", [
        "EACCES: permission denied, open './dist/app.js'",
        "Cannot find module 'express'",
        "getaddrinfo ENOTFOUND registry.npmjs.org",
        "ENOENT: no such file or directory, open 'build/out.txt'",
        "Invalid JSON in settings file",
        "EEXIST: file already exists, mkdir 'build'",
        "Something weird happened",
    ])
    def test_counts_are_consistent(self, orchestrator, project_dir, message):
        report = orchestrator.recover_from_error(message, project_dir)

        assert 0 <= report.successful <= report.attempted
        assert report.attempted == sum(1 for a in report.actions if a.automated)
        assert len(report.outcomes) == report.attempted
        assert all(not a.automated for a in report.manual_actions)


class TestAttemptPolicy:

    MESSAGE = "EACCES: permission denied, no such file or directory '{path}'"

    def plan(self, target):
        return [
            RecoveryAction(id="fix-permissions", action_type=ActionType.FIX_PERMISSIONS,
                           title="Fix file permissions", description="", priority=Severity.CRITICAL,
                           automated=True, target=str(target)),
            RecoveryAction(id="create-missing-dirs", action_type=ActionType.CREATE_DIRECTORY,
                           title="Create missing directories", description="", priority=Severity.HIGH,
                           automated=True, target=str(target)),
            RecoveryAction(id="manual-network", action_type=ActionType.MANUAL,
                           title="Check network connectivity", description="", priority=Severity.MEDIUM,
                           automated=False),
        ]

    def test_only_winning_rule_runs_unattended(self, orchestrator, project_dir):
        target = project_dir / "a" / "b"
        report = orchestrator.recover_from_error(self.MESSAGE.format(path=target), project_dir)

        assert [a.id for a, _ in report.outcomes] == ["fix-permissions"]
        assert [a.id for a in report.manual_actions] == ["manual-missing_path"]
        assert not target.exists()

    def test_all_automated_actions_attempted_by_default(self, orchestrator, project_dir):
        target = project_dir / "a" / "b"
        report = RecoveryReport(analysis=orchestrator.analyze("EACCES"))
        orchestrator.execute_actions(self.plan(target), report)

        assert [a.id for a, _ in report.outcomes] == ["fix-permissions", "create-missing-dirs"]
        assert report.attempted == 2
        assert [a.id for a in report.manual_actions] == ["manual-network"]
        assert target.is_dir()

    def test_stop_after_first_success(self, project_dir):
        orchestrator = RecoveryOrchestrator(stop_after_first_success=True)
        target = project_dir / "a" / "b"
        report = RecoveryReport(analysis=orchestrator.analyze("EACCES"))
        orchestrator.execute_actions(self.plan(target), report)

        assert report.attempted == 1
        assert report.outcomes[0][0].id == "fix-permissions"
        assert not target.exists()


class TestAdvisory:
    """测试可选的建议提供者"""

    def test_failing_provider_is_ignored(self, project_dir):
        orchestrator = RecoveryOrchestrator(suggestion_provider=FailingProvider())
        report = orchestrator.recover_from_error("Something weird happened", project_dir)

        assert report.manual_actions == []
        assert report.attempted == 0

    def test_suggestions_become_manual_steps(self, project_dir):
        provider = StaticProvider()
        orchestrator = RecoveryOrchestrator(suggestion_provider=provider)
        report = orchestrator.recover_from_error("Cannot find module 'express'", project_dir)

        suggestion = report.manual_actions[-1]
        assert suggestion.id == "ai-suggestion-0"
        assert suggestion.automated is False
        assert suggestion.title == "Pin the dependency"
        assert provider.calls[0][1]["category"] == "dependency"


class TestRunWithRecovery:

    def test_success_passes_through(self, orchestrator, project_dir):
        assert orchestrator.run_with_recovery(lambda: 42, project_dir) == 42

    def test_failure_recovers_then_reraises(self, orchestrator, project_dir):
        reports = []
        missing = project_dir / "cache-dir" / "data"

        def operation():
            raise FileNotFoundError(2, "No such file or directory", str(missing))

        with pytest.raises(FileNotFoundError):
            orchestrator.run_with_recovery(operation, project_dir, on_report=reports.append)

        assert reports[0].analysis.rule == "missing_path"
        assert missing.is_dir()
