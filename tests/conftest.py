"""pytest configuration and shared fixtures for ccforge tests."""

import json
import sys
from pathlib import Path

import pytest

from ccforge.utils.logging import configure_logging


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep log files and hook lookups out of the user's home directory."""
    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("CCFORGE_LOG_DIR", str(log_dir))
    monkeypatch.delenv("CCFORGE_HOOK_DIR", raising=False)
    monkeypatch.delenv("CCFORGE_DEBUG", raising=False)
    configure_logging(log_dir=log_dir, enable_console=False)
    yield log_dir


@pytest.fixture
def hook_dir(tmp_path):
    directory = tmp_path / "hooks"
    directory.mkdir()
    return directory


@pytest.fixture
def write_hook(hook_dir):
    """Write a hook script into the hook directory."""

    def _write(filename: str, body: str, executable: bool = True) -> Path:
        path = hook_dir / filename
        path.write_text(body, encoding="utf-8")
        mode = 0o755 if executable else 0o644
        path.chmod(mode)
        return path

    return _write


@pytest.fixture
def python_hook_body():
    return (
        f"#!{sys.executable}\n"
        "import sys\n"
        "print('args:', ' '.join(sys.argv[1:]))\n"
    )


@pytest.fixture
def project_dir(tmp_path):
    directory = tmp_path / "project"
    directory.mkdir()
    return directory


@pytest.fixture
def write_project_config(project_dir):
    """Write ``.ccforge/config.json`` for the test project."""

    def _write(data) -> Path:
        config_path = project_dir / ".ccforge" / "config.json"
        config_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            config_path.write_text(data, encoding="utf-8")
        else:
            config_path.write_text(json.dumps(data), encoding="utf-8")
        return config_path

    return _write
