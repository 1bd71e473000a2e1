import io

import pytest
from rich.console import Console

from npmload.config import config


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep every test away from the real home directory, cwd and API keys"""
    monkeypatch.setattr(config, "config_dir", str(tmp_path / ".npmload"))
    monkeypatch.setattr(config, "enable_logging", False)
    for name in config.api_key_env_vars:
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def quiet_console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def fake_which():
    """Resolve every program to /usr/bin/<name>"""
    return lambda name, path=None: f"/usr/bin/{name}"
