"""Tests for the container entrypoint."""

from __future__ import annotations

import os
import pwd
from pathlib import Path

import pytest

from prusti_playground import entrypoint
from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import BootstrapError


class _ExecRecorder:
    def __init__(self, error: OSError | None = None) -> None:
        self.error = error
        self.calls: list[tuple[str, list[str], dict[str, str]]] = []

    def __call__(self, file, args, env):
        self.calls.append((file, list(args), dict(env)))
        if self.error is not None:
            raise self.error


@pytest.fixture
def scaffold(tmp_path, monkeypatch) -> Path:
    path = tmp_path / "playground"
    path.mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PLAYGROUND_SCAFFOLD_DIR", str(path))
    return path


class TestBootstrap:
    def test_enters_scaffold_with_environment(self, scaffold):
        environment = EnvironmentConfig(compiler_wrapper_path=Path("/usr/local/bin/prusti-rustc"))
        env = entrypoint.bootstrap(Settings(), environment, base_environ={"PATH": "/bin"})
        assert Path.cwd() == scaffold
        assert env["PWD"] == str(scaffold)
        assert env["PATH"] == "/bin"
        assert env["RUSTC_WRAPPER"] == "/usr/local/bin/prusti-rustc"
        assert env["FULL_COMPILATION"] == "true"

    def test_missing_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings(scaffold_dir=tmp_path / "absent")
        with pytest.raises(BootstrapError, match="cannot enter"):
            entrypoint.bootstrap(settings, EnvironmentConfig(), base_environ={})

    def test_unknown_session_user(self, scaffold):
        environment = EnvironmentConfig(session_user="no-such-user-for-playground-tests")
        with pytest.raises(BootstrapError, match="does not exist"):
            entrypoint.bootstrap(Settings(), environment, base_environ={})

    def test_current_user_is_noop(self, scaffold):
        name = pwd.getpwuid(os.geteuid()).pw_name
        env = entrypoint.bootstrap(
            Settings(), EnvironmentConfig(session_user=name), base_environ={}
        )
        assert env["SESSION_USER"] == name
        assert Path.cwd() == scaffold


class TestMain:
    def test_hands_off_to_command(self, scaffold, monkeypatch):
        recorder = _ExecRecorder()
        monkeypatch.setattr(os, "execvpe", recorder)
        monkeypatch.setenv("FULL_COMPILATION", "false")

        assert entrypoint.main(["cargo", "build"]) == 0
        file, args, env = recorder.calls[0]
        assert file == "cargo"
        assert args == ["cargo", "build"]
        assert env["FULL_COMPILATION"] == "false"
        assert Path.cwd() == scaffold

    def test_defaults_to_shell(self, scaffold, monkeypatch):
        recorder = _ExecRecorder()
        monkeypatch.setattr(os, "execvpe", recorder)
        monkeypatch.setenv("SHELL", "/bin/zsh")
        entrypoint.main([])
        assert recorder.calls[0][1] == ["/bin/zsh"]

    def test_defaults_to_bash_without_shell(self, scaffold, monkeypatch):
        recorder = _ExecRecorder()
        monkeypatch.setattr(os, "execvpe", recorder)
        monkeypatch.delenv("SHELL", raising=False)
        entrypoint.main([])
        assert recorder.calls[0][1] == ["/bin/bash"]

    def test_bootstrap_failure_exits_2(self, tmp_path, monkeypatch):
        recorder = _ExecRecorder()
        monkeypatch.setattr(os, "execvpe", recorder)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PLAYGROUND_SCAFFOLD_DIR", str(tmp_path / "absent"))
        assert entrypoint.main(["true"]) == 2
        assert recorder.calls == []

    def test_exec_failure_exits_127(self, scaffold, monkeypatch):
        monkeypatch.setattr(os, "execvpe", _ExecRecorder(FileNotFoundError("nope")))
        assert entrypoint.main(["no-such-command"]) == 127
