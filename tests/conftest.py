"""Shared fixtures: fake toolchain outputs, settings rooted in tmp_path, runners."""

from __future__ import annotations

from pathlib import Path

import pytest

from prusti_playground.config import RECOGNIZED_VARS, Settings
from prusti_playground.models.toolchain import DEFAULT_ARTIFACTS

FAKE_SCRIPT = "#!/bin/sh\nexit 0\n"


class RecordingRunner:
    """CommandRunner that records calls and returns canned exit codes.

    ``codes`` maps an executable's base name to the status it returns.
    """

    def __init__(self, codes: dict[str, int] | None = None) -> None:
        self.codes = codes or {}
        self.calls: list[tuple[list[str], dict[str, str], Path | None]] = []

    def __call__(self, argv, env, cwd=None) -> int:
        self.calls.append((list(argv), dict(env), cwd))
        return self.codes.get(Path(argv[0]).name, 0)

    @property
    def argvs(self) -> list[list[str]]:
        return [argv for argv, _, _ in self.calls]


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch):
    """Keep the developer's own environment out of every test."""
    for name in RECOGNIZED_VARS | {"RUSTC_WRAPPER"}:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def toolchain_source(tmp_path: Path) -> Path:
    """A directory holding every default artifact; executables are mode 0755."""
    source = tmp_path / "build-output"
    source.mkdir()
    for name in DEFAULT_ARTIFACTS:
        path = source / name
        if name.endswith(".rlib"):
            path.write_bytes(b"!<arch>\n" + name.encode())
            path.chmod(0o644)
        else:
            path.write_text(FAKE_SCRIPT + f"# {name}\n")
            path.chmod(0o755)
    return source


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        install_root=tmp_path / "opt" / "prusti",
        bin_dir=tmp_path / "bin",
        scaffold_dir=tmp_path / "playground",
    )


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()
