"""Installs the two compiler launchers on the executable search path."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import textwrap
from pathlib import Path

from prusti_playground.errors import BuildStepError
from prusti_playground.models.enums import InvocationMode
from prusti_playground.models.toolchain import ToolchainArtifactSet

logger = logging.getLogger(__name__)

WRAP_EXECUTABLE = "prusti-playground-wrap"

# Launcher name -> invocation style it serves.
LAUNCHERS: dict[str, InvocationMode] = {
    "prusti-rustc": InvocationMode.RUSTC,
    "cargo-prusti": InvocationMode.CARGO,
}

_LAUNCHER_TEMPLATE = textwrap.dedent("""\
    #!/bin/sh
    # {name}: {mode} invocations routed through verification.
    # Generated by prusti-playground; do not edit.
    if [ ! -d {install_root} ]; then
        echo "{name}: toolchain not found at "{install_root} >&2
        exit 127
    fi
    exec {wrap} {mode} "$@"
""")


def render_launcher(name: str, mode: InvocationMode, install_root: Path, wrap: str) -> str:
    """Return the shell text of a single launcher."""
    return _LAUNCHER_TEMPLATE.format(
        name=name,
        mode=mode.value,
        install_root=shlex.quote(str(install_root)),
        wrap=shlex.quote(wrap),
    )


class WrapperInstaller:
    """Writes ``prusti-rustc`` and ``cargo-prusti`` into a bin directory.

    Both launchers delegate to ``prusti-playground-wrap``, which resolves
    the installed toolchain and applies the interception policy.  A launcher
    whose toolchain root has disappeared exits 127 instead of running the
    plain compiler.
    """

    def __init__(self, toolchain: ToolchainArtifactSet, wrap_executable: str | None = None) -> None:
        self._toolchain = toolchain
        self._wrap = wrap_executable or shutil.which(WRAP_EXECUTABLE) or WRAP_EXECUTABLE

    def install(self, bin_dir: Path) -> list[Path]:
        """Write both launchers into *bin_dir* and return their paths."""
        bin_dir = Path(bin_dir)
        installed: list[Path] = []
        try:
            bin_dir.mkdir(parents=True, exist_ok=True)
            for name, mode in LAUNCHERS.items():
                path = bin_dir / name
                path.write_text(
                    render_launcher(name, mode, self._toolchain.install_root, self._wrap),
                    encoding="utf-8",
                )
                path.chmod(0o755)
                installed.append(path)
        except OSError as exc:
            raise BuildStepError("install-wrapper", str(exc), exc) from exc

        for path in installed:
            if not os.access(path, os.X_OK):
                raise BuildStepError("install-wrapper", f"{path} is not executable")
            logger.info("Installed launcher %s", path)
        return installed
