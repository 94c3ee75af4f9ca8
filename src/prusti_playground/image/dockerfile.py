"""Dockerfile rendering: one image layer per pipeline step."""

from __future__ import annotations

import json

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.models.toolchain import DEFAULT_ARTIFACTS
from prusti_playground.pipeline.steps import STEP_NAMES

# Location of the toolchain inside the build context and the build stage.
CONTEXT_TOOLCHAIN_DIR = "toolchain"
STAGED_TOOLCHAIN_DIR = "/tmp/prusti-toolchain"

ENTRYPOINT = "prusti-playground-entrypoint"

_PYTHON_SETUP = """\
RUN apt-get update && apt-get install -y --no-install-recommends \\
    python3 python3-pip \\
    && rm -rf /var/lib/apt/lists/*"""


def _env_line(values: dict[str, str]) -> str:
    pairs = [f"{key}={json.dumps(values[key])}" for key in sorted(values)]
    return "ENV " + " \\\n    ".join(pairs)


def settings_environ(settings: Settings) -> dict[str, str]:
    """``PLAYGROUND_*`` variables that pin the settings used by the steps."""
    env = {
        "PLAYGROUND_INSTALL_ROOT": str(settings.install_root),
        "PLAYGROUND_BIN_DIR": str(settings.bin_dir),
        "PLAYGROUND_SCAFFOLD_DIR": str(settings.scaffold_dir),
        "PLAYGROUND_SCAFFOLD_NAME": settings.scaffold_name,
        "PLAYGROUND_VERIFIER_DRIVER": settings.verifier_driver,
        "PLAYGROUND_REAL_COMPILER": settings.real_compiler,
        "PLAYGROUND_BUILD_TOOL": settings.build_tool,
    }
    if settings.artifacts != DEFAULT_ARTIFACTS:
        env["PLAYGROUND_ARTIFACTS"] = json.dumps(list(settings.artifacts))
    return env


def render_dockerfile(settings: Settings, environment: EnvironmentConfig) -> str:
    """Render the playground Dockerfile.

    Steps before ``configure-environment`` run without the session
    environment; its ``ENV`` layer is placed right before that step so
    pre-warm builds run wrapped, exactly as user builds will.
    """
    lines: list[str] = [
        "# syntax=docker/dockerfile:1",
        f"FROM {settings.base_image}",
        "",
        f'LABEL org.opencontainers.image.title="{settings.image_tag}"',
        "",
        "ENV DEBIAN_FRONTEND=noninteractive",
        _PYTHON_SETUP,
        f"RUN pip3 install --break-system-packages --no-cache-dir {json.dumps(settings.package_spec)}",
        "",
        _env_line(settings_environ(settings)),
    ]

    if environment.session_user:
        lines.append(f"RUN useradd --create-home {environment.session_user}")

    lines.append("")
    lines.append(f"COPY {CONTEXT_TOOLCHAIN_DIR}/ {STAGED_TOOLCHAIN_DIR}/")

    for name in STEP_NAMES:
        if name == "configure-environment":
            lines.append("")
            lines.append(_env_line(environment.to_environ()))
        if name == "install-toolchain":
            lines.append(
                f"RUN prusti-playground step {name} --source {STAGED_TOOLCHAIN_DIR}"
                f" && rm -rf {STAGED_TOOLCHAIN_DIR}"
            )
        else:
            lines.append(f"RUN prusti-playground step {name}")

    if environment.session_user:
        lines.append(f"RUN chown -R {environment.session_user} {settings.scaffold_dir}")

    lines.extend([
        "",
        f"WORKDIR {settings.scaffold_dir}",
        f'ENTRYPOINT ["{ENTRYPOINT}"]',
        "",
    ])
    return "\n".join(lines)
