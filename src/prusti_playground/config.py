"""Configuration for the playground.

Two layers live here:

* :class:`Settings` -- orchestration knobs (paths, image tag, limits) loaded
  from ``PLAYGROUND_*`` environment variables.
* :class:`EnvironmentConfig` -- the immutable session environment that
  controls wrapper behaviour.  It is built once, passed explicitly to every
  component that needs it, and rendered back into process environment
  variables only at process boundaries.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from prusti_playground.models.enums import LogLevel
from prusti_playground.models.toolchain import DEFAULT_ARTIFACTS

# Variables recognised by the environment layer.
WRAPPER_VAR = "COMPILER_WRAPPER_PATH"
FULL_COMPILATION_VAR = "FULL_COMPILATION"
UNSIGNED_CONSTRAINT_VAR = "ENCODE_UNSIGNED_NUM_CONSTRAINT"
LOG_LEVEL_VAR = "LOG_LEVEL"
SESSION_USER_VAR = "SESSION_USER"

RECOGNIZED_VARS: frozenset[str] = frozenset({
    WRAPPER_VAR,
    FULL_COMPILATION_VAR,
    UNSIGNED_CONSTRAINT_VAR,
    LOG_LEVEL_VAR,
    SESSION_USER_VAR,
})

# The build tool's own hook for substituting the compiler.
BUILD_TOOL_WRAPPER_VAR = "RUSTC_WRAPPER"

# Names under which the verifier reads the pass-through flags.
VERIFIER_VAR_PREFIX = "PRUSTI_"


class Settings(BaseSettings):
    """Orchestration configuration loaded from environment variables."""

    model_config = {"env_prefix": "PLAYGROUND_"}

    install_root: Path = Path("/usr/local/prusti")
    bin_dir: Path = Path("/usr/local/bin")
    scaffold_dir: Path = Path("/playground")
    scaffold_name: str = "playground"
    artifacts: tuple[str, ...] = DEFAULT_ARTIFACTS
    verifier_driver: str = "prusti-driver"
    real_compiler: str = "rustc"
    build_tool: str = "cargo"
    base_image: str = "rust:1-slim"
    image_tag: str = "prusti-playground:latest"
    package_spec: str = "prusti-playground"
    session_timeout_seconds: int = 120
    session_memory_limit_mb: int = 2048
    max_source_size_bytes: int = 65_536  # 64 KB
    log_level: str = "INFO"

    @property
    def default_wrapper_path(self) -> Path:
        """Launcher that ``COMPILER_WRAPPER_PATH`` points at in the image."""
        return self.bin_dir / "prusti-rustc"


def _flag(value: bool) -> str:
    return "true" if value else "false"


class EnvironmentConfig(BaseModel):
    """Process-wide session environment, fixed at construction.

    Attributes
    ----------
    compiler_wrapper_path:
        Interception executable.  When unset, compiler invocations are not
        wrapped at all.
    full_compilation:
        Continue to real compilation after successful verification.
    encode_unsigned_num_constraint:
        Passed through to the verifier untouched.
    log_level:
        Verbosity of the wrapper and the verifier.
    session_user:
        Identity the entrypoint runs the session as.
    """

    model_config = ConfigDict(frozen=True)

    compiler_wrapper_path: Path | None = None
    full_compilation: bool = True
    encode_unsigned_num_constraint: bool = True
    log_level: LogLevel = LogLevel.WARN
    session_user: str | None = Field(default=None, min_length=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "warning":
                return LogLevel.WARN
        return value

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> EnvironmentConfig:
        """Build the configuration from *environ* (defaults to ``os.environ``).

        Empty values are treated as unset.
        """
        if environ is None:
            environ = os.environ
        data: dict[str, str] = {}
        for name in RECOGNIZED_VARS:
            value = environ.get(name, "").strip()
            if value:
                data[name.lower()] = value
        return cls.model_validate(data)

    @classmethod
    def for_playground(
        cls,
        settings: Settings,
        environ: Mapping[str, str] | None = None,
    ) -> EnvironmentConfig:
        """Like :meth:`from_environ`, but wrapping defaults to the installed launcher."""
        config = cls.from_environ(environ)
        if config.compiler_wrapper_path is None:
            config = config.model_copy(
                update={"compiler_wrapper_path": settings.default_wrapper_path}
            )
        return config

    @property
    def wrapping_enabled(self) -> bool:
        return self.compiler_wrapper_path is not None

    def to_environ(self) -> dict[str, str]:
        """Render as environment variables for child processes and images."""
        env: dict[str, str] = {
            FULL_COMPILATION_VAR: _flag(self.full_compilation),
            UNSIGNED_CONSTRAINT_VAR: _flag(self.encode_unsigned_num_constraint),
            LOG_LEVEL_VAR: self.log_level.value,
            VERIFIER_VAR_PREFIX + FULL_COMPILATION_VAR: _flag(self.full_compilation),
            VERIFIER_VAR_PREFIX + UNSIGNED_CONSTRAINT_VAR: _flag(
                self.encode_unsigned_num_constraint
            ),
            VERIFIER_VAR_PREFIX + LOG_LEVEL_VAR: self.log_level.value,
        }
        if self.compiler_wrapper_path is not None:
            env[WRAPPER_VAR] = str(self.compiler_wrapper_path)
            env[BUILD_TOOL_WRAPPER_VAR] = str(self.compiler_wrapper_path)
        if self.session_user:
            env[SESSION_USER_VAR] = self.session_user
        return env

    def apply_to(self, base: Mapping[str, str]) -> dict[str, str]:
        """Merge this configuration over *base*.

        When wrapping is disabled any inherited wrapper variables are
        removed, so the child sees the plain toolchain.
        """
        merged = dict(base)
        if not self.wrapping_enabled:
            merged.pop(WRAPPER_VAR, None)
            merged.pop(BUILD_TOOL_WRAPPER_VAR, None)
        merged.update(self.to_environ())
        return merged
