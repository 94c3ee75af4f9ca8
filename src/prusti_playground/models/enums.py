"""LogLevel, BuildProfile, InvocationMode, and Action enums."""

import logging
from enum import StrEnum


class LogLevel(StrEnum):
    """Verbosity accepted by ``LOG_LEVEL`` and forwarded to the verifier."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"

    def to_logging(self) -> int:
        """Return the matching stdlib :mod:`logging` level."""
        return _LOGGING_LEVELS[self]


_LOGGING_LEVELS: dict[LogLevel, int] = {
    LogLevel.ERROR: logging.ERROR,
    LogLevel.WARN: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.TRACE: logging.DEBUG,
}


class BuildProfile(StrEnum):
    """Build profiles exercised by the pre-warm step, in execution order."""

    DEBUG = "debug"
    RELEASE = "release"

    @property
    def cargo_args(self) -> list[str]:
        return ["--release"] if self is BuildProfile.RELEASE else []


class InvocationMode(StrEnum):
    """Invocation styles served by the two installed launchers.

    RUSTC - direct single-file compilation (``prusti-rustc file.rs``), also
            the style the build tool uses when calling ``RUSTC_WRAPPER``.
    CARGO - manifest-driven build (``cargo prusti``).
    """

    RUSTC = "rustc"
    CARGO = "cargo"


class Action(StrEnum):
    """Outcome of intercepting a compiler invocation."""

    PROCEED = "proceed"
    HALT = "halt"
    DELEGATE = "delegate"
