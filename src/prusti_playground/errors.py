"""Exception hierarchy for the playground orchestration layer.

Build-time failures derive from :class:`BuildStepError` and always carry the
name of the failing step.  Wrapper-routing failures are reported through
:class:`WrapperUnavailableError` and are never converted into a fallback to
the unwrapped compiler.
"""

from __future__ import annotations

from pathlib import Path


class PlaygroundError(Exception):
    """Base class for all playground errors."""


class BuildStepError(PlaygroundError):
    """A fatal build-time step failure.  Aborts image assembly."""

    def __init__(self, step: str, message: str, cause: BaseException | None = None) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"step '{step}' failed: {message}")


class MissingArtifactError(BuildStepError):
    """One or more toolchain artifacts are absent from the source directory."""

    def __init__(self, missing: list[str], source_dir: Path) -> None:
        self.missing = sorted(missing)
        self.source_dir = source_dir
        super().__init__(
            "install-toolchain",
            f"missing artifact(s) in {source_dir}: {', '.join(self.missing)}",
        )


class ScaffoldError(BuildStepError):
    """The playground scaffold could not be generated."""

    def __init__(self, message: str) -> None:
        super().__init__("scaffold", message)


class PrewarmError(BuildStepError):
    """A pre-warm build pass exited non-zero."""

    def __init__(self, profile: str, exit_code: int) -> None:
        self.profile = profile
        self.exit_code = exit_code
        super().__init__(
            "prewarm",
            f"{profile} build exited with status {exit_code}",
        )


class WrapperUnavailableError(PlaygroundError):
    """The compiler wrapper or verifier is missing or not executable."""

    def __init__(self, path: Path | str, reason: str = "missing or not executable") -> None:
        self.path = Path(path)
        super().__init__(
            f"compiler wrapper unavailable: {self.path} is {reason}; "
            "refusing to fall back to unverified compilation"
        )


class BootstrapError(PlaygroundError):
    """The entrypoint could not set up its session."""
