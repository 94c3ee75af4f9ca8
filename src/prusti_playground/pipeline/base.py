"""Sequential build pipeline: typed context, steps, and the runner."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import BuildStepError, PlaygroundError
from prusti_playground.models.toolchain import ToolchainArtifactSet
from prusti_playground.wrapper.intercept import CommandRunner, subprocess_runner

logger = logging.getLogger(__name__)

# (earlier, later): when both are present, earlier must run first.
_ORDERING: tuple[tuple[str, str], ...] = (
    ("install-toolchain", "scaffold"),
    ("install-toolchain", "prewarm"),
    ("install-wrapper", "scaffold"),
    ("install-wrapper", "prewarm"),
    ("scaffold", "prewarm"),
    ("prewarm", "strip-sources"),
)


@dataclass(frozen=True)
class BuildContext:
    """Everything a step needs; shared unchanged by all steps of a run.

    Attributes
    ----------
    settings:
        Orchestration settings (paths, tool names).
    environment:
        Session environment applied to every build the pipeline spawns.
    toolchain:
        Artifact set being installed.
    source_dir:
        Directory holding the prebuilt toolchain artifacts.  Only the
        install step reads it.
    runner:
        Process runner used for pre-warm builds.
    wrap_executable:
        Override for the command the launchers exec.
    """

    settings: Settings
    environment: EnvironmentConfig
    toolchain: ToolchainArtifactSet
    source_dir: Path | None = None
    runner: CommandRunner = subprocess_runner
    wrap_executable: str | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        environment: EnvironmentConfig,
        source_dir: Path | None = None,
        **kwargs: Any,
    ) -> BuildContext:
        return cls(
            settings=settings,
            environment=environment,
            toolchain=ToolchainArtifactSet.from_settings(settings),
            source_dir=source_dir,
            **kwargs,
        )

    @property
    def scaffold_dir(self) -> Path:
        return self.settings.scaffold_dir


@dataclass
class StepResult:
    """Outcome of a successful step."""

    name: str
    elapsed_seconds: float
    details: dict[str, Any] = field(default_factory=dict)


class Step(ABC):
    """One idempotent installation step.

    Subclasses set ``name`` and implement :meth:`run`, which raises on
    failure and may return details for the step result.
    """

    name: str

    @abstractmethod
    def run(self, ctx: BuildContext) -> dict[str, Any] | None:
        ...


class Pipeline:
    """Runs steps strictly in order, stopping at the first failure."""

    def __init__(self, steps: Sequence[Step]) -> None:
        names = [step.name for step in steps]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate step names in pipeline: {names}")
        for earlier, later in _ORDERING:
            if earlier in names and later in names and names.index(earlier) > names.index(later):
                raise ValueError(f"Step {earlier!r} must run before {later!r}")
        self._steps = list(steps)

    @property
    def names(self) -> list[str]:
        return [step.name for step in self._steps]

    def only(self, names: Iterable[str]) -> Pipeline:
        """Return a pipeline with just the named steps, in pipeline order."""
        wanted = set(names)
        unknown = wanted - set(self.names)
        if unknown:
            raise ValueError(
                f"Unknown step(s): {sorted(unknown)}. Known steps: {self.names}"
            )
        return Pipeline([step for step in self._steps if step.name in wanted])

    def run(self, ctx: BuildContext) -> list[StepResult]:
        results: list[StepResult] = []
        for step in self._steps:
            logger.info("Running step %s", step.name)
            start = time.monotonic()
            try:
                details = step.run(ctx) or {}
            except BuildStepError:
                logger.error("Step %s failed", step.name)
                raise
            except (PlaygroundError, OSError, ValueError) as exc:
                logger.error("Step %s failed: %s", step.name, exc)
                raise BuildStepError(step.name, str(exc), exc) from exc
            elapsed = round(time.monotonic() - start, 3)
            results.append(StepResult(name=step.name, elapsed_seconds=elapsed, details=details))
            logger.info("Step %s finished in %.3fs", step.name, elapsed)
        return results
