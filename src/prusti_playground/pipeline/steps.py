"""The image-assembly steps, in their required order."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

from prusti_playground.errors import BuildStepError, PrewarmError, WrapperUnavailableError
from prusti_playground.models.enums import BuildProfile
from prusti_playground.pipeline.base import BuildContext, Pipeline, Step
from prusti_playground.scaffold.generator import ScaffoldGenerator, ScaffoldLayout, strip_sources
from prusti_playground.scaffold.template import CrateManifest
from prusti_playground.toolchain.installer import ToolchainInstaller
from prusti_playground.wrapper.installer import WrapperInstaller

logger = logging.getLogger(__name__)


class InstallToolchainStep(Step):
    name = "install-toolchain"

    def run(self, ctx: BuildContext) -> dict[str, Any]:
        if ctx.source_dir is None:
            raise BuildStepError(self.name, "no toolchain source directory given")
        report = ToolchainInstaller(ctx.toolchain).install(ctx.source_dir)
        return {"install_root": str(report.install_root), "digests": report.digests}


class InstallWrapperStep(Step):
    name = "install-wrapper"

    def run(self, ctx: BuildContext) -> dict[str, Any]:
        installer = WrapperInstaller(ctx.toolchain, wrap_executable=ctx.wrap_executable)
        launchers = installer.install(ctx.settings.bin_dir)
        return {"launchers": [str(p) for p in launchers]}


class ScaffoldStep(Step):
    name = "scaffold"

    def run(self, ctx: BuildContext) -> dict[str, Any]:
        generator = ScaffoldGenerator(CrateManifest(name=ctx.settings.scaffold_name))
        layout = generator.generate(ctx.scaffold_dir)
        return {"manifest": str(layout.manifest), "entry_source": str(layout.entry_source)}


class ConfigureEnvironmentStep(Step):
    """Checks the environment layer is usable before any wrapped build runs."""

    name = "configure-environment"

    def run(self, ctx: BuildContext) -> dict[str, Any]:
        missing = ctx.toolchain.missing()
        if missing:
            raise BuildStepError(
                self.name,
                f"toolchain incomplete under {ctx.toolchain.install_root}: {', '.join(missing)}",
            )
        wrapper = ctx.environment.compiler_wrapper_path
        if wrapper is not None and not (wrapper.is_file() and os.access(wrapper, os.X_OK)):
            raise WrapperUnavailableError(wrapper)
        environ = ctx.environment.to_environ()
        for key in sorted(environ):
            logger.debug("env %s=%s", key, environ[key])
        return {"variables": sorted(environ)}


class PrewarmStep(Step):
    """Builds the scaffold once per profile so the cache ships in the image."""

    name = "prewarm"

    def run(self, ctx: BuildContext) -> dict[str, Any]:
        env = ctx.environment.apply_to(os.environ)
        timings: dict[str, float] = {}
        for profile in BuildProfile:
            argv = [ctx.settings.build_tool, "build", *profile.cargo_args]
            logger.info("Pre-warming %s profile: %s", profile.value, " ".join(argv))
            start = time.monotonic()
            exit_code = ctx.runner(argv, env, ctx.scaffold_dir)
            if exit_code != 0:
                raise PrewarmError(profile.value, exit_code)
            timings[profile.value] = round(time.monotonic() - start, 3)
        return {"timings": timings}


class StripSourcesStep(Step):
    name = "strip-sources"

    def run(self, ctx: BuildContext) -> dict[str, Any]:
        removed = strip_sources(ScaffoldLayout(ctx.scaffold_dir))
        return {"removed": [str(p) for p in removed]}


def default_steps() -> list[Step]:
    return [
        InstallToolchainStep(),
        InstallWrapperStep(),
        ScaffoldStep(),
        ConfigureEnvironmentStep(),
        PrewarmStep(),
        StripSourcesStep(),
    ]


def default_pipeline() -> Pipeline:
    return Pipeline(default_steps())


STEP_NAMES: tuple[str, ...] = tuple(step.name for step in default_steps())
