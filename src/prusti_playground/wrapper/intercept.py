"""Command-interception interface for compiler invocations.

:class:`CompilerInterceptor` decides what happens to a compiler invocation
(:meth:`~CompilerInterceptor.intercept`) and carries the decision out
(:meth:`~CompilerInterceptor.execute`).  The policy -- whether successful
verification continues to real compilation -- comes from
:class:`~prusti_playground.config.EnvironmentConfig`; the mechanism for
running processes is an injected :class:`CommandRunner`.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from prusti_playground.config import FULL_COMPILATION_VAR, VERIFIER_VAR_PREFIX, EnvironmentConfig
from prusti_playground.errors import WrapperUnavailableError
from prusti_playground.models.enums import Action, InvocationMode
from prusti_playground.models.toolchain import CONTRACTS_CRATE, ToolchainArtifactSet

logger = logging.getLogger(__name__)

# Cargo passes this flag only when compiling crates outside the workspace.
_NON_LOCAL_CRATE_FLAG = "--cap-lints"

# Name cargo uses when dispatching ``cargo prusti`` to ``cargo-prusti``.
_CARGO_SUBCOMMAND = "prusti"

# Basename of the compiler the build tool passes to its wrapper.
_COMPILER_NAME = "rustc"


class CommandRunner(Protocol):
    """Runs a command to completion and returns its exit status."""

    def __call__(
        self,
        argv: list[str],
        env: Mapping[str, str],
        cwd: Path | None = None,
    ) -> int: ...


def subprocess_runner(
    argv: list[str],
    env: Mapping[str, str],
    cwd: Path | None = None,
) -> int:
    """Default runner: inherit stdio so tool output reaches the user unmodified."""
    completed = subprocess.run(argv, env=dict(env), cwd=cwd, check=False)
    return completed.returncode


def _is_compiler_path(arg: str) -> bool:
    """True for the compiler path a build tool prepends, never for a source file."""
    if arg.endswith(".rs") or arg.startswith("-"):
        return False
    if Path(arg).name == _COMPILER_NAME:
        return True
    return os.sep in arg and os.path.isfile(arg) and os.access(arg, os.X_OK)


@dataclass(frozen=True)
class Invocation:
    """A single call into one of the launchers."""

    mode: InvocationMode
    args: list[str] = field(default_factory=list)
    real_compiler: str = "rustc"

    @classmethod
    def from_argv(
        cls,
        mode: InvocationMode,
        argv: list[str],
        real_compiler: str = "rustc",
    ) -> Invocation:
        """Parse launcher arguments.

        When the build tool calls the wrapper it prepends the path of the
        real compiler; that path is taken as the compiler to continue with.
        """
        args = list(argv)
        if mode is InvocationMode.RUSTC and args and _is_compiler_path(args[0]):
            real_compiler = args.pop(0)
        elif mode is InvocationMode.CARGO and args and args[0] == _CARGO_SUBCOMMAND:
            args.pop(0)
        return cls(mode=mode, args=args, real_compiler=real_compiler)

    @property
    def compiles_local_crate(self) -> bool:
        has_source = any(arg.endswith(".rs") for arg in self.args)
        return has_source and _NON_LOCAL_CRATE_FLAG not in self.args


@dataclass(frozen=True)
class Decision:
    """What to do with an intercepted invocation."""

    action: Action
    exit_code: int = 0
    reason: str = ""


class CompilerInterceptor:
    """Routes compiler invocations through the verifier.

    Parameters
    ----------
    environment:
        Session configuration; supplies the wrapper path and the
        full-compilation policy.
    toolchain:
        Installed toolchain holding the verifier driver.
    verifier_driver:
        Artifact name of the verifier executable.
    build_tool:
        Executable used for manifest-driven invocations.
    runner:
        Process runner, injectable for tests.
    base_environ:
        Environment the real tools run with; defaults to ``os.environ``.
    """

    def __init__(
        self,
        environment: EnvironmentConfig,
        toolchain: ToolchainArtifactSet,
        verifier_driver: str = "prusti-driver",
        build_tool: str = "cargo",
        runner: CommandRunner = subprocess_runner,
        base_environ: Mapping[str, str] | None = None,
    ) -> None:
        self._env = environment
        self._toolchain = toolchain
        self._verifier_driver = verifier_driver
        self._build_tool = build_tool
        self._runner = runner
        self._base_environ = dict(os.environ if base_environ is None else base_environ)

    # ------------------------------------------------------------------
    # Interception
    # ------------------------------------------------------------------

    def check_routing(self) -> None:
        """Raise :class:`WrapperUnavailableError` unless the wrapper path is usable."""
        wrapper = self._env.compiler_wrapper_path
        if wrapper is None:
            return
        if not wrapper.is_file() or not os.access(wrapper, os.X_OK):
            raise WrapperUnavailableError(wrapper)
        if not self._toolchain.is_executable(self._verifier_driver):
            raise WrapperUnavailableError(self._toolchain.path_of(self._verifier_driver))

    def compile_args(self, invocation: Invocation) -> list[str]:
        """Arguments for a local-crate compile, with the contracts crate resolvable.

        Nothing is added when the invocation already names the crate.
        """
        extern_prefix = f"{CONTRACTS_CRATE}="
        if any(arg.startswith(extern_prefix) for arg in invocation.args):
            return list(invocation.args)
        return [*invocation.args, *self._toolchain.contracts_args()]

    def intercept(self, invocation: Invocation) -> Decision:
        """Decide whether *invocation* proceeds, halts, or bypasses verification.

        Runs the verifier when the invocation compiles a local crate.  The
        verifier's output is not captured.
        """
        if not self._env.wrapping_enabled:
            return Decision(Action.DELEGATE, reason="wrapping disabled")

        self.check_routing()

        if invocation.mode is InvocationMode.CARGO:
            return Decision(Action.DELEGATE, reason="build tool routes compiler calls")

        if not invocation.compiles_local_crate:
            return Decision(Action.DELEGATE, reason="not a local crate compilation")

        verifier = self._toolchain.path_of(self._verifier_driver)
        env = self._env.apply_to(self._base_environ)
        # Compilation, if any, happens in execute().
        env[VERIFIER_VAR_PREFIX + FULL_COMPILATION_VAR] = "false"

        logger.debug("Verifying: %s %s", verifier, " ".join(invocation.args))
        exit_code = self._runner([str(verifier), *self.compile_args(invocation)], env)

        if exit_code != 0:
            logger.info("Verification failed with status %d", exit_code)
            return Decision(Action.HALT, exit_code=exit_code, reason="verification failed")
        if self._env.full_compilation:
            return Decision(Action.PROCEED, reason="verification succeeded")
        return Decision(Action.HALT, exit_code=0, reason="verification succeeded; compilation disabled")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute(self, invocation: Invocation, decision: Decision) -> int:
        """Carry out *decision* and return the exit status to report."""
        if decision.action is Action.HALT:
            return decision.exit_code

        if invocation.mode is InvocationMode.CARGO:
            args = invocation.args
            if not args or args[0].startswith("-"):
                args = ["build", *args]
            return self._runner(
                [self._build_tool, *args],
                self._env.apply_to(self._base_environ),
            )

        args = invocation.args
        if decision.action is Action.PROCEED:
            args = self.compile_args(invocation)
        return self._runner([invocation.real_compiler, *args], self._base_environ)

    def run(self, invocation: Invocation) -> int:
        decision = self.intercept(invocation)
        logger.debug("Decision for %s: %s (%s)", invocation.mode, decision.action, decision.reason)
        return self.execute(invocation, decision)
