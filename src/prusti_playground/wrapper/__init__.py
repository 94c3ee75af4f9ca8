"""Compiler launchers and the command-interception interface."""

from prusti_playground.wrapper.installer import LAUNCHERS, WrapperInstaller
from prusti_playground.wrapper.intercept import (
    CommandRunner,
    CompilerInterceptor,
    Decision,
    Invocation,
    subprocess_runner,
)

__all__ = [
    "LAUNCHERS",
    "CommandRunner",
    "CompilerInterceptor",
    "Decision",
    "Invocation",
    "WrapperInstaller",
    "subprocess_runner",
]
