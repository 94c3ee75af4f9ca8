"""Core domain models for the playground."""

from prusti_playground.models.enums import (
    Action,
    BuildProfile,
    InvocationMode,
    LogLevel,
)
from prusti_playground.models.toolchain import InstallReport, ToolchainArtifactSet

__all__ = [
    "Action",
    "BuildProfile",
    "InstallReport",
    "InvocationMode",
    "LogLevel",
    "ToolchainArtifactSet",
]
