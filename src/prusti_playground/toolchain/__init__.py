"""Toolchain artifact installation."""

from prusti_playground.toolchain.installer import ToolchainInstaller

__all__ = ["ToolchainInstaller"]
