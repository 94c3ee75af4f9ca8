"""Sandbox subsystem: ephemeral playground session containers."""

from prusti_playground.sandbox.container import PlaygroundSandbox, SessionResult
from prusti_playground.sandbox.policy import SessionPolicy

__all__ = [
    "PlaygroundSandbox",
    "SessionPolicy",
    "SessionResult",
]
