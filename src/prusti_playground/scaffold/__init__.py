"""Playground crate generation."""

from prusti_playground.scaffold.generator import ScaffoldGenerator, ScaffoldLayout, strip_sources
from prusti_playground.scaffold.template import CrateManifest, EntrySource

__all__ = [
    "CrateManifest",
    "EntrySource",
    "ScaffoldGenerator",
    "ScaffoldLayout",
    "strip_sources",
]
