"""Playground image assembly."""

from prusti_playground.image.builder import ImageAssembler
from prusti_playground.image.dockerfile import render_dockerfile

__all__ = ["ImageAssembler", "render_dockerfile"]
