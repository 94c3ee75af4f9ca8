"""ToolchainArtifactSet and InstallReport models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from prusti_playground.config import Settings

DEFAULT_ARTIFACTS: tuple[str, ...] = (
    "prusti-driver",
    "prusti-server-driver",
    "prusti-rustc",
    "cargo-prusti",
    "libprusti_contracts.rlib",
)

# Crate that playground sources declare with `extern crate`, and its library.
CONTRACTS_CRATE = "prusti_contracts"
CONTRACTS_LIBRARY = "libprusti_contracts.rlib"


class ToolchainArtifactSet(BaseModel):
    """Named toolchain files and the root they are installed under.

    Identity is the install root; the set is never mutated after install.
    """

    model_config = ConfigDict(frozen=True)

    install_root: Path = Field(
        description="Fixed installation root of the toolchain.",
    )
    artifacts: tuple[str, ...] = Field(
        default=DEFAULT_ARTIFACTS,
        min_length=1,
        description="File names copied from the build output into the install root.",
    )

    @field_validator("artifacts")
    @classmethod
    def _plain_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for name in value:
            if not name or "/" in name or name in {".", ".."}:
                raise ValueError(f"Artifact name must be a plain file name: {name!r}")
        if len(set(value)) != len(value):
            raise ValueError("Artifact names must be unique.")
        return value

    @classmethod
    def from_settings(cls, settings: Settings) -> ToolchainArtifactSet:
        return cls(install_root=settings.install_root, artifacts=settings.artifacts)

    def path_of(self, name: str) -> Path:
        return self.install_root / name

    def missing(self) -> list[str]:
        """Return artifact names absent from the install root."""
        return [name for name in self.artifacts if not self.path_of(name).is_file()]

    def is_executable(self, name: str) -> bool:
        path = self.path_of(name)
        return path.is_file() and os.access(path, os.X_OK)

    def contracts_args(self) -> list[str]:
        """Compiler flags that make the installed contracts crate resolvable.

        Empty when the set does not ship the contracts library.
        """
        if CONTRACTS_LIBRARY not in self.artifacts:
            return []
        return [
            "-L",
            str(self.install_root),
            "--extern",
            f"{CONTRACTS_CRATE}={self.path_of(CONTRACTS_LIBRARY)}",
        ]


class InstallReport(BaseModel):
    """Result of a toolchain install: installed paths and their digests."""

    install_root: Path
    digests: dict[str, str] = Field(
        description="Artifact name -> SHA-256 hex digest of the installed file.",
    )
