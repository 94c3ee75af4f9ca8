"""Typed templates for the playground crate's manifest and entry source."""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CRATE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


def _toml_str(value: str) -> str:
    # JSON string escapes are valid TOML basic-string escapes.
    return json.dumps(value)


class CrateManifest(BaseModel):
    """The ``Cargo.toml`` of the playground crate."""

    model_config = ConfigDict(frozen=True)

    name: str = "playground"
    version: str = "0.1.0"
    edition: str = "2018"
    dependencies: dict[str, str] = Field(
        default_factory=dict,
        description="Crate name -> version requirement.",
    )

    @field_validator("name")
    @classmethod
    def _valid_crate_name(cls, value: str) -> str:
        if not _CRATE_NAME_RE.match(value):
            raise ValueError(f"Invalid crate name: {value!r}")
        return value

    def render(self) -> str:
        lines = [
            "[package]",
            f"name = {_toml_str(self.name)}",
            f"version = {_toml_str(self.version)}",
            f"edition = {_toml_str(self.edition)}",
            "",
            "[dependencies]",
        ]
        for crate, requirement in sorted(self.dependencies.items()):
            lines.append(f"{crate} = {_toml_str(requirement)}")
        return "\n".join(lines) + "\n"


class EntrySource(BaseModel):
    """The ``src/main.rs`` of the playground crate.

    The defaults declare the verifier's contracts crate and use a trivially
    true assertion as the body, so the first verified build succeeds.
    """

    model_config = ConfigDict(frozen=True)

    prelude: tuple[str, ...] = ("extern crate prusti_contracts;",)
    body: tuple[str, ...] = ("assert!(true);",)

    @field_validator("prelude", "body")
    @classmethod
    def _single_line(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for line in value:
            if "\n" in line:
                raise ValueError(f"Template lines must not contain newlines: {line!r}")
        return value

    def render(self) -> str:
        parts: list[str] = list(self.prelude)
        if parts:
            parts.append("")
        parts.append("fn main() {")
        parts.extend(f"    {statement}" for statement in self.body)
        parts.append("}")
        return "\n".join(parts) + "\n"
