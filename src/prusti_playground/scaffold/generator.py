"""Materialises the playground crate and strips its sources after pre-warm."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from prusti_playground.errors import ScaffoldError
from prusti_playground.scaffold.template import CrateManifest, EntrySource

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"
LOCKFILE_NAME = "Cargo.lock"
SOURCE_DIR = "src"
ENTRY_SOURCE = "main.rs"
CACHE_DIR = "target"

# Entries the generator may find (and overwrite) in its target directory.
_OWNED_ENTRIES: frozenset[str] = frozenset({MANIFEST_NAME, LOCKFILE_NAME, SOURCE_DIR, CACHE_DIR})


@dataclass(frozen=True)
class ScaffoldLayout:
    """Paths of a generated scaffold."""

    root: Path

    @property
    def manifest(self) -> Path:
        return self.root / MANIFEST_NAME

    @property
    def source_dir(self) -> Path:
        return self.root / SOURCE_DIR

    @property
    def entry_source(self) -> Path:
        return self.source_dir / ENTRY_SOURCE

    @property
    def cache_dir(self) -> Path:
        return self.root / CACHE_DIR

    def sources(self) -> list[Path]:
        if not self.source_dir.is_dir():
            return []
        return sorted(self.source_dir.rglob("*.rs"))


class ScaffoldGenerator:
    """Renders a :class:`CrateManifest` and :class:`EntrySource` to disk.

    Safe to run again on a directory it generated before: the output is
    byte-identical.  A directory holding anything it does not own is
    refused.
    """

    def __init__(
        self,
        manifest: CrateManifest | None = None,
        source: EntrySource | None = None,
    ) -> None:
        self.manifest = manifest or CrateManifest()
        self.source = source or EntrySource()

    def generate(self, target_dir: Path) -> ScaffoldLayout:
        layout = ScaffoldLayout(Path(target_dir))
        root = layout.root

        if root.exists() and not root.is_dir():
            raise ScaffoldError(f"{root} exists and is not a directory")
        if root.is_dir():
            foreign = sorted(p.name for p in root.iterdir() if p.name not in _OWNED_ENTRIES)
            if foreign:
                raise ScaffoldError(
                    f"{root} is not empty and holds non-scaffold entries: {', '.join(foreign)}"
                )

        try:
            layout.source_dir.mkdir(parents=True, exist_ok=True)
            layout.manifest.write_text(self.manifest.render(), encoding="utf-8")
            layout.entry_source.write_text(self.source.render(), encoding="utf-8")
        except OSError as exc:
            raise ScaffoldError(str(exc)) from exc

        logger.info("Generated scaffold crate %r in %s", self.manifest.name, root)
        return layout


def strip_sources(layout: ScaffoldLayout) -> list[Path]:
    """Delete every Rust source under ``src/``; the manifest and the build cache stay."""
    removed: list[Path] = []
    for path in layout.sources():
        path.unlink()
        removed.append(path)
    logger.info("Stripped %d source file(s) from %s", len(removed), layout.root)
    return removed
