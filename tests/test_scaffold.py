"""Tests for the scaffold templates, generator, and source stripping."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from prusti_playground.errors import ScaffoldError
from prusti_playground.scaffold import (
    CrateManifest,
    EntrySource,
    ScaffoldGenerator,
    ScaffoldLayout,
    strip_sources,
)


class TestCrateManifest:
    def test_default_render(self):
        assert CrateManifest().render() == (
            "[package]\n"
            'name = "playground"\n'
            'version = "0.1.0"\n'
            'edition = "2018"\n'
            "\n"
            "[dependencies]\n"
        )

    def test_dependencies_sorted(self):
        text = CrateManifest(dependencies={"serde": "1", "anyhow": "1.0"}).render()
        assert text.endswith('[dependencies]\nanyhow = "1.0"\nserde = "1"\n')

    def test_invalid_name(self):
        with pytest.raises(ValidationError, match="Invalid crate name"):
            CrateManifest(name="my crate")


class TestEntrySource:
    def test_default_is_verifier_friendly(self):
        assert EntrySource().render() == (
            "extern crate prusti_contracts;\n"
            "\n"
            "fn main() {\n"
            "    assert!(true);\n"
            "}\n"
        )

    def test_no_hello_world(self):
        assert "println!" not in EntrySource().render()

    def test_empty_prelude(self):
        text = EntrySource(prelude=(), body=("let x = 1;",)).render()
        assert text == "fn main() {\n    let x = 1;\n}\n"

    def test_multiline_rejected(self):
        with pytest.raises(ValidationError):
            EntrySource(body=("a;\nb;",))


class TestScaffoldGenerator:
    def test_generates_into_missing_directory(self, tmp_path):
        layout = ScaffoldGenerator().generate(tmp_path / "playground")
        assert layout.manifest.read_text().startswith("[package]")
        assert "assert!(true);" in layout.entry_source.read_text()
        assert layout.sources() == [layout.entry_source]

    def test_generates_into_empty_directory(self, tmp_path):
        target = tmp_path / "playground"
        target.mkdir()
        layout = ScaffoldGenerator().generate(target)
        assert layout.manifest.is_file()

    def test_regeneration_is_byte_identical(self, tmp_path):
        generator = ScaffoldGenerator()
        layout = generator.generate(tmp_path / "p")
        first = (layout.manifest.read_bytes(), layout.entry_source.read_bytes())
        layout.entry_source.write_text("fn main() { assert!(false); }\n")
        generator.generate(tmp_path / "p")
        assert (layout.manifest.read_bytes(), layout.entry_source.read_bytes()) == first

    def test_regeneration_keeps_cache(self, tmp_path):
        layout = ScaffoldGenerator().generate(tmp_path / "p")
        layout.cache_dir.mkdir()
        (layout.cache_dir / "marker").write_text("x")
        ScaffoldGenerator().generate(tmp_path / "p")
        assert (layout.cache_dir / "marker").read_text() == "x"

    def test_refuses_foreign_content(self, tmp_path):
        target = tmp_path / "p"
        target.mkdir()
        (target / "notes.txt").write_text("mine")
        with pytest.raises(ScaffoldError, match="notes.txt") as excinfo:
            ScaffoldGenerator().generate(target)
        assert excinfo.value.step == "scaffold"

    def test_refuses_file_target(self, tmp_path):
        target = tmp_path / "p"
        target.write_text("")
        with pytest.raises(ScaffoldError, match="not a directory"):
            ScaffoldGenerator().generate(target)

    def test_custom_crate_name(self, tmp_path):
        layout = ScaffoldGenerator(CrateManifest(name="sandbox")).generate(tmp_path / "p")
        assert 'name = "sandbox"' in layout.manifest.read_text()


class TestStripSources:
    def test_removes_sources_keeps_manifest_and_cache(self, tmp_path):
        layout = ScaffoldGenerator().generate(tmp_path / "p")
        (layout.source_dir / "bin").mkdir()
        (layout.source_dir / "bin" / "extra.rs").write_text("fn main() {}\n")
        (layout.root / "Cargo.lock").write_text("# lock\n")
        layout.cache_dir.mkdir()
        (layout.cache_dir / "debug").mkdir()

        removed = strip_sources(layout)

        assert len(removed) == 2
        assert layout.sources() == []
        assert layout.manifest.is_file()
        assert (layout.root / "Cargo.lock").is_file()
        assert (layout.cache_dir / "debug").is_dir()

    def test_no_source_dir(self, tmp_path):
        assert strip_sources(ScaffoldLayout(tmp_path)) == []
