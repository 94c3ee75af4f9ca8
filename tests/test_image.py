"""Tests for Dockerfile rendering and image assembly."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from unittest.mock import MagicMock

import docker.errors
import pytest

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import BuildStepError, MissingArtifactError
from prusti_playground.image import ImageAssembler, render_dockerfile
from prusti_playground.models.toolchain import DEFAULT_ARTIFACTS


def _environment(**kwargs) -> EnvironmentConfig:
    kwargs.setdefault("compiler_wrapper_path", Path("/usr/local/bin/prusti-rustc"))
    return EnvironmentConfig(**kwargs)


def _index(lines: list[str], prefix: str) -> int:
    return next(i for i, line in enumerate(lines) if line.startswith(prefix))


class TestRenderDockerfile:
    def setup_method(self):
        self.text = render_dockerfile(Settings(), _environment())
        self.lines = self.text.splitlines()

    def test_base_image_and_entrypoint(self):
        assert self.lines[1] == "FROM rust:1-slim"
        assert 'ENTRYPOINT ["prusti-playground-entrypoint"]' in self.lines
        assert "WORKDIR /playground" in self.lines

    def test_one_layer_per_step_in_order(self):
        runs = [l for l in self.lines if l.startswith("RUN prusti-playground step ")]
        assert [r.split()[3] for r in runs] == [
            "install-toolchain",
            "install-wrapper",
            "scaffold",
            "configure-environment",
            "prewarm",
            "strip-sources",
        ]

    def test_environment_precedes_prewarm(self):
        env_line = _index(self.lines, "ENV COMPILER_WRAPPER_PATH=")
        assert _index(self.lines, "RUN prusti-playground step scaffold") < env_line
        assert env_line < _index(self.lines, "RUN prusti-playground step prewarm")
        assert 'RUSTC_WRAPPER="/usr/local/bin/prusti-rustc"' in self.text
        assert 'FULL_COMPILATION="true"' in self.text

    def test_toolchain_staging_removed_in_same_layer(self):
        line = next(l for l in self.lines if "step install-toolchain" in l)
        assert "--source /tmp/prusti-toolchain" in line
        assert "rm -rf /tmp/prusti-toolchain" in line

    def test_settings_pinned_for_steps(self):
        assert 'PLAYGROUND_INSTALL_ROOT="/usr/local/prusti"' in self.text
        assert "PLAYGROUND_ARTIFACTS" not in self.text

    def test_session_user(self):
        text = render_dockerfile(Settings(), _environment(session_user="rustacean"))
        assert "RUN useradd --create-home rustacean" in text
        assert "RUN chown -R rustacean /playground" in text

    def test_deterministic(self):
        assert render_dockerfile(Settings(), _environment()) == self.text


class TestImageAssembler:
    def test_build_context_contents(self, settings, toolchain_source):
        assembler = ImageAssembler(settings, _environment(), docker_client=MagicMock())
        context = assembler.build_context(toolchain_source)
        with tarfile.open(fileobj=io.BytesIO(context)) as tar:
            names = tar.getnames()
            dockerfile = tar.extractfile("Dockerfile").read().decode()
            driver = tar.getmember("toolchain/prusti-driver")
        assert "Dockerfile" in names
        assert {f"toolchain/{n}" for n in DEFAULT_ARTIFACTS} <= set(names)
        assert dockerfile == assembler.dockerfile()
        assert driver.mode == 0o755

    def test_build_context_is_reproducible(self, settings, toolchain_source):
        assembler = ImageAssembler(settings, _environment(), docker_client=MagicMock())
        assert assembler.build_context(toolchain_source) == assembler.build_context(toolchain_source)

    def test_missing_artifact_never_reaches_daemon(self, settings, toolchain_source):
        client = MagicMock()
        (toolchain_source / "cargo-prusti").unlink()
        with pytest.raises(MissingArtifactError):
            ImageAssembler(settings, _environment(), docker_client=client).build(toolchain_source)
        client.images.build.assert_not_called()

    def test_build_returns_image_id(self, settings, toolchain_source):
        client = MagicMock()
        image = MagicMock(id="sha256:abc")
        client.images.build.return_value = (image, iter([{"stream": "Step 1/20\n"}, {"aux": {}}]))

        image_id = ImageAssembler(settings, _environment(), docker_client=client).build(
            toolchain_source
        )

        assert image_id == "sha256:abc"
        kwargs = client.images.build.call_args.kwargs
        assert kwargs["tag"] == settings.image_tag
        assert kwargs["custom_context"] is True

    def test_daemon_build_error(self, settings, toolchain_source):
        client = MagicMock()
        client.images.build.side_effect = docker.errors.BuildError(
            "The command '/bin/sh -c prusti-playground step prewarm' returned a non-zero code: 1",
            [{"stream": "error: step 'prewarm' failed\n"}],
        )
        with pytest.raises(BuildStepError, match="step prewarm") as excinfo:
            ImageAssembler(settings, _environment(), docker_client=client).build(toolchain_source)
        assert excinfo.value.step == "image"
