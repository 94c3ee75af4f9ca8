"""Host-side image assembly through the Docker SDK."""

from __future__ import annotations

import io
import logging
import tarfile
from pathlib import Path

import docker
import docker.errors

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import BuildStepError, MissingArtifactError
from prusti_playground.image.dockerfile import CONTEXT_TOOLCHAIN_DIR, render_dockerfile

logger = logging.getLogger(__name__)


def _make_tar(files: dict[str, tuple[bytes, int]]) -> bytes:
    """Create an in-memory tar archive from ``path -> (content, mode)``.

    Members are written in sorted order with zeroed timestamps so the same
    inputs always produce the same context and hit the layer cache.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name in sorted(files):
            raw, mode = files[name]
            info = tarfile.TarInfo(name=name)
            info.size = len(raw)
            info.mode = mode
            info.mtime = 0
            tar.addfile(info, io.BytesIO(raw))
    buf.seek(0)
    return buf.read()


class ImageAssembler:
    """Builds the playground image from a directory of toolchain artifacts."""

    def __init__(
        self,
        settings: Settings,
        environment: EnvironmentConfig,
        docker_client: docker.DockerClient | None = None,
    ) -> None:
        self._settings = settings
        self._environment = environment
        self._client = docker_client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def dockerfile(self) -> str:
        return render_dockerfile(self._settings, self._environment)

    def build_context(self, toolchain_dir: Path) -> bytes:
        """Pack the Dockerfile and every toolchain artifact into a tar context.

        Raises :class:`MissingArtifactError` before anything is sent to the
        daemon if an artifact is absent.
        """
        toolchain_dir = Path(toolchain_dir)
        missing = [n for n in self._settings.artifacts if not (toolchain_dir / n).is_file()]
        if missing:
            raise MissingArtifactError(missing, toolchain_dir)

        files: dict[str, tuple[bytes, int]] = {
            "Dockerfile": (self.dockerfile().encode("utf-8"), 0o644),
        }
        for name in self._settings.artifacts:
            path = toolchain_dir / name
            files[f"{CONTEXT_TOOLCHAIN_DIR}/{name}"] = (
                path.read_bytes(),
                path.stat().st_mode & 0o777,
            )
        return _make_tar(files)

    def build(self, toolchain_dir: Path) -> str:
        """Build and tag the image; return its id."""
        context = self.build_context(toolchain_dir)
        tag = self._settings.image_tag
        logger.info("Building image %s (%d byte context)", tag, len(context))

        try:
            image, build_log = self.client.images.build(
                fileobj=io.BytesIO(context),
                custom_context=True,
                tag=tag,
                rm=True,
                forcerm=True,
            )
        except docker.errors.BuildError as exc:
            for chunk in exc.build_log:
                if "stream" in chunk:
                    logger.error("%s", chunk["stream"].rstrip())
            raise BuildStepError("image", exc.msg, exc) from exc
        except docker.errors.APIError as exc:
            raise BuildStepError("image", str(exc), exc) from exc

        for chunk in build_log:
            if "stream" in chunk and chunk["stream"].strip():
                logger.info("%s", chunk["stream"].rstrip())

        logger.info("Built image %s: id=%s", tag, image.id)
        return image.id
