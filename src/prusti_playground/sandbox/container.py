"""Runs user code in an ephemeral container created from the playground image."""

from __future__ import annotations

import asyncio
import logging
import re
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import docker
import docker.errors
import requests.exceptions

from prusti_playground.config import RECOGNIZED_VARS, Settings
from prusti_playground.models.enums import BuildProfile
from prusti_playground.sandbox.policy import SessionPolicy

logger = logging.getLogger(__name__)

# Maximum bytes of stdout/stderr captured from the container.
_MAX_OUTPUT_BYTES: int = 64 * 1024  # 64 KB

# Regex to strip ANSI escape sequences (colours, cursor movement, etc.).
_ANSI_ESCAPE_RE: re.Pattern[str] = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")

# Control characters to strip (everything except newline \n, carriage return \r, tab \t).
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def _sanitize_output(raw: str) -> str:
    """Strip ANSI escape codes and control characters from container output."""
    text = _ANSI_ESCAPE_RE.sub("", raw)
    return _CONTROL_CHAR_RE.sub("", text)


def _truncate_bytes(data: bytes, limit: int = _MAX_OUTPUT_BYTES) -> bytes:
    if len(data) <= limit:
        return data
    return data[:limit] + b"\n... [truncated at 64 KB]\n"


def filter_overrides(overrides: dict[str, str] | None) -> dict[str, str]:
    """Keep only variables the environment layer recognises."""
    accepted: dict[str, str] = {}
    for key, value in (overrides or {}).items():
        if key not in RECOGNIZED_VARS:
            logger.warning("Dropping unrecognised environment override: %s", key)
            continue
        accepted[key] = value
    return accepted


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a playground session."""

    exit_code: int
    stdout: str
    stderr: str
    binary_produced: bool = False
    execution_time_seconds: float = 0.0
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class PlaygroundSandbox:
    """Creates one container per session and **always** removes it.

    The user's ``main.rs`` is bind-mounted read-only over the scaffold's
    stripped ``src`` directory; the command then runs through the image
    entrypoint against the pre-warmed cache.

    Blocking Docker SDK calls are dispatched via ``asyncio.to_thread``.
    """

    def __init__(
        self,
        settings: Settings,
        docker_client: docker.DockerClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = docker_client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def default_policy(self) -> SessionPolicy:
        return SessionPolicy(
            memory_limit_mb=self._settings.session_memory_limit_mb,
            timeout_seconds=self._settings.session_timeout_seconds,
        )

    async def ping(self) -> bool:
        try:
            return bool(await asyncio.to_thread(self.client.ping))
        except (docker.errors.DockerException, requests.exceptions.RequestException):
            return False

    def binary_path(self, profile: BuildProfile) -> str:
        scaffold = PurePosixPath(str(self._settings.scaffold_dir))
        return str(scaffold / "target" / profile.value / self._settings.scaffold_name)

    async def run(
        self,
        source: str,
        profile: BuildProfile = BuildProfile.DEBUG,
        command: list[str] | None = None,
        env_overrides: dict[str, str] | None = None,
        policy: SessionPolicy | None = None,
    ) -> SessionResult:
        """Build *source* in a fresh session container.

        Parameters
        ----------
        source:
            Contents of ``src/main.rs``.
        profile:
            Build profile for the default command and the binary check.
        command:
            Command to run instead of the default build.
        env_overrides:
            Launch-time overrides of the environment layer; unrecognised
            names are dropped.
        policy:
            Resource limits; defaults to :meth:`default_policy`.
        """
        if policy is None:
            policy = self.default_policy()
        if command is None:
            command = [self._settings.build_tool, "build", *profile.cargo_args]

        scaffold = PurePosixPath(str(self._settings.scaffold_dir))
        container = None
        source_dir: tempfile.TemporaryDirectory[str] | None = None

        try:
            # ---- 1. Write the entry source for a read-only bind mount -------
            source_dir = tempfile.TemporaryDirectory(prefix="playground_src_")
            Path(source_dir.name, "main.rs").write_text(source, encoding="utf-8")
            volumes = {source_dir.name: {"bind": str(scaffold / "src"), "mode": "ro"}}

            # ---- 2. Create container (not yet started) ---------------------
            container = await asyncio.to_thread(
                self.client.containers.create,
                image=self._settings.image_tag,
                command=command,
                working_dir=str(scaffold),
                detach=True,
                stdin_open=False,
                tty=False,
                environment=filter_overrides(env_overrides),
                volumes=volumes,
                **policy.to_container_config(),
            )
            logger.info("Session container created: id=%s", container.short_id)

            # ---- 3. Start and wait with timeout ----------------------------
            start_time = time.monotonic()
            await asyncio.to_thread(container.start)

            timed_out = False
            try:
                exit_info = await asyncio.to_thread(
                    container.wait,
                    timeout=policy.timeout_seconds,
                )
                exit_code: int = int(exit_info.get("StatusCode", -1))
            except (
                docker.errors.APIError,
                ConnectionError,
                requests.exceptions.ReadTimeout,
                requests.exceptions.ConnectionError,
            ) as exc:
                logger.warning(
                    "Session %s timed out or errored during wait: %s",
                    container.short_id,
                    exc,
                )
                timed_out = True
                exit_code = -1
                try:
                    await asyncio.to_thread(container.kill)
                except docker.errors.APIError:
                    # Already exited.
                    pass

            elapsed = time.monotonic() - start_time

            # ---- 4. Capture output -----------------------------------------
            raw_stdout: bytes = await asyncio.to_thread(
                container.logs, stdout=True, stderr=False
            )
            raw_stderr: bytes = await asyncio.to_thread(
                container.logs, stdout=False, stderr=True
            )
            stdout_text = _sanitize_output(
                _truncate_bytes(raw_stdout).decode("utf-8", errors="replace")
            )
            stderr_text = _sanitize_output(
                _truncate_bytes(raw_stderr).decode("utf-8", errors="replace")
            )

            # ---- 5. Check for the compiled binary --------------------------
            binary_produced = False
            if exit_code == 0:
                try:
                    await asyncio.to_thread(container.get_archive, self.binary_path(profile))
                    binary_produced = True
                except docker.errors.NotFound:
                    pass

            return SessionResult(
                exit_code=exit_code,
                stdout=stdout_text,
                stderr=stderr_text,
                binary_produced=binary_produced,
                execution_time_seconds=round(elapsed, 3),
                timed_out=timed_out,
            )

        except docker.errors.ImageNotFound:
            logger.error("Playground image not found: %s", self._settings.image_tag)
            raise
        except docker.errors.APIError:
            logger.exception("Docker API error while running session")
            raise
        finally:
            # ---- 6. ALWAYS remove container --------------------------------
            if container is not None:
                try:
                    await asyncio.to_thread(container.remove, force=True)
                    logger.info("Session container removed: id=%s", container.short_id)
                except docker.errors.APIError as exc:
                    logger.error(
                        "Failed to remove container %s: %s",
                        container.short_id,
                        exc,
                    )
            if source_dir is not None:
                source_dir.cleanup()
