"""All-or-nothing installation of the toolchain artifact set."""

from __future__ import annotations

import hashlib
import logging
import shutil
import tempfile
from pathlib import Path

from prusti_playground.errors import BuildStepError, MissingArtifactError
from prusti_playground.models.toolchain import InstallReport, ToolchainArtifactSet

logger = logging.getLogger(__name__)


def _sha256(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(1 << 16), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ToolchainInstaller:
    """Copies a fixed set of build outputs into the installation root.

    The copy is staged in a sibling directory and swapped into place only
    once every artifact has been written, so a failed install never leaves
    a partially populated root behind.  Running the installer twice with
    the same inputs yields a byte-identical tree.
    """

    def __init__(self, toolchain: ToolchainArtifactSet) -> None:
        self._toolchain = toolchain

    @property
    def toolchain(self) -> ToolchainArtifactSet:
        return self._toolchain

    def install(self, source_dir: Path) -> InstallReport:
        """Install every artifact from *source_dir*.

        Raises
        ------
        MissingArtifactError
            If any named artifact is not a regular file in *source_dir*.
            Nothing is written in that case.
        BuildStepError
            If copying or swapping the staged tree fails.
        """
        source_dir = Path(source_dir)
        root = self._toolchain.install_root

        missing = [
            name for name in self._toolchain.artifacts
            if not (source_dir / name).is_file()
        ]
        if missing:
            logger.error("Toolchain install aborted, missing: %s", ", ".join(missing))
            raise MissingArtifactError(missing, source_dir)

        root.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{root.name}.staging-", dir=root.parent))
        backup: Path | None = None

        try:
            staging.chmod(0o755)
            digests: dict[str, str] = {}
            for name in self._toolchain.artifacts:
                dest = staging / name
                shutil.copy2(source_dir / name, dest)
                digests[name] = _sha256(dest)
                logger.debug("Staged %s (%s)", name, digests[name][:12])

            # ---- Swap the staged tree into place -----------------------------
            if root.exists():
                backup = root.with_name(f".{root.name}.previous")
                if backup.exists():
                    shutil.rmtree(backup)
                root.rename(backup)
            staging.rename(root)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            if backup is not None and backup.exists() and not root.exists():
                backup.rename(root)
            raise BuildStepError("install-toolchain", str(exc), exc) from exc

        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)

        logger.info(
            "Installed %d toolchain artifact(s) into %s",
            len(digests),
            root,
        )
        return InstallReport(install_root=root, digests=digests)

    def verify(self) -> None:
        """Re-check an existing install; raise if anything is missing."""
        missing = self._toolchain.missing()
        if missing:
            raise MissingArtifactError(missing, self._toolchain.install_root)
