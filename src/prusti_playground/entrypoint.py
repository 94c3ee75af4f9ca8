"""Container entrypoint: prepare the session, then hand off.

``prusti-playground-entrypoint [COMMAND...]`` takes no options of its own.
It switches to the session user if needed, enters the scaffold directory,
applies the environment layer, and replaces itself with *COMMAND* (or an
interactive shell).  Nothing runs after the handoff, so the exit status is
the handed-off process's own.
"""

from __future__ import annotations

import logging
import os
import pwd
import sys
from pathlib import Path

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import BootstrapError
from prusti_playground.logging import configure_logging

logger = logging.getLogger(__name__)

EXIT_BOOTSTRAP_FAILED = 2
EXIT_EXEC_FAILED = 127
DEFAULT_SHELL = "/bin/bash"


def switch_user(name: str, environ: dict[str, str]) -> None:
    """Drop to *name* when running as root; update ``HOME``/``USER`` in *environ*."""
    try:
        entry = pwd.getpwnam(name)
    except KeyError as exc:
        raise BootstrapError(f"session user {name!r} does not exist") from exc

    if os.geteuid() == entry.pw_uid:
        return
    if os.geteuid() != 0:
        logger.warning(
            "Not running as root; staying uid %d instead of session user %s",
            os.geteuid(),
            name,
        )
        return

    try:
        os.initgroups(name, entry.pw_gid)
        os.setgid(entry.pw_gid)
        os.setuid(entry.pw_uid)
    except OSError as exc:
        raise BootstrapError(f"cannot switch to session user {name!r}: {exc}") from exc

    environ["HOME"] = entry.pw_dir
    environ["USER"] = name
    logger.debug("Switched to session user %s (uid=%d)", name, entry.pw_uid)


def bootstrap(
    settings: Settings,
    environment: EnvironmentConfig,
    base_environ: dict[str, str] | None = None,
) -> dict[str, str]:
    """Set identity and working directory; return the session environment."""
    environ = environment.apply_to(os.environ if base_environ is None else base_environ)

    if environment.session_user:
        switch_user(environment.session_user, environ)

    workdir = Path(settings.scaffold_dir)
    try:
        os.chdir(workdir)
    except OSError as exc:
        raise BootstrapError(f"cannot enter playground directory {workdir}: {exc}") from exc

    environ["PWD"] = str(workdir)
    logger.debug("Session ready in %s", workdir)
    return environ


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    environment = EnvironmentConfig.from_environ()
    configure_logging(environment.log_level)
    settings = Settings()

    try:
        environ = bootstrap(settings, environment)
    except BootstrapError as exc:
        logger.error("%s", exc)
        return EXIT_BOOTSTRAP_FAILED

    command = list(argv) or [environ.get("SHELL") or DEFAULT_SHELL]
    try:
        os.execvpe(command[0], command, environ)
    except OSError as exc:
        logger.error("Cannot start %s: %s", command[0], exc)
        return EXIT_EXEC_FAILED
    return 0  # not reached after a successful exec


if __name__ == "__main__":
    sys.exit(main())
