"""``prusti-playground-wrap``: the executable behind both launchers.

Usage: ``prusti-playground-wrap {rustc,cargo} [ARGS...]``.  Arguments after
the mode are forwarded verbatim, so they are not parsed here.
"""

from __future__ import annotations

import logging
import sys

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import WrapperUnavailableError
from prusti_playground.logging import configure_logging
from prusti_playground.models.enums import InvocationMode
from prusti_playground.models.toolchain import ToolchainArtifactSet
from prusti_playground.wrapper.intercept import CompilerInterceptor, Invocation

logger = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_WRAPPER_UNAVAILABLE = 127


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    modes = [m.value for m in InvocationMode]
    if not argv or argv[0] not in modes:
        print(
            f"usage: prusti-playground-wrap {{{','.join(modes)}}} [ARGS...]",
            file=sys.stderr,
        )
        return EXIT_USAGE

    environment = EnvironmentConfig.from_environ()
    configure_logging(environment.log_level)
    settings = Settings()

    interceptor = CompilerInterceptor(
        environment=environment,
        toolchain=ToolchainArtifactSet.from_settings(settings),
        verifier_driver=settings.verifier_driver,
        build_tool=settings.build_tool,
    )
    invocation = Invocation.from_argv(InvocationMode(argv[0]), argv[1:], settings.real_compiler)

    try:
        return interceptor.run(invocation)
    except WrapperUnavailableError as exc:
        logger.error("%s", exc)
        return EXIT_WRAPPER_UNAVAILABLE
    except OSError as exc:
        logger.error("cannot run %s: %s", exc.filename or invocation.real_compiler, exc.strerror or exc)
        return EXIT_WRAPPER_UNAVAILABLE


if __name__ == "__main__":
    sys.exit(main())
