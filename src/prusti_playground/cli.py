"""``prusti-playground`` command-line interface.

Subcommands:

* ``bootstrap --source DIR``   run every pipeline step in order
* ``step NAME [--source DIR]`` run a single step (one image layer each)
* ``dockerfile``               print the rendered Dockerfile
* ``build-image --toolchain DIR``  assemble the image with the Docker daemon
* ``serve``                    run the HTTP API
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from prusti_playground.config import EnvironmentConfig, Settings
from prusti_playground.errors import BuildStepError
from prusti_playground.logging import configure_logging
from prusti_playground.pipeline import STEP_NAMES, BuildContext, default_pipeline

logger = logging.getLogger(__name__)

EXIT_STEP_FAILED = 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prusti-playground",
        description="Assemble and serve the Prusti playground.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_boot = sub.add_parser("bootstrap", help="Run the full image-assembly pipeline.")
    p_boot.add_argument("--source", type=Path, required=True, help="Prebuilt toolchain directory.")

    p_step = sub.add_parser("step", help="Run one pipeline step.")
    p_step.add_argument("name", choices=STEP_NAMES)
    p_step.add_argument("--source", type=Path, default=None, help="Prebuilt toolchain directory.")

    sub.add_parser("dockerfile", help="Print the playground Dockerfile.")

    p_image = sub.add_parser("build-image", help="Build the playground image.")
    p_image.add_argument("--toolchain", type=Path, required=True, help="Prebuilt toolchain directory.")

    p_serve = sub.add_parser("serve", help="Run the playground HTTP API.")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)

    return parser


def _run_pipeline(settings: Settings, names: list[str] | None, source: Path | None) -> int:
    environment = EnvironmentConfig.for_playground(settings)
    ctx = BuildContext.from_settings(settings, environment, source_dir=source)
    pipeline = default_pipeline()
    if names is not None:
        pipeline = pipeline.only(names)
    try:
        results = pipeline.run(ctx)
    except BuildStepError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_STEP_FAILED
    for result in results:
        print(f"{result.name}: ok ({result.elapsed_seconds:.3f}s)")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level)

    if args.command == "bootstrap":
        return _run_pipeline(settings, None, args.source)

    if args.command == "step":
        return _run_pipeline(settings, [args.name], args.source)

    if args.command == "dockerfile":
        from prusti_playground.image import render_dockerfile

        sys.stdout.write(render_dockerfile(settings, EnvironmentConfig.for_playground(settings)))
        return 0

    if args.command == "build-image":
        from prusti_playground.image import ImageAssembler

        assembler = ImageAssembler(settings, EnvironmentConfig.for_playground(settings))
        try:
            image_id = assembler.build(args.toolchain)
        except BuildStepError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return EXIT_STEP_FAILED
        print(image_id)
        return 0

    if args.command == "serve":
        import uvicorn

        uvicorn.run("prusti_playground.main:app", host=args.host, port=args.port)
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
