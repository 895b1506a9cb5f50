"""Command-line entrypoint for building and serving the static site."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_CONFIG_FILE, AppConfig, load_config
from .pipeline import GenerationError, generate
from .serve import DEFAULT_PORT, serve_site

LOGGER = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ssg", description="Static site generator for serialized novels")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the static site from the database content")
    build.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help="Path to the INI configuration file (default: config.ini)",
    )
    build.add_argument("--output-dir", type=Path, default=None, help="Override the configured output directory")
    build.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of render workers (0 or negative uses the default of 100)",
    )
    build.add_argument("--base-url", type=str, default=None, help="Override the public base URL used in the sitemap")
    build.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with status 1 when any page failed to generate",
    )

    serve = subparsers.add_parser("serve", help="Serve the generated site")
    serve.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_FILE,
        help="Path to the INI configuration file (default: config.ini)",
    )
    serve.add_argument("-p", "--port", type=int, default=DEFAULT_PORT, help="Port to serve on")
    return parser


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if getattr(args, "output_dir", None) is not None:
        config.ssg.output_dir = args.output_dir
    if getattr(args, "concurrency", None) is not None:
        config.ssg.concurrency = args.concurrency
    if getattr(args, "base_url", None) is not None:
        config.ssg.base_url = args.base_url
    return config


def _run_build(config: AppConfig, args: argparse.Namespace) -> int:
    try:
        result = generate(config)
    except GenerationError as exc:
        LOGGER.error("Generation failed: %s", exc)
        return 1

    LOGGER.info(
        "Generated %d pages in %.2fs (%d failed, %d skipped, %d series unavailable)",
        result.succeeded,
        result.elapsed,
        result.failed,
        result.skipped,
        result.unavailable_series,
    )
    if args.fail_on_error and (result.failed or result.unavailable_series):
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = apply_overrides(load_config(args.config), args)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    if args.command == "serve":
        try:
            serve_site(config.ssg.output_dir, args.port)
        except (FileNotFoundError, OSError) as exc:
            LOGGER.error("Failed to serve %s: %s", config.ssg.output_dir, exc)
            return 1
        return 0

    return _run_build(config, args)


__all__ = ["apply_overrides", "build_arg_parser", "configure_logging", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    raise SystemExit(main())
