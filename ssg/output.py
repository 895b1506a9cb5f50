"""Output directory preparation and page writes."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Iterable

LOGGER = logging.getLogger(__name__)

ASSETS_DIRNAME = "assets"


class WriteError(RuntimeError):
    """Raised when a generated page cannot be written."""


def prepare_output(output_dir: Path, assets_dir: Path | None = None) -> None:
    """Remove any previous build and recreate the output root with static assets.

    Raises ``OSError`` when the directory cannot be cleaned or created, and
    ``FileNotFoundError`` when a configured assets directory does not exist.
    """

    if output_dir.exists():
        LOGGER.info("Cleaning output directory %s", output_dir)
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    if assets_dir is None:
        return
    if not assets_dir.is_dir():
        raise FileNotFoundError(f"Assets directory not found: {assets_dir}")

    destination = output_dir / ASSETS_DIRNAME
    shutil.copytree(assets_dir, destination, dirs_exist_ok=True)
    LOGGER.info("Copied static assets from %s to %s", assets_dir, destination)


def resolve_page_path(output_dir: Path, relative_path: PurePosixPath) -> Path:
    for part in relative_path.parts:
        if part in {"", ".", ".."} or "/" in part or "\\" in part:
            raise WriteError(f"Unsafe output path segment {part!r} in {relative_path}")
    return output_dir.joinpath(*relative_path.parts)


def write_page(output_dir: Path, relative_path: PurePosixPath, chunks: Iterable[bytes]) -> Path:
    """Stream ``chunks`` into ``output_dir / relative_path``.

    Parent directories are created as needed. A partially written file is
    removed before the error propagates; ``OSError`` is raised as
    :class:`WriteError`, anything raised by ``chunks`` is re-raised as is.
    """

    target = resolve_page_path(output_dir, relative_path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("wb") as handle:
            for chunk in chunks:
                handle.write(chunk)
    except BaseException as exc:
        _discard_partial(target)
        if isinstance(exc, OSError):
            raise WriteError(f"Failed to write {target}: {exc}") from exc
        raise
    return target


def _discard_partial(target: Path) -> None:
    try:
        target.unlink(missing_ok=True)
    except OSError as exc:  # pragma: no cover - filesystem failure path
        LOGGER.warning("Failed to remove partial page %s: %s", target, exc)
