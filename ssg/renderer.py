"""Jinja2 page rendering for the generated site."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Mapping

from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

LOGGER = logging.getLogger(__name__)

_ENCODING = "utf-8"


class RenderError(RuntimeError):
    """Raised when a page template cannot be rendered."""


class TemplateKind(str, Enum):
    HOME = "index.html"
    LIBRARY = "library.html"
    SERIES = "series.html"
    CHAPTER = "chapter.html"


def grad(series_id: int) -> str:
    """Return a deterministic CSS gradient used as a cover placeholder."""

    hue = (int(series_id) * 137) % 360
    return (
        f"linear-gradient(135deg, hsl({hue}, 40%, 80%) 0%, "
        f"hsl({hue}, 45%, 70%) 100%)"
    )


def abbr(value: str | None) -> str:
    if not value:
        return ""
    return value[:2].upper()


def strip_images(html: str | None) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for image in soup.find_all("img"):
        image.decompose()
    return str(soup)


def chapter_label(number: float | int | None) -> str:
    if number is None:
        return ""
    value = float(number)
    if value.is_integer():
        return str(int(value))
    return f"{value:g}"


class PageRenderer:
    """Renders the site pages from a template directory."""

    def __init__(
        self,
        template_dir: Path,
        *,
        site_name: str = "",
        base_url: str = "",
        year: int | None = None,
    ) -> None:
        self._template_dir = Path(template_dir)
        self._env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["grad"] = grad
        self._env.filters["abbr"] = abbr
        self._env.filters["strip_images"] = strip_images
        self._env.filters["chapter_label"] = chapter_label
        self._env.globals.update(
            site_name=site_name,
            base_url=base_url.rstrip("/"),
            year=year if year is not None else datetime.now().year,
        )

    @property
    def template_dir(self) -> Path:
        return self._template_dir

    def _template(self, kind: TemplateKind):
        try:
            return self._env.get_template(TemplateKind(kind).value)
        except ValueError as exc:
            raise RenderError(f"Unknown template kind: {kind!r}") from exc
        except TemplateError as exc:
            raise RenderError(f"Failed to load template {kind}: {exc}") from exc

    def stream(self, kind: TemplateKind, data: Mapping[str, Any]) -> Iterator[bytes]:
        """Yield the rendered page as encoded chunks."""

        template = self._template(kind)
        try:
            for chunk in template.generate(**data):
                yield chunk.encode(_ENCODING)
        except TemplateError as exc:
            raise RenderError(f"Failed to render {TemplateKind(kind).value}: {exc}") from exc

    def render(self, kind: TemplateKind, data: Mapping[str, Any]) -> bytes:
        return b"".join(self.stream(kind, data))
