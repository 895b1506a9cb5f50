"""Sitemap serialization for the generated site."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable
from xml.etree import ElementTree as ET

from .store import SeriesRecord

LOGGER = logging.getLogger(__name__)

_SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_NS = f"{{{_SITEMAP_NS}}}"

ET.register_namespace("", _SITEMAP_NS)


def _append_url(
    urlset: ET.Element,
    loc: str,
    *,
    lastmod: str | None = None,
    changefreq: str = "daily",
    priority: str = "0.8",
) -> None:
    url = ET.SubElement(urlset, f"{SITEMAP_NS}url")
    ET.SubElement(url, f"{SITEMAP_NS}loc").text = loc
    if lastmod:
        ET.SubElement(url, f"{SITEMAP_NS}lastmod").text = lastmod
    ET.SubElement(url, f"{SITEMAP_NS}changefreq").text = changefreq
    ET.SubElement(url, f"{SITEMAP_NS}priority").text = priority


def build_sitemap(base_url: str, series: Iterable[SeriesRecord]) -> ET.ElementTree:
    base = base_url.rstrip("/")
    urlset = ET.Element(f"{SITEMAP_NS}urlset")
    _append_url(urlset, f"{base}/", priority="1.0")
    for item in series:
        lastmod = item.updated_at.strftime("%Y-%m-%d") if item.updated_at else None
        _append_url(urlset, f"{base}/novel/{item.slug}", lastmod=lastmod)
    tree = ET.ElementTree(urlset)
    ET.indent(tree, space="  ")
    return tree


def write_sitemap(path: Path, base_url: str, series: Iterable[SeriesRecord]) -> int:
    """Write ``sitemap.xml`` and return the number of URLs it lists."""

    tree = build_sitemap(base_url, series)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        tree.write(handle, encoding="UTF-8", xml_declaration=True)
    count = len(tree.getroot())
    LOGGER.info("Wrote sitemap with %d URLs to %s", count, path)
    return count
