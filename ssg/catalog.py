"""Immutable in-memory copy of the catalog for one generation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from .store import ChapterRecord, SeriesRecord, StoreError

LOGGER = logging.getLogger(__name__)


class CatalogSource(Protocol):
    def list_series(self) -> list[SeriesRecord]:
        ...

    def list_chapters(self, series_id: int) -> list[ChapterRecord]:
        ...


@dataclass(frozen=True, slots=True)
class SeriesEntry:
    series: SeriesRecord
    chapters: tuple[ChapterRecord, ...]


@dataclass(frozen=True, slots=True)
class CatalogSnapshot:
    entries: tuple[SeriesEntry, ...]
    unavailable: tuple[SeriesRecord, ...] = ()

    @property
    def series(self) -> tuple[SeriesRecord, ...]:
        return tuple(entry.series for entry in self.entries)

    @property
    def chapter_count(self) -> int:
        return sum(len(entry.chapters) for entry in self.entries)


def order_chapters(chapters: Iterable[ChapterRecord]) -> tuple[ChapterRecord, ...]:
    """Sort chapters by number; ties keep the order they were supplied in."""

    return tuple(sorted((chapter.without_content() for chapter in chapters), key=lambda c: c.chapter_number))


def build_snapshot(source: CatalogSource) -> CatalogSnapshot:
    """Fetch every series and its chapter metadata.

    A failing series listing propagates as :class:`StoreError`. A series whose
    chapters cannot be listed is logged and left out of the snapshot.
    """

    series_list = source.list_series()
    entries: list[SeriesEntry] = []
    unavailable: list[SeriesRecord] = []
    for series in series_list:
        try:
            chapters = source.list_chapters(series.id)
        except StoreError as exc:
            LOGGER.error("Failed to list chapters for series %s (id=%s): %s", series.slug, series.id, exc)
            unavailable.append(series)
            continue
        entries.append(SeriesEntry(series=series, chapters=order_chapters(chapters)))

    snapshot = CatalogSnapshot(entries=tuple(entries), unavailable=tuple(unavailable))
    LOGGER.info(
        "Loaded catalog snapshot: %d series, %d chapters (%d series unavailable)",
        len(snapshot.entries),
        snapshot.chapter_count,
        len(snapshot.unavailable),
    )
    return snapshot
