"""Rendering jobs and their dispatch from a catalog snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import Iterator, Optional, Union

from .catalog import CatalogSnapshot
from .store import ChapterRecord, SeriesRecord

HOME_PAGE_PATH = PurePosixPath("index.html")
LIBRARY_PAGE_PATH = PurePosixPath("library", "index.html")
SITEMAP_PATH = PurePosixPath("sitemap.xml")
_INDEX_FILE = "index.html"


class JobKind(str, Enum):
    SERIES = "series"
    CHAPTER = "chapter"


@dataclass(frozen=True, slots=True)
class SeriesJob:
    series: SeriesRecord
    chapters: tuple[ChapterRecord, ...]

    @property
    def kind(self) -> JobKind:
        return JobKind.SERIES

    def describe(self) -> str:
        return f"series {self.series.slug}"


@dataclass(frozen=True, slots=True)
class ChapterJob:
    series: SeriesRecord
    chapter: ChapterRecord
    prev_chapter: Optional[ChapterRecord]
    next_chapter: Optional[ChapterRecord]
    position: int
    total: int

    @property
    def kind(self) -> JobKind:
        return JobKind.CHAPTER

    def describe(self) -> str:
        return f"chapter {self.chapter.id} of series {self.series.slug}"


Job = Union[SeriesJob, ChapterJob]


def series_page_path(slug: str) -> PurePosixPath:
    return PurePosixPath("novel", slug, _INDEX_FILE)


def chapter_page_path(slug: str, chapter_id: int) -> PurePosixPath:
    return PurePosixPath("novel", slug, "chapter", str(chapter_id), _INDEX_FILE)


def job_output_path(job: Job) -> PurePosixPath:
    if isinstance(job, ChapterJob):
        return chapter_page_path(job.series.slug, job.chapter.id)
    return series_page_path(job.series.slug)


def dispatch_jobs(snapshot: CatalogSnapshot) -> Iterator[Job]:
    """Yield one series job per series followed by one chapter job per chapter."""

    for entry in snapshot.entries:
        chapters = entry.chapters
        yield SeriesJob(series=entry.series, chapters=chapters)

        total = len(chapters)
        for index, chapter in enumerate(chapters):
            yield ChapterJob(
                series=entry.series,
                chapter=chapter,
                prev_chapter=chapters[index - 1] if index > 0 else None,
                next_chapter=chapters[index + 1] if index < total - 1 else None,
                position=index + 1,
                total=total,
            )


def count_jobs(snapshot: CatalogSnapshot) -> int:
    return len(snapshot.entries) + snapshot.chapter_count
