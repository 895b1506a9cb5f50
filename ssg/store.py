"""Read-only catalog access over SQLAlchemy sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from models import Chapter, Series

LOGGER = logging.getLogger(__name__)

_IDLE_CONNECTIONS = 10
_POOL_RECYCLE_SECONDS = 300


class StoreError(RuntimeError):
    """Raised when the catalog cannot be queried."""


@dataclass(frozen=True, slots=True)
class SeriesRecord:
    id: int
    slug: str
    title: str
    updated_at: datetime
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    genre: Optional[str] = None
    release_year: Optional[int] = None
    source_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class ChapterRecord:
    id: int
    series_id: int
    chapter_number: float
    title: Optional[str] = None
    content: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def without_content(self) -> "ChapterRecord":
        if self.content is None:
            return self
        return replace(self, content=None)


def _series_record(row: Series) -> SeriesRecord:
    return SeriesRecord(
        id=row.id,
        slug=row.slug,
        title=row.title,
        updated_at=row.updated_at,
        thumbnail_url=row.thumbnail_url,
        author=row.author,
        description=row.description,
        status=row.status,
        genre=row.genre,
        release_year=row.release_year,
        source_id=row.source_id,
        created_at=row.created_at,
    )


def create_store_engine(dsn: str, *, pool_size: int | None = None) -> Engine:
    """Create an engine whose pool can serve ``pool_size`` concurrent readers."""

    if not dsn:
        raise ValueError("Database DSN must not be empty")

    url = make_url(dsn)
    engine_options: dict = {"pool_pre_ping": True}
    if url.get_backend_name() != "sqlite":
        engine_options["pool_recycle"] = _POOL_RECYCLE_SECONDS
        if pool_size and pool_size > 0:
            engine_options["pool_size"] = min(pool_size, _IDLE_CONNECTIONS)
            engine_options["max_overflow"] = max(0, pool_size - _IDLE_CONNECTIONS)
    return create_engine(url, **engine_options)


class ContentStore:
    """Catalog queries used by the generator. Each call uses its own session."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    @classmethod
    def from_dsn(cls, dsn: str, *, pool_size: int | None = None) -> "ContentStore":
        engine = create_store_engine(dsn, pool_size=pool_size)
        return cls(sessionmaker(bind=engine))

    def list_series(self) -> list[SeriesRecord]:
        """Return every series, most recently updated first."""

        statement = select(Series).order_by(Series.updated_at.desc(), Series.id)
        try:
            with self._session_factory() as session:
                rows = session.execute(statement).scalars().all()
                return [_series_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to list series: {exc}") from exc

    def list_chapters(self, series_id: int) -> list[ChapterRecord]:
        """Return chapter metadata for a series in ascending chapter order.

        Content is not loaded here; see :meth:`get_chapter_body`.
        """

        statement = (
            select(
                Chapter.id,
                Chapter.series_id,
                Chapter.chapter_number,
                Chapter.title,
                Chapter.created_at,
                Chapter.updated_at,
            )
            .where(Chapter.series_id == series_id)
            .order_by(Chapter.chapter_number.asc(), Chapter.id.asc())
        )
        try:
            with self._session_factory() as session:
                return [
                    ChapterRecord(
                        id=row.id,
                        series_id=row.series_id,
                        chapter_number=row.chapter_number,
                        title=row.title,
                        created_at=row.created_at,
                        updated_at=row.updated_at,
                    )
                    for row in session.execute(statement)
                ]
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to list chapters for series {series_id}: {exc}") from exc

    def get_chapter_body(self, chapter_id: int) -> ChapterRecord | None:
        """Return the chapter with its content, or ``None`` when it does not exist."""

        try:
            with self._session_factory() as session:
                row = session.get(Chapter, chapter_id)
                if row is None:
                    LOGGER.debug("Chapter %s not found", chapter_id)
                    return None
                return ChapterRecord(
                    id=row.id,
                    series_id=row.series_id,
                    chapter_number=row.chapter_number,
                    title=row.title,
                    content=row.content,
                    created_at=row.created_at,
                    updated_at=row.updated_at,
                )
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load chapter {chapter_id}: {exc}") from exc
