import unittest
from datetime import datetime
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from models import Base, Chapter, Series
from ssg.store import ChapterRecord, ContentStore, StoreError, create_store_engine


class ContentStoreTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = TemporaryDirectory()
        db_path = Path(self._tmpdir.name) / "catalog.db"
        self.engine = create_engine(f"sqlite:///{db_path}")
        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(bind=self.engine)
        self.store = ContentStore(self.session_factory)

        with self.session_factory() as session:
            session.add_all(
                [
                    Series(
                        id=1,
                        slug="echo",
                        title="Echo",
                        author="R. Vale",
                        updated_at=datetime(2025, 1, 1),
                    ),
                    Series(id=2, slug="drift", title="Drift", updated_at=datetime(2025, 3, 1)),
                    Chapter(id=12, series_id=1, chapter_number=3.0, title="Third", content="<p>three</p>"),
                    Chapter(id=10, series_id=1, chapter_number=1.0, title="First", content="<p>one</p>"),
                    Chapter(id=13, series_id=1, chapter_number=1.5, content="<p>interlude</p>"),
                    Chapter(id=11, series_id=1, chapter_number=2.0, content="<p>two</p>"),
                ]
            )
            session.commit()

    def tearDown(self) -> None:
        self.engine.dispose()
        self._tmpdir.cleanup()

    def test_list_series_orders_by_recency(self) -> None:
        series = self.store.list_series()

        self.assertEqual([item.slug for item in series], ["drift", "echo"])
        self.assertEqual(series[1].author, "R. Vale")
        self.assertEqual(series[0].updated_at, datetime(2025, 3, 1))

    def test_list_chapters_is_ascending_and_omits_content(self) -> None:
        chapters = self.store.list_chapters(1)

        self.assertEqual([chapter.id for chapter in chapters], [10, 13, 11, 12])
        self.assertEqual([chapter.chapter_number for chapter in chapters], [1.0, 1.5, 2.0, 3.0])
        self.assertTrue(all(chapter.content is None for chapter in chapters))
        self.assertEqual(self.store.list_chapters(2), [])

    def test_get_chapter_body_returns_content(self) -> None:
        chapter = self.store.get_chapter_body(13)

        self.assertIsInstance(chapter, ChapterRecord)
        self.assertEqual(chapter.content, "<p>interlude</p>")
        self.assertEqual(chapter.series_id, 1)

    def test_get_chapter_body_returns_none_when_missing(self) -> None:
        self.assertIsNone(self.store.get_chapter_body(999))

    def test_query_failures_raise_store_error(self) -> None:
        session = MagicMock()
        session.__enter__.return_value = session
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("server has gone away"))
        session.get.side_effect = OperationalError("SELECT", {}, Exception("server has gone away"))
        store = ContentStore(lambda: session)

        with self.assertRaises(StoreError):
            store.list_series()
        with self.assertRaises(StoreError):
            store.list_chapters(1)
        with self.assertRaises(StoreError):
            store.get_chapter_body(10)


class CreateStoreEngineTestCase(unittest.TestCase):
    def test_rejects_empty_dsn(self) -> None:
        with self.assertRaises(ValueError):
            create_store_engine("")

    def test_sqlite_engine_skips_pool_sizing(self) -> None:
        with TemporaryDirectory() as tmpdir:
            engine = create_store_engine(f"sqlite:///{tmpdir}/catalog.db", pool_size=100)
            try:
                self.assertEqual(engine.dialect.name, "sqlite")
            finally:
                engine.dispose()


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
