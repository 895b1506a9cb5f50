import unittest
from datetime import datetime

from ssg.catalog import build_snapshot
from ssg.store import ChapterRecord, SeriesRecord, StoreError


class DummySource:
    def __init__(self, series, chapters, *, fail_listing=False, failing_series=()):
        self._series = series
        self._chapters = chapters
        self._fail_listing = fail_listing
        self._failing_series = set(failing_series)
        self.chapter_calls = []

    def list_series(self):
        if self._fail_listing:
            raise StoreError("connection refused")
        return list(self._series)

    def list_chapters(self, series_id):
        self.chapter_calls.append(series_id)
        if series_id in self._failing_series:
            raise StoreError("query timed out")
        return list(self._chapters.get(series_id, []))


class BuildSnapshotTestCase(unittest.TestCase):
    def setUp(self) -> None:
        updated = datetime(2025, 5, 1)
        self.series = [
            SeriesRecord(id=1, slug="echo", title="Echo", updated_at=updated),
            SeriesRecord(id=2, slug="drift", title="Drift", updated_at=updated),
        ]
        self.chapters = {
            1: [
                ChapterRecord(id=11, series_id=1, chapter_number=2.0),
                ChapterRecord(id=10, series_id=1, chapter_number=1.0, content="<p>loaded</p>"),
            ],
        }

    def test_snapshot_keeps_series_order_and_sorts_chapters(self) -> None:
        snapshot = build_snapshot(DummySource(self.series, self.chapters))

        self.assertEqual([series.slug for series in snapshot.series], ["echo", "drift"])
        self.assertEqual([chapter.id for chapter in snapshot.entries[0].chapters], [10, 11])
        self.assertEqual(snapshot.entries[1].chapters, ())
        self.assertEqual(snapshot.chapter_count, 2)
        self.assertTrue(all(chapter.content is None for chapter in snapshot.entries[0].chapters))

    def test_series_listing_failure_propagates(self) -> None:
        source = DummySource(self.series, self.chapters, fail_listing=True)

        with self.assertRaises(StoreError):
            build_snapshot(source)
        self.assertEqual(source.chapter_calls, [])

    def test_chapter_listing_failure_marks_series_unavailable(self) -> None:
        source = DummySource(self.series, self.chapters, failing_series={1})

        with self.assertLogs("ssg.catalog", level="ERROR") as captured:
            snapshot = build_snapshot(source)

        self.assertEqual([series.slug for series in snapshot.series], ["drift"])
        self.assertEqual([series.slug for series in snapshot.unavailable], ["echo"])
        self.assertIn("echo", captured.output[0])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
