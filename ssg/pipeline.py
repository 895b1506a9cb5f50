"""Concurrent generation pipeline: job queue, worker pool and coordinator."""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError

from .catalog import build_snapshot
from .config import AppConfig, GeneratorConfig
from .jobs import (
    HOME_PAGE_PATH,
    LIBRARY_PAGE_PATH,
    SITEMAP_PATH,
    ChapterJob,
    Job,
    SeriesJob,
    count_jobs,
    dispatch_jobs,
    job_output_path,
)
from .output import WriteError, prepare_output, write_page
from .progress import AtomicCounter, ProgressMonitor
from .renderer import PageRenderer, RenderError, TemplateKind
from .sitemap import write_sitemap
from .store import ContentStore, StoreError

LOGGER = logging.getLogger(__name__)

_CLOSED = object()


class GenerationError(RuntimeError):
    """Raised when a generation run cannot start."""


class JobOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(slots=True)
class WorkerStats:
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, outcome: JobOutcome) -> None:
        if outcome is JobOutcome.SUCCEEDED:
            self.succeeded += 1
        elif outcome is JobOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


@dataclass(slots=True)
class PoolResult:
    dispatched: int
    succeeded: int
    failed: int
    skipped: int
    elapsed: float


@dataclass(slots=True)
class GenerationResult:
    succeeded: int
    elapsed: float
    failed: int = 0
    skipped: int = 0
    dispatched: int = 0
    unavailable_series: int = 0


class JobQueue:
    """Bounded FIFO of jobs with an explicit end-of-input signal.

    ``get`` blocks while the queue is empty and open, and returns ``None``
    once it is empty and closed.
    """

    def __init__(self, maxsize: int) -> None:
        self._queue: queue.Queue = queue.Queue(maxsize=max(1, maxsize))
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, job: Job) -> None:
        if self._closed.is_set():
            raise RuntimeError("Cannot enqueue jobs after the queue was closed")
        self._queue.put(job)

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        self._queue.put(_CLOSED)

    def get(self) -> Optional[Job]:
        item = self._queue.get()
        if item is _CLOSED:
            # The marker is always the last item, so putting it back cannot block.
            self._queue.put(_CLOSED)
            return None
        return item


JobHandler = Callable[[Job], JobOutcome]


def _worker_loop(jobs: JobQueue, handler: JobHandler, counter: AtomicCounter) -> WorkerStats:
    stats = WorkerStats()
    while True:
        job = jobs.get()
        if job is None:
            return stats
        try:
            outcome = handler(job)
        except Exception:  # pragma: no cover - handlers report their own failures
            LOGGER.exception("Worker raised unexpectedly for %s", job.describe())
            outcome = JobOutcome.FAILED
        if outcome is JobOutcome.SUCCEEDED:
            counter.increment()
        stats.record(outcome)


def run_pool(
    jobs: Iterable[Job],
    handler: JobHandler,
    *,
    workers: int,
    queue_size: int,
    progress_interval: float = 0.0,
    reporter: Optional[Callable[[int], None]] = None,
) -> PoolResult:
    """Feed ``jobs`` through ``workers`` concurrent handlers and wait for them to drain."""

    if workers <= 0:
        raise ValueError("workers must be positive")

    job_queue = JobQueue(queue_size)
    counter = AtomicCounter()
    dispatched = 0
    started = time.monotonic()

    with ProgressMonitor(counter, progress_interval, reporter=reporter):
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ssg-worker") as executor:
            futures = [executor.submit(_worker_loop, job_queue, handler, counter) for _ in range(workers)]
            try:
                for job in jobs:
                    job_queue.put(job)
                    dispatched += 1
            finally:
                job_queue.close()
            wait(futures)

    totals = WorkerStats()
    for future in futures:
        worker_stats = future.result()
        totals.succeeded += worker_stats.succeeded
        totals.failed += worker_stats.failed
        totals.skipped += worker_stats.skipped

    LOGGER.info(
        "Processed %d jobs: %d succeeded, %d failed, %d skipped",
        dispatched,
        totals.succeeded,
        totals.failed,
        totals.skipped,
    )
    return PoolResult(
        dispatched=dispatched,
        succeeded=totals.succeeded,
        failed=totals.failed,
        skipped=totals.skipped,
        elapsed=time.monotonic() - started,
    )


class Generator:
    """Builds the static site for one configuration."""

    def __init__(self, config: GeneratorConfig, store: ContentStore, renderer: PageRenderer) -> None:
        self._config = config
        self._store = store
        self._renderer = renderer
        self._failure_lock = threading.Lock()

    def generate(self) -> GenerationResult:
        started = time.monotonic()
        output_dir = self._config.output_dir
        LOGGER.info("Starting generation into %s", output_dir)

        try:
            prepare_output(output_dir, self._config.assets_dir)
        except OSError as exc:
            raise GenerationError(f"Failed to prepare output directory {output_dir}: {exc}") from exc

        try:
            snapshot = build_snapshot(self._store)
        except StoreError as exc:
            raise GenerationError(f"Failed to load catalog: {exc}") from exc

        series = list(snapshot.series)
        try:
            write_page(output_dir, HOME_PAGE_PATH, self._renderer.stream(TemplateKind.HOME, {"series": series}))
        except (RenderError, WriteError) as exc:
            raise GenerationError(f"Failed to generate homepage: {exc}") from exc

        try:
            write_page(output_dir, LIBRARY_PAGE_PATH, self._renderer.stream(TemplateKind.LIBRARY, {}))
        except (RenderError, WriteError) as exc:
            raise GenerationError(f"Failed to generate library page: {exc}") from exc

        workers = self._config.worker_count()
        LOGGER.info("Rendering %d series and chapter pages with %d workers", count_jobs(snapshot), workers)
        pool = run_pool(
            dispatch_jobs(snapshot),
            self.process_job,
            workers=workers,
            queue_size=self._config.effective_queue_size(),
            progress_interval=self._config.progress_interval,
        )

        try:
            write_sitemap(output_dir / SITEMAP_PATH, self._config.base_url, series)
        except OSError as exc:
            LOGGER.error("Failed to write sitemap: %s", exc)

        return GenerationResult(
            succeeded=pool.succeeded,
            elapsed=time.monotonic() - started,
            failed=pool.failed,
            skipped=pool.skipped,
            dispatched=pool.dispatched,
            unavailable_series=len(snapshot.unavailable),
        )

    def process_job(self, job: Job) -> JobOutcome:
        try:
            if isinstance(job, ChapterJob):
                return self._process_chapter(job)
            return self._process_series(job)
        except (StoreError, RenderError, WriteError) as exc:
            LOGGER.error("Failed to generate %s: %s", job.describe(), exc)
            self._record_failure(job, exc)
            return JobOutcome.FAILED
        except Exception as exc:
            LOGGER.exception("Unhandled error for %s", job.describe())
            self._record_failure(job, exc)
            return JobOutcome.FAILED

    def _process_series(self, job: SeriesJob) -> JobOutcome:
        data = {"series": job.series, "chapters": job.chapters}
        write_page(
            self._config.output_dir,
            job_output_path(job),
            self._renderer.stream(TemplateKind.SERIES, data),
        )
        return JobOutcome.SUCCEEDED

    def _process_chapter(self, job: ChapterJob) -> JobOutcome:
        chapter = self._store.get_chapter_body(job.chapter.id)
        if chapter is None:
            LOGGER.warning("Chapter %s of series %s no longer exists; skipping", job.chapter.id, job.series.slug)
            return JobOutcome.SKIPPED

        data = {
            "series": job.series,
            "chapter": chapter,
            "prev_chapter": job.prev_chapter,
            "next_chapter": job.next_chapter,
            "current_index": job.position,
            "total_chapters": job.total,
        }
        write_page(
            self._config.output_dir,
            job_output_path(job),
            self._renderer.stream(TemplateKind.CHAPTER, data),
        )
        return JobOutcome.SUCCEEDED

    def _record_failure(self, job: Job, exc: Exception) -> None:
        log_path = self._config.failure_log
        if log_path is None:
            return

        payload = {
            "kind": job.kind.value,
            "series_id": job.series.id,
            "series_slug": job.series.slug,
            "chapter_id": job.chapter.id if isinstance(job, ChapterJob) else None,
            "error": str(exc),
            "error_type": type(exc).__name__,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
        try:
            with self._failure_lock:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                with log_path.open("a", encoding="utf-8") as handle:
                    handle.write(json.dumps(payload, ensure_ascii=False) + "\n")
        except OSError as file_error:  # pragma: no cover - filesystem failure path
            LOGGER.warning("Failed to record failure for %s: %s", job.describe(), file_error)


def build_renderer(config: GeneratorConfig) -> PageRenderer:
    return PageRenderer(
        config.template_dir,
        site_name=config.site_name,
        base_url=config.base_url,
        year=config.copyright_year,
    )


def generate(
    config: AppConfig,
    *,
    store: ContentStore | None = None,
    renderer: PageRenderer | None = None,
) -> GenerationResult:
    """Run one full generation and return the success count and elapsed time."""

    if store is None:
        if not config.database.dsn:
            raise GenerationError("A database DSN is required to load the catalog")
        try:
            store = ContentStore.from_dsn(config.database.dsn, pool_size=config.ssg.worker_count())
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            raise GenerationError(f"Failed to connect to the catalog database: {exc}") from exc
    if renderer is None:
        renderer = build_renderer(config.ssg)
    return Generator(config.ssg, store, renderer).generate()
