"""Serialized access to the process-wide recognition engine.

The engine is expensive to start and unsafe to run in parallel on small
hosts, so this module owns exactly one instance per process:

- ``acquire()`` starts the engine on first use. Concurrent callers share the
  same in-flight initialization; a failed start is forgotten so a later call
  can try again.
- ``submit()`` appends a job to one FIFO queue drained by a single worker
  task. Jobs run one at a time in submission order; a failing job only fails
  its own future.
- ``shutdown()`` stops accepting work, lets queued jobs drain (bounded by a
  timeout) and terminates the engine once, however many times it is called.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from app.core.errors import EngineInitFailure, JobFailure
from app.ocr.base_ocr import OCREngine, OCRResult

logger = logging.getLogger(__name__)


@dataclass
class RecognitionJob:
    job_id: int
    image_bytes: bytes
    result: asyncio.Future[OCRResult]


class RecognitionEngineManager:
    def __init__(
        self,
        engine_factory: Callable[[], OCREngine],
        *,
        shutdown_timeout: float = 10.0,
    ) -> None:
        self._engine_factory = engine_factory
        self._shutdown_timeout = shutdown_timeout

        self._engine: OCREngine | None = None
        self._init_future: asyncio.Future[OCREngine] | None = None

        self._queue: asyncio.Queue[RecognitionJob] | None = None
        self._worker: asyncio.Task | None = None
        self._current: RecognitionJob | None = None
        self._job_ids = itertools.count(1)

        self._closing = False
        self._shutdown_task: asyncio.Task | None = None

    @property
    def pending_jobs(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    # ------------------------------------------------------------------ #
    #  Engine lifecycle                                                   #
    # ------------------------------------------------------------------ #

    async def acquire(self) -> OCREngine:
        if self._closing:
            raise EngineInitFailure("Recognition engine is shut down")
        return await self._ensure_engine()

    async def _ensure_engine(self) -> OCREngine:
        # Jobs accepted before shutdown still get an engine while draining
        if self._engine is not None:
            return self._engine
        if self._init_future is None:
            self._init_future = asyncio.ensure_future(self._initialize())
        # shield: one waiter being cancelled must not abort the shared start
        return await asyncio.shield(self._init_future)

    async def _initialize(self) -> OCREngine:
        t0 = time.monotonic()
        try:
            engine = self._engine_factory()
            await engine.start()
        except Exception as exc:
            self._init_future = None
            logger.error("engine_init_failed", extra={"error": str(exc)})
            raise EngineInitFailure(str(exc)) from exc

        self._engine = engine
        logger.info(
            "engine_initialized",
            extra={
                "engine": type(engine).__name__,
                "lang": engine.lang,
                "duration_ms": int((time.monotonic() - t0) * 1000),
            },
        )
        return engine

    # ------------------------------------------------------------------ #
    #  Job queue                                                          #
    # ------------------------------------------------------------------ #

    def submit(self, image_bytes: bytes) -> asyncio.Future[OCRResult]:
        """Enqueue *image_bytes* for recognition and return the job's future.

        Must be called from inside the running event loop.
        """
        if self._closing:
            raise JobFailure("Recognition engine is shutting down")

        loop = asyncio.get_running_loop()
        if self._queue is None:
            self._queue = asyncio.Queue()
        if self._worker is None:
            self._worker = loop.create_task(self._run_worker(), name="ocr-worker")

        job = RecognitionJob(
            job_id=next(self._job_ids),
            image_bytes=image_bytes,
            result=loop.create_future(),
        )
        self._queue.put_nowait(job)
        logger.debug("ocr_job_queued", extra={"job_id": job.job_id, "queue_depth": self._queue.qsize()})
        return job.result

    async def recognize(self, image_bytes: bytes) -> OCRResult:
        """Submit and wait. A cancelled caller does not abort the job itself."""
        return await asyncio.shield(self.submit(image_bytes))

    async def _run_worker(self) -> None:
        assert self._queue is not None
        while True:
            job = await self._queue.get()
            self._current = job
            try:
                await self._process(job)
            finally:
                self._queue.task_done()
            # left set on cancellation so shutdown can fail the interrupted job
            self._current = None

    async def _process(self, job: RecognitionJob) -> None:
        try:
            engine = await self._ensure_engine()
        except EngineInitFailure as exc:
            # Everything queued behind this job was waiting on the same start
            _fail(job, exc)
            self._fail_pending(exc)
            return

        t0 = time.monotonic()
        try:
            result = await engine.extract_text(job.image_bytes)
        except Exception as exc:
            logger.error(
                "ocr_job_failed",
                extra={"job_id": job.job_id, "error": str(exc), "image_bytes": len(job.image_bytes)},
            )
            _fail(job, JobFailure(str(exc)))
            return

        logger.info(
            "ocr_job_complete",
            extra={
                "job_id": job.job_id,
                "confidence": result.confidence,
                "duration_ms": int((time.monotonic() - t0) * 1000),
            },
        )
        if not job.result.done():
            job.result.set_result(result)

    def _fail_pending(self, exc: Exception) -> None:
        if self._queue is None:
            return
        while True:
            try:
                job = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            _fail(job, exc)
            self._queue.task_done()

    # ------------------------------------------------------------------ #
    #  Shutdown                                                           #
    # ------------------------------------------------------------------ #

    async def shutdown(self) -> None:
        if self._shutdown_task is None:
            self._shutdown_task = asyncio.ensure_future(self._shutdown())
        await asyncio.shield(self._shutdown_task)

    async def _shutdown(self) -> None:
        self._closing = True
        logger.info("engine_shutdown_started", extra={"pending_jobs": self.pending_jobs})

        if self._worker is not None and self._queue is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=self._shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "engine_drain_timeout",
                    extra={"pending_jobs": self.pending_jobs, "timeout_s": self._shutdown_timeout},
                )

            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

            stopped = JobFailure("Recognition engine shut down before the job finished")
            if self._current is not None:
                _fail(self._current, stopped)
            self._fail_pending(stopped)

        init_future = self._init_future
        if init_future is not None and not init_future.done():
            try:
                await asyncio.wait_for(asyncio.shield(init_future), timeout=self._shutdown_timeout)
            except (EngineInitFailure, asyncio.TimeoutError):
                # init failures are logged by _initialize; nothing to release
                pass

        engine, self._engine = self._engine, None
        if engine is not None:
            try:
                await engine.terminate()
            except Exception:
                logger.exception("engine_terminate_failed")
            else:
                logger.info("engine_released", extra={"engine": type(engine).__name__})


def _fail(job: RecognitionJob, exc: Exception) -> None:
    if not job.result.done():
        job.result.set_exception(exc)
