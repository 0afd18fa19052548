"""
reflow_lib/ocr.py: A small pool of EasyOCR readers used for pages without a text layer.

The pool is the only place OCR workers are created. Callers submit images through
`recognize()`, which runs the job on one of at most `min(cpu_count, 4)` worker
threads, each owning its own reader.

State machine:
    IDLE -> INITIALIZING -> READY
    READY -> DEGRADED (a job reports a terminated worker)
    DEGRADED -> INITIALIZING -> READY (once per failed job, then the job is retried)
"""
import asyncio
import logging
import os
import queue
from concurrent.futures import BrokenExecutor, ThreadPoolExecutor
from enum import Enum

import easyocr

from .config import OCR_LANGUAGE, OCR_MAX_WORKERS
from .preprocess import from_data_uri

log_ocr = logging.getLogger("reflow.ocr")

# Tesseract style codes accepted for convenience.
LANGUAGE_ALIASES = {
    "eng": "en",
    "spa": "es",
    "fra": "fr",
    "deu": "de",
    "ita": "it",
    "por": "pt",
    "cat": "ca",
}


class PoolState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    READY = "ready"
    DEGRADED = "degraded"


class OcrWorkerTerminated(RuntimeError):
    """Raised when a job hits a worker (or executor) that is no longer alive."""


def default_worker_count(max_workers=OCR_MAX_WORKERS) -> int:
    return max(1, min(os.cpu_count() or 2, max_workers))


def create_reader(language: str):
    """Builds one EasyOCR reader for `language`."""
    lang = LANGUAGE_ALIASES.get(language, language)
    return easyocr.Reader([lang], gpu=False, verbose=False)


def _is_terminated(exc: BaseException) -> bool:
    if isinstance(exc, (OcrWorkerTerminated, BrokenExecutor)):
        return True
    message = str(exc).lower()
    return "terminated" in message or "after shutdown" in message


class OcrWorkerPool:
    """
    Runs OCR jobs on a bounded set of reader threads.

    Args:
        max_workers (int): Upper bound on workers; the pool uses
            min(cpu_count, max_workers).
        reader_factory (callable): Builds a reader for a language code. Readers
            must expose `readtext(image, detail=0, paragraph=True)`.
    """

    def __init__(self, max_workers=OCR_MAX_WORKERS, reader_factory=create_reader):
        self.worker_count = default_worker_count(max_workers)
        self.reader_factory = reader_factory
        self.state = PoolState.IDLE
        self.language = OCR_LANGUAGE
        self.generation = 0
        self._executor = None
        self._readers = None
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self.state is PoolState.READY

    async def initialize(self, language=None):
        """Creates the workers. Calling it on a ready pool does nothing."""
        async with self._init_lock:
            if self.state is PoolState.READY:
                log_ocr.debug("OCR worker pool already initialized.")
                return
            language = language or self.language
            self.state = PoolState.INITIALIZING
            log_ocr.info(
                "Initializing OCR worker pool with %d worker(s) (%s)...",
                self.worker_count,
                language,
            )
            executor = ThreadPoolExecutor(
                max_workers=self.worker_count, thread_name_prefix="reflow-ocr"
            )
            loop = asyncio.get_running_loop()
            try:
                readers = await asyncio.gather(
                    *(
                        loop.run_in_executor(executor, self.reader_factory, language)
                        for _ in range(self.worker_count)
                    )
                )
            except Exception:
                executor.shutdown(wait=False, cancel_futures=True)
                self.state = PoolState.IDLE
                raise

            self._readers = queue.Queue()
            for reader in readers:
                self._readers.put(reader)
            self._executor = executor
            self.language = language
            self.generation += 1
            self.state = PoolState.READY
            log_ocr.info("OCR worker pool ready.")

    def _run_job(self, readers, image):
        reader = readers.get()
        try:
            results = reader.readtext(image, detail=0, paragraph=True)
        finally:
            readers.put(reader)
        return "\n\n".join(r.strip() for r in results if r and r.strip())

    async def _submit(self, image):
        executor, readers = self._executor, self._readers
        if executor is None or readers is None:
            raise OcrWorkerTerminated("OCR worker pool has been terminated.")
        job = executor.submit(self._run_job, readers, image)
        try:
            return await asyncio.wrap_future(job)
        except asyncio.CancelledError:
            # A queued job dropped by a pool shutdown, not a cancelled caller.
            if job.cancelled() and executor is not self._executor:
                raise OcrWorkerTerminated(
                    "OCR job was dropped by a pool shutdown."
                ) from None
            raise

    async def recognize(self, image) -> str:
        """Returns the text recognized in `image` (ndarray, bytes or data URI).

        A job that fails because its worker was terminated is retried exactly
        once on a freshly initialized pool. Every other failure propagates.
        Cancelling the caller still cancels the job.
        """
        if isinstance(image, str):
            image = from_data_uri(image)
        if not self.initialized:
            await self.initialize(self.language)

        generation = self.generation
        try:
            return await self._submit(image)
        except Exception as e:
            if not _is_terminated(e):
                log_ocr.error("OCR recognition failed: %s", e)
                raise
            log_ocr.warning("OCR worker was terminated (%s); reinitializing pool.", e)

        if generation == self.generation and self.state is PoolState.READY:
            self.state = PoolState.DEGRADED
            # Jobs already queued on the old workers are left to finish.
            await self.terminate(cancel_pending=False)
        await self.initialize(self.language)
        return await self._submit(image)

    async def terminate(self, cancel_pending=True):
        """Releases all workers. Safe to call on an idle pool.

        With `cancel_pending`, jobs still waiting for a worker are dropped and
        their callers see OcrWorkerTerminated.
        """
        if self._executor is None and self.state is PoolState.IDLE:
            return
        log_ocr.info("Terminating OCR worker pool...")
        executor = self._executor
        self._executor, self._readers = None, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=cancel_pending)
        self.state = PoolState.IDLE
        log_ocr.info("OCR worker pool terminated.")
