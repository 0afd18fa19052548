import asyncio
import threading
import time

import numpy as np
import pytest

from reflow_lib.ocr import OcrWorkerPool, PoolState, create_reader, default_worker_count
from reflow_lib.preprocess import to_data_uri

IMAGE = np.zeros((8, 8), dtype=np.uint8)


class FakeReader:
    """Stands in for easyocr.Reader; `behavior` decides what readtext does."""

    def __init__(self, language, behavior):
        self.language = language
        self.behavior = behavior

    def readtext(self, image, detail=0, paragraph=True):
        return self.behavior(image)


def make_factory(behavior):
    created = []

    def factory(language):
        reader = FakeReader(language, behavior)
        created.append(reader)
        return reader

    factory.created = created
    return factory


def test_worker_count_is_capped():
    assert 1 <= default_worker_count(4) <= 4
    assert default_worker_count(1) == 1


def test_create_reader_maps_language_codes(mocker):
    reader_cls = mocker.patch("reflow_lib.ocr.easyocr.Reader")
    create_reader("eng")
    reader_cls.assert_called_once_with(["en"], gpu=False, verbose=False)


def test_initialize_is_idempotent():
    factory = make_factory(lambda image: ["text"])
    pool = OcrWorkerPool(max_workers=2, reader_factory=factory)

    async def scenario():
        await pool.initialize("es")
        await pool.initialize("es")
        assert pool.initialized
        assert pool.state is PoolState.READY
        assert pool.language == "es"
        await pool.terminate()

    asyncio.run(scenario())
    assert len(factory.created) == pool.worker_count
    assert all(r.language == "es" for r in factory.created)
    assert pool.state is PoolState.IDLE
    assert not pool.initialized


def test_recognize_joins_text_blocks():
    factory = make_factory(lambda image: ["Hello world", "  ", "Second block"])
    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)

    async def scenario():
        try:
            return await pool.recognize(to_data_uri(IMAGE))
        finally:
            await pool.terminate()

    assert asyncio.run(scenario()) == "Hello world\n\nSecond block"


def test_terminated_worker_is_retried_once():
    calls = {"count": 0}

    def behavior(image):
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("OCR worker terminated unexpectedly")
        return ["Recovered"]

    factory = make_factory(behavior)
    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)

    async def scenario():
        try:
            return await pool.recognize(IMAGE)
        finally:
            await pool.terminate()

    assert asyncio.run(scenario()) == "Recovered"
    assert calls["count"] == 2
    assert pool.generation == 2
    assert len(factory.created) == 2


def test_second_termination_is_not_retried():
    def behavior(image):
        raise RuntimeError("worker terminated")

    factory = make_factory(behavior)
    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)

    async def scenario():
        try:
            await pool.recognize(IMAGE)
        finally:
            await pool.terminate()

    with pytest.raises(RuntimeError, match="terminated"):
        asyncio.run(scenario())
    assert pool.generation == 2


def test_other_failures_propagate_without_reinitializing():
    def behavior(image):
        raise ValueError("unreadable image")

    factory = make_factory(behavior)
    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)

    async def scenario():
        try:
            await pool.recognize(IMAGE)
        finally:
            await pool.terminate()

    with pytest.raises(ValueError, match="unreadable"):
        asyncio.run(scenario())
    assert pool.generation == 1
    assert len(factory.created) == 1


def test_failed_initialization_returns_to_idle():
    def factory(language):
        raise OSError("model download failed")

    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)
    with pytest.raises(OSError):
        asyncio.run(pool.initialize("en"))
    assert pool.state is PoolState.IDLE


def test_terminate_on_idle_pool_is_a_no_op():
    pool = OcrWorkerPool(max_workers=1, reader_factory=make_factory(lambda image: []))
    asyncio.run(pool.terminate())
    assert pool.state is PoolState.IDLE


def test_retry_does_not_drop_jobs_queued_behind_it():
    calls = {"count": 0}
    lock = threading.Lock()

    def behavior(image):
        with lock:
            calls["count"] += 1
            first = calls["count"] == 1
        time.sleep(0.05)
        if first:
            raise RuntimeError("OCR worker terminated unexpectedly")
        return ["ok"]

    pool = OcrWorkerPool(max_workers=1, reader_factory=make_factory(behavior))

    async def scenario():
        try:
            return await asyncio.gather(*(pool.recognize(IMAGE) for _ in range(4)))
        finally:
            await pool.terminate()

    assert asyncio.run(scenario()) == ["ok"] * 4
    assert pool.generation == 2


def test_jobs_dropped_by_terminate_are_rerun_on_a_new_pool():
    def behavior(image):
        time.sleep(0.05)
        return ["ok"]

    factory = make_factory(behavior)
    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)

    async def scenario():
        await pool.initialize("en")
        tasks = [asyncio.create_task(pool.recognize(IMAGE)) for _ in range(3)]
        await asyncio.sleep(0.01)
        await pool.terminate()
        try:
            return await asyncio.gather(*tasks)
        finally:
            await pool.terminate()

    assert asyncio.run(scenario()) == ["ok"] * 3
    assert len(factory.created) == 2


def test_cancelling_the_caller_is_not_turned_into_a_retry():
    release = threading.Event()

    def behavior(image):
        release.wait(1)
        return ["late"]

    factory = make_factory(behavior)
    pool = OcrWorkerPool(max_workers=1, reader_factory=factory)

    async def scenario():
        await pool.initialize("en")
        task = asyncio.create_task(pool.recognize(IMAGE))
        await asyncio.sleep(0.01)
        task.cancel()
        try:
            with pytest.raises(asyncio.CancelledError):
                await task
        finally:
            release.set()
            await pool.terminate()

    asyncio.run(scenario())
    assert pool.generation == 1
    assert len(factory.created) == 1
