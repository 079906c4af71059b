"""Tests for the debounced save queue."""

import asyncio

import pytest

from workshop_wizard.services.save_queue import DebouncedSaveQueue

DELAY = 0.02


def test_burst_of_schedules_flushes_once_with_latest_value() -> None:
    async def scenario() -> list[tuple[str, int]]:
        value = {"current": 0}
        flushed: list[tuple[str, int]] = []

        async def flush(key: str) -> None:
            flushed.append((key, value["current"]))

        queue = DebouncedSaveQueue(flush, delay=DELAY)
        for number in range(1, 6):
            value["current"] = number
            queue.schedule("workshop_data")
            await asyncio.sleep(DELAY / 4)
        await asyncio.sleep(DELAY * 3)
        return flushed

    assert asyncio.run(scenario()) == [("workshop_data", 5)]


def test_keys_are_debounced_independently() -> None:
    async def scenario() -> list[str]:
        flushed: list[str] = []

        async def flush(key: str) -> None:
            flushed.append(key)

        queue = DebouncedSaveQueue(flush, delay=DELAY)
        queue.schedule("a")
        queue.schedule("b")
        queue.schedule("a")
        await asyncio.sleep(DELAY * 3)
        return sorted(flushed)

    assert asyncio.run(scenario()) == ["a", "b"]


def test_schedule_during_flight_waits_then_flushes_again() -> None:
    async def scenario() -> tuple[list[int], int]:
        value = {"current": 1}
        flushed: list[int] = []
        running = 0
        peak = 0
        release = asyncio.Event()

        async def flush(key: str) -> None:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            snapshot = value["current"]
            if len(flushed) == 0:
                await release.wait()
            flushed.append(snapshot)
            running -= 1

        queue = DebouncedSaveQueue(flush, delay=DELAY)
        queue.schedule("k")
        await asyncio.sleep(DELAY * 2)
        assert queue.pending("k")

        value["current"] = 2
        queue.schedule("k")
        await asyncio.sleep(DELAY * 2)
        assert flushed == []

        release.set()
        await asyncio.sleep(DELAY * 2)
        return flushed, peak

    flushed, peak = asyncio.run(scenario())
    assert flushed == [1, 2]
    assert peak == 1


def test_failed_flush_reports_error_and_does_not_retry() -> None:
    async def scenario() -> tuple[int, list[str]]:
        attempts = 0
        errors: list[str] = []

        async def flush(key: str) -> None:
            nonlocal attempts
            attempts += 1
            raise RuntimeError("network down")

        queue = DebouncedSaveQueue(
            flush, delay=DELAY, on_error=lambda key, exc: errors.append(str(exc))
        )
        queue.schedule("k")
        await asyncio.sleep(DELAY * 4)
        assert not queue.has_pending
        return attempts, errors

    attempts, errors = asyncio.run(scenario())
    assert attempts == 1
    assert errors == ["network down"]


def test_aclose_delivers_pending_saves_immediately() -> None:
    async def scenario() -> list[str]:
        flushed: list[str] = []

        async def flush(key: str) -> None:
            flushed.append(key)

        queue = DebouncedSaveQueue(flush, delay=10)
        queue.schedule("a")
        queue.schedule("b")
        await queue.aclose()
        assert not queue.has_pending
        with pytest.raises(RuntimeError):
            queue.schedule("a")
        return sorted(flushed)

    assert asyncio.run(scenario()) == ["a", "b"]


def test_flush_all_waits_for_in_flight_and_reflushes_dirty_key() -> None:
    async def scenario() -> list[int]:
        value = {"current": 1}
        flushed: list[int] = []

        async def flush(key: str) -> None:
            snapshot = value["current"]
            await asyncio.sleep(DELAY)
            flushed.append(snapshot)

        queue = DebouncedSaveQueue(flush, delay=0)
        queue.schedule("k")
        await asyncio.sleep(DELAY / 4)
        value["current"] = 2
        queue.schedule("k")
        await queue.flush_all()
        return flushed

    assert asyncio.run(scenario()) == [1, 2]


def test_flush_all_without_pending_work_returns() -> None:
    async def flush(key: str) -> None:
        raise AssertionError("should not flush")

    queue = DebouncedSaveQueue(flush, delay=DELAY)
    asyncio.run(queue.flush_all())
