"""Tests for BackgroundTasks."""

import asyncio

import pytest

from afkbot.lib.tasks import BackgroundTasks


@pytest.mark.asyncio
async def test_failures_reach_the_error_handler() -> None:
    errors: list[tuple[str, str]] = []
    tasks = BackgroundTasks(on_error=lambda name, exc: errors.append((name, str(exc))))

    async def fail() -> None:
        raise RuntimeError("boom")

    tasks.spawn(fail(), name="auto-eat")
    await tasks.join()

    assert errors == [("auto-eat", "boom")]
    assert len(tasks) == 0


@pytest.mark.asyncio
async def test_finished_tasks_are_forgotten() -> None:
    tasks = BackgroundTasks()

    async def work() -> int:
        await asyncio.sleep(0)
        return 1

    task = tasks.spawn(work())
    assert len(tasks) == 1

    await tasks.join()
    assert task.result() == 1
    assert len(tasks) == 0


@pytest.mark.asyncio
async def test_cancel_all_is_not_an_error() -> None:
    errors: list[str] = []
    tasks = BackgroundTasks(on_error=lambda name, exc: errors.append(name))

    tasks.spawn(asyncio.sleep(10), name="slow")
    await asyncio.sleep(0)
    tasks.cancel_all()
    await tasks.join()

    assert errors == []
    assert len(tasks) == 0
