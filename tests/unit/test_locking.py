"""Tests for KeyedLock.

Group creation relies on KeyedLock to keep two rows from creating the same
host group at the same time.
"""

import asyncio

import pytest

from src.hostimporter.utils.locking import KeyedLock


@pytest.mark.asyncio
async def test_keyed_lock_basic_acquire_release():
    lock = KeyedLock()

    async with lock.acquire("Linux"):
        assert lock.locked("Linux")

    assert not lock.locked("Linux")
    async with lock.acquire("Linux"):
        pass


@pytest.mark.asyncio
async def test_keyed_lock_call_shortcut():
    lock = KeyedLock()
    async with lock("Linux"):
        assert lock.locked("Linux")


@pytest.mark.asyncio
async def test_unknown_key_not_locked():
    assert not KeyedLock().locked("never-used")


@pytest.mark.asyncio
async def test_same_key_serialized():
    """Verify that the same key blocks concurrent access."""
    lock = KeyedLock()
    order = []

    async def worker(name, delay):
        await asyncio.sleep(delay)
        async with lock.acquire("Linux"):
            order.append(f"{name}_start")
            await asyncio.sleep(0.02)
            order.append(f"{name}_end")

    await asyncio.gather(worker("a", 0), worker("b", 0.005))

    assert order == ["a_start", "a_end", "b_start", "b_end"]


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    lock = KeyedLock()
    order = []

    async def worker(key):
        async with lock.acquire(key):
            order.append(f"{key}_start")
            await asyncio.sleep(0.02)
            order.append(f"{key}_end")

    await asyncio.gather(worker("Linux"), worker("Prod"))

    assert order[:2] == ["Linux_start", "Prod_start"]


@pytest.mark.asyncio
async def test_released_on_exception():
    lock = KeyedLock()

    with pytest.raises(RuntimeError):
        async with lock.acquire("Linux"):
            raise RuntimeError("boom")

    assert not lock.locked("Linux")
