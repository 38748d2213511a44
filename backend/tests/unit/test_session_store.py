# backend/tests/unit/test_session_store.py
import asyncio
from datetime import datetime, timedelta

import pytest

from realty_intake.models.flow import FlowName
from realty_intake.services.session_store import InMemorySessionStore
from realty_intake.utils.tasks import sweep_idle_sessions


class TestInMemorySessionStore:

    def test_get_or_create_is_lazy_and_stable(self):
        store = InMemorySessionStore()
        assert store.get("5551") is None

        session = store.get_or_create("5551")
        assert session.flow is None and session.stage is None and session.answers == {}
        assert store.get_or_create("5551") is session
        assert len(store) == 1

    def test_remove(self):
        store = InMemorySessionStore()
        store.get_or_create("5551")
        assert store.remove("5551") is True
        assert store.remove("5551") is False
        assert "5551" not in store

    def test_flow_is_set_once(self):
        session = InMemorySessionStore().get_or_create("5551")
        session.start(FlowName.BUY, "ASK_LOCATION", {"Fuente": "WhatsApp"})
        with pytest.raises(ValueError):
            session.start(FlowName.SELL, "ASK_LOCATION", {})

    def test_sweep_removes_only_idle_sessions(self):
        store = InMemorySessionStore()
        now = datetime(2024, 5, 1, 12, 0, 0)
        store.get_or_create("old").touch(now - timedelta(hours=30))
        store.get_or_create("fresh").touch(now - timedelta(minutes=5))

        removed = store.sweep_expired(timedelta(hours=24), now=now)

        assert removed == 1
        assert "old" not in store
        assert "fresh" in store

    @pytest.mark.asyncio
    async def test_sweep_skips_sessions_being_processed(self):
        store = InMemorySessionStore()
        now = datetime(2024, 5, 1, 12, 0, 0)
        store.get_or_create("busy").touch(now - timedelta(days=3))

        async with store.lock("busy"):
            assert store.sweep_expired(timedelta(hours=1), now=now) == 0
        assert store.sweep_expired(timedelta(hours=1), now=now) == 1

    @pytest.mark.asyncio
    async def test_lock_serializes_work_per_actor(self):
        store = InMemorySessionStore()
        order = []

        async def work(tag, delay):
            async with store.lock("5551"):
                order.append(f"{tag}-start")
                await asyncio.sleep(delay)
                order.append(f"{tag}-end")

        await asyncio.gather(work("a", 0.02), work("b", 0))
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_locks_of_different_actors_do_not_block_each_other(self):
        store = InMemorySessionStore()
        async with store.lock("5551"):
            await asyncio.wait_for(self._enter(store, "5552"), timeout=1)

    @pytest.mark.asyncio
    async def test_woken_waiter_keeps_lock_through_sweep(self):
        store = InMemorySessionStore()
        inside, overlaps = [], []
        release = asyncio.Event()

        async def first():
            async with store.lock("A"):
                await release.wait()

        async def delivery(tag):
            async with store.lock("A"):
                if inside:
                    overlaps.append((tag, list(inside)))
                inside.append(tag)
                await asyncio.sleep(0.01)
                inside.remove(tag)

        holder = asyncio.create_task(first())
        await asyncio.sleep(0)
        waiter = asyncio.create_task(delivery("d2"))
        await asyncio.sleep(0)

        # The holder releases and wakes d2, which has not resumed yet
        release.set()
        await asyncio.sleep(0)
        store.sweep_expired(timedelta(0))
        await asyncio.gather(holder, waiter, delivery("d3"))

        assert overlaps == []
        assert store.lock_count == 0

    @pytest.mark.asyncio
    async def test_lock_entry_dropped_after_last_user(self):
        store = InMemorySessionStore()
        async with store.lock("5551"):
            assert store.lock_count == 1
            assert store.is_busy("5551")
        assert store.lock_count == 0
        assert not store.is_busy("5551")

    @pytest.mark.asyncio
    async def test_lock_entry_dropped_when_body_raises(self):
        store = InMemorySessionStore()
        with pytest.raises(RuntimeError):
            async with store.lock("5551"):
                raise RuntimeError("boom")
        assert store.lock_count == 0

    @staticmethod
    async def _enter(store, actor_id):
        async with store.lock(actor_id):
            return True


@pytest.mark.asyncio
async def test_sweep_task_respects_disabled_timeout():
    store = InMemorySessionStore()
    store.get_or_create("5551").touch(datetime(2000, 1, 1))

    assert await sweep_idle_sessions(store, idle_timeout_seconds=0) == 0
    assert "5551" in store

    assert await sweep_idle_sessions(store, idle_timeout_seconds=60) == 1
    assert "5551" not in store
