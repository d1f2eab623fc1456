"""
Tests for the hello controller and its repository against SQLite.
"""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy import update

from hello_reconciler.controller import HelloController, greeting
from hello_reconciler.data_access import Hellos
from hello_reconciler.errors import HelloError
from hello_reconciler.models import Hello, utc_now
from reconciliation.controller_host import ControllerHost
from tests.unit_test.reconciliation.fakes import wait_until


async def backdate_deletion(engine, hello_id: int, age: timedelta):
    async with engine.begin() as conn:
        await conn.execute(update(Hello).where(Hello.id == hello_id).values(deleted_at=utc_now() - age))


def make_controller(hellos: Hellos, retention=timedelta(days=3)) -> HelloController:
    return HelloController(hellos, resync_period=timedelta(milliseconds=20), retention_period=retention)


class TestHellos:
    """Test suite for the hello repository."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, hellos):
        hello = await hellos.add("world")

        found = await hellos.get(hello.id)
        assert found is not None
        stored, status = found
        assert stored.name == "world"
        assert not stored.is_deleted()
        assert status is None

        assert await hellos.get(hello.id + 100) is None

    @pytest.mark.asyncio
    async def test_all_skips_soft_deleted(self, hellos):
        kept = await hellos.add("kept")
        dropped = await hellos.add("dropped")

        assert await hellos.soft_delete(dropped.id) is True
        assert await hellos.soft_delete(dropped.id) is False

        rows = await hellos.all()
        assert [hello.id for hello, _ in rows] == [kept.id]

    @pytest.mark.asyncio
    async def test_upsert_creates_then_updates_status(self, hellos):
        hello = await hellos.add("world")

        created = await hellos.upsert(hello.id, "first")
        updated = await hellos.upsert(hello.id, "second")

        assert created.id == updated.id
        _, status = await hellos.get(hello.id)
        assert status.message == "second"

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, hellos):
        hello = await hellos.add("world")
        await hellos.upsert(hello.id, "message")

        await hellos.remove(hello.id)
        await hellos.remove(hello.id)

        assert await hellos.get(hello.id) is None

    @pytest.mark.asyncio
    async def test_database_errors_become_hello_errors(self, engine):
        hellos = Hellos(engine)  # tables never created
        with pytest.raises(HelloError, match="hello database operation failed"):
            await hellos.all()


class TestHelloController:
    """Test suite for HelloController capabilities."""

    @pytest.mark.asyncio
    async def test_reconcile_writes_greetings(self, hellos):
        world = await hellos.add("world")
        gone = await hellos.add("gone")
        await hellos.soft_delete(gone.id)
        controller = make_controller(hellos)

        await controller.reconcile()

        _, status = await hellos.get(world.id)
        assert status.message == greeting("world") == "Hello, world!"
        _, gone_status = await hellos.get(gone.id)
        assert gone_status is None

    @pytest.mark.asyncio
    async def test_reconcile_is_a_noop_on_a_stable_world(self, hellos):
        hello = await hellos.add("world")
        controller = make_controller(hellos)

        await controller.reconcile()
        _, first = await hellos.get(hello.id)
        await controller.reconcile()
        await controller.reconcile()
        _, last = await hellos.get(hello.id)

        assert last.message == first.message
        assert last.updated_at == first.updated_at

    @pytest.mark.asyncio
    async def test_reconcile_fixes_stale_status(self, hellos):
        hello = await hellos.add("world")
        await hellos.upsert(hello.id, "Goodbye, world!")
        controller = make_controller(hellos)

        await controller.reconcile()

        _, status = await hellos.get(hello.id)
        assert status.message == "Hello, world!"

    @pytest.mark.asyncio
    async def test_cleanup_respects_retention(self, engine, hellos):
        old = await hellos.add("old")
        recent = await hellos.add("recent")
        live = await hellos.add("live")
        await hellos.upsert(old.id, "Hello, old!")
        await hellos.soft_delete(old.id)
        await hellos.soft_delete(recent.id)
        await backdate_deletion(engine, old.id, timedelta(days=4))
        controller = make_controller(hellos, retention=timedelta(days=3))

        await controller.cleanup()

        assert await hellos.get(old.id) is None
        assert await hellos.get(recent.id) is not None
        assert await hellos.get(live.id) is not None

    @pytest.mark.asyncio
    async def test_resync_period(self, hellos):
        controller = make_controller(hellos)
        assert await controller.resync_period() == timedelta(milliseconds=20)
        assert controller.error_type is HelloError

    @pytest.mark.asyncio
    async def test_initialize_creates_tables(self, engine):
        controller = make_controller(Hellos(engine))
        await controller.initialize()
        await controller.reconcile()


class TestHelloControllerHost:
    """Run the hello controller inside a controller host."""

    @pytest.mark.asyncio
    async def test_host_reconciles_and_cleans_up(self, engine, hellos):
        world = await hellos.add("world")
        expired = await hellos.add("expired")
        await hellos.soft_delete(expired.id)
        await backdate_deletion(engine, expired.id, timedelta(days=10))

        host = ControllerHost()
        await host.add_controller(make_controller(Hellos(engine)))
        await host.run()

        async def converged():
            _, status = await hellos.get(world.id)
            return status is not None and await hellos.get(expired.id) is None

        loop = asyncio.get_running_loop()
        deadline = loop.time() + 2
        while not await converged():
            assert loop.time() < deadline, "hello controller did not converge"
            await asyncio.sleep(0.01)

        await host.cancel_all()
        await wait_until(lambda: host.executors[0].is_done(), timeout=0.1)
        _, status = await hellos.get(world.id)
        assert status.message == "Hello, world!"
