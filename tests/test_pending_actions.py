"""Tests for the pending action table and single-resolution futures."""

import asyncio

from conftest import run

from mafiaville.services.pending_actions import PendingActionTable, SingleResolution, make_key


class TestPendingActionTable:
    """Test one-shot registration semantics."""

    def test_resolve_invokes_once(self):
        """A key resolves exactly once; the second press is stale."""
        table = PendingActionTable()
        received = []
        table.register("na:1:5", received.append)

        assert table.resolve("na:1:5", "7") is True
        assert table.resolve("na:1:5", "8") is False
        assert received == ["7"]

    def test_deregister_makes_resolve_stale(self):
        """After the timeout deregisters, a late response does nothing."""
        table = PendingActionTable()
        received = []
        table.register("na:1:5", received.append)
        table.deregister("na:1:5")

        assert table.resolve("na:1:5", "7") is False
        assert received == []

    def test_clear(self):
        """Clearing drops every pending resolver."""
        table = PendingActionTable()
        table.register("a", print)
        table.register("b", print)
        table.clear()
        assert len(table) == 0
        assert not table.has("a")

    def test_make_key(self):
        """Keys are prefix, round and actor."""
        assert make_key("na_pi1", 3, 42) == "na_pi1:3:42"


class TestSingleResolution:
    """Test the settle-or-expire race."""

    def test_settle_before_wait(self):
        """A value set before waiting is returned immediately."""

        async def scenario():
            resolution = SingleResolution()
            assert resolution.settle("x") is True
            assert resolution.settle("y") is False
            return await resolution.wait(1)

        assert run(scenario()) == (True, "x")

    def test_timeout_expires(self):
        """The deadline wins when nobody settles; late settles are refused."""

        async def scenario():
            resolution = SingleResolution()
            outcome = await resolution.wait(0.01)
            return outcome, resolution.settle("late")

        outcome, late = run(scenario())
        assert outcome == (False, None)
        assert late is False

    def test_expire_while_waiting(self):
        """Expiring from outside ends the wait without a value."""

        async def scenario():
            resolution = SingleResolution()
            asyncio.get_running_loop().call_soon(resolution.expire)
            return await resolution.wait(5)

        assert run(scenario()) == (False, None)

    def test_settle_while_waiting(self):
        """A response during the wait is delivered."""

        async def scenario():
            resolution = SingleResolution()
            asyncio.get_running_loop().call_later(0.01, resolution.settle, 3)
            return await resolution.wait(5)

        assert run(scenario()) == (True, 3)
