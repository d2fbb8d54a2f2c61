"""
Tests for the pending request table.
"""

import asyncio

import pytest

from cloud_data.graphql import PendingRequestTable


class TestPendingRequestTable:
    """Test in-flight request coalescing."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_operation(self):
        table = PendingRequestTable()
        gate = asyncio.Event()
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            await gate.wait()
            return {"value": 42}

        first = table.get_or_create("key", operation)
        second = table.get_or_create("key", operation)

        assert first is second
        assert table.is_pending("key")

        gate.set()
        results = await asyncio.gather(first, second)

        assert results == [{"value": 42}, {"value": 42}]
        assert calls == 1

    @pytest.mark.asyncio
    async def test_factory_not_called_when_pending(self):
        table = PendingRequestTable()
        gate = asyncio.Event()

        async def operation():
            await gate.wait()
            return "done"

        def unexpected():
            raise AssertionError("factory must not be called for a pending key")

        task = table.get_or_create("key", operation)
        assert table.get_or_create("key", unexpected) is task

        gate.set()
        assert await task == "done"

    @pytest.mark.asyncio
    async def test_entry_removed_on_success(self):
        table = PendingRequestTable()

        async def operation():
            return 1

        await table.get_or_create("key", operation)
        await asyncio.sleep(0)

        assert not table.is_pending("key")
        assert len(table) == 0

    @pytest.mark.asyncio
    async def test_entry_removed_on_failure(self):
        table = PendingRequestTable()

        async def operation():
            raise RuntimeError("boom")

        task = table.get_or_create("key", operation)
        with pytest.raises(RuntimeError):
            await task
        await asyncio.sleep(0)

        assert not table.is_pending("key")
        assert table.get_stats()["failed"] == 1

    @pytest.mark.asyncio
    async def test_waiters_observe_the_same_error(self):
        table = PendingRequestTable()
        gate = asyncio.Event()

        async def operation():
            await gate.wait()
            raise ValueError("shared failure")

        first = table.get_or_create("key", operation)
        second = table.get_or_create("key", operation)
        gate.set()

        results = await asyncio.gather(first, second, return_exceptions=True)

        assert all(isinstance(result, ValueError) for result in results)

    @pytest.mark.asyncio
    async def test_entry_removed_on_cancellation(self):
        table = PendingRequestTable()

        async def operation():
            await asyncio.sleep(10)

        task = table.get_or_create("key", operation)
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0)

        assert not table.is_pending("key")

    @pytest.mark.asyncio
    async def test_new_operation_after_settle(self):
        table = PendingRequestTable()
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            return calls

        assert await table.get_or_create("key", operation) == 1
        await asyncio.sleep(0)
        assert await table.get_or_create("key", operation) == 2

    @pytest.mark.asyncio
    async def test_distinct_keys_do_not_coalesce(self):
        table = PendingRequestTable()
        gate = asyncio.Event()

        async def operation():
            await gate.wait()

        first = table.get_or_create("a", operation)
        second = table.get_or_create("b", operation)

        assert first is not second
        assert len(table) == 2

        gate.set()
        await asyncio.gather(first, second)

    @pytest.mark.asyncio
    async def test_stats(self):
        table = PendingRequestTable()
        gate = asyncio.Event()

        async def operation():
            await gate.wait()

        task = table.get_or_create("fingerprint-1234567890", operation)
        table.get_or_create("fingerprint-1234567890", operation)

        stats = table.get_stats()
        assert stats["created"] == 1
        assert stats["coalesced"] == 1
        assert stats["pending_requests"] == 1
        assert stats["pending_details"][0]["request_count"] == 2

        gate.set()
        await task
