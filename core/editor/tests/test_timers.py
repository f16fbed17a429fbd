"""Tests for the trailing debouncer."""

import asyncio

import pytest

from core.editor.timers import AsyncioScheduler, Debouncer


class TestDebouncer:
    @pytest.mark.asyncio
    async def test_fires_once_after_delay(self, scheduler):
        calls = []
        debouncer = Debouncer(scheduler, 1.5, lambda: calls.append(scheduler.now()))

        debouncer.trigger()
        await scheduler.advance(1.4)
        assert calls == []

        await scheduler.advance(0.1)
        assert calls == [pytest.approx(1.5)]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_retrigger_restarts_delay(self, scheduler):
        calls = []
        debouncer = Debouncer(scheduler, 1.0, lambda: calls.append(scheduler.now()))

        for _ in range(5):
            debouncer.trigger()
            await scheduler.advance(0.5)

        assert calls == []
        await scheduler.advance(0.5)
        assert calls == [pytest.approx(3.0)]
        assert debouncer.armed_at == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_cancel_prevents_fire(self, scheduler):
        calls = []
        debouncer = Debouncer(scheduler, 1.0, lambda: calls.append(1))

        debouncer.trigger()
        debouncer.cancel()
        await scheduler.advance(5.0)

        assert calls == []

    @pytest.mark.asyncio
    async def test_callback_error_is_logged(self, scheduler, caplog):
        import logging

        def boom():
            raise RuntimeError("boom")

        debouncer = Debouncer(scheduler, 1.0, boom, name="save")

        with caplog.at_level(logging.ERROR):
            debouncer.trigger()
            await scheduler.advance(1.0)

        assert any("save" in record.message for record in caplog.records)


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_call_later_runs_on_event_loop(self):
        scheduler = AsyncioScheduler()
        fired = asyncio.Event()

        scheduler.call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)
        assert fired.is_set()
