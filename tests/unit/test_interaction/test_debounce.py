"""Unit tests for the overlay debouncer."""

from __future__ import annotations

import asyncio

import pytest

from mindmapper.interaction.debounce import Debouncer


@pytest.mark.asyncio
async def test_burst_collapses_into_one_call():
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), delay=0.01)

    for _ in range(5):
        debouncer.trigger()
    assert debouncer.pending
    await asyncio.sleep(0.05)

    assert calls == [1]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_flush_runs_now_and_drops_pending():
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), delay=0.01)

    debouncer.trigger()
    debouncer.flush()
    await asyncio.sleep(0.05)

    assert calls == [1]


@pytest.mark.asyncio
async def test_cancel_drops_pending_call():
    calls = []
    debouncer = Debouncer(lambda: calls.append(1), delay=0.01)

    debouncer.trigger()
    debouncer.cancel()
    await asyncio.sleep(0.05)

    assert calls == []


def test_trigger_without_loop_runs_immediately():
    calls = []
    Debouncer(lambda: calls.append(1), delay=10).trigger()
    assert calls == [1]
