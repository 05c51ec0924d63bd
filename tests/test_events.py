# tests/test_events.py

from __future__ import annotations

import asyncio

import pytest

from dodue.core.events import (
    ChannelFull,
    EventChannel,
    NavigateToAddScreen,
    ShowSaveConfirmation,
    ShowValidationMessage,
)


@pytest.mark.asyncio
async def test_events_sent_before_attach_are_delivered_in_order() -> None:
    channel = EventChannel()
    await channel.send(ShowSaveConfirmation("one"))
    await channel.send(ShowSaveConfirmation("two"))
    await channel.send(NavigateToAddScreen())
    assert channel.pending == 3

    it = channel.consume()
    got = [await asyncio.wait_for(anext(it), 1.0) for _ in range(3)]
    assert got == [ShowSaveConfirmation("one"), ShowSaveConfirmation("two"), NavigateToAddScreen()]
    assert channel.pending == 0


@pytest.mark.asyncio
async def test_consume_waits_for_next_event() -> None:
    channel = EventChannel()
    it = channel.consume()
    waiting = asyncio.ensure_future(anext(it))
    await asyncio.sleep(0.01)
    assert not waiting.done()

    channel.send_nowait(ShowValidationMessage("Name cannot be empty!"))
    assert await asyncio.wait_for(waiting, 1.0) == ShowValidationMessage("Name cannot be empty!")


@pytest.mark.asyncio
async def test_replaced_consumer_never_sees_another_event() -> None:
    channel = EventChannel()
    first = channel.consume()
    await channel.send(ShowSaveConfirmation("e1"))
    assert await anext(first) == ShowSaveConfirmation("e1")

    # First consumer is parked waiting when the view is rebuilt.
    parked = asyncio.ensure_future(anext(first))
    await asyncio.sleep(0)

    second = channel.consume()
    await channel.send(ShowSaveConfirmation("e2"))
    assert await asyncio.wait_for(anext(second), 1.0) == ShowSaveConfirmation("e2")

    with pytest.raises(StopAsyncIteration):
        await asyncio.wait_for(parked, 1.0)
    assert channel.pending == 0


@pytest.mark.asyncio
async def test_exactly_once_across_attach_detach_cycles() -> None:
    channel = EventChannel()
    sent = [ShowSaveConfirmation(f"event {i}") for i in range(12)]
    observed = []

    async def consume_some(limit: int) -> None:
        it = channel.consume()
        try:
            for _ in range(limit):
                observed.append(await asyncio.wait_for(anext(it), 1.0))
        finally:
            await it.aclose()

    async def produce() -> None:
        for event in sent:
            await channel.send(event)
            await asyncio.sleep(0)

    producer = asyncio.create_task(produce())
    # Each consumer instance takes a few events, then its view is destroyed.
    for limit in (1, 4, 2, 5):
        await consume_some(limit)
    await producer

    assert observed == sent
    assert channel.pending == 0


@pytest.mark.asyncio
async def test_bounded_channel_suspends_sender_until_space() -> None:
    channel = EventChannel(maxsize=1)
    await channel.send(ShowSaveConfirmation("a"))
    with pytest.raises(ChannelFull):
        channel.send_nowait(ShowSaveConfirmation("b"))

    blocked = asyncio.create_task(channel.send(ShowSaveConfirmation("b")))
    await asyncio.sleep(0.01)
    assert not blocked.done()

    it = channel.consume()
    assert await anext(it) == ShowSaveConfirmation("a")
    await asyncio.wait_for(blocked, 1.0)
    assert await asyncio.wait_for(anext(it), 1.0) == ShowSaveConfirmation("b")
