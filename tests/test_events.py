"""Tests for the driver event channel."""

import asyncio

import pytest

from dell_projector import EventChannel, EventKind, Projector


def test_events_are_delivered_in_order():
    async def run():
        channel = EventChannel(4)
        projector = Projector("DEADBEEF", "10.0.0.2")
        assert channel.emit(EventKind.READY)
        assert channel.emit(EventKind.DEVICE_FOUND, projector.snapshot())
        first = await channel.get()
        second = await channel.get()
        return first, second

    first, second = asyncio.run(run())
    assert first.kind == EventKind.READY
    assert first.projector is None
    assert second.kind == EventKind.DEVICE_FOUND
    assert second.projector is not None
    assert second.projector.uuid == "DEADBEEF"


def test_full_channel_drops_new_events():
    """Producers never block; overflow is counted instead."""
    async def run():
        channel = EventChannel(2)
        results = [channel.emit(EventKind.LISTENING) for _ in range(5)]
        return channel, results

    channel, results = asyncio.run(run())
    assert results == [True, True, False, False, False]
    assert channel.dropped_count == 3
    assert channel.qsize() == 2


def test_close_delivers_queued_events_then_eof():
    async def run():
        channel = EventChannel(4)
        channel.emit(EventKind.READY)
        channel.close()
        assert not channel.emit(EventKind.LISTENING)
        kinds = [event.kind async for event in channel]
        with pytest.raises(EOFError):
            await channel.get()
        return kinds

    assert asyncio.run(run()) == [EventKind.READY]


def test_close_wakes_a_waiting_consumer():
    async def run():
        channel = EventChannel(4)
        waiter = asyncio.create_task(channel.get())
        await asyncio.sleep(0)
        channel.close()
        with pytest.raises(EOFError):
            await waiter

    asyncio.run(run())


def test_close_has_room_on_a_full_channel():
    async def run():
        channel = EventChannel(1)
        channel.emit(EventKind.READY)
        channel.close()
        return [event.kind async for event in channel]

    assert asyncio.run(run()) == [EventKind.READY]


def test_get_nowait():
    async def run():
        channel = EventChannel(2)
        assert channel.get_nowait() is None
        channel.emit(EventKind.READY)
        event = channel.get_nowait()
        assert event is not None and event.kind == EventKind.READY

    asyncio.run(run())


def test_event_to_jsonable():
    async def run():
        channel = EventChannel(2)
        channel.emit(EventKind.NAME_CHANGED, Projector("AB", "10.0.0.3", name="Lobby"))
        return await channel.get()

    jsonable = asyncio.run(run()).to_jsonable()
    assert jsonable["kind"] == "name-changed"
    assert jsonable["projector"]["name"] == "Lobby"
    assert jsonable["projector"]["connected"] is False
