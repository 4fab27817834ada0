"""Tests for the driver facade. Discovery is fed by hand; nothing here joins a multicast group."""

import asyncio
import json

import pytest

from dell_projector import (
    CommandTable,
    DellProjectorClientConfig,
    DellProjectorConfigError,
    DellProjectorDriver,
    DellProjectorError,
    EventKind,
    Projector,
)
from dell_projector.emulator import DellProjectorEmulator


async def wait_until(predicate, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Timed out waiting for condition")
        await asyncio.sleep(0.01)


def make_config(**kwargs):
    return DellProjectorClientConfig(connect_timeout_secs=5.0, event_queue_size=32, **kwargs)


def test_initialize_emits_ready():
    async def run():
        driver = DellProjectorDriver(config=make_config())
        driver.initialize()
        event = await driver.events.get()
        await driver.aclose()
        return event, driver

    event, driver = asyncio.run(run())
    assert event.kind == EventKind.READY
    assert driver.events.closed
    assert driver.command_table is not None
    assert driver.command_table.get_opcode("Power.On") == "0400"


def test_uninitialized_driver_refuses_work():
    async def run():
        driver = DellProjectorDriver(config=make_config())
        with pytest.raises(DellProjectorError):
            driver.projectors()

    asyncio.run(run())


def test_command_table_from_config_file(tmp_path):
    path = tmp_path / "commands.json"
    path.write_text(json.dumps({"Power": {"On": "0400", "Off": "0500"}}))

    async def run():
        driver = DellProjectorDriver(config=make_config(command_table_file=str(path)))
        driver.initialize()
        names = driver.command_table.names()
        await driver.aclose()
        return names

    assert asyncio.run(run()) == ["Power.On", "Power.Off"]


def test_malformed_table_file_fails_initialization(tmp_path):
    path = tmp_path / "commands.json"
    path.write_text(json.dumps({"Power": {"On": "xyz"}}))

    async def run():
        driver = DellProjectorDriver(config=make_config(command_table_file=str(path)))
        with pytest.raises(DellProjectorConfigError):
            driver.initialize()
        assert driver.registry is None
        assert driver.events.qsize() == 0

    asyncio.run(run())


def test_replacement_table_is_used():
    table = CommandTable.from_definitions({"Lamp": {"Eco": "abcd"}})

    async def run():
        driver = DellProjectorDriver(config=make_config(), command_table=table)
        driver.initialize()
        assert driver.command_table is table
        await driver.aclose()

    asyncio.run(run())


def test_control_by_uuid():
    async def run():
        async with DellProjectorEmulator(bind_addr="127.0.0.1", port=0, name="Lobby") as emulator:
            driver = DellProjectorDriver(config=make_config())
            driver.initialize()
            await driver.add_projector(Projector("DEADBEEF", "127.0.0.1", command_port=emulator.bound_port))
            assert [p.uuid for p in driver.projectors()] == ["DEADBEEF"]
            command = await driver.send_command("DEADBEEF", "Input.HDMI")
            assert command.name == "Input.HDMI"
            await wait_until(lambda: emulator.source == "HDMI")
            await driver.poll_status_once()
            projector = driver.get_projector("DEADBEEF")
            await wait_until(lambda: projector.name == "Lobby")
            assert projector.source == "HDMI"
            with pytest.raises(KeyError):
                driver.get_projector("CAFEF00D")
            with pytest.raises(KeyError):
                await driver.send_command("CAFEF00D", "Power.On")
            assert await driver.remove_projector("DEADBEEF") is True
            await driver.aclose()

    asyncio.run(run())


def test_found_projector_is_added_automatically():
    async def run():
        async with DellProjectorEmulator(bind_addr="127.0.0.1", port=0) as emulator:
            driver = DellProjectorDriver(config=make_config())
            driver.initialize()
            driver.on_projector_found(Projector("DEADBEEF", "127.0.0.1", command_port=emulator.bound_port))
            # a second sighting while connecting does not start another connection
            driver.on_projector_found(Projector("DEADBEEF", "127.0.0.1", command_port=emulator.bound_port))
            await wait_until(lambda: len(driver.projectors()) == 1 and not driver._connecting)
            kinds = []
            while (event := driver.events.get_nowait()) is not None:
                kinds.append(event.kind)
            await driver.aclose()
            return kinds

    assert asyncio.run(run()) == [EventKind.READY, EventKind.DEVICE_ADDED]


def test_unexpected_error_while_auto_adding_is_contained(monkeypatch):
    async def run():
        driver = DellProjectorDriver(config=make_config())
        driver.initialize()

        async def broken_add(projector):
            raise RuntimeError("boom")

        monkeypatch.setattr(driver, "add_projector", broken_add)
        driver.on_projector_found(Projector("DEADBEEF", "127.0.0.1"))
        task = driver._connecting["DEADBEEF"]
        await task
        assert not driver._connecting
        await driver.aclose()
        return task

    task = asyncio.run(run())
    assert task.exception() is None


def test_status_polling():
    async def run():
        async with DellProjectorEmulator(bind_addr="127.0.0.1", port=0) as emulator:
            driver = DellProjectorDriver(config=make_config())
            driver.initialize()
            await driver.add_projector(Projector("DEADBEEF", "127.0.0.1", command_port=emulator.bound_port))
            driver.start_polling(0.01)
            await wait_until(lambda: emulator.status_request_count >= 2)
            await driver.stop_polling()
            await driver.aclose()
            assert driver.projectors() == []

    asyncio.run(run())
