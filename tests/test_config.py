"""Tests for driver configuration."""

import pytest

from dell_projector import (
    CONNECT_TIMEOUT,
    DDDP_MULTICAST_ADDRESS,
    DDDP_PORT,
    DEFAULT_COMMAND_PORT,
    DEFAULT_EVENT_QUEUE_SIZE,
    DellProjectorClientConfig,
    DellProjectorConfigError,
)

ENV_VARS = [
    "DELL_PROJECTOR_MULTICAST_ADDRESS",
    "DELL_PROJECTOR_DISCOVERY_PORT",
    "DELL_PROJECTOR_COMMAND_PORT",
    "DELL_PROJECTOR_CONNECT_TIMEOUT",
    "DELL_PROJECTOR_EVENT_QUEUE_SIZE",
    "DELL_PROJECTOR_AUTO_ADD",
    "DELL_PROJECTOR_COMMAND_TABLE",
    "DELL_PROJECTOR_PROPERTY_TABLE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = DellProjectorClientConfig()
    assert config.multicast_address == DDDP_MULTICAST_ADDRESS
    assert config.discovery_port == DDDP_PORT
    assert config.command_port == DEFAULT_COMMAND_PORT
    assert config.connect_timeout_secs == CONNECT_TIMEOUT
    assert config.event_queue_size == DEFAULT_EVENT_QUEUE_SIZE
    assert config.auto_add is True
    assert config.command_table_file is None
    assert config.property_table_file is None


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("DELL_PROJECTOR_COMMAND_PORT", "5000")
    monkeypatch.setenv("DELL_PROJECTOR_AUTO_ADD", "no")
    monkeypatch.setenv("DELL_PROJECTOR_EVENT_QUEUE_SIZE", "3")
    monkeypatch.setenv("DELL_PROJECTOR_COMMAND_TABLE", "/tmp/commands.json")
    config = DellProjectorClientConfig()
    assert config.command_port == 5000
    assert config.auto_add is False
    assert config.event_queue_size == 3
    assert config.command_table_file == "/tmp/commands.json"


def test_bad_environment_value(monkeypatch):
    monkeypatch.setenv("DELL_PROJECTOR_DISCOVERY_PORT", "ninety")
    with pytest.raises(DellProjectorConfigError):
        DellProjectorClientConfig()


def test_keyword_overrides_environment(monkeypatch):
    monkeypatch.setenv("DELL_PROJECTOR_COMMAND_PORT", "5000")
    config = DellProjectorClientConfig(command_port=6000, auto_add=False)
    assert config.command_port == 6000
    assert config.auto_add is False


def test_non_positive_timeout_disables_it():
    assert DellProjectorClientConfig(connect_timeout_secs=0).connect_timeout_secs is None


def test_event_queue_size_must_be_positive():
    with pytest.raises(DellProjectorConfigError):
        DellProjectorClientConfig(event_queue_size=0)


def test_base_config_is_copied():
    base = DellProjectorClientConfig(command_port=6000, event_queue_size=8)
    config = DellProjectorClientConfig(base_config=base, auto_add=False)
    assert config.command_port == 6000
    assert config.event_queue_size == 8
    assert config.auto_add is False
    assert base.auto_add is True


def test_from_jsonable():
    config = DellProjectorClientConfig.from_jsonable({
        "multicast_address": "239.1.2.3",
        "discovery_port": "9999",
        "connect_timeout_secs": 2.5,
        "auto_add": "false",
    })
    assert config.multicast_address == "239.1.2.3"
    assert config.discovery_port == 9999
    assert config.connect_timeout_secs == 2.5
    assert config.auto_add is False
    assert config.command_port == DEFAULT_COMMAND_PORT


def test_from_jsonable_round_trips():
    config = DellProjectorClientConfig(command_port=1234, auto_add=False)
    again = DellProjectorClientConfig.from_jsonable(config.to_jsonable())
    assert again.to_jsonable() == config.to_jsonable()


@pytest.mark.parametrize("jsonable", [
    {"command_port": "forty"},
    {"auto_add": "maybe"},
    {"event_queue_size": -1},
    {"discovery_port": [1]},
])
def test_from_jsonable_rejects_bad_values(jsonable):
    with pytest.raises(DellProjectorConfigError):
        DellProjectorClientConfig.from_jsonable(jsonable)


def test_from_jsonable_requires_an_object():
    with pytest.raises(DellProjectorConfigError):
        DellProjectorClientConfig.from_jsonable(["not", "a", "dict"])  # type: ignore[arg-type]
