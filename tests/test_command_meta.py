"""Tests for the command and property tables."""

import json

import pytest

from dell_projector import CommandTable, PropertyTable, DellProjectorConfigError
from dell_projector.protocol import flatten_definitions, normalize_opcode


def test_default_command_lookup():
    table = CommandTable.default()
    assert table.get_opcode("Power.On") == "0400"
    assert table.get_opcode("Power.Off") == "0500"
    assert table.get_opcode("Volume.Up") == "fa13"
    assert table.get_opcode("Input.HDMI") == "d113"


def test_nested_paths_are_dotted():
    table = CommandTable.default()
    assert table.get_opcode("Picture.Contrast.Up") == "f613"
    assert table.get_opcode("Picture.Brightness.Down") == "f413"
    # intermediate nodes are not commands
    assert "Picture.Contrast" not in table


def test_lookup_is_case_sensitive():
    table = CommandTable.default()
    with pytest.raises(KeyError):
        table.get_opcode("power.on")
    with pytest.raises(KeyError):
        table["Power.Standby"]


def test_reverse_lookup():
    table = CommandTable.default()
    assert table.opcode_to_name("FA13") == "Volume.Up"
    assert table.opcode_to_name("ffff") is None


def test_table_is_read_only():
    table = CommandTable.default()
    with pytest.raises(TypeError):
        table.opcodes["Power.On"] = "0000"  # type: ignore[index]


def test_opcodes_are_normalized():
    assert normalize_opcode("ABCD") == "abcd"
    table = CommandTable.from_definitions({"Lamp": {"Eco": "0A0B"}})
    assert table.get_opcode("Lamp.Eco") == "0a0b"


@pytest.mark.parametrize("opcode", ["040", "04000", "zz00", 400, None, ""])
def test_invalid_opcodes_are_rejected(opcode):
    with pytest.raises(DellProjectorConfigError):
        CommandTable.from_definitions({"Power": {"On": opcode}})


def test_invalid_names_are_rejected():
    with pytest.raises(DellProjectorConfigError):
        flatten_definitions({"": "0400"})
    with pytest.raises(DellProjectorConfigError):
        flatten_definitions({"Power.On": "0400"})
    with pytest.raises(DellProjectorConfigError):
        flatten_definitions(["0400"])  # type: ignore[arg-type]


def test_flatten_definitions():
    flat = flatten_definitions({"A": {"B": {"C": "0001"}, "D": "0002"}, "E": "0003"})
    assert flat == {"A.B.C": "0001", "A.D": "0002", "E": "0003"}


def test_command_table_from_json():
    table = CommandTable.from_json(json.dumps({"Power": {"On": "0400"}}))
    assert table.names() == ["Power.On"]
    assert len(table) == 1


def test_malformed_json_is_a_config_error():
    with pytest.raises(DellProjectorConfigError):
        CommandTable.from_json("{not json")
    with pytest.raises(DellProjectorConfigError):
        CommandTable.from_json("[1, 2, 3]")


def test_load_from_file(tmp_path):
    path = tmp_path / "commands.json"
    path.write_text(json.dumps({"Volume": {"Up": "fa13"}}))
    table = CommandTable.load(str(path))
    assert table.get_opcode("Volume.Up") == "fa13"


def test_load_missing_file_is_a_config_error(tmp_path):
    with pytest.raises(DellProjectorConfigError):
        CommandTable.load(str(tmp_path / "missing.json"))


def test_default_property_table():
    table = PropertyTable.default()
    assert table.get_opcode("Power") == "138a"
    assert table.get_opcode("MAC") == "13b4"
    assert table.prefix_properties == frozenset({"Firmware"})
    assert "Firmware" in table.prefix_opcodes
    assert "Firmware" not in table.suffix_opcodes
    assert table.suffix_opcodes["Name"] == "13ba"


def test_prefix_property_absent_from_table_is_dropped():
    table = PropertyTable.from_definitions({"Power": "138a"})
    assert table.prefix_properties == frozenset()
