# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell projector known command opcodes and status property opcodes.

Both tables are written as nested, human-editable definitions and flattened once
into immutable maps keyed by a dotted path, e.g.:

    "Volume.Up"             -> "fa13"
    "Picture.Contrast.Up"   -> "f613"

There is no protocol implementation here; only metadata about the protocol.
A caller supporting a protocol variant can build its own tables from
definitions or JSON and hand them to the driver before initialization.
"""

from __future__ import annotations

import json
import re
from types import MappingProxyType

from ..internal_types import *
from ..exceptions import DellProjectorConfigError

OpcodeDefinitions = Mapping[str, Any]
"""A nested mapping of names to either 4-hex-character opcodes or further OpcodeDefinitions"""

_OPCODE_RE = re.compile(r"^[0-9a-fA-F]{4}$")

PATH_SEPARATOR = "."

DEFAULT_COMMAND_DEFINITIONS: Dict[str, Any] = {
    "Input": {
        "VGAA": "cd13",
        "VGAB": "ce13",
        "Composite": "cf13",
        "SVideo": "d013",
        "HDMI": "d113",
        "Wireless": "d313",
        "USBDisplay": "d413",
        "USBViewer": "d513",
    },
    "Volume": {
        "Up": "fa13",
        "Down": "fb13",
        "Mute": "fc13",
        "Unmute": "fd13",
    },
    "Power": {
        "On": "0400",
        "Off": "0500",
    },
    "Menu": {
        "Menu": "1d14",
        "Up": "1e14",
        "Down": "1f14",
        "Left": "2014",
        "Right": "2114",
        "OK": "2314",
    },
    "Picture": {
        "Mute": "ee13",
        "Unmute": "ef13",
        "Freeze": "f013",
        "Unfreeze": "f113",
        "Contrast": {
            "Up": "f613",
            "Down": "f713",
        },
        "Brightness": {
            "Up": "f513",
            "Down": "f413",
        },
    },
}
"""Opcodes of the write commands understood by the projector."""

DEFAULT_PROPERTY_DEFINITIONS: Dict[str, Any] = {
    "Power": "138a",
    "Lamp": "138b",
    "Input": "13af",
    "MAC": "13b4",
    "Name": "13ba",
    "Assigned": "13bb",
    "Location": "13bc",
    "Position": "13bd",
    "Resolution": "13be",
    "Firmware": "13bf",
}
"""Opcodes that identify the records of a status response."""

DEFAULT_PREFIX_PROPERTIES: Tuple[str, ...] = ("Firmware",)
"""Properties whose opcode is at the start of the record rather than the end.
   Firmware is the only documented case; it has not been observed on real hardware."""

def normalize_opcode(opcode: Any, name: str="opcode") -> str:
    """Validates an opcode as exactly two bytes of hex text, and returns it in lower case."""
    if not isinstance(opcode, str) or _OPCODE_RE.match(opcode) is None:
        raise DellProjectorConfigError(f"Invalid opcode for {name!r} (expected 4 hex characters): {opcode!r}")
    return opcode.lower()

def flatten_definitions(definitions: OpcodeDefinitions, parent: str='') -> Dict[str, str]:
    """Flattens nested opcode definitions into a dotted-path -> opcode dict, validating as it goes."""
    if not isinstance(definitions, Mapping):
        raise DellProjectorConfigError(f"Opcode definitions for {parent or '<root>'!r} must be a mapping: {definitions!r}")
    result: Dict[str, str] = {}
    for key, value in definitions.items():
        if not isinstance(key, str) or key == '' or PATH_SEPARATOR in key:
            raise DellProjectorConfigError(f"Invalid opcode definition name under {parent or '<root>'!r}: {key!r}")
        path = key if parent == '' else f"{parent}{PATH_SEPARATOR}{key}"
        if isinstance(value, Mapping):
            result.update(flatten_definitions(value, path))
        else:
            result[path] = normalize_opcode(value, path)
    return result

def _load_json_definitions(text: str, what: str) -> Dict[str, Any]:
    try:
        result = json.loads(text)
    except ValueError as e:
        raise DellProjectorConfigError(f"Malformed JSON {what} definitions: {e}") from e
    if not isinstance(result, dict):
        raise DellProjectorConfigError(f"JSON {what} definitions must be an object")
    return result

def _read_file(path: str, what: str) -> str:
    try:
        with open(path, "r") as f:
            return f.read()
    except OSError as e:
        raise DellProjectorConfigError(f"Unable to read {what} definitions from {path!r}: {e}") from e

class CommandTable:
    """Immutable map of dotted command path to opcode, e.g. "Power.On" -> "0400"."""

    opcodes: Mapping[str, str]
    """Read-only dotted path -> opcode map"""

    _names_by_opcode: Dict[str, str]

    def __init__(self, opcodes: Mapping[str, str]) -> None:
        validated: Dict[str, str] = {}
        for name, opcode in opcodes.items():
            if not isinstance(name, str) or name == '':
                raise DellProjectorConfigError(f"Invalid command name: {name!r}")
            validated[name] = normalize_opcode(opcode, name)
        self.opcodes = MappingProxyType(validated)
        self._names_by_opcode = {}
        for name, opcode in validated.items():
            # first definition wins if a variant table reuses an opcode
            self._names_by_opcode.setdefault(opcode, name)

    @classmethod
    def from_definitions(cls, definitions: OpcodeDefinitions) -> Self:
        return cls(flatten_definitions(definitions))

    @classmethod
    def from_json(cls, text: str) -> Self:
        return cls.from_definitions(_load_json_definitions(text, "command"))

    @classmethod
    def load(cls, path: str) -> Self:
        """Loads nested command definitions from a JSON file."""
        return cls.from_json(_read_file(path, "command"))

    @classmethod
    def default(cls) -> Self:
        return cls.from_definitions(DEFAULT_COMMAND_DEFINITIONS)

    def get_opcode(self, name: str) -> str:
        """Returns the opcode for a dotted command path. Lookup is exact and case-sensitive."""
        opcode = self.opcodes.get(name)
        if opcode is None:
            raise KeyError(f"Unknown projector command: {name!r}")
        return opcode

    def opcode_to_name(self, opcode: str) -> Optional[str]:
        """Returns the command path for an opcode, or None if the opcode is not in the table."""
        return self._names_by_opcode.get(opcode.lower())

    def names(self) -> List[str]:
        return list(self.opcodes.keys())

    def __getitem__(self, name: str) -> str:
        return self.get_opcode(name)

    def __contains__(self, name: object) -> bool:
        return name in self.opcodes

    def __len__(self) -> int:
        return len(self.opcodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.opcodes)

    def __str__(self) -> str:
        return f"CommandTable({len(self)} commands)"

    def __repr__(self) -> str:
        return str(self)

class PropertyTable:
    """Immutable map of status property name to the opcode that marks its record."""

    opcodes: Mapping[str, str]
    """Read-only property name -> opcode map"""

    prefix_properties: FrozenSet[str]
    """Names of properties identified by a record prefix instead of a suffix"""

    def __init__(
            self,
            opcodes: Mapping[str, str],
            prefix_properties: Iterable[str]=DEFAULT_PREFIX_PROPERTIES,
          ) -> None:
        validated: Dict[str, str] = {}
        for name, opcode in opcodes.items():
            if not isinstance(name, str) or name == '':
                raise DellProjectorConfigError(f"Invalid property name: {name!r}")
            validated[name] = normalize_opcode(opcode, name)
        self.opcodes = MappingProxyType(validated)
        # a prefix property the table does not define is simply not decoded
        self.prefix_properties = frozenset(p for p in prefix_properties if p in validated)

    @classmethod
    def from_definitions(
            cls,
            definitions: OpcodeDefinitions,
            prefix_properties: Iterable[str]=DEFAULT_PREFIX_PROPERTIES,
          ) -> Self:
        return cls(flatten_definitions(definitions), prefix_properties=prefix_properties)

    @classmethod
    def from_json(cls, text: str) -> Self:
        return cls.from_definitions(_load_json_definitions(text, "property"))

    @classmethod
    def load(cls, path: str) -> Self:
        """Loads property definitions from a JSON file."""
        return cls.from_json(_read_file(path, "property"))

    @classmethod
    def default(cls) -> Self:
        return cls.from_definitions(DEFAULT_PROPERTY_DEFINITIONS)

    @property
    def suffix_opcodes(self) -> Dict[str, str]:
        """Name -> opcode for properties whose opcode ends the record"""
        return { name: opcode for name, opcode in self.opcodes.items() if not name in self.prefix_properties }

    @property
    def prefix_opcodes(self) -> Dict[str, str]:
        """Name -> opcode for properties whose opcode starts the record"""
        return { name: opcode for name, opcode in self.opcodes.items() if name in self.prefix_properties }

    def get_opcode(self, name: str) -> str:
        opcode = self.opcodes.get(name)
        if opcode is None:
            raise KeyError(f"Unknown projector property: {name!r}")
        return opcode

    def __getitem__(self, name: str) -> str:
        return self.get_opcode(name)

    def __contains__(self, name: object) -> bool:
        return name in self.opcodes

    def __len__(self) -> int:
        return len(self.opcodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.opcodes)

    def __str__(self) -> str:
        return f"PropertyTable({len(self)} properties)"

    def __repr__(self) -> str:
        return str(self)
