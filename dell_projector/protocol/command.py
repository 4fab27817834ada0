# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import re

from ..internal_types import *
from ..exceptions import DellProjectorError
from .command_meta import CommandTable
from .constants import (
    COMMAND_PREFIX,
    COMMAND_PREFIX_HEX,
    COMMAND_FRAME_LENGTH,
    OPCODE_LENGTH,
  )

_OPCODE_RE = re.compile(r"^[0-9a-fA-F]{4}$")

def encode_command(opcode: str) -> bytes:
    """Encodes a two-byte hex opcode into a complete binary write frame.

    The frame is the fixed header 05 00 06 00 00 03 00 followed by the opcode.
    A malformed opcode raises DellProjectorError; a short or padded frame is
    never produced, since the projector would happily act on it.
    """
    if not isinstance(opcode, str) or _OPCODE_RE.match(opcode) is None:
        raise DellProjectorError(f"Invalid command opcode (expected 4 hex characters): {opcode!r}")
    try:
        frame = bytes.fromhex(COMMAND_PREFIX_HEX + opcode)
    except ValueError as e:
        raise DellProjectorError(f"Unable to encode command opcode {opcode!r}") from e
    if len(frame) != COMMAND_FRAME_LENGTH:
        raise DellProjectorError(f"Encoded command frame has wrong length {len(frame)}: {frame.hex(' ')}")
    return frame

class DellCommand:
    """A write command to a Dell projector"""

    opcode: str
    """The two-byte opcode, as 4 lower-case hex characters"""

    name: Optional[str]
    """The dotted command path (e.g., "Volume.Up"), if known"""

    raw_data: bytes
    """The complete binary frame"""

    def __init__(self, opcode: str, name: Optional[str]=None) -> None:
        self.raw_data = encode_command(opcode)
        self.opcode = opcode.lower()
        self.name = name

    @classmethod
    def create_from_opcode(cls, opcode: str, command_table: Optional[CommandTable]=None) -> Self:
        """Creates a command from a raw opcode, naming it from the table if possible"""
        name = None if command_table is None else command_table.opcode_to_name(opcode)
        return cls(opcode, name=name)

    @classmethod
    def create_from_name(cls, command_name: str, command_table: CommandTable) -> Self:
        """Creates a command from its dotted path in the command table.

        Raises KeyError if the command is not in the table.
        """
        return cls(command_table.get_opcode(command_name), name=command_name)

    @classmethod
    def create_from_frame(cls, frame: bytes, command_table: Optional[CommandTable]=None) -> Self:
        """Reconstructs a command from a received write frame"""
        if len(frame) != COMMAND_FRAME_LENGTH or not frame.startswith(COMMAND_PREFIX):
            raise DellProjectorError(f"Not a command write frame: {frame.hex(' ')}")
        return cls.create_from_opcode(frame[-OPCODE_LENGTH:].hex(), command_table=command_table)

    def __str__(self) -> str:
        return f"DellCommand({self.name or '<unnamed>'}: [{self.raw_data.hex(' ')}])"

    def __repr__(self) -> str:
        return str(self)
