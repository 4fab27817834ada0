# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Wire-level constants for the Dell projector discovery and command protocols.
"""

from __future__ import annotations

# DDDP (a.k.a. AMXB) announcements look like:
#   AMXB<-SDKClass=VideoProjector><-UUID=DEADBEEF><-Make=DULL><-Model=PROJ01><-Revision=0.2.0>

DDDP_MAGIC = "AMXB"
"""Every DDDP announcement begins with this four-character marker."""

DEVICE_CLASS_MARKER = "VideoProjector"
"""Announcements that do not contain this substring are not projectors, and are ignored."""

TAG_OPEN = "<-"
TAG_CLOSE = ">"
TAG_ASSIGN = "="

# Command frames are a fixed 7-byte header followed by a 2-byte opcode:
#   05 00 06 00 00 03 00 <op0> <op1>

COMMAND_PREFIX_HEX = "05000600000300"
"""Header of a "write command" frame, as hex text."""

COMMAND_PREFIX = bytes.fromhex(COMMAND_PREFIX_HEX)

OPCODE_LENGTH = 2
"""Length of an opcode, in bytes. Opcodes are written as 4 hex characters."""

COMMAND_FRAME_LENGTH = len(COMMAND_PREFIX) + OPCODE_LENGTH

STATUS_REQUEST_HEX = "050005000002031e"

STATUS_REQUEST_FRAME = bytes.fromhex(STATUS_REQUEST_HEX)
"""Asks the projector for everything it knows. The response is a blob of
   0x03-separated records."""

RECORD_SEPARATOR = 0x03
"""Separates the records of a status response."""

VALUE_TERMINATOR = 0x05
"""Terminates the value within a single status response record."""

POWER_ON_TEXT = "On"
"""Value of the Power status record when the projector is on."""
