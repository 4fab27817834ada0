# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Low-level protocol definitions for Dell networked projectors.

Covers the DDDP multicast announcements that projectors use to advertise
themselves, the binary write-command frames, and the 0x03/0x05-delimited
status responses. Nothing in this subpackage performs I/O.
"""

from .constants import (
    DDDP_MAGIC,
    DEVICE_CLASS_MARKER,
    COMMAND_PREFIX,
    COMMAND_PREFIX_HEX,
    COMMAND_FRAME_LENGTH,
    OPCODE_LENGTH,
    STATUS_REQUEST_FRAME,
    RECORD_SEPARATOR,
    VALUE_TERMINATOR,
  )

from .announcement import (
    DddpAnnouncement,
  )

from .command_meta import (
    CommandTable,
    PropertyTable,
    DEFAULT_COMMAND_DEFINITIONS,
    DEFAULT_PROPERTY_DEFINITIONS,
    DEFAULT_PREFIX_PROPERTIES,
    flatten_definitions,
    normalize_opcode,
  )

from .command import (
    DellCommand,
    encode_command,
  )

from .status import (
    StatusValue,
    decode_status,
    build_status_response,
    split_records,
    split_status_chunk,
  )
