# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell projector status response decoding.

A status request (05 00 05 00 00 02 03 1e) is answered with a blob of records
separated by the byte 0x03. Within a record, the value comes first and is
terminated by the byte 0x05; the two-byte property opcode is at the very end:

    <value bytes> 05 <other bytes> <opcode>   03   <value bytes> 05 ... <opcode>   03 ...

For example, a record ending in 13 8a carries the power state, and a record
ending in 13 b4 carries the MAC address.

The firmware revision is the exception: its opcode starts the record, and the
value follows it:

    <opcode> <value bytes> 05 ...

Records that match no known opcode are reserved or vendor-specific fields and are
silently ignored. A response usually carries only some of the properties; callers
should merge the result into what they already know.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import DellProjectorError
from ..pkg_logging import logger
from .command_meta import PropertyTable
from .constants import RECORD_SEPARATOR, VALUE_TERMINATOR, POWER_ON_TEXT

StatusValue = Union[str, bool]

_SEPARATOR_HEX = bytes([RECORD_SEPARATOR]).hex()
_TERMINATOR_HEX = bytes([VALUE_TERMINATOR]).hex()

def _find_aligned(hex_text: str, byte_hex: str, start: int=0) -> int:
    """Finds a byte in hex text, only at byte boundaries. Returns -1 if not found."""
    for i in range(start, len(hex_text) - 1, 2):
        if hex_text[i:i+2] == byte_hex:
            return i
    return -1

def split_records(hex_blob: str) -> List[str]:
    """Splits a hex-encoded status response into hex-encoded records on 0x03 bytes"""
    records: List[str] = []
    start = 0
    while True:
        i = _find_aligned(hex_blob, _SEPARATOR_HEX, start)
        if i < 0:
            break
        records.append(hex_blob[start:i])
        start = i + 2
    records.append(hex_blob[start:])
    return records

def _value_hex(body: str) -> str:
    """Returns the part of a record body before the first 0x05 byte"""
    i = _find_aligned(body, _TERMINATOR_HEX)
    return body if i < 0 else body[:i]

def _decode_text(value_hex: str) -> str:
    return bytes.fromhex(value_hex).decode('utf-8')

def interpret_value(name: str, text: str) -> StatusValue:
    """Converts the text of a known property into its typed value"""
    if name == "Power":
        return text == POWER_ON_TEXT
    return text

def _decode_record(name: str, value_hex: str, values: Dict[str, StatusValue]) -> None:
    try:
        text = _decode_text(value_hex)
    except ValueError as e:
        # UnicodeDecodeError is a ValueError too
        logger.debug(f"Skipping malformed status record for {name} [{value_hex}]: {e}")
        return
    values[name] = interpret_value(name, text)

def decode_status(
        blob: Union[str, bytes],
        property_table: PropertyTable,
      ) -> Dict[str, StatusValue]:
    """Decodes a status response into a property name -> value dict.

    blob may be hex text or the raw bytes read from the connection. Only the properties
    present in the response appear in the result. A malformed field is skipped; it never
    aborts decoding of the remaining fields.
    """
    hex_blob = blob.hex() if isinstance(blob, (bytes, bytearray, memoryview)) else blob.lower()
    records = split_records(hex_blob)
    values: Dict[str, StatusValue] = {}
    suffix_opcodes = property_table.suffix_opcodes
    prefix_opcodes = property_table.prefix_opcodes

    # Pass 1: opcode at the end of the record
    for record in records:
        if len(record) % 2 != 0:
            logger.debug(f"Skipping status record with partial byte: [{record}]")
            continue
        for name, opcode in suffix_opcodes.items():
            if len(record) > len(opcode) and record.endswith(opcode):
                _decode_record(name, _value_hex(record[:-len(opcode)]), values)

    # Pass 2: opcode at the start of the record (firmware revision)
    for record in records:
        if len(record) % 2 != 0:
            continue
        for name, opcode in prefix_opcodes.items():
            if len(record) > len(opcode) and record.startswith(opcode):
                _decode_record(name, _value_hex(record[len(opcode):]), values)

    return values

def _is_complete_record(record: str, property_table: PropertyTable) -> bool:
    for opcode in property_table.suffix_opcodes.values():
        if len(record) > len(opcode) and record.endswith(opcode):
            return True
    for opcode in property_table.prefix_opcodes.values():
        if len(record) > len(opcode) and record.startswith(opcode):
            if _find_aligned(record, _TERMINATOR_HEX, len(opcode)) >= 0:
                return True
    return False

def split_status_chunk(data: bytes, property_table: PropertyTable) -> Tuple[bytes, bytes]:
    """Splits bytes read from the connection into (complete, pending).

    A status response may arrive in several reads. The complete part holds every
    record up to the last 0x03 byte, plus the trailing record if it already ends in
    a known opcode. The pending part is an unfinished trailing record that should be
    prepended to the next read.
    """
    i = data.rfind(bytes([RECORD_SEPARATOR]))
    tail = data[i+1:]
    if len(tail) == 0 or _is_complete_record(tail.hex(), property_table):
        return data, b''
    if i < 0:
        return b'', data
    return data[:i], tail

def build_status_response(
        values: Mapping[str, StatusValue],
        property_table: PropertyTable,
      ) -> bytes:
    """Renders property values as a status response blob.

    The inverse of decode_status(); used by the emulator. Power may be given as a bool.
    """
    records: List[bytes] = []
    for name, value in values.items():
        opcode = bytes.fromhex(property_table.get_opcode(name))
        if isinstance(value, bool):
            text = POWER_ON_TEXT if value else "Off"
        else:
            text = str(value)
        data = text.encode('utf-8')
        if RECORD_SEPARATOR in data or VALUE_TERMINATOR in data:
            raise DellProjectorError(f"Status value for {name} cannot be represented: {text!r}")
        if name in property_table.prefix_properties:
            records.append(opcode + data + bytes([VALUE_TERMINATOR]))
        else:
            records.append(data + bytes([VALUE_TERMINATOR]) + opcode)
    return bytes([RECORD_SEPARATOR]).join(records)
