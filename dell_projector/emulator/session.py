# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A single client connection to the Dell projector emulator.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import COMMAND_PREFIX, COMMAND_FRAME_LENGTH, STATUS_REQUEST_FRAME

if TYPE_CHECKING:
    from .emulator_impl import DellProjectorEmulator

def split_frames(buffer: bytearray) -> List[bytes]:
    """Removes every complete frame from the front of buffer and returns them.

    Bytes that cannot begin a frame are discarded. An incomplete trailing frame is
    left in the buffer.
    """
    frames: List[bytes] = []
    while len(buffer) > 0:
        if buffer.startswith(STATUS_REQUEST_FRAME):
            frame_length = len(STATUS_REQUEST_FRAME)
        elif buffer.startswith(COMMAND_PREFIX):
            if len(buffer) < COMMAND_FRAME_LENGTH:
                break
            frame_length = COMMAND_FRAME_LENGTH
        elif STATUS_REQUEST_FRAME.startswith(buffer) or COMMAND_PREFIX.startswith(buffer):
            # a frame that has not fully arrived yet
            break
        else:
            logger.debug(f"Emulator: discarding unframed byte {buffer[0]:02x}")
            del buffer[0]
            continue
        frames.append(bytes(buffer[:frame_length]))
        del buffer[:frame_length]
    return frames

class DellProjectorEmulatorSession(asyncio.Protocol):
    emulator: DellProjectorEmulator
    session_id: int
    transport: Optional[asyncio.Transport] = None
    peer_addr: Optional[HostAndPort] = None
    buffer: bytearray

    def __init__(self, emulator: DellProjectorEmulator) -> None:
        self.emulator = emulator
        self.session_id = emulator.register_session(self)
        self.buffer = bytearray()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        assert isinstance(transport, asyncio.Transport)
        self.transport = transport
        self.peer_addr = transport.get_extra_info('peername')
        logger.debug(f"{self}: Connection made")

    def data_received(self, data: bytes) -> None:
        logger.debug(f"{self}: Received {len(data)} bytes: {data.hex(' ')}")
        self.buffer.extend(data)
        for frame in split_frames(self.buffer):
            self.emulator.on_frame_received(self, frame)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"{self}: Connection lost: {exc!r}")
        self.transport = None
        self.emulator.unregister_session(self.session_id)

    def write(self, data: bytes) -> None:
        if self.transport is not None and not self.transport.is_closing():
            self.transport.write(data)

    def close(self) -> None:
        if self.transport is not None:
            self.transport.close()

    def __str__(self) -> str:
        return f"EmulatorSession({self.session_id}, {self.peer_addr})"

    def __repr__(self) -> str:
        return str(self)
