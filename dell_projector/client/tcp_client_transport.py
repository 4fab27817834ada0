# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector TCP/IP command connection.

Provides the persistent connection over which command frames are written
and status responses are read. There is no handshake or authentication.
"""

from __future__ import annotations

import asyncio
from asyncio import Future

from ..internal_types import *
from ..exceptions import DellProjectorConnectionError
from ..constants import DEFAULT_COMMAND_PORT, READ_CHUNK_SIZE
from ..pkg_logging import logger

class TcpDellProjectorTransport:
    """Dell Projector TCP/IP command connection."""

    reader: Optional[asyncio.StreamReader] = None
    writer: Optional[asyncio.StreamWriter] = None
    host: str
    port: int
    final_status: Future[None]
    reader_closed: bool = False
    writer_closed: bool = False

    def __init__(
            self,
            host: str,
            port: int=DEFAULT_COMMAND_PORT,
          ) -> None:
        self.host = host
        self.port = port
        self.final_status = asyncio.get_event_loop().create_future()

    async def connect(self, timeout_secs: Optional[float]=None) -> None:
        """Opens the connection to the projector.

        Raises DellProjectorConnectionError on failure, in which case the transport is closed.
        """
        assert self.reader is None and self.writer is None
        try:
            logger.debug(f"Connecting to projector at {self.host}:{self.port}")
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), timeout_secs)
            logger.info(f"{self} connected")
        except (OSError, asyncio.TimeoutError) as e:
            error = DellProjectorConnectionError(f"Unable to connect to projector at {self.host}:{self.port}: {e!r}")
            await self.aclose()
            raise error from e
        except BaseException:
            await self.aclose()
            raise

    @classmethod
    async def create(
            cls,
            host: str,
            port: int=DEFAULT_COMMAND_PORT,
            timeout_secs: Optional[float]=None,
          ) -> Self:
        """Creates and connects a transport to a projector reachable over TCP/IP."""
        transport = cls(host, port=port)
        await transport.connect(timeout_secs=timeout_secs)
        return transport

    async def write_frame(self, data: Union[bytes, bytearray, memoryview]) -> None:
        """Writes a complete frame to the projector.

        On error, the transport will be shut down, and no further interaction is possible.
        """
        if self.writer is None or self.writer_closed:
            raise DellProjectorConnectionError(f"{self}: Connection is closed")
        try:
            logger.debug(f"{self}: Writing {len(data)} bytes: {bytes(data).hex(' ')}")
            self.writer.write(data)
            await self.writer.drain()
        except (OSError, RuntimeError) as e:
            await self.shutdown(e)
            raise DellProjectorConnectionError(f"{self}: Write failed: {e!r}") from e

    async def read_chunk(self, max_length: int=READ_CHUNK_SIZE) -> bytes:
        """Reads whatever the projector has sent, up to max_length bytes.

        Blocks until data arrives. Returns b'' at end of stream.
        """
        if self.reader is None or self.reader_closed:
            return b''
        data = await self.reader.read(max_length)
        if len(data) > 0:
            logger.debug(f"{self}: Read {len(data)} bytes: {data.hex(' ')}")
        return data

    def is_alive(self) -> bool:
        """Returns False if the projector has closed the connection or the transport is shut down.

        Does not block and does not consume any buffered data. This is a poll, not a
        notification; call it after every empty or failed read.
        """
        if self.reader is None or self.writer is None:
            return False
        if self.reader_closed or self.writer_closed or self.final_status.done():
            return False
        if self.writer.is_closing():
            return False
        return not self.reader.at_eof()

    def _set_final_status(self, exc: Optional[BaseException]) -> None:
        if self.final_status.done():
            return
        if exc is None:
            self.final_status.set_result(None)
        else:
            self.final_status.set_exception(exc)

    async def shutdown(self, exc: Optional[BaseException] = None) -> None:
        """Stops the connection without waiting for the socket to close.

        The first call records exc (or success) as the final status; later calls
        only make sure both halves are closed. Never raises.
        """
        self._set_final_status(exc)
        if not self.reader_closed:
            self.reader_closed = True
            if self.reader is not None:
                # wakes a pending read_chunk() with b''
                self.reader.feed_eof()
        if not self.writer_closed:
            self.writer_closed = True
            if self.writer is not None:
                try:
                    self.writer.close()
                except RuntimeError:
                    # event loop already closed
                    logger.debug(f"{self}: Error closing writer", exc_info=True)

    async def wait(self) -> None:
        """Waits until the socket is closed. Call shutdown() first, or use aclose()."""
        if self.writer is not None:
            try:
                await self.writer.wait_closed()
            except (OSError, RuntimeError):
                # connection reset by the projector
                logger.debug(f"{self}: Error waiting for writer to close", exc_info=True)
        if not self.final_status.done():
            await self.shutdown()
        # retrieve the exception so asyncio does not report it as never retrieved
        if not self.final_status.cancelled():
            self.final_status.exception()

    async def aclose(self, exc: Optional[BaseException] = None) -> None:
        """Closes the transport and waits for complete shutdown/cleanup. Idempotent."""
        await self.shutdown(exc)
        await self.wait()

    async def __aenter__(self) -> TcpDellProjectorTransport:
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        await self.aclose()

    def __str__(self) -> str:
        return f"TcpDellProjectorTransport({self.host}:{self.port})"

    def __repr__(self) -> str:
        return str(self)
