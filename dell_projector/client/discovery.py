# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector DDDP discovery listener.

Joins the DDDP multicast group and feeds every projector announcement to a
ProjectorRegistry, which decides whether it describes a new projector.
"""

from __future__ import annotations

import asyncio
import socket
import struct

from ..internal_types import *
from ..pkg_logging import logger
from ..constants import DDDP_MULTICAST_ADDRESS, DDDP_PORT, DEFAULT_COMMAND_PORT
from ..protocol import DddpAnnouncement
from .events import EventKind
from .projector import Projector
from .registry import ProjectorRegistry

MAX_PENDING_ANNOUNCEMENTS = 64
"""Announcements arriving while this many are waiting for the registry are dropped."""

class DddpDiscoveryProtocol(asyncio.DatagramProtocol):
    """Receives DDDP datagrams and passes relevant announcements to its listener."""

    listener: DddpListener
    transport: Optional[asyncio.DatagramTransport] = None

    def __init__(self, listener: DddpListener) -> None:
        self.listener = listener

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        assert isinstance(transport, asyncio.DatagramTransport)
        self.transport = transport

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        self.listener.on_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning(f"DDDP listener socket error: {exc!r}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        logger.debug(f"DDDP listener socket closed: {exc!r}")
        self.transport = None

def create_multicast_socket(multicast_address: str, port: int) -> socket.socket:
    """Creates a nonblocking UDP socket bound to port and joined to a multicast group"""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, 'SO_REUSEPORT'):
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            except OSError:
                logger.debug("SO_REUSEPORT not supported; continuing without it")
        sock.bind(('', port))
        mreq = socket.inet_aton(multicast_address) + struct.pack("=I", socket.INADDR_ANY)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        sock.setblocking(False)
    except BaseException:
        sock.close()
        raise
    return sock

class DddpListener:
    """Listens for DDDP announcements on behalf of a ProjectorRegistry"""

    registry: ProjectorRegistry
    multicast_address: str
    port: int
    command_port: int

    transport: Optional[asyncio.DatagramTransport] = None
    protocol: Optional[DddpDiscoveryProtocol] = None
    dropped_count: int = 0

    on_found: Optional[Callable[[Projector], None]] = None
    """Called with the candidate record whenever the registry reports a new projector"""

    _pending: asyncio.Queue[DddpAnnouncement]
    _task: Optional[asyncio.Task[None]] = None

    def __init__(
            self,
            registry: ProjectorRegistry,
            multicast_address: str=DDDP_MULTICAST_ADDRESS,
            port: int=DDDP_PORT,
            command_port: int=DEFAULT_COMMAND_PORT,
            on_found: Optional[Callable[[Projector], None]]=None,
          ) -> None:
        self.registry = registry
        self.on_found = on_found
        self.multicast_address = multicast_address
        self.port = port
        self.command_port = command_port
        self._pending = asyncio.Queue(MAX_PENDING_ANNOUNCEMENTS)

    def on_datagram(self, data: bytes, addr: HostAndPort) -> Optional[DddpAnnouncement]:
        """Parses one datagram. Relevant announcements are queued for the registry and returned."""
        announcement = DddpAnnouncement.parse(data, addr)
        if announcement is None:
            logger.debug(f"Ignoring non-projector DDDP datagram from {addr[0]}")
            return None
        try:
            self._pending.put_nowait(announcement)
        except asyncio.QueueFull:
            self.dropped_count += 1
            logger.debug(f"Announcement backlog full; dropping {announcement}")
        return announcement

    async def _process_announcements(self) -> None:
        while True:
            announcement = await self._pending.get()
            try:
                candidate = await self.registry.observe(announcement, command_port=self.command_port)
                if candidate is not None and self.on_found is not None:
                    self.on_found(candidate)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"Error while handling {announcement}: {e}")
            finally:
                self._pending.task_done()

    def start_processing(self) -> None:
        """Starts handing queued announcements to the registry. Called by start()."""
        if self._task is None:
            self._task = asyncio.create_task(self._process_announcements())

    async def start(self) -> None:
        """Joins the multicast group and starts listening. Emits LISTENING."""
        assert self.transport is None
        loop = asyncio.get_running_loop()
        sock = create_multicast_socket(self.multicast_address, self.port)
        try:
            transport, protocol = await loop.create_datagram_endpoint(
                lambda: DddpDiscoveryProtocol(self),
                sock=sock,
              )
        except BaseException:
            sock.close()
            raise
        self.transport = transport
        self.protocol = protocol
        self.start_processing()
        logger.info(f"Listening for projectors via DDDP on {self.multicast_address}:{self.port}")
        self.registry.events.emit(EventKind.LISTENING)

    async def join(self) -> None:
        """Waits until every queued announcement has been handed to the registry"""
        await self._pending.join()

    async def stop(self) -> None:
        """Stops listening. Idempotent."""
        if self.transport is not None:
            self.transport.close()
            self.transport = None
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> DddpListener:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        await self.stop()

    def __str__(self) -> str:
        return f"DddpListener({self.multicast_address}:{self.port})"

    def __repr__(self) -> str:
        return str(self)
