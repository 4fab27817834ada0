# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector device registry.

Tracks the projectors the driver is connected to, keyed by UUID. Each
registered projector owns its command connection and is serviced by its
own task, which decodes status responses as they arrive and deregisters
the projector when the connection drops.

Membership changes are serialized by an asyncio.Lock shared by the
discovery listener, the service tasks and the consumer.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..exceptions import DellProjectorError, DellProjectorConnectionError
from ..pkg_logging import logger
from ..constants import READ_CHUNK_SIZE
from ..protocol import (
    CommandTable,
    PropertyTable,
    DddpAnnouncement,
    DellCommand,
    STATUS_REQUEST_FRAME,
    decode_status,
    split_status_chunk,
  )
from .events import EventChannel, EventKind
from .projector import Projector
from .tcp_client_transport import TcpDellProjectorTransport

# Commands whose effect on the projector state is known without asking
COMMAND_EFFECTS: Dict[str, Tuple[str, Any]] = {
    "Power.On": ("power_state", True),
    "Power.Off": ("power_state", False),
    "Volume.Mute": ("volume_muted", True),
    "Volume.Unmute": ("volume_muted", False),
    "Picture.Mute": ("picture_muted", True),
    "Picture.Unmute": ("picture_muted", False),
    "Picture.Freeze": ("frozen", True),
    "Picture.Unfreeze": ("frozen", False),
}

class ProjectorRegistry:
    """The set of connected projectors, keyed by UUID"""

    events: EventChannel
    command_table: CommandTable
    property_table: PropertyTable
    connect_timeout_secs: Optional[float]

    _projectors: Dict[str, Projector]
    _service_tasks: Dict[str, asyncio.Task[None]]
    _pending: Dict[str, bytes]
    """Unfinished trailing status record per projector, awaiting the next read"""
    _lock: asyncio.Lock

    def __init__(
            self,
            events: EventChannel,
            command_table: Optional[CommandTable]=None,
            property_table: Optional[PropertyTable]=None,
            connect_timeout_secs: Optional[float]=None,
          ) -> None:
        self.events = events
        self.command_table = CommandTable.default() if command_table is None else command_table
        self.property_table = PropertyTable.default() if property_table is None else property_table
        self.connect_timeout_secs = connect_timeout_secs
        self._projectors = {}
        self._service_tasks = {}
        self._pending = {}
        self._lock = asyncio.Lock()

    async def observe(
            self,
            announcement: DddpAnnouncement,
            command_port: Optional[int]=None,
          ) -> Optional[Projector]:
        """Reports a discovery announcement.

        If the projector is not yet registered, emits DEVICE_FOUND with a candidate
        record and returns the candidate. Connecting is left to whoever consumes the
        event. Repeated announcements from a registered projector are ignored, and
        None is returned.
        """
        uuid = announcement.uuid
        if uuid == '':
            logger.debug(f"Ignoring projector announcement without a UUID from {announcement.ip_address}")
            return None
        async with self._lock:
            if uuid in self._projectors:
                return None
        if command_port is None:
            candidate = Projector.from_announcement(announcement)
        else:
            candidate = Projector.from_announcement(announcement, command_port=command_port)
        logger.debug(f"Found projector {candidate}: make={candidate.make!r}, model={candidate.model!r}, revision={candidate.revision!r}")
        self.events.emit(EventKind.DEVICE_FOUND, candidate.snapshot())
        return candidate

    async def add(self, projector: Projector) -> Projector:
        """Connects to a projector and registers it.

        Returns the registered record. If the UUID is already registered, the existing
        record is returned and no new connection is made. On connection failure raises
        DellProjectorConnectionError and the registry is left unchanged.
        """
        async with self._lock:
            existing = self._projectors.get(projector.uuid)
        if existing is not None:
            return existing
        # connect without holding the lock
        transport = await TcpDellProjectorTransport.create(
            projector.ip_address,
            port=projector.command_port,
            timeout_secs=self.connect_timeout_secs,
          )
        async with self._lock:
            existing = self._projectors.get(projector.uuid)
            if existing is None:
                projector.transport = transport
                self._projectors[projector.uuid] = projector
                self._service_tasks[projector.uuid] = asyncio.create_task(self._service(projector))
        if existing is not None:
            # lost a race with a concurrent add() of the same projector
            await transport.aclose()
            return existing
        logger.info(f"Added {projector}")
        self.events.emit(EventKind.DEVICE_ADDED, projector.snapshot())
        return projector

    async def remove(self, projector: Union[Projector, str]) -> bool:
        """Closes a projector's connection and deregisters it.

        Returns False if it was not registered; removing twice is harmless.
        """
        uuid = projector if isinstance(projector, str) else projector.uuid
        async with self._lock:
            registered = self._projectors.pop(uuid, None)
            task = self._service_tasks.pop(uuid, None)
            self._pending.pop(uuid, None)
            if registered is None:
                return False
            transport = registered.transport
            # the handle is released before the record is let go
            if transport is not None:
                await transport.aclose()
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info(f"Removed {registered}")
        self.events.emit(EventKind.DEVICE_REMOVED, registered.snapshot())
        return True

    async def aclose(self) -> None:
        """Removes every registered projector"""
        for uuid in list(self._projectors.keys()):
            await self.remove(uuid)

    def get(self, uuid: str) -> Optional[Projector]:
        return self._projectors.get(uuid)

    def projectors(self) -> List[Projector]:
        return list(self._projectors.values())

    def __contains__(self, uuid: object) -> bool:
        return uuid in self._projectors

    def __len__(self) -> int:
        return len(self._projectors)

    async def send_raw(self, projector: Projector, frame: bytes) -> None:
        """Writes a raw frame to a registered projector.

        Writes to one projector are not serialized; callers sending from several tasks
        must take turns themselves.
        """
        transport = projector.transport
        if transport is None:
            raise DellProjectorConnectionError(f"{projector} is not connected")
        try:
            await transport.write_frame(frame)
        except DellProjectorError as e:
            projector.error = str(e)
            raise

    async def send_command(self, projector: Projector, command: Union[str, DellCommand]) -> DellCommand:
        """Sends a command, given as a dotted command path (e.g., "Volume.Up") or a DellCommand.

        Raises KeyError for a command that is not in the command table.
        """
        if isinstance(command, str):
            command = DellCommand.create_from_name(command, self.command_table)
        logger.debug(f"Sending {command} to {projector}")
        await self.send_raw(projector, command.raw_data)
        effect = None if command.name is None else COMMAND_EFFECTS.get(command.name)
        if effect is not None:
            setattr(projector, effect[0], effect[1])
        self.events.emit(EventKind.COMMAND_SENT, projector.snapshot())
        return command

    async def request_status(self, projector: Projector) -> None:
        """Asks the projector to report everything it knows. The response is
           picked up by the projector's service task."""
        await self.send_raw(projector, STATUS_REQUEST_FRAME)

    def handle_status_response(self, projector: Projector, data: Union[bytes, str]) -> List[str]:
        """Decodes a status response and merges it into the projector record.

        Returns the names of changed attributes.
        """
        values = decode_status(data, self.property_table)
        old_name = projector.name
        changed = projector.apply_status(values)
        if changed:
            logger.debug(f"{projector}: status updated: {', '.join(changed)}")
        if projector.name != old_name:
            self.events.emit(EventKind.NAME_CHANGED, projector.snapshot())
        return changed

    def handle_status_chunk(self, projector: Projector, data: bytes) -> List[str]:
        """Handles bytes as read from the connection, which may end partway through a record.

        An unfinished trailing record is held back and completed by the next chunk.
        Returns the names of changed attributes.
        """
        data = self._pending.pop(projector.uuid, b'') + data
        complete, pending = split_status_chunk(data, self.property_table)
        if len(pending) > READ_CHUNK_SIZE:
            logger.debug(f"{projector}: Discarding {len(pending)} bytes of unterminated status data")
        elif len(pending) > 0:
            self._pending[projector.uuid] = pending
        if len(complete) == 0:
            return []
        return self.handle_status_response(projector, complete)

    async def _service(self, projector: Projector) -> None:
        """Reads and decodes status responses until the connection drops"""
        transport = projector.transport
        assert transport is not None
        try:
            while True:
                try:
                    data = await transport.read_chunk()
                except (OSError, asyncio.IncompleteReadError) as e:
                    logger.warning(f"{projector}: Read failed: {e!r}")
                    projector.error = str(e)
                    break
                if len(data) > 0:
                    self.handle_status_chunk(projector, data)
                elif not transport.is_alive():
                    logger.warning(f"{projector}: Connection closed by projector")
                    break
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"{projector}: Unexpected error while servicing projector: {e}")
            projector.error = str(e)
        await self.remove(projector)

    def __str__(self) -> str:
        return f"ProjectorRegistry({len(self)} projectors)"

    def __repr__(self) -> str:
        return str(self)
