# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector emulator.

Provides a simple emulation of a Dell projector on TCP/IP: it accepts command
frames on the command port, keeps a little state, answers status requests,
and can periodically announce itself via DDDP.
"""

from __future__ import annotations

import asyncio
import socket

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import (
    CommandTable,
    PropertyTable,
    DddpAnnouncement,
    DellCommand,
    StatusValue,
    STATUS_REQUEST_FRAME,
    DEVICE_CLASS_MARKER,
    build_status_response,
  )
from ..constants import (
    DEFAULT_COMMAND_PORT,
    DDDP_MULTICAST_ADDRESS,
    DDDP_PORT,
  )
from ..exceptions import DellProjectorError

from .session import DellProjectorEmulatorSession

class DellProjectorEmulator(AsyncContextManager['DellProjectorEmulator']):
    uuid: str
    make: str
    model: str
    revision: str
    command_table: CommandTable
    property_table: PropertyTable
    bind_addr: str
    port: int
    announce_interval: Optional[float]
    announce_addr: HostAndPort

    # emulated state
    power_state: bool = False
    source: str = "VGAA"
    name: str
    location: str = "Conference Room"
    resolution: str = "1024x768"
    lamp_hours: str = "1234"
    volume_muted: bool = False
    picture_muted: bool = False
    frozen: bool = False

    received_commands: List[DellCommand]
    """Every command received, in order"""
    status_request_count: int = 0

    sessions: Dict[int, DellProjectorEmulatorSession]
    next_session_id: int = 0
    requests: asyncio.Queue[Optional[Tuple[DellProjectorEmulatorSession, bytes]]]
    server: Optional[asyncio.Server] = None
    handler_task: Optional[asyncio.Task[None]] = None
    announcer_task: Optional[asyncio.Task[None]] = None
    final_result: asyncio.Future[None]

    def __init__(
            self,
            uuid: str="DEADBEEF",
            make: str="DULL",
            model: str="PROJ01",
            revision: str="0.2.0",
            name: Optional[str]=None,
            bind_addr: Optional[str]=None,
            port: int=DEFAULT_COMMAND_PORT,
            announce_interval: Optional[float]=None,
            announce_addr: HostAndPort=(DDDP_MULTICAST_ADDRESS, DDDP_PORT),
            command_table: Optional[CommandTable]=None,
            property_table: Optional[PropertyTable]=None,
          ):
        self.uuid = uuid
        self.make = make
        self.model = model
        self.revision = revision
        self.name = f"Projector-{uuid}" if name is None else name
        self.bind_addr = '0.0.0.0' if bind_addr is None else bind_addr
        self.port = port
        self.announce_interval = announce_interval
        self.announce_addr = announce_addr
        self.command_table = CommandTable.default() if command_table is None else command_table
        self.property_table = PropertyTable.default() if property_table is None else property_table
        self.received_commands = []
        self.sessions = {}
        self.requests = asyncio.Queue()
        self.final_result = asyncio.get_event_loop().create_future()

    @property
    def bound_port(self) -> int:
        """The port actually listened on (useful when constructed with port=0)"""
        if self.server is None or not self.server.sockets:
            return self.port
        return self.server.sockets[0].getsockname()[1]

    def announcement(self) -> bytes:
        """The DDDP announcement datagram for this projector"""
        return DddpAnnouncement.build({
            "SDKClass": DEVICE_CLASS_MARKER,
            "UUID": self.uuid,
            "Make": self.make,
            "Model": self.model,
            "Revision": self.revision,
          })

    def status_values(self) -> Dict[str, StatusValue]:
        """The property values reported in response to a status request"""
        values: Dict[str, StatusValue] = {
            "Power": self.power_state,
            "Lamp": self.lamp_hours,
            "Input": self.source,
            "MAC": self.uuid,
            "Name": self.name,
            "Location": self.location,
            "Resolution": self.resolution,
            "Firmware": self.revision,
          }
        return { k: v for k, v in values.items() if k in self.property_table }

    def register_session(self, session: DellProjectorEmulatorSession) -> int:
        """Tracks a new client connection and returns its id"""
        session_id = self.next_session_id
        self.next_session_id = session_id + 1
        self.sessions[session_id] = session
        return session_id

    def unregister_session(self, session_id: int) -> None:
        self.sessions.pop(session_id, None)

    def disconnect_all(self) -> None:
        """Drops every client connection, as a projector being unplugged would"""
        for session in list(self.sessions.values()):
            session.close()

    def on_frame_received(self, session: DellProjectorEmulatorSession, frame: bytes) -> None:
        """Called when a frame is received from a session."""
        self.requests.put_nowait((session, frame))

    def apply_command(self, command: DellCommand) -> None:
        """Updates the emulated state for a received command"""
        name = command.name
        if name is None:
            logger.debug(f"Emulator: Ignoring unknown command opcode {command.opcode}")
            return
        category, _, action = name.partition('.')
        if name == "Power.On":
            self.power_state = True
        elif name == "Power.Off":
            self.power_state = False
        elif category == "Input":
            self.source = action
        elif name == "Volume.Mute":
            self.volume_muted = True
        elif name == "Volume.Unmute":
            self.volume_muted = False
        elif name == "Picture.Mute":
            self.picture_muted = True
        elif name == "Picture.Unmute":
            self.picture_muted = False
        elif name == "Picture.Freeze":
            self.frozen = True
        elif name == "Picture.Unfreeze":
            self.frozen = False

    async def handle_frame(
            self,
            session: DellProjectorEmulatorSession,
            frame: bytes,
          ) -> Optional[bytes]:
        """Handle a single frame, and return the response to send, if any.

        If an exception is raised, the session is closed.
        """
        if frame == STATUS_REQUEST_FRAME:
            self.status_request_count += 1
            logger.debug(f"{session}: Responding to status request")
            return build_status_response(self.status_values(), self.property_table)

        command = DellCommand.create_from_frame(frame, self.command_table)
        logger.info(f"{session}: Received command: {command}")
        self.received_commands.append(command)
        self.apply_command(command)
        return None

    async def handle_requests(self) -> None:
        """Answers queued frames in arrival order until close()."""
        while (item := await self.requests.get()) is not None:
            session, frame = item
            try:
                response = await self.handle_frame(session, frame)
            except DellProjectorError as e:
                logger.warning(f"{session}: Dropping session after bad frame: {e}")
                session.close()
            else:
                if response is not None:
                    logger.debug(f"{session}: Replying with {len(response)} bytes: {response.hex(' ')}")
                    session.write(response)
        logger.debug(f"{self}: Request handler exiting")

    async def announce(self) -> None:
        """Periodically multicasts this projector's DDDP announcement"""
        assert self.announce_interval is not None
        loop = asyncio.get_running_loop()
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 2)
        sock.setblocking(False)
        transport, _ = await loop.create_datagram_endpoint(asyncio.DatagramProtocol, sock=sock)
        try:
            while True:
                logger.debug(f"Emulator: Announcing {self.uuid} to {self.announce_addr}")
                transport.sendto(self.announcement(), self.announce_addr)
                await asyncio.sleep(self.announce_interval)
        finally:
            transport.close()

    async def start(self) -> None:
        """Starts serving commands, and announcing if announce_interval is set."""
        loop = asyncio.get_running_loop()
        self.handler_task = asyncio.create_task(self.handle_requests())
        try:
            self.server = await loop.create_server(
                lambda: DellProjectorEmulatorSession(self),
                host=self.bind_addr,
                port=self.port,
              )
            logger.debug(f"{self}: Listening for commands")
            if self.announce_interval is not None:
                self.announcer_task = asyncio.create_task(self.announce())
        except BaseException as e:
            self.close(e)
            await self._cleanup()
            raise

    async def run(self) -> None:
        """Runs the emulator until close() is called."""
        async with self:
            await self.wait_closed()

    def close(self, exc: Optional[BaseException]=None) -> None:
        """Stops the emulator. If exc is given, wait_closed() raises it."""
        if self.final_result.done():
            return
        if exc is None:
            logger.debug(f"{self}: Closing")
            self.final_result.set_result(None)
        else:
            logger.debug(f"{self}: Closing with error: {exc!r}")
            self.final_result.set_exception(exc)
        # wakes the handler task so it can exit
        self.requests.put_nowait(None)
        if self.server is not None:
            self.server.close()

    async def _cleanup(self) -> None:
        announcer, self.announcer_task = self.announcer_task, None
        if announcer is not None:
            announcer.cancel()
            await asyncio.gather(announcer, return_exceptions=True)
        server, self.server = self.server, None
        if server is not None:
            self.disconnect_all()
            server.close()
            await server.wait_closed()
        handler, self.handler_task = self.handler_task, None
        if handler is not None:
            await handler

    async def wait_closed(self) -> None:
        """Waits until the emulator is closed and cleaned up. Does not initiate closing."""
        try:
            await self.final_result
        finally:
            await self._cleanup()

    async def __aenter__(self) -> DellProjectorEmulator:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        self.close()
        await self.wait_closed()

    def __str__(self) -> str:
        return f"DellProjectorEmulator({self.uuid}, {self.bind_addr}:{self.bound_port})"

    def __repr__(self) -> str:
        return str(self)
