# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector driver.

Ties together the command and property tables, the event channel, the
device registry and the DDDP listener. A typical consumer:

    async with DellProjectorDriver() as driver:
        async for event in driver.events:
            if event.kind == EventKind.DEVICE_ADDED:
                await driver.send_command(event.projector.uuid, "Power.On")
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..exceptions import DellProjectorError, DellProjectorConnectionError
from ..constants import DEFAULT_STATUS_POLL_INTERVAL
from ..pkg_logging import logger
from ..protocol import CommandTable, PropertyTable, DellCommand
from .client_config import DellProjectorClientConfig
from .events import EventChannel, EventKind
from .projector import Projector
from .registry import ProjectorRegistry
from .discovery import DddpListener

class DellProjectorDriver:
    """Discovers, connects to and controls Dell projectors on the local network."""

    config: DellProjectorClientConfig
    command_table: Optional[CommandTable] = None
    property_table: Optional[PropertyTable] = None
    events: EventChannel
    registry: Optional[ProjectorRegistry] = None
    listener: Optional[DddpListener] = None

    _connecting: Dict[str, asyncio.Task[None]]
    _poll_task: Optional[asyncio.Task[None]] = None

    def __init__(
            self,
            config: Optional[DellProjectorClientConfig]=None,
            command_table: Optional[CommandTable]=None,
            property_table: Optional[PropertyTable]=None,
          ) -> None:
        """Creates a driver. Nothing happens on the network until listen() is called.

           Args:
             config: The driver configuration. If None, a default config is created
                     from the environment.
             command_table:
                     A replacement command table. If None, the table named by
                     config.command_table_file is used, or the built-in table.
             property_table:
                     A replacement property table. If None, the table named by
                     config.property_table_file is used, or the built-in table.
        """
        self.config = DellProjectorClientConfig(base_config=config)
        self.command_table = command_table
        self.property_table = property_table
        self.events = EventChannel(self.config.event_queue_size)
        self._connecting = {}

    def initialize(self) -> None:
        """Loads the command and property tables and emits READY.

        A malformed table raises DellProjectorConfigError and leaves the driver uninitialized.
        """
        if self.registry is not None:
            return
        command_table = self.command_table
        if command_table is None:
            if self.config.command_table_file is None:
                command_table = CommandTable.default()
            else:
                command_table = CommandTable.load(self.config.command_table_file)
        property_table = self.property_table
        if property_table is None:
            if self.config.property_table_file is None:
                property_table = PropertyTable.default()
            else:
                property_table = PropertyTable.load(self.config.property_table_file)
        self.command_table = command_table
        self.property_table = property_table
        self.registry = ProjectorRegistry(
            self.events,
            command_table=command_table,
            property_table=property_table,
            connect_timeout_secs=self.config.connect_timeout_secs,
          )
        logger.debug(f"{self}: initialized with {command_table} and {property_table}")
        self.events.emit(EventKind.READY)

    def _require_registry(self) -> ProjectorRegistry:
        if self.registry is None:
            raise DellProjectorError(f"{self} has not been initialized")
        return self.registry

    async def listen(self) -> None:
        """Starts listening for DDDP announcements. Emits LISTENING."""
        registry = self._require_registry()
        if self.listener is not None:
            return
        listener = DddpListener(
            registry,
            multicast_address=self.config.multicast_address,
            port=self.config.discovery_port,
            command_port=self.config.command_port,
            on_found=self.on_projector_found if self.config.auto_add else None,
          )
        await listener.start()
        self.listener = listener

    def on_projector_found(self, candidate: Projector) -> None:
        """Starts connecting to a newly discovered projector, unless already doing so"""
        if candidate.uuid in self._connecting:
            return
        self._connecting[candidate.uuid] = asyncio.create_task(self._auto_add(candidate))

    async def _auto_add(self, candidate: Projector) -> None:
        try:
            await self.add_projector(candidate)
        except DellProjectorConnectionError as e:
            # left unregistered; the next announcement tries again
            logger.warning(f"Unable to connect to discovered {candidate}: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error adding discovered {candidate}: {e}")
        finally:
            self._connecting.pop(candidate.uuid, None)

    async def add_projector(self, projector: Projector) -> Projector:
        """Connects to a projector and registers it. Raises DellProjectorConnectionError on failure."""
        return await self._require_registry().add(projector)

    async def remove_projector(self, projector: Union[Projector, str]) -> bool:
        return await self._require_registry().remove(projector)

    def get_projector(self, uuid: str) -> Projector:
        """Returns a registered projector. Raises KeyError if there is no such projector."""
        projector = self._require_registry().get(uuid)
        if projector is None:
            raise KeyError(f"Unknown projector: {uuid!r}")
        return projector

    def projectors(self) -> List[Projector]:
        return self._require_registry().projectors()

    async def send_command(self, uuid: str, command: Union[str, DellCommand]) -> DellCommand:
        """Sends a command (e.g., "Power.On") to a registered projector"""
        projector = self.get_projector(uuid)
        return await self._require_registry().send_command(projector, command)

    async def request_status(self, uuid: str) -> None:
        projector = self.get_projector(uuid)
        await self._require_registry().request_status(projector)

    async def poll_status_once(self) -> None:
        """Sends a status request to every registered projector"""
        for projector in self.projectors():
            try:
                await self._require_registry().request_status(projector)
            except DellProjectorConnectionError as e:
                logger.warning(f"Status request to {projector} failed: {e}")

    async def _poll_status(self, interval_secs: float) -> None:
        while True:
            await self.poll_status_once()
            await asyncio.sleep(interval_secs)

    def start_polling(self, interval_secs: float=DEFAULT_STATUS_POLL_INTERVAL) -> None:
        """Periodically requests status from every registered projector"""
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self._poll_status(interval_secs))

    async def stop_polling(self) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def aclose(self) -> None:
        """Stops listening and polling, closes every projector connection, and closes the event channel"""
        await self.stop_polling()
        if self.listener is not None:
            await self.listener.stop()
            self.listener = None
        connecting = list(self._connecting.values())
        for task in connecting:
            task.cancel()
        if connecting:
            await asyncio.gather(*connecting, return_exceptions=True)
        if self.registry is not None:
            await self.registry.aclose()
        self.events.close()

    async def __aenter__(self) -> DellProjectorDriver:
        self.initialize()
        try:
            await self.listen()
        except BaseException:
            await self.aclose()
            raise
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        logger.debug(f"{self}: Exiting async context manager, exc={exc}")
        await self.aclose()

    def __str__(self) -> str:
        return f"DellProjectorDriver({self.config})"

    def __repr__(self) -> str:
        return str(self)
