# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector driver event channel.

Discovery, lifecycle and status notifications are handed to the consumer
through a bounded queue. Producers never wait: if the consumer has fallen
behind and the queue is full, the new event is dropped and counted in
EventChannel.dropped_count. Consumers that cannot afford lost notifications
must drain the channel promptly or size it generously.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from ..internal_types import *
from ..pkg_logging import logger
from ..constants import DEFAULT_EVENT_QUEUE_SIZE

if TYPE_CHECKING:
    from .projector import Projector

class EventKind(str, Enum):
    READY = "ready"
    LISTENING = "listening"
    DEVICE_FOUND = "device-found"
    DEVICE_ADDED = "device-added"
    DEVICE_REMOVED = "device-removed"
    COMMAND_SENT = "command-sent"
    NAME_CHANGED = "name-changed"

class ProjectorEvent:
    """An out-of-band notification from the driver"""

    kind: EventKind

    projector: Optional[Projector]
    """Snapshot of the projector concerned, or None for driver-wide events"""

    def __init__(self, kind: EventKind, projector: Optional[Projector]=None) -> None:
        self.kind = kind
        self.projector = projector

    def to_jsonable(self) -> JsonableDict:
        return dict(
            kind=self.kind.value,
            projector=None if self.projector is None else self.projector.to_jsonable(),
          )

    def __str__(self) -> str:
        return f"ProjectorEvent({self.kind.value}, {self.projector})"

    def __repr__(self) -> str:
        return str(self)

class EventChannel:
    """A bounded, drop-on-full queue of ProjectorEvents"""

    maxsize: int
    dropped_count: int = 0
    """Number of events discarded because the consumer was not keeping up"""

    _queue: asyncio.Queue[Optional[ProjectorEvent]]
    _closed: bool = False

    def __init__(self, maxsize: int=DEFAULT_EVENT_QUEUE_SIZE) -> None:
        self.maxsize = maxsize
        # one extra slot so close() can always enqueue its sentinel
        self._queue = asyncio.Queue(maxsize + 1)

    def emit(self, kind: EventKind, projector: Optional[Projector]=None) -> bool:
        """Hands an event to the consumer without waiting.

        projector should already be a snapshot. Returns False if the event was dropped.
        """
        event = ProjectorEvent(kind, projector)
        if self._closed or self._queue.qsize() >= self.maxsize:
            self.dropped_count += 1
            logger.debug(f"Event channel full or closed; dropping {event} (dropped={self.dropped_count})")
            return False
        self._queue.put_nowait(event)
        logger.debug(f"Emitted {event}")
        return True

    async def get(self) -> ProjectorEvent:
        """Waits for the next event. Raises EOFError once the channel is closed and drained."""
        if self._closed and self._queue.empty():
            raise EOFError("Event channel is closed")
        event = await self._queue.get()
        if event is None:
            # leave the sentinel for any other waiting consumers
            self._queue.put_nowait(None)
            raise EOFError("Event channel is closed")
        return event

    def get_nowait(self) -> Optional[ProjectorEvent]:
        """Returns the next event, or None if no event is ready"""
        try:
            event = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        if event is None:
            self._queue.put_nowait(None)
        return event

    def qsize(self) -> int:
        return self._queue.qsize()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stops accepting events. Consumers see the events already queued, then EOF."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[ProjectorEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ProjectorEvent]:
        while True:
            try:
                event = await self.get()
            except EOFError:
                return
            yield event

    def __str__(self) -> str:
        return f"EventChannel(maxsize={self.maxsize}, queued={self.qsize()}, dropped={self.dropped_count})"

    def __repr__(self) -> str:
        return str(self)
