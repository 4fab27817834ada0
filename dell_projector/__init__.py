# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package dell_projector provides an API for discovering and controlling
Dell networked projectors via DDDP announcements and their proprietary
TCP/IP command protocol.
"""

from .version import __version__

from .pkg_logging import logger

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    DellProjectorError,
    DellProjectorConfigError,
    DellProjectorConnectionError,
  )

from .constants import (
    DDDP_MULTICAST_ADDRESS,
    DDDP_PORT,
    DEFAULT_COMMAND_PORT,
    CONNECT_TIMEOUT,
    DEFAULT_EVENT_QUEUE_SIZE,
  )

from .protocol import (
    DddpAnnouncement,
    CommandTable,
    PropertyTable,
    DellCommand,
    StatusValue,
    encode_command,
    decode_status,
    build_status_response,
    STATUS_REQUEST_FRAME,
  )

from .client import (
    DellProjectorClientConfig,
    EventKind,
    ProjectorEvent,
    EventChannel,
    Projector,
    TcpDellProjectorTransport,
    ProjectorRegistry,
    DddpListener,
    DellProjectorDriver,
  )
