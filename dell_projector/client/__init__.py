# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector driver.

Discovers projectors via DDDP, keeps a registry of connected projectors, and
reports discovery, lifecycle and status changes through an event channel.
"""

from .client_config import DellProjectorClientConfig
from .events import EventKind, ProjectorEvent, EventChannel
from .projector import Projector, STATUS_ATTRIBUTES
from .tcp_client_transport import TcpDellProjectorTransport
from .registry import ProjectorRegistry, COMMAND_EFFECTS
from .discovery import DddpListener, DddpDiscoveryProtocol, create_multicast_socket
from .driver import DellProjectorDriver
