# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by dell_projector"""

DDDP_MULTICAST_ADDRESS = "239.255.250.250"
"""The multicast group on which projectors announce themselves."""

DDDP_PORT = 9131
"""The UDP port of DDDP (AMX Dynamic Device Discovery Protocol) announcements."""

DEFAULT_COMMAND_PORT = 41794
"""The listen port number used by the projector for TCP/IP control."""

CONNECT_TIMEOUT = 15.0
"""The timeout for connecting to the projector over TCP/IP, in seconds."""

DEFAULT_EVENT_QUEUE_SIZE = 16
"""The number of undelivered events held for the consumer before new events are dropped."""

DEFAULT_ANNOUNCE_INTERVAL = 30.0
"""For the emulator, the interval between DDDP announcements, in seconds."""

DEFAULT_STATUS_POLL_INTERVAL = 10.0
"""The interval between status requests when the driver is polling, in seconds."""

READ_CHUNK_SIZE = 4098
"""The maximum number of bytes consumed from a projector connection by a single read."""
