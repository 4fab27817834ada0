# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector device record.

A Projector holds the identity of one discovered projector, its last known
property values, and (once added to a registry) the connection used to
control it.
"""

from __future__ import annotations

import copy

from ..internal_types import *
from ..constants import DEFAULT_COMMAND_PORT
from ..protocol import DddpAnnouncement, StatusValue

if TYPE_CHECKING:
    from .tcp_client_transport import TcpDellProjectorTransport

# Decoded status property name -> Projector attribute
STATUS_ATTRIBUTES: Dict[str, str] = {
    "Power": "power_state",
    "Lamp": "lamp_hours",
    "Input": "source",
    "MAC": "mac_address",
    "Name": "name",
    "Location": "location",
    "Resolution": "resolution",
    "Firmware": "revision",
}

class Projector:
    """A tracked projector"""

    uuid: str
    """Identity key: the vendor-assigned unique id (the MAC address on real hardware)"""
    name: str
    make: str
    model: str
    revision: str
    ip_address: str
    command_port: int

    transport: Optional[TcpDellProjectorTransport] = None
    """The command connection. Owned exclusively by this record once open."""
    snapshot_connected: Optional[bool] = None
    """Set on snapshots: whether the original record was connected when the copy was taken"""

    power_state: bool = False
    volume_muted: bool = False
    picture_muted: bool = False
    frozen: bool = False
    volume: int = 0
    contrast: int = 0
    brightness: int = 0
    source: str = ""
    lamp_hours: str = ""
    error: str = ""
    """The last error seen while talking to the projector"""
    resolution: str = ""
    location: str = ""
    mac_address: str = ""
    extra_properties: Dict[str, StatusValue]
    """Decoded status properties with no dedicated attribute (e.g., "Assigned", "Position")"""

    def __init__(
            self,
            uuid: str,
            ip_address: str,
            *,
            name: Optional[str]=None,
            make: str="",
            model: str="",
            revision: str="",
            command_port: int=DEFAULT_COMMAND_PORT,
          ) -> None:
        self.uuid = uuid
        # The name is not known until the projector reports it
        self.name = uuid if name is None else name
        self.make = make
        self.model = model
        self.revision = revision
        self.ip_address = ip_address
        self.command_port = command_port
        self.extra_properties = {}

    @classmethod
    def from_announcement(
            cls,
            announcement: DddpAnnouncement,
            command_port: int=DEFAULT_COMMAND_PORT,
          ) -> Self:
        """Creates a candidate (unconnected) record from a discovery announcement"""
        return cls(
            announcement.uuid,
            announcement.ip_address,
            make=announcement.make,
            model=announcement.model,
            revision=announcement.revision,
            command_port=command_port,
          )

    @property
    def is_connected(self) -> bool:
        if self.snapshot_connected is not None:
            return self.snapshot_connected
        return self.transport is not None and self.transport.is_alive()

    def apply_status(self, values: Mapping[str, StatusValue]) -> List[str]:
        """Merges decoded status values into this record.

        Properties absent from values keep their previous value. Returns the names
        of the attributes whose value changed.
        """
        changed: List[str] = []
        for name, value in values.items():
            attr = STATUS_ATTRIBUTES.get(name)
            if attr is None:
                if self.extra_properties.get(name) != value:
                    self.extra_properties[name] = value
                    changed.append(name)
            elif getattr(self, attr) != value:
                setattr(self, attr, value)
                changed.append(attr)
        return changed

    def snapshot(self) -> Projector:
        """Returns a copy of this record that does not share the connection or mutable state"""
        result = copy.copy(self)
        result.snapshot_connected = self.is_connected
        result.transport = None
        result.extra_properties = dict(self.extra_properties)
        return result

    def to_jsonable(self) -> JsonableDict:
        return dict(
            uuid=self.uuid,
            name=self.name,
            make=self.make,
            model=self.model,
            revision=self.revision,
            ip_address=self.ip_address,
            command_port=self.command_port,
            connected=self.is_connected,
            power_state=self.power_state,
            volume_muted=self.volume_muted,
            picture_muted=self.picture_muted,
            frozen=self.frozen,
            volume=self.volume,
            contrast=self.contrast,
            brightness=self.brightness,
            source=self.source,
            lamp_hours=self.lamp_hours,
            error=self.error,
            resolution=self.resolution,
            location=self.location,
            mac_address=self.mac_address,
            extra_properties=dict(self.extra_properties),
          )

    def __str__(self) -> str:
        return f"Projector(uuid={self.uuid!r}, name={self.name!r}, ip={self.ip_address}:{self.command_port})"

    def __repr__(self) -> str:
        return str(self)
