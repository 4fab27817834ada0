# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DDDP (AMX Dynamic Device Discovery Protocol) announcement parsing.

Projectors periodically multicast a short ASCII beacon made of a four-character
magic marker followed by any number of tags:

    AMXB<-SDKClass=VideoProjector><-UUID=DEADBEEF><-Make=DULL><-Model=PROJ01><-Revision=0.2.0>

There is no length prefix. Tag values can never contain '>', which is what makes
the format parseable at all.
"""

from __future__ import annotations

import re

from ..internal_types import *
from ..exceptions import DellProjectorError
from .constants import (
    DDDP_MAGIC,
    DEVICE_CLASS_MARKER,
    TAG_OPEN,
    TAG_CLOSE,
    TAG_ASSIGN,
  )

_TAG_RE = re.compile(r"<-([^=>]+)=([^>]+)>")

class DddpAnnouncement:
    """A relevant (i.e., video projector) DDDP announcement and the address it came from."""

    tags: Dict[str, str]
    """All tags in the announcement, in the order they appeared. Unknown tags are kept."""

    src_addr: HostAndPort
    """(ip_address, port) of the sender"""

    has_magic: bool
    """True iff the payload began with the DDDP magic marker"""

    def __init__(
            self,
            tags: Dict[str, str],
            src_addr: HostAndPort,
            has_magic: bool=True,
          ) -> None:
        self.tags = tags
        self.src_addr = src_addr
        self.has_magic = has_magic

    @staticmethod
    def is_relevant(data: Union[bytes, str]) -> bool:
        """Returns True iff the payload announces a video projector."""
        return DEVICE_CLASS_MARKER in _to_text(data)

    @staticmethod
    def parse_tags(data: Union[bytes, str]) -> Dict[str, str]:
        """Extracts every <-KEY=VALUE> tag. Malformed or absent tags yield an empty dict."""
        result: Dict[str, str] = {}
        for key, value in _TAG_RE.findall(_to_text(data)):
            result[key] = value
        return result

    @classmethod
    def parse(
            cls,
            data: Union[bytes, str],
            src_addr: HostAndPort,
          ) -> Optional[Self]:
        """Parses a raw discovery datagram.

        Returns None if the datagram does not announce a video projector. That is
        the common case on a busy network and is not an error.
        """
        text = _to_text(data)
        if not DEVICE_CLASS_MARKER in text:
            return None
        return cls(cls.parse_tags(text), src_addr, has_magic=text.startswith(DDDP_MAGIC))

    @classmethod
    def build(cls, tags: Mapping[str, str]) -> bytes:
        """Renders tags as a DDDP announcement datagram. Tags with an empty value are left out."""
        parts: List[str] = [DDDP_MAGIC]
        for key, value in tags.items():
            if value == '':
                continue
            if TAG_CLOSE in value or TAG_CLOSE in key or TAG_ASSIGN in key or key == '':
                raise DellProjectorError(f"Tag cannot be represented in a DDDP announcement: {key!r}={value!r}")
            parts.append(f"{TAG_OPEN}{key}{TAG_ASSIGN}{value}{TAG_CLOSE}")
        return ''.join(parts).encode('latin-1')

    @property
    def uuid(self) -> str:
        """The vendor-assigned unique id (the MAC address on real hardware)"""
        return self.tags.get("UUID", "")

    @property
    def make(self) -> str:
        return self.tags.get("Make", "")

    @property
    def model(self) -> str:
        return self.tags.get("Model", "")

    @property
    def revision(self) -> str:
        return self.tags.get("Revision", "")

    @property
    def sdk_class(self) -> str:
        return self.tags.get("SDKClass", "")

    @property
    def ip_address(self) -> str:
        return self.src_addr[0]

    def __str__(self) -> str:
        return f"DddpAnnouncement(uuid={self.uuid!r}, make={self.make!r}, model={self.model!r}, from={self.ip_address})"

    def __repr__(self) -> str:
        return str(self)

def _to_text(data: Union[bytes, str]) -> str:
    if isinstance(data, str):
        return data
    # latin-1 maps every octet, so junk datagrams can never raise here
    return bytes(data).decode('latin-1')
