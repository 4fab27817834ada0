# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector driver configuration.

Provides the general config object for the discovery listener, the device
registry and the driver.
"""

from __future__ import annotations

import os

from ..internal_types import *
from ..exceptions import DellProjectorConfigError
from ..constants import (
    DDDP_MULTICAST_ADDRESS,
    DDDP_PORT,
    DEFAULT_COMMAND_PORT,
    CONNECT_TIMEOUT,
    DEFAULT_EVENT_QUEUE_SIZE,
  )

_TRUE_STRINGS = ('1', 'true', 'yes', 'on')
_FALSE_STRINGS = ('0', 'false', 'no', 'off')

def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError as e:
        raise DellProjectorConfigError(f"Environment variable {name} must be an integer: {value!r}") from e

def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    try:
        return float(value)
    except ValueError as e:
        raise DellProjectorConfigError(f"Environment variable {name} must be a number: {value!r}") from e

def _parse_bool(name: str, value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    lvalue = value.strip().lower()
    if lvalue in _TRUE_STRINGS:
        return True
    if lvalue in _FALSE_STRINGS:
        return False
    raise DellProjectorConfigError(f"{name} must be a boolean: {value!r}")

class DellProjectorClientConfig:
    """Dell Projector driver configuration."""
    multicast_address: str
    discovery_port: int
    command_port: int
    connect_timeout_secs: Optional[float]
    event_queue_size: int
    auto_add: bool
    command_table_file: Optional[str]
    property_table_file: Optional[str]

    def __init__(
            self,
            *,
            multicast_address: Optional[str]=None,
            discovery_port: Optional[int]=None,
            command_port: Optional[int]=None,
            connect_timeout_secs: Optional[float]=None,
            event_queue_size: Optional[int]=None,
            auto_add: Optional[bool]=None,
            command_table_file: Optional[str]=None,
            property_table_file: Optional[str]=None,
            base_config: Optional[DellProjectorClientConfig]=None,
          ) -> None:
        """Creates a configuration for the Dell Projector driver.

           Args:
             multicast_address:
                   The multicast group on which to listen for DDDP announcements.
                   If None, taken from DELL_PROJECTOR_MULTICAST_ADDRESS, or
                   239.255.250.250 if that is not set.
             discovery_port:
                   The UDP port of DDDP announcements. If None, taken from
                   DELL_PROJECTOR_DISCOVERY_PORT, or 9131.
             command_port:
                   The TCP port on which projectors accept commands. If None,
                   taken from DELL_PROJECTOR_COMMAND_PORT, or 41794.
             connect_timeout_secs:
                   The timeout for opening a command connection, in seconds.
                   If None, taken from DELL_PROJECTOR_CONNECT_TIMEOUT, or
                   CONNECT_TIMEOUT. Reads never time out.
             event_queue_size:
                   The number of undelivered events held for the consumer before
                   new events are dropped. If None, taken from
                   DELL_PROJECTOR_EVENT_QUEUE_SIZE, or 16.
             auto_add:
                   If True, the driver connects to every projector it discovers.
                   If None, taken from DELL_PROJECTOR_AUTO_ADD, or True.
             command_table_file:
                   Optional JSON file of nested command definitions that
                   replaces the built-in command table. If None, taken from
                   DELL_PROJECTOR_COMMAND_TABLE.
             property_table_file:
                   Optional JSON file of property definitions that replaces
                   the built-in property table. If None, taken from
                   DELL_PROJECTOR_PROPERTY_TABLE.
             base_config:
                   An optional base configuration to use.
        """
        if base_config is None:
            self.init_from_defaults()
        else:
            self.init_from_base_config(base_config)

        if multicast_address is not None and multicast_address != '':
            self.multicast_address = multicast_address

        if discovery_port is not None and discovery_port >= 0:
            self.discovery_port = discovery_port

        if command_port is not None and command_port > 0:
            self.command_port = command_port

        if connect_timeout_secs is not None:
            self.connect_timeout_secs = connect_timeout_secs if connect_timeout_secs > 0 else None

        if event_queue_size is not None:
            if event_queue_size <= 0:
                raise DellProjectorConfigError(f"Event queue size must be positive: {event_queue_size}")
            self.event_queue_size = event_queue_size

        if auto_add is not None:
            self.auto_add = auto_add

        if command_table_file is not None:
            self.command_table_file = command_table_file if command_table_file != '' else None

        if property_table_file is not None:
            self.property_table_file = property_table_file if property_table_file != '' else None

    def init_from_defaults(self) -> None:
        """Initializes the configuration from environment variables and defaults."""
        multicast_address = os.environ.get('DELL_PROJECTOR_MULTICAST_ADDRESS')
        if multicast_address is None or multicast_address == '':
            multicast_address = DDDP_MULTICAST_ADDRESS
        self.multicast_address = multicast_address
        self.discovery_port = _env_int('DELL_PROJECTOR_DISCOVERY_PORT', DDDP_PORT)
        self.command_port = _env_int('DELL_PROJECTOR_COMMAND_PORT', DEFAULT_COMMAND_PORT)
        self.connect_timeout_secs = _env_float('DELL_PROJECTOR_CONNECT_TIMEOUT', CONNECT_TIMEOUT)
        self.event_queue_size = _env_int('DELL_PROJECTOR_EVENT_QUEUE_SIZE', DEFAULT_EVENT_QUEUE_SIZE)
        if self.event_queue_size <= 0:
            raise DellProjectorConfigError(f"DELL_PROJECTOR_EVENT_QUEUE_SIZE must be positive: {self.event_queue_size}")
        auto_add_str = os.environ.get('DELL_PROJECTOR_AUTO_ADD')
        if auto_add_str is None or auto_add_str == '':
            self.auto_add = True
        else:
            self.auto_add = _parse_bool('DELL_PROJECTOR_AUTO_ADD', auto_add_str)
        self.command_table_file = os.environ.get('DELL_PROJECTOR_COMMAND_TABLE') or None
        self.property_table_file = os.environ.get('DELL_PROJECTOR_PROPERTY_TABLE') or None

    def init_from_base_config(self, base_config: DellProjectorClientConfig) -> None:
        """Initializes the configuration from a base configuration."""
        self.multicast_address = base_config.multicast_address
        self.discovery_port = base_config.discovery_port
        self.command_port = base_config.command_port
        self.connect_timeout_secs = base_config.connect_timeout_secs
        self.event_queue_size = base_config.event_queue_size
        self.auto_add = base_config.auto_add
        self.command_table_file = base_config.command_table_file
        self.property_table_file = base_config.property_table_file

    @classmethod
    def from_jsonable(
            cls,
            jsonable: JsonableDict,
            base_config: Optional[DellProjectorClientConfig]=None,
          ) -> Self:
        """Creates a configuration from a parsed JSON object. Missing keys fall back
           to base_config, then to the environment and defaults."""
        if not isinstance(jsonable, dict):
            raise DellProjectorConfigError(f"Configuration must be a JSON object: {jsonable!r}")
        try:
            auto_add = jsonable.get('auto_add')
            return cls(
                multicast_address=jsonable.get('multicast_address'),
                discovery_port=None if jsonable.get('discovery_port') is None else int(jsonable['discovery_port']),
                command_port=None if jsonable.get('command_port') is None else int(jsonable['command_port']),
                connect_timeout_secs=(
                    None if jsonable.get('connect_timeout_secs') is None else float(jsonable['connect_timeout_secs'])),
                event_queue_size=None if jsonable.get('event_queue_size') is None else int(jsonable['event_queue_size']),
                auto_add=None if auto_add is None else _parse_bool('auto_add', auto_add),
                command_table_file=jsonable.get('command_table_file'),
                property_table_file=jsonable.get('property_table_file'),
                base_config=base_config,
              )
        except (TypeError, ValueError) as e:
            raise DellProjectorConfigError(f"Invalid configuration value: {e}") from e

    def to_jsonable(self) -> JsonableDict:
        return dict(
            multicast_address=self.multicast_address,
            discovery_port=self.discovery_port,
            command_port=self.command_port,
            connect_timeout_secs=self.connect_timeout_secs,
            event_queue_size=self.event_queue_size,
            auto_add=self.auto_add,
            command_table_file=self.command_table_file,
            property_table_file=self.property_table_file,
          )

    def __str__(self) -> str:
        return (
            f"DellProjectorClientConfig("
            f"multicast={self.multicast_address}:{self.discovery_port}, "
            f"command_port={self.command_port}, "
            f"auto_add={self.auto_add!r})"
          )

    def __repr__(self) -> str:
        return str(self)
