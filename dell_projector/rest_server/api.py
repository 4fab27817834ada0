#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Routes for the Dell projector REST API.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from .logger import logger
from ..internal_types import *
from .. import (
    DellProjectorDriver,
    DellProjectorConnectionError,
    Projector,
    ProjectorEvent,
    CommandTable,
  )

router = APIRouter(prefix="/api/v1")

class CommandRequest(BaseModel):
    command: str
    """A dotted command path; e.g., "Volume.Up" """

def _driver() -> DellProjectorDriver:
    from .app import get_driver
    return get_driver()

def _recent_events() -> Deque[ProjectorEvent]:
    from .app import get_recent_events
    return get_recent_events()

def _command_table(driver: DellProjectorDriver) -> CommandTable:
    if driver.command_table is None:
        raise HTTPException(status_code=503, detail="Driver is not initialized")
    return driver.command_table

def _lookup(driver: DellProjectorDriver, uuid: str) -> Projector:
    try:
        return driver.get_projector(uuid)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown projector: {uuid}")

@router.get("/projectors", response_model=None)
async def list_projectors(driver: DellProjectorDriver = Depends(_driver)) -> List[JsonableDict]:
    return [ p.to_jsonable() for p in driver.projectors() ]

@router.get("/projectors/{uuid}", response_model=None)
async def get_projector(uuid: str, driver: DellProjectorDriver = Depends(_driver)) -> JsonableDict:
    return _lookup(driver, uuid).to_jsonable()

@router.post("/projectors/{uuid}/command", response_model=None)
async def send_command(
        uuid: str,
        request: CommandRequest,
        driver: DellProjectorDriver = Depends(_driver),
      ) -> JsonableDict:
    projector = _lookup(driver, uuid)
    if request.command not in _command_table(driver):
        raise HTTPException(status_code=404, detail=f"Unknown command: {request.command}")
    try:
        command = await driver.send_command(uuid, request.command)
    except DellProjectorConnectionError as e:
        logger.warning(f"Command {request.command} to {projector} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return dict(command=command.name, opcode=command.opcode, projector=projector.to_jsonable())

@router.post("/projectors/{uuid}/status", response_model=None)
async def request_status(uuid: str, driver: DellProjectorDriver = Depends(_driver)) -> JsonableDict:
    projector = _lookup(driver, uuid)
    try:
        await driver.request_status(uuid)
    except DellProjectorConnectionError as e:
        logger.warning(f"Status request to {projector} failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return projector.to_jsonable()

@router.get("/commands", response_model=None)
async def list_commands(driver: DellProjectorDriver = Depends(_driver)) -> Dict[str, str]:
    command_table = _command_table(driver)
    return { name: command_table.get_opcode(name) for name in command_table.names() }

@router.get("/events", response_model=None)
async def list_events(recent_events: Deque[ProjectorEvent] = Depends(_recent_events)) -> List[JsonableDict]:
    return [ e.to_jsonable() for e in recent_events ]
