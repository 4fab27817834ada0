#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A REST FastAPI server that discovers and controls Dell projectors.
"""

from __future__ import annotations

from fastapi import FastAPI

import time
import os
import json
import asyncio
from collections import deque

from contextlib import asynccontextmanager

from .logger import logger
from ..internal_types import *
from .. import (
    DellProjectorDriver,
    DellProjectorClientConfig,
    ProjectorEvent,
    EventKind,
  )

from .api import router as api_router

DEFAULT_CONFIG_FILE = "dell_projector_config.json"

MAX_RECENT_EVENTS = 100
"""Number of driver events remembered for GET /api/v1/events"""

async def drain_events(driver: DellProjectorDriver, recent_events: Deque[ProjectorEvent]) -> None:
    """Consumes driver events for the lifetime of the server"""
    async for event in driver.events:
        if event.kind == EventKind.DEVICE_REMOVED:
            logger.info(f"Projector went away: {event.projector}")
        else:
            logger.debug(f"Driver event: {event}")
        recent_events.append(event)

def load_raw_config() -> JsonableDict:
    """Reads the server's JSON config file, if there is one.

    The file is named by DELL_PROJECTOR_CONFIG, else ./dell_projector_config.json
    is used if it exists. With no file, the driver is configured from the
    environment alone.
    """
    config_file = os.environ.get("DELL_PROJECTOR_CONFIG") or None
    if config_file is None and os.path.exists(DEFAULT_CONFIG_FILE):
        config_file = DEFAULT_CONFIG_FILE
    if config_file is None:
        return {}
    logger.info(f"Loading configuration from {config_file}")
    with open(config_file, "r") as f:
        return json.load(f)

@asynccontextmanager
async def fastapi_lifetime(app: FastAPI) -> AsyncIterator[None]:
    """
    Starts the projector driver for the lifetime of the FastAPI app.
    """
    raw_config = load_raw_config()
    driver_config = DellProjectorClientConfig.from_jsonable(raw_config)
    recent_events: Deque[ProjectorEvent] = deque(maxlen=MAX_RECENT_EVENTS)
    driver = DellProjectorDriver(config=driver_config)
    app.state.raw_config = raw_config
    app.state.driver_config = driver_config
    app.state.recent_events = recent_events
    app.state.driver = driver
    app.state.launch_time = time.monotonic()

    drain_task = asyncio.create_task(drain_events(driver, recent_events))
    try:
        async with driver:
            driver.start_polling()
            logger.info(f"Projector REST server ready; serving {driver}")
            yield
            logger.info("Projector REST server stopping")
    finally:
        # ends the drain task even if the driver failed to initialize
        driver.events.close()
        await drain_task

proj_api = FastAPI(lifespan=fastapi_lifetime)
proj_api.include_router(api_router)

def get_driver() -> DellProjectorDriver:
    return proj_api.state.driver

def get_driver_config() -> DellProjectorClientConfig:
    return proj_api.state.driver_config

def get_raw_config() -> JsonableDict:
    return proj_api.state.raw_config

def get_recent_events() -> Deque[ProjectorEvent]:
    return proj_api.state.recent_events
