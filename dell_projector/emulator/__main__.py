#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Runs a Dell projector emulator until interrupted.

    python -m dell_projector.emulator --uuid DEADBEEF --port 41794
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from ..constants import DEFAULT_COMMAND_PORT, DEFAULT_ANNOUNCE_INTERVAL
from .emulator_impl import DellProjectorEmulator

async def run_emulator(args: argparse.Namespace) -> None:
    emulator = DellProjectorEmulator(
        uuid=args.uuid,
        name=args.name,
        bind_addr=args.bind,
        port=args.port,
        announce_interval=None if args.announce_interval <= 0 else args.announce_interval,
      )
    await emulator.run()

def main() -> None:
    parser = argparse.ArgumentParser(description="Emulate a Dell networked projector")
    parser.add_argument("--uuid", default="DEADBEEF", help="UUID announced by the projector")
    parser.add_argument("--name", default=None, help="Projector name reported in status responses")
    parser.add_argument("--bind", default=None, help="Address to listen on for commands (default: all)")
    parser.add_argument("--port", type=int, default=DEFAULT_COMMAND_PORT, help="TCP command port")
    parser.add_argument(
        "--announce-interval",
        type=float,
        default=DEFAULT_ANNOUNCE_INTERVAL,
        help="Seconds between DDDP announcements; 0 disables announcing",
      )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        asyncio.run(run_emulator(args))
    except KeyboardInterrupt:
        pass

if __name__ == "__main__":
    main()
