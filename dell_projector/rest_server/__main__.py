#!/usr/bin/env python3

# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Runs the Dell projector REST server under uvicorn.

    DELL_PROJECTOR_CONFIG=./dell_projector_config.json python -m dell_projector.rest_server
"""

from __future__ import annotations

import os

import uvicorn

from .app import proj_api

def main() -> None:
    host = os.environ.get("DELL_PROJECTOR_REST_HOST", "127.0.0.1")
    port = int(os.environ.get("DELL_PROJECTOR_REST_PORT", "8000"))
    uvicorn.run(proj_api, host=host, port=port)

if __name__ == "__main__":
    main()
