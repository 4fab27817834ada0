# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
A REST FastAPI server that discovers and controls Dell projectors.
"""
from .app import proj_api, get_driver, get_driver_config, get_raw_config, get_recent_events
