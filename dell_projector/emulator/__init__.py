# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Dell Projector emulator.

Provides a simple emulation of a Dell projector on TCP/IP.
"""

from .emulator_impl import DellProjectorEmulator
from .session import DellProjectorEmulatorSession, split_frames
