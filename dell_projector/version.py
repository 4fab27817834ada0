# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Automatically-managed version of the package"""

__version__ = "0.2.0"
