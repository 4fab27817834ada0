#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class DellProjectorError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class DellProjectorConfigError(DellProjectorError):
  """A command table, property table or configuration value is malformed.

  Raised at initialization; no partial state is created."""
  pass

class DellProjectorConnectionError(DellProjectorError):
  """A connection to a projector could not be opened or written."""
  pass
