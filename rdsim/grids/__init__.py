"""Grids define the domains on which the concentration fields are discretized.

.. autosummary::
   :nosignatures:

   ~cartesian.CartesianGrid

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from .cartesian import CartesianGrid, DimensionError

__all__ = ["CartesianGrid", "DimensionError"]
