"""Defines fields, which contain the actual data stored on a discrete grid.

.. autosummary::
   :nosignatures:

   ~scalar.ScalarField
   ~face.FaceVectorField
   ~store.FieldStore

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from .face import FaceVectorField
from .scalar import ScalarField
from .store import FieldStore

__all__ = ["FaceVectorField", "FieldStore", "ScalarField"]
