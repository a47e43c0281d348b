"""Package that defines the reaction-diffusion systems.

.. autosummary::
   :nosignatures:

   ~brusselator.BrusselatorParameters
   ~brusselator.BrusselatorPDE

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from .brusselator import BrusselatorParameters, BrusselatorPDE

__all__ = ["BrusselatorParameters", "BrusselatorPDE"]
