"""Functions for visualizing concentration fields.

.. autosummary::
   :nosignatures:

   ~plotting.get_color_limits
   ~plotting.plot_field

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from .plotting import get_color_limits, plot_field

__all__ = ["get_color_limits", "plot_field"]
