"""Package containing several tools required in rdsim.

.. autosummary::
   :toctree:

   config
   docstrings
   misc
   numba
   output
   typing

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""
