"""Helpers for reporting the progress of simulations.

.. autosummary::
   :nosignatures:

   get_progress_bar_class

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import tqdm

from .misc import module_available


def get_progress_bar_class(fancy: bool = True) -> type[tqdm.tqdm]:
    """Choose the class used to display progress bars.

    Args:
        fancy (bool):
            Whether to use a widget-based progress bar in jupyter notebooks. This
            requires :mod:`ipywidgets` and falls back to a text bar otherwise.

    Returns:
        A subclass of :class:`tqdm.tqdm`
    """
    if fancy and module_available("ipywidgets"):
        from tqdm.auto import tqdm as widget_bar

        return widget_bar  # type: ignore
    return tqdm.tqdm
