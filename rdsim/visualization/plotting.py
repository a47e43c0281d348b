"""Functions for plotting concentration fields with matplotlib.

.. autosummary::
   :nosignatures:

   get_color_limits
   plot_field

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np

from ..tools.docstrings import fill_in_docstring

if TYPE_CHECKING:
    from matplotlib.image import AxesImage

    from ..fields.scalar import ScalarField

_logger = logging.getLogger(__name__)


@fill_in_docstring
def get_color_limits(field: ScalarField, spread: float = 2) -> tuple[float, float]:
    """Determine the range of values that is mapped onto the colormap.

    Args:
        field (:class:`~rdsim.fields.scalar.ScalarField`):
            The field that is shown
        spread (float):
            {ARG_IMAGE_SCALE}

    Returns:
        tuple: the lower and upper limit of the color range
    """
    data = field.data
    if spread < 0:
        return float(data.min()), float(data.max())
    avg, std = data.mean(), data.std()
    return float(avg - spread * std), float(avg + spread * std)


@fill_in_docstring
def plot_field(
    field: ScalarField,
    ax=None,
    *,
    spread: float = 2,
    cmap: str = "jet",
    interpolation: str = "bilinear",
    title: str | None = None,
    colorbar: bool = False,
    **kwargs,
) -> AxesImage:
    r"""Visualize a scalar field as an image.

    Args:
        field (:class:`~rdsim.fields.scalar.ScalarField`):
            The field that is shown
        ax (:class:`matplotlib.axes.Axes`, optional):
            The axes into which the image is drawn. The current axes are used if
            omitted.
        spread (float):
            {ARG_IMAGE_SCALE}
        cmap (str):
            The colormap
        interpolation (str):
            The interpolation used by :meth:`~matplotlib.axes.Axes.imshow`. The default
            interpolates bilinearly between cell values, while `nearest` shows the
            individual cells.
        title (str, optional):
            Title of the plot. Defaults to the label of the field.
        colorbar (bool):
            Whether to add a colorbar
        \**kwargs:
            Additional arguments are passed to :meth:`~matplotlib.axes.Axes.imshow`

    Returns:
        :class:`matplotlib.image.AxesImage`: the created image
    """
    import matplotlib.pyplot as plt

    if ax is None:
        ax = plt.gca()

    vmin, vmax = get_color_limits(field, spread)
    (x0, x1), (y0, y1) = field.grid.axes_bounds
    args: dict[str, Any] = {
        "origin": "lower",
        "extent": (x0, x1, y0, y1),
        "cmap": cmap,
        "vmin": vmin,
        "vmax": vmax,
        "interpolation": interpolation,
    }
    args.update(kwargs)

    # the first axis of the data corresponds to x, which matplotlib shows horizontally
    image = ax.imshow(field.data.T, **args)
    if title is None:
        title = field.label
    if title:
        ax.set_title(title)
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    if colorbar:
        ax.figure.colorbar(image, ax=ax)
    _logger.debug("Plotted field with color range [%g, %g]", vmin, vmax)
    return image
