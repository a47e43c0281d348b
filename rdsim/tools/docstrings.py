"""Methods for automatic transformation of docstrings.

.. autosummary::
   :nosignatures:

   get_text_block
   fill_in_docstring

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import re
import textwrap
from typing import TypeVar

DOCSTRING_REPLACEMENTS = {
    # description of function arguments
    "ARG_TRACKER_INTERRUPT": """
        Determines when the tracker interrupts the simulation. A single number
        determines an interval (measured in the simulation time unit) of regular
        interruption. A string of the form 'steps(N)' or 'steps(N, START)'
        interrupts every N steps, beginning at step START. Other strings are
        interpreted as a duration in real time (in seconds). Lists of numbers
        give fixed simulation times at which the tracker is called. Finally, an
        instance of the classes defined in :mod:`~rdsim.trackers.interrupts` can
        be given for more control.
        """,
    "ARG_DIFFUSION_COEFFICIENT": """
        The diffusivity on the faces of the grid cells. A single number implies
        isotropic diffusion, a sequence of numbers sets a uniform diffusivity for
        each axis, and an instance of
        :class:`~rdsim.fields.face.FaceVectorField` allows for spatially varying
        and anisotropic coefficients.
        """,
    "ARG_IMAGE_SCALE": """
        Determines the color range of the image. Positive values of `spread`
        center the range on the mean of the field and extend it by `spread`
        standard deviations in either direction. Negative values show the full
        range between minimum and maximum.
        """,
}
DOCSTRING_REPLACEMENTS = {k: v[1:-1] for k, v in DOCSTRING_REPLACEMENTS.items()}


def get_text_block(identifier: str) -> str:
    """Return a single text block.

    Args:
        identifier (str): The name of the text block

    Returns:
        str: the text block as one long line.
    """
    raw_text = DOCSTRING_REPLACEMENTS[identifier]
    return "".join(textwrap.dedent(raw_text))


TFunc = TypeVar("TFunc")


def fill_in_docstring(f: TFunc) -> TFunc:
    """Decorator that replaces text in the docstring of a function."""
    if f.__doc__ is None:
        return f

    tw = textwrap.TextWrapper(
        width=88, expand_tabs=True, replace_whitespace=True, drop_whitespace=True
    )

    for name, value in DOCSTRING_REPLACEMENTS.items():

        def repl(matchobj) -> str:
            """Helper function replacing token in docstring."""
            tw.initial_indent = tw.subsequent_indent = matchobj.group(1)
            return tw.fill(textwrap.dedent(value))

        token = "{" + name + "}"
        f.__doc__ = re.sub(  # type: ignore
            f"^([ \t]*){token}",
            repl,
            f.__doc__,
            flags=re.MULTILINE,
        )
    return f
