"""Provides support for mypy type checking of the package.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

from typing import Any, Union

import numpy as np

# array types:
FloatingArray = np.ndarray[Any, np.dtype[np.floating]]
FloatOrArray = Union[float, FloatingArray]
CellIndex = tuple[int, int]
