"""Defines the container holding the concentration fields of a simulation.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np

from ..grids.cartesian import CartesianGrid
from .scalar import ScalarField


class FieldStore:
    """Collection of the two concentration fields and the auxiliary reaction fields.

    The store owns the persistent concentration fields `C1` and `C2`, which are
    modified in-place during a simulation. It also provides the auxiliary fields `r`
    (source term) and `beta` (linear coefficient), which are overwritten in every
    integration step and thus carry no meaning between steps.
    """

    labels = ("C1", "C2")

    def __init__(
        self,
        grid: CartesianGrid,
        c1: ScalarField | np.ndarray | float | None = None,
        c2: ScalarField | np.ndarray | float | None = None,
    ):
        """
        Args:
            grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
                The grid on which all fields are defined
            c1:
                Initial values of the first concentration field
            c2:
                Initial values of the second concentration field
        """
        self.grid = grid
        self.C1 = ScalarField(grid, label="C1")
        self.C2 = ScalarField(grid, label="C2")
        if c1 is not None:
            self.C1.data = c1
        if c2 is not None:
            self.C2.data = c2

        # auxiliary fields used during a single integration step
        self.r = ScalarField(grid, label="r")
        self.beta = ScalarField(grid, label="beta")

    def __len__(self) -> int:
        return len(self.labels)

    def __iter__(self) -> Iterator[ScalarField]:
        """Iterate over the concentration fields."""
        yield self.C1
        yield self.C2

    def __getitem__(self, label: str) -> ScalarField:
        """Return the concentration field with the given label."""
        if label not in self.labels:
            raise KeyError(f"Field `{label}` is not in {self.labels}")
        return getattr(self, label)  # type: ignore

    def __repr__(self):
        return f"{self.__class__.__name__}(grid={self.grid!r})"

    def __eq__(self, other):
        if not isinstance(other, FieldStore):
            return NotImplemented
        return self.grid == other.grid and self.C1 == other.C1 and self.C2 == other.C2

    @property
    def fields(self) -> list[ScalarField]:
        """list: the concentration fields"""
        return [self.C1, self.C2]

    @property
    def data(self) -> np.ndarray:
        """:class:`~numpy.ndarray`: stacked copy of the concentration data"""
        return np.stack([self.C1.data, self.C2.data])

    @property
    def is_finite(self) -> bool:
        """bool: whether all concentrations are finite"""
        return self.C1.is_finite and self.C2.is_finite

    @property
    def averages(self) -> list[float]:
        """list: the averages of all concentration fields"""
        return [field.average for field in self]

    def iter_cells(self):
        """Iterate over the cells of the underlying grid."""
        return self.grid.iter_cells()

    def copy(self) -> FieldStore:
        """Return a copy of the concentration fields.

        The auxiliary fields of the copy are freshly allocated.
        """
        return self.__class__(self.grid, self.C1.data.copy(), self.C2.data.copy())
