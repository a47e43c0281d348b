"""
.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import dataclasses
import math

import numpy as np
import pytest

from rdsim.fields import FaceVectorField, FieldStore
from rdsim.grids import CartesianGrid
from rdsim.pdes import BrusselatorParameters, BrusselatorPDE


@pytest.mark.parametrize("mu", [0.04, 0.1, 0.98])
def test_brusselator_parameters(mu):
    """Test the derived parameters."""
    p = BrusselatorParameters(mu=mu)
    assert p.k == 1 and p.ka == 4.5 and p.D == 8
    assert p.nu == pytest.approx(math.sqrt(1 / 8))
    assert p.kb_crit == pytest.approx((1 + 4.5 / math.sqrt(8)) ** 2)
    assert p.kb == pytest.approx((1 + 4.5 * math.sqrt(1 / 8)) ** 2 * (1 + mu))
    assert p.steady_state == pytest.approx((4.5, p.kb / 4.5))
    assert p.critical_wavenumber == pytest.approx(math.sqrt(4.5 / math.sqrt(8)))


def test_brusselator_parameters_immutable():
    """Test that parameters cannot be modified after creation."""
    p = BrusselatorParameters(k=2, mu=0.1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.mu = 0.2
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.kb = 1

    p2 = p.with_mu(0.98)
    assert p2.k == 2
    assert p2.mu == 0.98
    assert p2.kb == pytest.approx(p.kb_crit * 1.98)
    assert p.mu == 0.1
    assert p2 == BrusselatorParameters(k=2, mu=0.98)

    with pytest.raises(ValueError):
        BrusselatorParameters(D=0)
    with pytest.raises(TypeError):
        BrusselatorParameters(kb=3)


@pytest.mark.parametrize("k", [1, 0.3])
def test_brusselator_reaction_split(k, rng):
    """Test that the split reaction terms reproduce the full reaction."""
    grid = CartesianGrid.square(8, 8)
    pde = BrusselatorPDE(BrusselatorParameters(k=k, mu=0.1))
    state = FieldStore(
        grid, rng.uniform(0, 10, size=grid.shape), rng.uniform(0, 10, size=grid.shape)
    )
    rate1, rate2 = pde.reaction_rates(state)

    pde.evaluate_first_species(state)
    np.testing.assert_allclose(
        state.r.data + state.beta.data * state.C1.data,
        rate1.data,
        rtol=1e-10,
        atol=1e-9,
    )
    np.testing.assert_allclose(state.r.data, k * 4.5)

    pde.evaluate_second_species(state)
    np.testing.assert_allclose(
        state.r.data + state.beta.data * state.C2.data,
        rate2.data,
        rtol=1e-10,
        atol=1e-9,
    )
    np.testing.assert_allclose(state.beta.data, -k * state.C1.data**2)


def test_brusselator_steady_state():
    """Test that the stationary state is a fixed point of the reactions."""
    grid = CartesianGrid.square(4, 4)
    pde = BrusselatorPDE(BrusselatorParameters(mu=0.98))
    state = FieldStore(grid, *pde.parameters.steady_state)
    rate1, rate2 = pde.reaction_rates(state)
    np.testing.assert_allclose(rate1.data, 0, atol=1e-12)
    np.testing.assert_allclose(rate2.data, 0, atol=1e-12)

    pde.evaluate_first_species(state)
    np.testing.assert_allclose(
        state.r.data + state.beta.data * state.C1.data, 0, atol=1e-12
    )
    pde.evaluate_second_species(state)
    np.testing.assert_allclose(
        state.r.data + state.beta.data * state.C2.data, 0, atol=1e-12
    )


def test_brusselator_diffusivities():
    """Test the diffusivities of the two species."""
    grid = CartesianGrid.square(4, 4)
    d1, d2 = BrusselatorPDE().get_diffusivities(grid)
    assert d1 == 1
    assert isinstance(d2, FaceVectorField)
    np.testing.assert_allclose(d2.data_x, 8)
    np.testing.assert_allclose(d2.data_y, 8)

    pde = BrusselatorPDE(diffusivity=(2, 3))
    assert pde.diffusivity == (2, 3)
    _, d2 = pde.get_diffusivities(grid)
    np.testing.assert_allclose(d2.data_y, 3)
    assert BrusselatorPDE(diffusivity=5).diffusivity == (5, 5)


def test_brusselator_expression():
    """Test the string representation of the equations."""
    pde = BrusselatorPDE(BrusselatorParameters(mu=0.1))
    assert set(pde.expression) == {"C1", "C2"}
    assert "∇²C1" in pde.expression["C1"]
    assert pde.expression["C2"].startswith("8 * ∇²C2")
    assert "mu=0.1" in repr(pde)
