"""
.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import io

import numpy as np
import pytest

from rdsim import (
    MU_VALUES,
    BrusselatorParameters,
    DataTracker,
    ExperimentSettings,
    get_initial_state,
    run_experiment,
    run_sweep,
)
from rdsim.experiment import main


def test_initial_state(rng):
    """Test the perturbed stationary state."""
    settings = ExperimentSettings(resolution=16)
    parameters = BrusselatorParameters(mu=0.1)
    state = get_initial_state(settings.get_grid(), parameters, 0.01, rng=rng)
    c1, c2 = parameters.steady_state
    assert state.grid.shape == (16, 16)
    np.testing.assert_allclose(state.C1.data, c1)
    assert np.all(np.abs(state.C2.data - c2) <= 0.01)
    assert state.C2.fluctuations > 0


def test_experiment_settings():
    """Test the validation of the settings."""
    settings = ExperimentSettings()
    assert settings.resolution == 128
    assert settings.get_grid().axes_bounds == ((0, 64), (0, 64))
    assert MU_VALUES == (0.04, 0.1, 0.98)

    with pytest.raises(ValueError):
        ExperimentSettings(t_end=-1)
    with pytest.raises(ValueError):
        ExperimentSettings(noise_amplitude=-1)


def test_run_experiment(tmp_path):
    """Test a short run of the experiment."""
    settings = ExperimentSettings(resolution=16, t_end=20, output_dir=str(tmp_path))
    stream = io.StringIO()
    averages = DataTracker(lambda state: state.C1.average, interrupts=10)
    result = run_experiment(0.1, settings, stream=stream, trackers=[averages])

    assert result.mu == 0.1
    assert result.parameters == BrusselatorParameters(mu=0.1)
    assert result.state.is_finite
    assert result.diagnostics["controller"]["successful"]
    assert result.diagnostics["controller"]["t_final"] == pytest.approx(20)
    assert result.diagnostics["controller"]["steps"] == 20
    assert result.diagnostics["solver"]["unconverged_solves"] == 0
    assert averages.times == [0, 10, 20]

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("1 1 1 ")
    assert lines[1].startswith("11 11 1 ")

    assert result.snapshot == tmp_path / "mu-0.1.npz"
    with np.load(result.snapshot) as data:
        np.testing.assert_allclose(data["C1"], result.state.C1.data)
        np.testing.assert_allclose(data["C2"], result.state.C2.data)
        assert data["t"] == pytest.approx(20)


def test_run_experiment_reproducible():
    """Test that runs with the same seed agree."""
    settings = ExperimentSettings(resolution=8, t_end=3, output_dir=None)
    stream = io.StringIO()
    res1 = run_experiment(0.98, settings, stream=stream)
    res2 = run_experiment(0.98, settings, stream=stream)
    assert res1.snapshot is None
    np.testing.assert_allclose(res1.state.data, res2.state.data)

    settings = ExperimentSettings(resolution=8, t_end=3, output_dir=None, seed=1)
    res3 = run_experiment(0.98, settings, stream=stream)
    assert not np.allclose(res1.state.data, res3.state.data)


def test_run_sweep():
    """Test running the experiment for several control parameters."""
    settings = ExperimentSettings(resolution=8, t_end=1, output_dir=None)
    parameters = BrusselatorParameters(k=0.5)
    results = run_sweep(settings=settings, parameters=parameters, stream=io.StringIO())
    assert [r.mu for r in results] == list(MU_VALUES)
    assert all(r.parameters.k == 0.5 for r in results)
    kbs = [r.parameters.kb for r in results]
    assert kbs == sorted(kbs)


def test_main(tmp_path, capsys):
    """Test the command line interface."""
    args = ["--mu", "0.1", "0.98", "--resolution", "8", "--t-end", "2"]
    assert main(args + ["--output", str(tmp_path)]) == 0
    assert (tmp_path / "mu-0.1.npz").is_file()
    assert (tmp_path / "mu-0.98.npz").is_file()
    captured = capsys.readouterr()
    assert "1 1 1 " in captured.err


@pytest.mark.slow
@pytest.mark.parametrize("mu", MU_VALUES)
def test_full_experiment(mu, tmp_path):
    """Test the complete simulation for the studied control parameters."""
    settings = ExperimentSettings(output_dir=str(tmp_path))
    result = run_experiment(mu, settings, stream=io.StringIO())
    assert result.diagnostics["controller"]["successful"]
    assert result.diagnostics["controller"]["steps"] == 3000
    assert result.state.is_finite
    assert result.state.C1.fluctuations > 0
    assert (tmp_path / f"mu-{mu:g}.npz").is_file()


@pytest.mark.slow
def test_pattern_contrast():
    """Test that patterns far from onset have a larger amplitude than close to it."""
    settings = ExperimentSettings(output_dir=None)
    weak, strong = run_sweep([0.04, 0.98], settings, stream=io.StringIO())

    kb_crit = BrusselatorParameters().kb_crit
    assert weak.parameters.kb == pytest.approx(kb_crit * 1.04)
    assert strong.parameters.kb == pytest.approx(kb_crit * 1.98)
    assert weak.parameters.kb == pytest.approx(6.98, abs=0.01)
    assert strong.parameters.kb == pytest.approx(13.29, abs=0.01)

    for result in (weak, strong):
        assert result.diagnostics["controller"]["steps"] == 3000
        assert result.diagnostics["solver"]["unconverged_solves"] == 0
    assert strong.state.C1.fluctuations > 2 * weak.state.C1.fluctuations
