r"""Parameter sweeps of the Brusselator across its pattern-forming instability.

The experiment initializes both concentrations at the homogeneous stationary state of
the Brusselator, perturbs the second species with weak uniform noise, and integrates
the system up to a fixed final time. Runs are performed for several values of the
control parameter :math:`\mu`, which measures the distance to the instability:

* :math:`\mu = 0.04`: weak instability close to onset
* :math:`\mu = 0.1`: stripe patterns
* :math:`\mu = 0.98`: hexagonal patterns

During the run, a diagnostic line is written every 10 steps and the final state is
stored in a file named after the control parameter.

.. autosummary::
   :nosignatures:

   ExperimentSettings
   ExperimentResult
   get_initial_state
   run_experiment
   run_sweep
   main

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import IO, Any

import numpy as np

from .fields.scalar import ScalarField
from .fields.store import FieldStore
from .grids.cartesian import CartesianGrid
from .pdes.brusselator import BrusselatorParameters, BrusselatorPDE
from .solvers.controller import Controller
from .solvers.splitting import OperatorSplittingSolver
from .trackers.base import TrackerBase
from .trackers.interrupts import FixedInterrupts, StepInterrupts
from .trackers.trackers import (
    ConsistencyTracker,
    DiagnosticsTracker,
    ProgressTracker,
    SnapshotTracker,
)

__all__ = [
    "MU_VALUES",
    "ExperimentResult",
    "ExperimentSettings",
    "get_initial_state",
    "run_experiment",
    "run_sweep",
]

_logger = logging.getLogger(__name__)

MU_VALUES: tuple[float, ...] = (0.04, 0.1, 0.98)
"""tuple: control parameters of the three regimes studied by default"""


@dataclasses.dataclass(frozen=True)
class ExperimentSettings:
    """Numerical and output settings of a single run."""

    resolution: int = 128  # number of cells along each axis
    domain_size: float = 64.0  # side length of the square domain
    periodic: bool = False  # whether the boundaries are periodic instead of no-flux
    t_end: float = 3000.0  # final time of the simulation
    dt_max: float = 1.0  # maximal time step
    tolerance: float = 1e-4  # residual tolerance of the implicit diffusion steps
    noise_amplitude: float = 0.01  # amplitude of the initial perturbation
    diagnostics_every: int = 10  # number of steps between diagnostic lines
    diagnostics_start: int = 1  # step of the first diagnostic line
    seed: int | None = 0  # seed of the random perturbation; None is not reproducible
    output_dir: str | None = "."  # folder of the final snapshot; None disables it
    progress: bool = False  # whether to show a progress bar

    def __post_init__(self):
        if self.t_end < 0:
            raise ValueError("`t_end` must not be negative")
        if self.noise_amplitude < 0:
            raise ValueError("`noise_amplitude` must not be negative")

    def get_grid(self) -> CartesianGrid:
        """:class:`~rdsim.grids.cartesian.CartesianGrid`: the simulation domain"""
        return CartesianGrid.square(self.domain_size, self.resolution, self.periodic)


@dataclasses.dataclass
class ExperimentResult:
    """Outcome of a single run of the experiment."""

    parameters: BrusselatorParameters
    state: FieldStore
    diagnostics: dict[str, Any]
    snapshot: Path | None = None

    @property
    def mu(self) -> float:
        """float: the control parameter of the run"""
        return self.parameters.mu


def get_initial_state(
    grid: CartesianGrid,
    parameters: BrusselatorParameters,
    noise_amplitude: float = 0.01,
    rng: np.random.Generator | None = None,
) -> FieldStore:
    """Create the perturbed homogeneous stationary state.

    Args:
        grid (:class:`~rdsim.grids.cartesian.CartesianGrid`):
            The simulation domain
        parameters (:class:`~rdsim.pdes.brusselator.BrusselatorParameters`):
            Parameters determining the stationary state
        noise_amplitude (float):
            The second species is perturbed by values drawn uniformly from the interval
            `[-noise_amplitude, noise_amplitude]` independently in each cell
        rng (:class:`~numpy.random.Generator`):
            Random number generator (default: :func:`~numpy.random.default_rng()`)

    Returns:
        :class:`~rdsim.fields.store.FieldStore`: the initial concentrations
    """
    c1, c2 = parameters.steady_state
    noise = ScalarField.random_uniform(
        grid, -noise_amplitude, noise_amplitude, rng=rng
    )
    return FieldStore(grid, c1, c2 + noise.data)


def run_experiment(
    mu: float,
    settings: ExperimentSettings | None = None,
    parameters: BrusselatorParameters | None = None,
    *,
    trackers: Sequence[TrackerBase] | None = None,
    stream: IO[str] | None = None,
) -> ExperimentResult:
    """Simulate the Brusselator for a single control parameter.

    Args:
        mu (float):
            The control parameter
        settings (:class:`ExperimentSettings`, optional):
            Numerical and output settings
        parameters (:class:`~rdsim.pdes.brusselator.BrusselatorParameters`, optional):
            The reaction parameters. The control parameter is replaced by `mu`.
        trackers (list, optional):
            Additional trackers, which are handled after the built-in ones
        stream:
            Stream receiving the diagnostic lines. Defaults to :data:`sys.stderr`.

    Returns:
        :class:`ExperimentResult`: the final state and diagnostic information
    """
    if settings is None:
        settings = ExperimentSettings()
    if parameters is None:
        parameters = BrusselatorParameters()
    parameters = parameters.with_mu(mu)
    _logger.info("Start run with mu=%g (kb=%g)", mu, parameters.kb)

    grid = settings.get_grid()
    rng = np.random.default_rng(settings.seed)
    state = get_initial_state(grid, parameters, settings.noise_amplitude, rng=rng)

    tracker_list: list[TrackerBase] = [ConsistencyTracker()]
    if settings.progress:
        tracker_list.append(ProgressTracker())
    interrupt = StepInterrupts(settings.diagnostics_every, settings.diagnostics_start)
    tracker_list.append(DiagnosticsTracker(interrupt, stream=stream))
    snapshot_tracker = None
    if settings.output_dir is not None:
        filename = Path(settings.output_dir) / f"mu-{mu:g}.npz"
        snapshot_tracker = SnapshotTracker(filename, FixedInterrupts([settings.t_end]))
        tracker_list.append(snapshot_tracker)
    if trackers:
        tracker_list.extend(trackers)

    solver = OperatorSplittingSolver(
        BrusselatorPDE(parameters), tolerance=settings.tolerance
    )
    controller = Controller(
        solver, t_range=settings.t_end, tracker=tracker_list, dt_max=settings.dt_max
    )
    final_state = controller.run(state)

    snapshot = None
    if snapshot_tracker is not None and snapshot_tracker.written:
        snapshot = snapshot_tracker.written[-1]
    return ExperimentResult(parameters, final_state, controller.diagnostics, snapshot)


def run_sweep(
    mu_values: Sequence[float] = MU_VALUES,
    settings: ExperimentSettings | None = None,
    parameters: BrusselatorParameters | None = None,
    **kwargs,
) -> list[ExperimentResult]:
    """Run the experiment for several control parameters one after the other.

    Every run uses its own random number generator initialized with the seed given in
    `settings`, so runs do not influence each other.

    Args:
        mu_values (list of float):
            The control parameters
        settings (:class:`ExperimentSettings`, optional):
            Numerical and output settings shared by all runs
        parameters (:class:`~rdsim.pdes.brusselator.BrusselatorParameters`, optional):
            The reaction parameters
        **kwargs:
            Additional arguments are forwarded to :func:`run_experiment`

    Returns:
        list of :class:`ExperimentResult`: the results in the order of `mu_values`
    """
    return [run_experiment(mu, settings, parameters, **kwargs) for mu in mu_values]


def main(argv: Sequence[str] | None = None) -> int:
    """Run the parameter sweep from the command line.

    Args:
        argv (list of str): The command line arguments

    Returns:
        int: the exit code
    """
    defaults = ExperimentSettings()
    parser = argparse.ArgumentParser(
        description="Simulate pattern formation in the Brusselator.",
    )
    parser.add_argument(
        "--mu",
        type=float,
        nargs="+",
        default=list(MU_VALUES),
        help="Control parameters of the runs",
    )
    parser.add_argument(
        "--resolution", type=int, default=defaults.resolution, help="Cells per axis"
    )
    parser.add_argument(
        "--t-end", type=float, default=defaults.t_end, help="Final simulation time"
    )
    parser.add_argument(
        "--seed", type=int, default=defaults.seed, help="Seed of the random noise"
    )
    parser.add_argument(
        "--output", default=defaults.output_dir, help="Folder of the final snapshots"
    )
    parser.add_argument(
        "--progress", action="store_true", default=False, help="Show a progress bar"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False, help="Log more details"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    settings = dataclasses.replace(
        defaults,
        resolution=args.resolution,
        t_end=args.t_end,
        seed=args.seed,
        output_dir=args.output,
        progress=args.progress,
    )
    results = run_sweep(args.mu, settings)
    return 0 if all(r.diagnostics["controller"]["successful"] for r in results) else 1


if __name__ == "__main__":
    sys.exit(main())
