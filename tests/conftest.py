"""Fixtures and command line options shared by all tests.

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from rdsim import config
from rdsim.tools.numba import random_seed

plt.switch_backend("agg")  # never open windows


@pytest.fixture(autouse=True)
def _numerical_environment():
    """Run each test single-threaded with strict floating point checks."""
    np.seterr(all="raise", under="ignore")
    with config({"numba.multithreading": "never"}):
        yield
    plt.close("all")


@pytest.fixture(name="rng")
def random_generator():
    """:class:`~numpy.random.Generator`: reproducible random numbers

    The legacy generators of numpy and of compiled code are seeded as well.
    """
    random_seed(0)
    return np.random.default_rng(0)


def pytest_addoption(parser):
    """Add the option enabling slow tests."""
    parser.addoption(
        "--runslow",
        action="store_true",
        default=False,
        help="also run tests marked as `slow`, e.g., full experiments",
    )


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless they were requested explicitly."""
    if config.getoption("--runslow"):
        return
    skip_slow = pytest.mark.skip(reason="requires the --runslow option")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)
