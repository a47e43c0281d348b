"""Compilation of the numerical kernels with numba.

All compiled functions of the package are created with :func:`jit`, which applies the
flags collected in :data:`rdsim.config`. Compilation happens lazily on the first call,
and :func:`get_compilation_count` lets the controller report when it happened.

.. autosummary::
   :nosignatures:

   Counter
   numba_environment
   jit
   get_compilation_count
   random_seed

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
from numba.extending import is_jitted

from .. import config
from .misc import decorator_arguments

if TYPE_CHECKING:
    from collections.abc import Callable

_logger = logging.getLogger(__name__)

# fastmath flags that do not change how infinities and NaN are treated
SAFE_FASTMATH_FLAGS = {"nsz", "arcp", "contract", "afn", "reassoc"}


class Counter:
    """Mutable integer that can be shared by importing it.

    Importing a plain integer would copy its value, so other modules would never see
    increments. Instances of this class are read with :func:`int` instead.
    """

    def __init__(self, value: int = 0):
        self.value = value

    def increment(self) -> None:
        """Increase the count by one."""
        self.value += 1

    def __int__(self) -> int:
        return self.value

    def __eq__(self, other) -> bool:
        return self.value == int(other)

    def __repr__(self) -> str:
        return str(self.value)


JIT_COUNT = Counter()
"""Counter: number of functions wrapped by :func:`jit` so far"""

_DISPATCHERS: list = []  # functions wrapped by `jit`, which compile on first call


TFunc = TypeVar("TFunc", bound="Callable")


def numba_environment() -> dict[str, Any]:
    """Collect information on how numba compiles functions.

    Returns:
        dict: the numba version, the compilation flags, and the threading setup
    """
    try:
        threading_layer = nb.threading_layer()
    except ValueError:
        threading_layer = None  # not chosen before the first parallel function runs

    return {
        "version": nb.__version__,
        "multithreading": config["numba.multithreading"],
        "fastmath": config["numba.fastmath"],
        "debug": config["numba.debug"],
        "threading_layer": threading_layer,
        "omp_num_threads": os.environ.get("OMP_NUM_THREADS"),
        "num_threads": nb.config.NUMBA_NUM_THREADS,
    }


@decorator_arguments
def jit(function: TFunc, signature=None, parallel: bool = False, **kwargs) -> TFunc:
    """Compile a function in nopython mode using the package configuration.

    The decorator can be used bare, as `@jit`, or with arguments, as
    `@jit(parallel=True)`. Functions that are already compiled are returned unchanged.

    Args:
        function: The python function
        signature: Optional signature, which triggers eager compilation
        parallel (bool):
            Whether loops over `numba.prange` may run in parallel. This is only honored
            if :meth:`~rdsim.tools.config.Config.use_multithreading` allows it.
        **kwargs: Further arguments passed to :func:`numba.jit`

    Returns:
        The compiled function
    """
    if is_jitted(function):
        return function

    fastmath = config["numba.fastmath"]
    kwargs.setdefault("fastmath", SAFE_FASTMATH_FLAGS if fastmath is True else fastmath)
    kwargs.setdefault("debug", config["numba.debug"])
    kwargs.setdefault("cache", False)
    kwargs["parallel"] = parallel and config.use_multithreading()

    _logger.info(
        "Wrap `%s` for compilation (parallel=%s)",
        getattr(function, "__name__", "<anonymous>"),
        kwargs["parallel"],
    )
    JIT_COUNT.increment()
    dispatcher = nb.jit(signature, nopython=True, **kwargs)(function)
    _DISPATCHERS.append(dispatcher)
    return dispatcher  # type: ignore


def get_compilation_count() -> int:
    """int: number of machine-code versions compiled for functions wrapped by `jit`

    numba compiles a function when it is first called with new argument types, so this
    number grows during a simulation, while :data:`JIT_COUNT` only grows on import.
    """
    return sum(len(getattr(d, "signatures", ())) for d in _DISPATCHERS)


def random_seed(seed: int = 0) -> None:
    """Seed the legacy random generators of numpy and of compiled code.

    Compiled functions draw from a generator that is separate from numpy's, so both
    need to be seeded for reproducible results.

    Args:
        seed (int): The seed
    """
    np.random.seed(seed)
    if not nb.config.DISABLE_JIT:
        _seed_compiled_generator(seed)


@jit
def _seed_compiled_generator(seed: int) -> None:
    np.random.seed(seed)
