"""Handles configuration variables of the package.

The configuration collects default values for the numerical methods, e.g., the
tolerance of the multigrid solver and the flags used when compiling with numba. Values
can be changed globally or temporarily using the configuration as a context manager:

.. code-block:: python

    from rdsim import config

    with config({"multigrid.tolerance": 1e-6}):
        ...  # solve with a tighter tolerance

.. autosummary::
   :nosignatures:

   Parameter
   Config
   get_package_versions
   is_hpc_environment
   environment

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import collections
import contextlib
import importlib.metadata
import logging
import os
import sys
from typing import Any

from .misc import module_available

_logger = logging.getLogger(__name__)

HPC_VARIABLES = ("SLURM_JOB_ID", "PBS_JOBID", "LSB_JOBID")
"""tuple: environment variables set by the job schedulers of compute clusters"""


class Parameter:
    """A single configuration value with a type and a description."""

    def __init__(
        self,
        name: str,
        default_value=None,
        cls=object,
        description: str = "",
    ):
        """
        Args:
            name (str):
                The key under which the parameter is stored
            default_value:
                The value used unless the parameter is changed
            cls:
                Type of the parameter. Values are converted to this type when read.
            description (str):
                Explanation of the effect of the parameter
        """
        self.name = name
        self.default_value = default_value
        self.cls = cls
        self.description = description

        if cls is not object and cls(default_value) != default_value:
            _logger.warning(
                "Default of parameter `%s` is not of type `%s`", name, cls.__name__
            )

    def __repr__(self):
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"default_value={self.default_value!r}, cls={self.cls.__name__}, "
            f"description={self.description!r})"
        )

    def convert(self, value=None):
        """Convert `value` to the type of the parameter.

        Args:
            value: The value to convert. The default value is used if omitted.

        Returns:
            The converted value
        """
        if value is None:
            value = self.default_value
        if self.cls is object:
            return value
        try:
            return self.cls(value)
        except ValueError as err:
            raise ValueError(
                f"Parameter `{self.name}` requires type {self.cls.__name__}, got "
                f"{value!r}"
            ) from err


DEFAULT_CONFIG: list[Parameter] = [
    Parameter(
        "multigrid.tolerance",
        1e-3,
        float,
        "Maximal absolute residual that the multigrid solver accepts as converged. "
        "The residual is measured in the units of the right hand side of the linear "
        "system, i.e., concentration per time for implicit diffusion steps.",
    ),
    Parameter(
        "multigrid.maxiter",
        100,
        int,
        "Maximal number of multigrid cycles per linear solve. If the residual is still "
        "above the tolerance afterwards, a warning is logged and the best estimate is "
        "kept.",
    ),
    Parameter(
        "multigrid.miniter",
        1,
        int,
        "Minimal number of multigrid cycles per linear solve, even if the initial "
        "residual is already below the tolerance.",
    ),
    Parameter(
        "multigrid.nrelax",
        4,
        int,
        "Initial number of relaxation sweeps on each level of a multigrid cycle. The "
        "solver adapts this number when convergence is slow.",
    ),
    Parameter(
        "multigrid.coarsest_size",
        1,
        int,
        "Number of cells along the shortest axis below which the grid is not coarsened "
        "any further when building the multigrid hierarchy.",
    ),
    Parameter(
        "numba.debug",
        False,
        bool,
        "Compile functions with numba's debug mode, which emits extra information.",
    ),
    Parameter(
        "numba.fastmath",
        True,
        bool,
        "Allow numba to reorder floating point operations for speed. Infinities and "
        "NaN are always handled strictly.",
    ),
    Parameter(
        "numba.multithreading",
        "only_local",
        str,
        "Use of multiple threads in compiled cell loops: 'never', 'always', or "
        "'only_local', which disables threads on compute clusters.",
    ),
]


class Config(collections.UserDict):
    """Dictionary of configuration values with controlled modification.

    Items that are :class:`Parameter` instances are converted to their type when read,
    while any other item is returned unchanged. The `mode` determines which changes
    are allowed:

    * `insert`: new keys can be added and existing keys changed or deleted
    * `update`: only the values of existing keys can be changed
    * `locked`: no changes are allowed
    """

    def __init__(self, items: dict[str, Any] | None = None, mode: str = "update"):
        """
        Args:
            items (dict, optional):
                Additional values, which are always inserted regardless of `mode`
            mode (str):
                The modification mode
        """
        self.mode = "insert"
        super().__init__({p.name: p for p in DEFAULT_CONFIG})
        if items:
            self.update(items)
        self.mode = mode

    def __getitem__(self, key: str):
        value = self.data[key]
        return value.convert() if isinstance(value, Parameter) else value

    def __setitem__(self, key: str, value):
        if self.mode == "locked":
            raise RuntimeError("Configuration is locked")
        elif self.mode == "update":
            if key not in self.data:
                raise KeyError(f"Cannot add `{key}` unless the mode is `insert`")
        elif self.mode != "insert":
            raise ValueError(f"Unsupported configuration mode `{self.mode}`")
        self.data[key] = value

    def __delitem__(self, key: str):
        if self.mode != "insert":
            raise RuntimeError("Items can only be deleted in `insert` mode")
        del self.data[key]

    def to_dict(self) -> dict[str, Any]:
        """dict: the converted configuration values"""
        return {key: self[key] for key in self.data}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.to_dict()!r})"

    @contextlib.contextmanager
    def __call__(self, values: dict[str, Any] | None = None, **kwargs):
        """Change configuration values within a `with` block.

        Args:
            values (dict): New configuration values
            **kwargs: Further configuration values
        """
        saved = self.data.copy()
        self.data.update(values or {}, **kwargs)
        try:
            yield
        finally:
            self.data = saved

    def use_multithreading(self) -> bool:
        """Decide whether compiled cell loops should use multiple threads.

        Returns:
            bool: whether multithreading is enabled
        """
        setting = self["numba.multithreading"]
        if setting == "only_local":
            return not is_hpc_environment()
        elif setting in {"always", "never"}:
            return setting == "always"
        raise ValueError(
            "`numba.multithreading` must be one of 'always', 'never', or 'only_local', "
            f"not `{setting}`"
        )


def get_package_versions(
    packages: list[str], *, na_str="not available"
) -> dict[str, str]:
    """Determine the installed versions of python packages.

    Args:
        packages (list): The distribution names of the packages
        na_str (str): Text reported for packages that are not installed

    Returns:
        dict: the version of each package
    """
    versions: dict[str, str] = {}
    for name in sorted(packages):
        try:
            versions[name] = importlib.metadata.version(name)
        except importlib.metadata.PackageNotFoundError:
            versions[name] = na_str
    return versions


def is_hpc_environment() -> bool:
    """bool: whether the code runs as a job on a compute cluster"""
    return any(var in os.environ for var in HPC_VARIABLES)


def environment() -> dict[str, Any]:
    """Obtain information about the compute environment.

    Returns:
        dict: information about the python installation, the packages, and the
        configuration
    """
    import matplotlib as mpl

    from .. import __version__ as package_version
    from .. import config

    result: dict[str, Any] = {
        "package version": package_version,
        "python version": sys.version,
        "environment": {"platform": sys.platform, "is_hpc": is_hpc_environment()},
        "config": config.to_dict(),
        "mandatory packages": get_package_versions(
            ["matplotlib", "numba", "numpy", "scipy", "tqdm"]
        ),
        "matplotlib environment": {"backend": mpl.get_backend()},
    }
    if module_available("numba"):
        from .numba import numba_environment

        result["numba environment"] = numba_environment()
    return result
