"""The py-rdsim package simulates pattern formation in reaction-diffusion systems."""

# determine the package version
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("py-rdsim")
except PackageNotFoundError:
    # package is not installed, so we cannot determine any version
    __version__ = "unknown"
del PackageNotFoundError, version  # clean name space

# initialize the configuration
from .tools.config import Config, Parameter, environment  # noqa: F401

config = Config()  # initialize the default configuration

# import most common classes into main name space
from .experiment import *  # noqa: F403
from .fields import *  # noqa: F403
from .grids import *  # noqa: F403
from .pdes import *  # noqa: F403
from .solvers import *  # noqa: F403
from .trackers import *  # noqa: F403
from .visualization import *  # noqa: F403

del Config  # clean name space
