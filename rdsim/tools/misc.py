"""Miscellaneous helper functions.

.. autosummary::
   :nosignatures:

   module_available
   ensure_directory_exists
   decorator_arguments

.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

from __future__ import annotations

import functools
import importlib
from pathlib import Path
from typing import Callable


def module_available(module_name: str) -> bool:
    """bool: whether the module `module_name` can be imported"""
    try:
        importlib.import_module(module_name)
    except ImportError:
        return False
    return True


def ensure_directory_exists(folder: str | Path) -> None:
    """Create a folder and its parents unless they exist already.

    Args:
        folder (str or :class:`~pathlib.Path`):
            The folder. Empty strings denote the current working directory.
    """
    if str(folder):
        Path(folder).mkdir(parents=True, exist_ok=True)


def decorator_arguments(decorator: Callable) -> Callable:
    r"""Allow a decorator to be used with and without arguments.

    After wrapping, both `@decorator` and `@decorator(\*args, \*\*kwargs)` work. The
    wrapped decorator receives the decorated function as its first argument.

    Args:
        decorator: The decorator accepting optional arguments after the function

    Returns:
        The decorator supporting both forms
    """

    @functools.wraps(decorator)
    def wrapper(*args, **kwargs):
        if len(args) == 1 and not kwargs and callable(args[0]):
            return decorator(args[0])  # used without arguments
        return functools.partial(_apply_decorator, decorator, args, kwargs)

    return wrapper


def _apply_decorator(decorator: Callable, args: tuple, kwargs: dict, func: Callable):
    return decorator(func, *args, **kwargs)
