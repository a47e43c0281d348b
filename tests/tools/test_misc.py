"""
.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import os

from rdsim.tools import misc


def test_ensure_directory_exists(tmp_path):
    """Tests the ensure_directory_exists function."""
    # create temporary name
    path = tmp_path / "test_ensure_directory_exists"
    assert not path.exists()
    # create the folder
    misc.ensure_directory_exists(path)
    assert path.is_dir()
    # check that a second call has the same result
    misc.ensure_directory_exists(path)
    assert path.is_dir()
    # remove the folder again
    os.rmdir(path)
    assert not path.exists()


def test_module_available():
    """Tests the module_available function."""
    assert misc.module_available("numpy")
    assert not misc.module_available("module_not_existing")


def test_decorator_arguments():
    """Tests the decorator_arguments function."""

    @misc.decorator_arguments
    def add(func, value=1):
        return lambda x: func(x) + value

    @add
    def f1(x):
        return x

    @add(value=3)
    def f2(x):
        return x

    assert f1(1) == 2
    assert f2(1) == 4
