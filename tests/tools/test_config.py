"""
.. codeauthor:: David Zwicker <david.zwicker@ds.mpg.de>
"""

import pytest

from rdsim.tools.config import Config, Parameter, environment, get_package_versions


def test_environment():
    """Test the environment function."""
    env = environment()
    assert isinstance(env, dict)
    assert "numba environment" in env
    assert set(env["mandatory packages"]) == {
        "matplotlib",
        "numba",
        "numpy",
        "scipy",
        "tqdm",
    }


def test_config_defaults():
    """Test the default configuration."""
    c = Config()
    assert c["multigrid.tolerance"] == pytest.approx(1e-3)
    assert c["multigrid.maxiter"] == 100
    assert c["multigrid.miniter"] == 1
    assert c["multigrid.nrelax"] == 4
    assert "numba.fastmath" in c
    assert "numba.debug" in c.to_dict()
    assert isinstance(repr(c), str)


def test_config_modes():
    """Test configuration system running in different modes."""
    c = Config({"key": 3}, mode="insert")
    assert c["key"] > 0
    c["key"] = 0
    assert c["key"] == 0
    c["new_value"] = "value"
    assert c["new_value"] == "value"
    c.update({"new_value2": "value2"})
    assert c["new_value2"] == "value2"
    del c["new_value"]
    with pytest.raises(KeyError):
        c["new_value"]
    with pytest.raises(KeyError):
        c["undefined"]

    c = Config({"key": 3}, mode="update")
    assert c["key"] > 0
    c["key"] = 0

    with pytest.raises(KeyError):
        c["new_value"] = "value"
    with pytest.raises(KeyError):
        c.update({"new_value": "value"})
    with pytest.raises(RuntimeError):
        del c["multigrid.maxiter"]
    with pytest.raises(KeyError):
        c["undefined"]

    c = Config({"key": 3}, mode="locked")
    assert c["key"] > 0
    with pytest.raises(RuntimeError):
        c["key"] = 0
    with pytest.raises(RuntimeError):
        c.update({"key": 0})
    with pytest.raises(RuntimeError):
        c["new_value"] = "value"
    with pytest.raises(RuntimeError):
        del c["key"]

    c = Config({"key": 3}, mode="undefined")
    assert c["key"] > 0
    with pytest.raises(ValueError):
        c["key"] = 0


def test_config_contexts():
    """Test context manager temporarily changing configuration."""
    c = Config({"key": 3})

    assert c["key"] == 3
    with c({"key": 0}):
        assert c["key"] == 0
        with c({"key": 1}):
            assert c["key"] == 1
        assert c["key"] == 0

    assert c["key"] == 3

    with c({"multigrid.maxiter": "20"}):
        assert c["multigrid.maxiter"] == "20"
    assert c["multigrid.maxiter"] == 100


@pytest.mark.parametrize("setting,expected", [("always", True), ("never", False)])
def test_config_multithreading(setting, expected):
    """Test the multithreading setting."""
    c = Config()
    with c({"numba.multithreading": setting}):
        assert c.use_multithreading() is expected

    c["numba.multithreading"] = "sometimes"
    with pytest.raises(ValueError):
        c.use_multithreading()


def test_config_only_local(monkeypatch):
    """Test disabling multithreading on clusters."""
    c = Config({"numba.multithreading": "only_local"})
    monkeypatch.delenv("SLURM_JOB_ID", raising=False)
    monkeypatch.delenv("PBS_JOBID", raising=False)
    monkeypatch.delenv("LSB_JOBID", raising=False)
    assert c.use_multithreading()
    monkeypatch.setenv("SLURM_JOB_ID", "1")
    assert not c.use_multithreading()


def test_parameter():
    """Test the conversion of parameters."""
    p = Parameter("a", 1, int, "description")
    assert p.convert() == 1
    assert p.convert("3") == 3
    with pytest.raises(ValueError):
        p.convert("a")
    assert "description" in repr(p)

    assert Parameter("b", [1]).convert() == [1]


def test_package_versions():
    """Test retrieving versions of packages."""
    versions = get_package_versions(["numpy", "package_not_existing"], na_str="n/a")
    assert versions["package_not_existing"] == "n/a"
    assert versions["numpy"] != "n/a"
