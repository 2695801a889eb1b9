"""Tests for filtertrees._registry.py and registered kernels."""
import numpy as np
import pytest

from filtertrees import Kernels
from filtertrees._registry import Registry

pytestmark = pytest.mark.other


def test_registry() -> None:
    """Test Registry functionality."""
    registry = Registry("Test")

    @registry.register("double")
    def double(x: float) -> float:
        return 2 * x

    assert registry.name == "Test"
    assert registry.keys() == ["double"]
    assert "double" in registry
    assert registry["double"](2) == 4

    with pytest.raises(KeyError) as e:
        registry["triple"]
    assert "not found in registry (Test)" in str(e.value)

    with pytest.raises(KeyError) as e:
        registry.register("double")(double)
    assert "already exists" in str(e.value)


def test_kernels_registered() -> None:
    """Test built-in kernels are registered."""
    assert set(Kernels.keys()) >= {"linear", "poly", "rbf"}


def test_kernel_values() -> None:
    """Test registered kernels against pairwise definitions."""
    x = np.array([1.0, 2.0])
    X = np.array([[1.0, 2.0], [0.0, 1.0], [-1.0, 3.0]])

    assert np.allclose(Kernels["linear"](x, X), [5.0, 2.0, 5.0])
    assert np.allclose(Kernels["poly"](x, X), [5.0, 2.0, 5.0])
    assert np.allclose(Kernels["poly"](x, X, degree=2.0, coef0=1.0), [36.0, 9.0, 36.0])
    assert np.allclose(Kernels["rbf"](x, X), np.exp(-0.01 * np.array([0.0, 2.0, 5.0])))
    assert np.allclose(Kernels["rbf"](x, X, gamma=1.0), np.exp(-np.array([0.0, 2.0, 5.0])))


@pytest.mark.parametrize("alias", ["linear", "poly", "rbf"])
def test_kernel_row_shape(alias: str) -> None:
    """Test registered kernels return one value per sample."""
    prng = np.random.RandomState(0)
    X = prng.normal(size=(6, 3))

    values = Kernels[alias](X[0], X)
    assert values.shape == (6,)
    assert np.allclose(values, [Kernels[alias](X[0], X[i : i + 1])[0] for i in range(6)])
