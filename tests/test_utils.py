"""Tests for filtertrees._utils.py."""
from typing import Any, Dict

import numpy as np
import pandas as pd
import pytest

from filtertrees._utils import class_counts, estimate_proba, split_data, validate_features

pytestmark = pytest.mark.other


@pytest.mark.parametrize(
    "kwargs,expected",
    [
        ({"y": np.array([0, 0, 1, 1]), "n_classes": 2}, np.array([2, 2])),
        ({"y": np.array([0, 0, 1, 1]), "n_classes": 3}, np.array([2, 2, 0])),
        ({"y": np.array([2, 2, 1, 0]), "n_classes": 3}, np.array([1, 1, 2])),
        ({"y": np.array([], dtype=np.int64), "n_classes": 2}, np.array([0, 0])),
    ],
)
def test_class_counts(kwargs: Dict[str, Any], expected: np.ndarray) -> None:
    """Test class_counts function."""
    counts = class_counts(kwargs["y"].astype(np.int64), kwargs["n_classes"])
    assert np.array_equal(counts, expected)


@pytest.mark.parametrize(
    "counts,expected",
    [
        (np.array([2, 2]), np.array([0.5, 0.5])),
        (np.array([2, 2, 0]), np.array([0.5, 0.5, 0.0])),
        (np.array([0, 3, 1]), np.array([0.0, 0.75, 0.25])),
        (np.array([0, 0]), np.array([0.0, 0.0])),
    ],
)
def test_estimate_proba(counts: np.ndarray, expected: np.ndarray) -> None:
    """Test estimate_proba function."""
    proba = estimate_proba(counts.astype(np.int64))
    assert np.all(proba == expected)


def test_split_data() -> None:
    """Test split_data routes rows by values from another feature space."""
    X = np.array([[10.0, 0.0], [20.0, 1.0], [30.0, 2.0], [40.0, 3.0]])
    y = np.array([0, 1, 0, 1], dtype=np.int64)
    routing = np.array([5.0, -1.0, 2.0, 7.0])

    X_left, y_left, X_right, y_right = split_data(X, y, routing, 2.0)

    assert np.array_equal(X_left, X[[1, 2]])
    assert np.array_equal(y_left, y[[1, 2]])
    assert np.array_equal(X_right, X[[0, 3]])
    assert np.array_equal(y_right, y[[0, 3]])
    assert len(X_left) + len(X_right) == len(X)


def test_validate_features() -> None:
    """Test validate_features function."""
    X, names = validate_features([1, 2, 3])
    assert X.shape == (3, 1)
    assert X.dtype == float
    assert names is None

    X, names = validate_features(pd.DataFrame({"a": [1, 2], "b": [3, 4]}))
    assert X.shape == (2, 2)
    assert names == ["a", "b"]

    with pytest.raises(ValueError) as e:
        validate_features(np.zeros((2, 2, 2)))
    assert "more than 2 dimensions" in str(e.value)

    with pytest.raises(ValueError) as e:
        validate_features({"a": 1})
    assert "Unsupported type for X" in str(e.value)

    X, names = validate_features(pd.Series([1.0, 2.0, 3.0]))
    assert X.shape == (3, 1)
    assert names is None

    with pytest.raises(ValueError) as e:
        validate_features({"a": [1, 2]})
    assert "Unsupported type for X" in str(e.value)
