from typing import Any, List, Optional, Tuple

import numpy as np
from numba import njit


def validate_features(X: Any) -> Tuple[np.ndarray, Optional[List[str]]]:
    """Validate features by checking types and casting to a 2d float array.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features)
        Features.

    Returns
    -------
    np.ndarray
        Features.

    Optional[List[str]]
        Column names if X is a pandas DataFrame, otherwise None.
    """
    feature_names = None
    if not isinstance(X, np.ndarray):
        if isinstance(X, (list, tuple)):
            X = np.array(X)
        elif isinstance(getattr(X, "values", None), np.ndarray):
            if hasattr(X, "columns"):
                feature_names = [str(column) for column in X.columns]
            X = X.values
        else:
            raise ValueError(
                f"Unsupported type for X ({type(X)}), expected np.ndarray, list, tuple, or pandas data structure"
            )

    if X.ndim == 1:
        X = X[:, None]
    elif X.ndim > 2:
        raise ValueError(f"Arrays with more than 2 dimensions are not supported for X, detected ({X.ndim}) dimensions")

    return np.ascontiguousarray(X, dtype=float), feature_names


@njit(cache=True, nogil=True)
def class_counts(y: np.ndarray, n_classes: int) -> np.ndarray:
    """Count class labels.

    Note: This function assumes that for K classes, the labels are 0, 1, ..., K-1.

    Parameters
    ----------
    y : np.ndarray
        Encoded labels.

    n_classes : int
        Number of classes.

    Returns
    -------
    np.ndarray
        Number of samples in each class.
    """
    counts = np.zeros(n_classes, dtype=np.int64)
    for label in y:
        counts[label] += 1
    return counts


@njit(cache=True, nogil=True)
def estimate_proba(counts: np.ndarray) -> np.ndarray:
    """Estimate class probabilities from class counts.

    Parameters
    ----------
    counts : np.ndarray
        Number of samples in each class.

    Returns
    -------
    np.ndarray
        Estimated probabilities for each class, all zeros when there are no samples.
    """
    total = counts.sum()
    if total == 0:
        return np.zeros(len(counts))
    return counts / total


@njit(nogil=True)
def split_data(
    X: np.ndarray, y: np.ndarray, routing: np.ndarray, threshold: float
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Split data with routing values computed in another feature space.

    Parameters
    ----------
    X : np.ndarray
        Features.

    y : np.ndarray:
        Labels.

    routing : np.ndarray
        Values compared against the threshold, one per row of X.

    threshold : float
        Threshold value to use for creating binary split.

    Returns
    -------
    X_left : np.ndarray
        Features in left child node.

    y_left : np.ndarray
        Target in left child node.

    X_right : np.ndarray
        Features in right child node.

    y_right : np.ndarray
        Target in right child node.
    """
    idx = routing <= threshold
    return X[idx], y[idx], X[~idx], y[~idx]
