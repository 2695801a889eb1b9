from typing import Optional, Tuple

import numpy as np
from numba import njit


@njit(cache=True, nogil=True)
def entropy(counts: np.ndarray) -> float:
    """Calculate entropy (in bits) of a class-count vector.

    Empty classes contribute nothing, i.e. log2(0) is taken to be 0.

    Parameters
    ----------
    counts : np.ndarray
        Number of samples in each class.

    Returns
    -------
    float
        Entropy of the class distribution.
    """
    total = counts.sum()
    if total == 0:
        return 0.0

    result = 0.0
    for count in counts:
        if count > 0:
            p = count / total
            result += -p * np.log2(p)
    return result


@njit(cache=True, nogil=True)
def weighted_entropy(left: np.ndarray, right: np.ndarray) -> float:
    """Calculate split impurity as size-weighted sum of children entropies.

    Parameters
    ----------
    left : np.ndarray
        Class counts in left child node.

    right : np.ndarray
        Class counts in right child node.

    Returns
    -------
    float
        Weighted entropy of the binary split.
    """
    n_left = left.sum()
    n_right = right.sum()
    n = float(n_left + n_right)

    return (n_left / n) * entropy(left) + (n_right / n) * entropy(right)


@njit(cache=True, nogil=True)
def best_split_for_feature(x: np.ndarray, y: np.ndarray, n_classes: int) -> Tuple[float, float, int]:
    """Find the threshold on a single feature with the lowest weighted entropy.

    Parameters
    ----------
    x : np.ndarray
        Feature.

    y : np.ndarray
        Encoded labels.

    n_classes : int
        Number of classes.

    Returns
    -------
    threshold : float
        Midpoint between the two adjacent sorted values bounding the best split.

    impurity : float
        Weighted entropy of the best split.

    index : int
        Position of the last left sample in sorted order, -1 if the feature admits no split.
    """
    # Mergesort keeps tied values in their original order
    order = np.argsort(x, kind="mergesort")
    x_sorted = x[order]
    y_sorted = y[order]
    n = len(x_sorted)

    left = np.zeros(n_classes, dtype=np.int64)
    right = np.zeros(n_classes, dtype=np.int64)
    for i in range(n):
        right[y_sorted[i]] += 1

    best_threshold = 0.0
    best_impurity = 0.0
    best_index = -1
    for i in range(n - 1):
        label = y_sorted[i]
        left[label] += 1
        right[label] -= 1

        lower = x_sorted[i]
        upper = x_sorted[i + 1]
        if lower != upper:
            impurity = weighted_entropy(left, right)
            threshold = (lower + upper) / 2
            if (best_index == -1 or impurity < best_impurity) and threshold != lower and threshold != upper:
                best_threshold = threshold
                best_impurity = impurity
                best_index = i

    return best_threshold, best_impurity, best_index


def best_split(X: np.ndarray, y: np.ndarray, n_classes: int) -> Optional[Tuple[int, float, float]]:
    """Select the feature and threshold with the lowest weighted entropy.

    Parameters
    ----------
    X : np.ndarray
        Features, usually already transformed by the node's transformer.

    y : np.ndarray
        Encoded labels.

    n_classes : int
        Number of classes.

    Returns
    -------
    Optional[Tuple[int, float, float]]
        Tuple of (feature, threshold, impurity), or None if no feature can be split.
    """
    best: Optional[Tuple[int, float, float]] = None
    for feature in range(X.shape[1]):
        x = np.ascontiguousarray(X[:, feature])
        threshold, impurity, index = best_split_for_feature(x, y, n_classes)
        if index == -1:
            continue

        if best is None or impurity < best[2]:
            best = (feature, threshold, impurity)

    return best
