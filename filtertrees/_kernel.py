import numpy as np
from sklearn.metrics import pairwise

from ._registry import Kernels


@Kernels.register("linear")
def linear_kernel(x: np.ndarray, X: np.ndarray) -> np.ndarray:
    """Dot product of one sample against every sample.

    Parameters
    ----------
    x : np.ndarray
        Single sample.

    X : np.ndarray
        Samples to compare against.

    Returns
    -------
    np.ndarray
        Kernel values, one per row of X.
    """
    return pairwise.linear_kernel(X, x[None, :]).ravel()


@Kernels.register("poly")
def polynomial_kernel(x: np.ndarray, X: np.ndarray, degree: float = 1.0, coef0: float = 0.0) -> np.ndarray:
    """Polynomial kernel (x . z + coef0) ** degree of one sample against every sample.

    Parameters
    ----------
    x : np.ndarray
        Single sample.

    X : np.ndarray
        Samples to compare against.

    degree : float, default=1.0
        Exponent of the polynomial.

    coef0 : float, default=0.0
        Constant added before exponentiation, 1.0 includes lower-order terms.

    Returns
    -------
    np.ndarray
        Kernel values, one per row of X.
    """
    # Unscaled dot product, sklearn defaults gamma to 1 / n_features
    return pairwise.polynomial_kernel(X, x[None, :], degree=degree, gamma=1.0, coef0=coef0).ravel()


@Kernels.register("rbf")
def rbf_kernel(x: np.ndarray, X: np.ndarray, gamma: float = 0.01) -> np.ndarray:
    """Gaussian kernel exp(-gamma * ||x - z||^2) of one sample against every sample.

    Parameters
    ----------
    x : np.ndarray
        Single sample.

    X : np.ndarray
        Samples to compare against.

    gamma : float, default=0.01
        Kernel width.

    Returns
    -------
    np.ndarray
        Kernel values, one per row of X.
    """
    return pairwise.rbf_kernel(X, x[None, :], gamma=gamma).ravel()
